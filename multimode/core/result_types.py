"""Mode result and transcript data contracts.

Architectural role:
    Defines the shapes returned by `multimode.modes.registry` and recorded by
    `multimode.memory.chat_history`. API and CLI adapters only depend on these
    shapes, never on mode internals.

Determinism:
    Purely structural. `ChatMessage.now` reads the wall clock.
"""

import time
from dataclasses import dataclass, field
from typing import Any


CANVAS_CODE = "code"
CANVAS_WRITING = "writing"
CANVAS_IMAGE = "image"


@dataclass
class CanvasPayload:
    """Side-panel content attached to a mode result.

    Attributes:
        type: One of `code`, `writing`, `image`.
        content: Canvas-specific mapping (`language/code/description`,
            `title/sections`, or `images`).
    """

    type: str
    content: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {"type": self.type, "content": self.content}


@dataclass
class ModeResult:
    """Structured mode output: transcript text plus optional canvas.

    `mode` is the key of the mode that produced the result, filled in by the
    chat engine. It is reported by the adapters, not by `to_dict`.
    """

    text: str
    type: str = "chat"
    canvas: CanvasPayload | None = None
    mode: str = ""

    def to_dict(self) -> dict:
        data = {"text": self.text, "type": self.type}
        if self.canvas is not None:
            data["canvas"] = self.canvas.to_dict()
        return data


@dataclass
class ChatMessage:
    """One transcript entry. `timestamp` is epoch milliseconds."""

    text: str
    sender: str
    mode: str
    timestamp: int = 0

    @classmethod
    def now(cls, text: str, sender: str, mode: str) -> "ChatMessage":
        return cls(text=text, sender=sender, mode=mode, timestamp=int(time.time() * 1000))

    @classmethod
    def from_dict(cls, data: dict) -> "ChatMessage":
        return cls(
            text=str(data.get("text", "")),
            sender=str(data.get("sender", "bot")),
            mode=str(data.get("mode", "")),
            timestamp=int(data.get("timestamp", 0) or 0),
        )

    def to_dict(self) -> dict:
        return {
            "text": self.text,
            "sender": self.sender,
            "mode": self.mode,
            "timestamp": self.timestamp,
        }
