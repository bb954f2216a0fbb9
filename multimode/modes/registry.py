"""Mode registry: mode key -> prompt shaping + result shaping.

Architectural role:
    Maps each chat mode to a system instruction and a function that calls the
    provider client and shapes its output into a `ModeResult` (transcript text and
    an optional code / writing / image canvas).

Registered modes (in display order):
    assistant, codex, thinking, research, deep-research, math, analyst, creative,
    writer, image, guided.

Failure handling:
    - Unknown mode keys raise `UnknownModeError`.
    - Provider failures never raise here: `generate_text` yields `"Error: ..."`
      strings (shown as-is in the transcript/canvas) and `generate_image` always
      yields at least one image.
    - Codex JSON that cannot be parsed degrades to a placeholder canvas.
"""

import json
import logging
import re
from dataclasses import dataclass
from typing import Awaitable, Callable, Protocol

from multimode.core.result_types import (
    CANVAS_CODE,
    CANVAS_IMAGE,
    CANVAS_WRITING,
    CanvasPayload,
    ModeResult,
)
from multimode.image.types import GeneratedImage, PROVIDER_RUNWARE
from multimode.modes import prompts


logger = logging.getLogger(__name__)

DEFAULT_MODE = "assistant"
CANVAS_CHAT = "chat"

_JSON_OBJECT_PATTERN = re.compile(r"\{.*\}", re.DOTALL)


class UnknownModeError(KeyError):
    """Raised when a mode key is not registered."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(key)

    def __str__(self) -> str:
        return f"Unknown mode: {self.key}"


class GenerationProvider(Protocol):
    """Minimal async interface the modes need from `ProviderClient`."""

    async def generate_text(self, prompt: str, system_instruction: str = "") -> str:
        ...

    async def generate_image(self, prompt: str) -> list[GeneratedImage]:
        ...


Handler = Callable[[GenerationProvider, str], Awaitable[ModeResult]]


@dataclass(frozen=True)
class Mode:
    """One chat mode.

    Attributes:
        key: Registry key (also the API/CLI identifier).
        name: Display name.
        icon: Display glyph.
        color: Accent colour (hex) for presentation layers.
        canvas_type: `chat`, `code`, `writing` or `image`.
        description: One-line summary.
        handler: Async `(provider, message) -> ModeResult`.
    """

    key: str
    name: str
    icon: str
    color: str
    canvas_type: str
    description: str
    handler: Handler

    def metadata(self) -> dict:
        return {
            "id": self.key,
            "name": self.name,
            "icon": self.icon,
            "color": self.color,
            "canvas_type": self.canvas_type,
            "description": self.description,
        }


# ============================================================
# Result shaping
# ============================================================

def parse_codex_response(raw: str) -> dict:
    """Extract the `{code, language, explanation}` object from a model reply.

    The first `{` through the last `}` is parsed as JSON. When nothing parses,
    the raw reply becomes the explanation and the code is a placeholder.
    """
    parsed = {
        "code": "// Error parsing code",
        "language": "javascript",
        "explanation": raw,
    }
    match = _JSON_OBJECT_PATTERN.search(raw or "")
    if not match:
        return parsed

    try:
        candidate = json.loads(match.group(0))
    except ValueError:
        logger.exception("Failed to parse Codex JSON")
        return parsed

    if isinstance(candidate, dict):
        return candidate
    return parsed


async def _assistant(provider: GenerationProvider, message: str) -> ModeResult:
    response = await provider.generate_text(message, prompts.ASSISTANT_INSTRUCTION)
    return ModeResult(text=response)


async def _codex(provider: GenerationProvider, message: str) -> ModeResult:
    raw = await provider.generate_text(
        prompts.build_codex_prompt(message),
        prompts.CODEX_INSTRUCTION,
    )
    parsed = parse_codex_response(raw)

    return ModeResult(
        text=parsed.get("explanation") or "Here is the code you requested.",
        canvas=CanvasPayload(
            type=CANVAS_CODE,
            content={
                "language": parsed.get("language") or "javascript",
                "code": parsed.get("code") or raw,
                "description": "Generated Code",
            },
        ),
    )


async def _thinking(provider: GenerationProvider, message: str) -> ModeResult:
    response = await provider.generate_text(message, prompts.THINKING_INSTRUCTION)
    return ModeResult(
        text="I have analyzed your request. See my reasoning process in the canvas.",
        canvas=CanvasPayload(
            type=CANVAS_WRITING,
            content={
                "title": "Thought Process",
                "sections": [{"type": "thinking", "content": response}],
            },
        ),
    )


async def _math(provider: GenerationProvider, message: str) -> ModeResult:
    response = await provider.generate_text(message, prompts.MATH_INSTRUCTION)
    return ModeResult(
        text="I have solved the problem. Check the solution in the canvas.",
        canvas=CanvasPayload(
            type=CANVAS_CODE,
            content={
                "language": "math",
                "code": response,
                "description": "Step-by-Step Solution",
            },
        ),
    )


def _writing_handler(instruction: str, text: str, title) -> Handler:
    """Build a handler that renders the reply as a single-section document.

    `title` is either a fixed string or a callable receiving the user message.
    """

    async def handler(provider: GenerationProvider, message: str) -> ModeResult:
        response = await provider.generate_text(message, instruction)
        return ModeResult(
            text=text,
            canvas=CanvasPayload(
                type=CANVAS_WRITING,
                content={
                    "title": title(message) if callable(title) else title,
                    "sections": [{"type": "paragraph", "content": response}],
                },
            ),
        )

    return handler


def format_image_message(image: GeneratedImage, alt_text: str) -> str:
    """Markdown chat text for a generated image."""
    provider = "Runware" if image.provider == PROVIDER_RUNWARE else "Pollinations"
    return (
        f"![{alt_text}]({image.url})\n\n"
        f"Generated with {provider} ({image.width}x{image.height})"
    )


async def _image(provider: GenerationProvider, message: str) -> ModeResult:
    images = await provider.generate_image(message)
    return ModeResult(
        text=format_image_message(images[0], message),
        canvas=CanvasPayload(
            type=CANVAS_IMAGE,
            content={"images": [
                image.to_dict(image_id) for image_id, image in enumerate(images, start=1)
            ]},
        ),
    )


# ============================================================
# Registry
# ============================================================

def default_modes() -> list[Mode]:
    return [
        Mode(
            "assistant", "Assistant", "\U0001F4AC", "#6366f1", CANVAS_CHAT,
            "General purpose AI assistant", _assistant,
        ),
        Mode(
            "codex", "Codex", "\U0001F4BB", "#10b981", CANVAS_CODE,
            "Code generation and debugging", _codex,
        ),
        Mode(
            "thinking", "Thinking", "\U0001F9E0", "#8b5cf6", CANVAS_WRITING,
            "Deep reasoning with visible thought process", _thinking,
        ),
        Mode(
            "research", "Research", "\U0001F50D", "#0ea5e9", CANVAS_WRITING,
            "Information gathering and synthesis",
            _writing_handler(
                prompts.RESEARCH_INSTRUCTION,
                "I've compiled the research findings. View the full report in the canvas.",
                lambda message: f"Research: {message}",
            ),
        ),
        Mode(
            "deep-research", "Deep Research", "\U0001F52C", "#3b82f6", CANVAS_WRITING,
            "Comprehensive academic-level research",
            _writing_handler(
                prompts.DEEP_RESEARCH_INSTRUCTION,
                "Deep research analysis complete. Please review the comprehensive "
                "document in the canvas.",
                lambda message: f"Deep Analysis: {message}",
            ),
        ),
        Mode(
            "math", "Math", "\U0001F4D0", "#f59e0b", CANVAS_CODE,
            "Mathematical problem solving", _math,
        ),
        Mode(
            "analyst", "Analyst", "\U0001F4CA", "#06b6d4", CANVAS_WRITING,
            "Data analysis and insights",
            _writing_handler(
                prompts.ANALYST_INSTRUCTION,
                "Analysis generated. View the insights in the canvas.",
                lambda message: f"Data Analysis: {message}",
            ),
        ),
        Mode(
            "creative", "Creative", "✨", "#ec4899", CANVAS_WRITING,
            "Creative ideation and storytelling",
            _writing_handler(
                prompts.CREATIVE_INSTRUCTION,
                "I've crafted something for you. Read it in the canvas.",
                "Creative Piece",
            ),
        ),
        Mode(
            "writer", "Writer", "✍️", "#f97316", CANVAS_WRITING,
            "Long-form writing assistance",
            _writing_handler(
                prompts.WRITER_INSTRUCTION,
                "Article draft created. You can read the full text in the writing canvas.",
                lambda message: f"Draft: {message}",
            ),
        ),
        Mode(
            "image", "Image", "\U0001F3A8", "#a855f7", CANVAS_IMAGE,
            "AI image generation", _image,
        ),
        Mode(
            "guided", "Guided Learning", "\U0001F393", "#14b8a6", CANVAS_WRITING,
            "Step-by-step educational guidance",
            _writing_handler(
                prompts.GUIDED_INSTRUCTION,
                "Learning guide prepared. Follow the steps in the canvas.",
                lambda message: f"Guide: {message}",
            ),
        ),
    ]


class ModeRegistry:
    """Ordered mode lookup bound to one provider client."""

    def __init__(self, provider: GenerationProvider, modes: list[Mode] | None = None):
        self.provider = provider
        self._modes = {mode.key: mode for mode in (modes or default_modes())}

    def __contains__(self, key: str) -> bool:
        return key in self._modes

    def keys(self) -> list[str]:
        return list(self._modes)

    def get(self, key: str) -> Mode:
        try:
            return self._modes[key]
        except KeyError:
            raise UnknownModeError(key) from None

    def list_modes(self) -> list[dict]:
        return [mode.metadata() for mode in self._modes.values()]

    async def get_response(self, key: str, message: str) -> ModeResult:
        """Run `message` through the mode registered under `key`."""
        mode = self.get(key)
        return await mode.handler(self.provider, message)
