"""Core request orchestration: one user message -> one mode result.

Control-flow model:
    1. Reject blank messages.
    2. Apply the command-first guard (`/image <prompt>` forces the image mode).
    3. Resolve the mode (unknown keys raise `UnknownModeError`).
    4. Record the user turn, invoke the mode, record the bot turn.

Error handling strategy:
    Validation failures (`ValueError`, `UnknownModeError`) propagate to the API/CLI
    adapters. Any exception raised while a mode runs is logged and replaced by a
    stable apology message, so a turn always produces a bot reply.

Side effects:
    Writes both turns to the `ChatHistory` passed in. Writes run in a worker
    thread because the history mirrors itself to disk on every append.
"""

import asyncio
import logging
from dataclasses import replace

from multimode.core.result_types import ChatMessage, ModeResult
from multimode.memory.chat_history import ChatHistory
from multimode.modes.registry import DEFAULT_MODE, ModeRegistry


logger = logging.getLogger(__name__)

IMAGE_COMMAND = "/image"
IMAGE_MODE = "image"
ERROR_REPLY = (
    "Sorry, I encountered an error regarding the API. "
    "Please check the logs for details."
)


def _apply_command_guard(message: str, mode: str) -> tuple[str, str]:
    """Map command prefixes to a forced mode and the stripped message."""
    command, _, rest = message.partition(" ")
    if command.lower() == IMAGE_COMMAND:
        return rest.strip(), IMAGE_MODE
    return message, mode


async def process_message(
    message: str,
    registry: ModeRegistry,
    history: ChatHistory,
    mode: str = DEFAULT_MODE,
    session_id: str = "default",
) -> ModeResult:
    """Dispatch a user message to a mode and record the exchange.

    Args:
        message: Raw user text.
        registry: Mode registry bound to a provider client.
        history: Transcript store.
        mode: Requested mode key.
        session_id: Transcript key.

    Returns:
        The mode's `ModeResult`, or an apology result if the mode failed. Its
        `mode` is the mode that actually ran (`image` for `/image` commands).

    Raises:
        ValueError: Blank message (or a bare `/image ` command).
        UnknownModeError: `mode` is not registered.
    """
    text = (message or "").strip()
    if not text:
        raise ValueError("Message must not be empty")

    text, mode = _apply_command_guard(text, mode)
    if not text:
        raise ValueError("Message must not be empty")

    registry.get(mode)

    await asyncio.to_thread(history.append, session_id, ChatMessage.now(text, "user", mode))

    try:
        result = await registry.get_response(mode, text)
    except Exception:
        logger.exception("Mode %s failed for session %s", mode, session_id)
        result = ModeResult(text=ERROR_REPLY)

    await asyncio.to_thread(history.append, session_id, ChatMessage.now(result.text, "bot", mode))
    return replace(result, mode=mode)
