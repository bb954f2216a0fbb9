"""
Interactive CLI entrypoint for the multi-mode chat engine.

Interface responsibilities:
- Accept stdin messages and render mode results (chat text plus canvas) to stdout.
- Handle local control commands.

Request lifecycle (per user turn):
1. Read a single line from stdin (in a worker thread, so background model
   discovery keeps running on the event loop).
2. Handle local control commands (`exit`/`quit`, `clear chat`, `/modes`,
   `/mode <key>`).
3. Forward regular messages to `multimode.core.engine.process_message`.
4. Print the chat text and, when present, the canvas payload.

Error handling strategy:
- Missing text-provider credentials abort startup with a message.
- EOF and keyboard interrupts end the session without traceback output.
"""

from dotenv import load_dotenv

load_dotenv()

import asyncio
import logging
import os
import sys

from multimode.core.engine import process_message
from multimode.core.result_types import CANVAS_CODE, CANVAS_IMAGE, CANVAS_WRITING, ModeResult
from multimode.llm.client import ProviderClient
from multimode.memory.chat_history import DEFAULT_HISTORY_PATH, ChatHistory
from multimode.modes.registry import DEFAULT_MODE, ModeRegistry, UnknownModeError


SESSION_ID = "cli"


# =========================================================
# UTF-8 SAFE OUTPUT
# Best-effort stdout encoding normalization for interactive terminals.
# =========================================================

if hasattr(sys.stdout, "reconfigure"):
    try:
        sys.stdout.reconfigure(encoding="utf-8", errors="ignore")
    except Exception:
        pass


# =========================================================
# RENDERING
# =========================================================

def render_canvas(canvas) -> str:
    """Plain-text rendering of a canvas payload."""
    content = canvas.content

    if canvas.type == CANVAS_CODE:
        header = content.get("description") or "Code"
        return f"[{header}] ({content.get('language', '')})\n{content.get('code', '')}"

    if canvas.type == CANVAS_WRITING:
        body = "\n\n".join(section.get("content", "") for section in content.get("sections", []))
        return f"# {content.get('title') or 'Document'}\n\n{body}"

    if canvas.type == CANVAS_IMAGE:
        return "\n".join(
            f"{image['placeholder']} {image['url']} ({image['width']}x{image['height']})"
            for image in content.get("images", [])
        )

    return str(content)


def render_result(result: ModeResult) -> str:
    if result.canvas is None:
        return result.text
    return f"{result.text}\n\n{'=' * 60}\n{render_canvas(result.canvas)}"


def print_modes(registry: ModeRegistry, current_mode: str) -> None:
    print("\nAvailable modes:")
    for mode in registry.list_modes():
        marker = " (active)" if mode["id"] == current_mode else ""
        print(f" {mode['icon']} {mode['id']}: {mode['description']}{marker}")
    print("\nUsage:")
    print(" /mode <mode_name>")
    print(" /modes\n")


# =========================================================
# MAIN
# =========================================================

async def run_session(client: ProviderClient, history: ChatHistory) -> None:
    """Run the input loop on one event loop so discovery tasks survive turns."""
    client.initialize()
    registry = ModeRegistry(client)
    current_mode = DEFAULT_MODE

    print("Multi-Mode Chat started. (Type 'exit' to quit, '/modes' for modes)")
    print(f"Active mode: {current_mode}")
    print(f"Current session messages loaded: {len(history.get(SESSION_ID))}")
    print("-" * 60)

    try:
        while True:

            try:
                message = (await asyncio.to_thread(input, "You: ")).strip()

            except EOFError:
                print("\nSession ended (EOF received).")
                break

            if not message:
                continue

            # EXIT
            if message.lower() in ("exit", "quit"):
                print("Shutting down.")
                break

            # CLEAR CHAT
            if message.lower() in ("empty chat", "clear chat"):
                history.clear(SESSION_ID)
                print("Chat cleared.")
                continue

            # MODE COMMANDS
            if message.lower() == "/modes":
                print_modes(registry, current_mode)
                continue

            if message.lower().startswith("/mode"):
                parts = message.split()

                if len(parts) == 1 or parts[1].lower() == "help":
                    print_modes(registry, current_mode)
                    continue

                if parts[1] in registry:
                    current_mode = parts[1]
                    print(f"\nSwitched to {current_mode} mode\n")
                else:
                    print(f"\nMode '{parts[1]}' not found.\n")
                continue

            # NORMAL MESSAGE FLOW
            try:
                result = await process_message(
                    message,
                    registry,
                    history,
                    mode=current_mode,
                    session_id=SESSION_ID,
                )
            except (UnknownModeError, ValueError) as exc:
                print(f"\n{exc}\n")
                continue

            print(f"\n{registry.get(result.mode).icon} {render_result(result)}")
            print("\n" + "-" * 60 + "\n")
    finally:
        await client.aclose()


def main():
    """Build the provider client and run the interactive session."""
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "WARNING"))

    try:
        client = ProviderClient()
    except ValueError as e:
        print(f"Provider initialization error: {e}")
        return

    history = ChatHistory(os.getenv("CHAT_HISTORY_PATH", DEFAULT_HISTORY_PATH))
    try:
        asyncio.run(run_session(client, history))
    except KeyboardInterrupt:
        print("\nOperation cancelled by user.")


if __name__ == "__main__":
    main()
