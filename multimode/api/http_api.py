"""
HTTP API adapter for the multi-mode chat engine.

Architectural role:
- Expose mode discovery, chat dispatch, and transcript endpoints.
- Enforce adapter-level input validation.
- Delegate generation work to `multimode.core.engine.process_message`.

Endpoint responsibilities:
- `GET /v1/modes`: list registered modes with display metadata.
- `POST /v1/chat`: validate input, dispatch to a mode, return the mode result.
- `GET /v1/chat/{session_id}/history`: return a session transcript.
- `DELETE /v1/chat/{session_id}/history`: clear a session transcript.

API request lifecycle (`POST /v1/chat`):
1. Parse request JSON (`message`, optional `mode`, optional `session_id`).
2. Validate the message and the requested mode.
3. Forward to `process_message`, which records both turns.
4. Wrap the `ModeResult` in a response envelope.

Input validation behavior:
- Blank `message` -> HTTP 400.
- Unknown `mode` -> HTTP 400.

Lifecycle:
- One `ProviderClient` per process, created and initialized (model discovery
  scheduled) in the lifespan handler and closed on shutdown.

Side effects:
- Transcripts are mirrored to `CHAT_HISTORY_PATH`.
- Request/response debug logging is opt-in via `DEBUG == "true"`.
"""

from dotenv import load_dotenv

load_dotenv()

import logging
import os
import time
import uuid
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from multimode.core.engine import process_message
from multimode.llm.client import ProviderClient
from multimode.memory.chat_history import DEFAULT_HISTORY_PATH, ChatHistory
from multimode.modes.registry import DEFAULT_MODE, ModeRegistry, UnknownModeError


logger = logging.getLogger(__name__)

# Sensitive request/response debug logging is opt-in.
DEBUG = os.getenv("DEBUG") == "true"
API_HOST = os.getenv("API_HOST", "127.0.0.1")
API_PORT = int(os.getenv("API_PORT", "8000"))


# ============================================================
# Request Schema
# ============================================================

class ChatRequest(BaseModel):
    """Chat payload shape for `POST /v1/chat`."""
    message: str = ""
    mode: str = DEFAULT_MODE
    session_id: str = "default"


def _error(message: str, status_code: int = 400) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


# ============================================================
# App Factory
# ============================================================

def create_app(provider=None, history: ChatHistory | None = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        provider: Object with `generate_text` / `generate_image`; a
            `ProviderClient` built from the environment when omitted.
        history: Transcript store; defaults to the `CHAT_HISTORY_PATH` mirror.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        client = provider or ProviderClient()
        if hasattr(client, "initialize"):
            client.initialize()

        app.state.registry = ModeRegistry(client)
        app.state.history = history or ChatHistory(
            os.getenv("CHAT_HISTORY_PATH", DEFAULT_HISTORY_PATH)
        )
        try:
            yield
        finally:
            if hasattr(client, "aclose"):
                await client.aclose()

    app = FastAPI(lifespan=lifespan)

    # ============================================================
    # Mode Listing
    # ============================================================

    @app.get("/v1/modes")
    def list_modes():
        """Return registered modes as a list envelope."""
        return {"object": "list", "data": app.state.registry.list_modes()}

    # ============================================================
    # Chat Dispatch
    # ============================================================

    @app.post("/v1/chat")
    async def chat(body: ChatRequest):
        """
        Dispatch one message to a mode.

        Error handling strategy:
        - Validation failures return structured 400 JSON errors.
        - Provider failures never surface here; they arrive as result text
          (text modes) or as fallback images (image mode).
        """
        if DEBUG:
            logger.info("Incoming chat request: %r", body)

        if not body.message.strip():
            return _error("No message provided")

        try:
            result = await process_message(
                body.message,
                app.state.registry,
                app.state.history,
                mode=body.mode,
                session_id=body.session_id,
            )
        except UnknownModeError as exc:
            return _error(str(exc))
        except ValueError as exc:
            return _error(str(exc))

        if DEBUG:
            logger.info("Mode result: %r", result)

        return {
            "id": f"chat-{uuid.uuid4().hex}",
            "object": "chat.result",
            "created": int(time.time()),
            "mode": result.mode,
            "result": result.to_dict(),
        }

    # ============================================================
    # Transcript
    # ============================================================

    @app.get("/v1/chat/{session_id}/history")
    def get_history(session_id: str):
        messages = app.state.history.get(session_id)
        return {
            "session_id": session_id,
            "messages": [message.to_dict() for message in messages],
        }

    @app.delete("/v1/chat/{session_id}/history")
    def clear_history(session_id: str):
        app.state.history.clear(session_id)
        return {"session_id": session_id, "cleared": True}

    return app


app = create_app()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    uvicorn.run(app, host=API_HOST, port=API_PORT, log_level="info")
