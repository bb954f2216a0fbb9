"""Provider client for text (Gemini) and image (Runware + fallback) generation.

Architectural role:
    Owns all mutable provider state (credential pool cursor, selected model,
    pending discovery tasks) in one explicit object. The mode registry holds a
    reference to one `ProviderClient` and calls `generate_text` / `generate_image`.

Model invocation flow:
    `generate_text(prompt, system_instruction)` -> payload construction ->
    `POST <base>/models/<model>:generateContent?key=<credential>` -> first
    candidate text or an `"Error: ..."` string.

Model discovery:
    `initialize()` and every `rotate_credential()` schedule `discover_models()` as
    a background task. Discovery is best-effort: failures are logged and the
    previously selected model stays in place. Overlapping passes are ordered by a
    monotonic sequence number; a pass that started before an already-applied
    pass discards its result.

Retry behavior:
    No retry loop. A 429/403/503 answer rotates the credential for the *next*
    call; the failed request is not re-issued.

Failure handling model:
    - Text path never raises: failures become `"Error: <message>."` strings.
    - Image path never raises: failures fall through to the fallback provider.
    - Discovery never raises.
"""

import asyncio
import json
import logging

import httpx
import websockets

from multimode.image import service as image_service
from multimode.image.fallback import generate_image_fallback
from multimode.image.types import GeneratedImage
from multimode.llm.credentials import CredentialPool
from multimode.llm.errors import (
    DiscoveryFailure,
    EmptyResponse,
    GenerationHttpError,
    ProviderError,
    TransportFailure,
)
from multimode.llm.model_selection import filter_generation_models, select_model
from multimode.llm.provider_config import (
    GENERATION_CONFIG,
    ROTATE_ON_STATUS,
    ProviderConfig,
)


logger = logging.getLogger(__name__)


def build_prompt_text(prompt: str, system_instruction: str = "") -> str:
    """Combine an optional system instruction with the user prompt."""
    if system_instruction:
        return f"{system_instruction}\n\nUser Request: {prompt}"
    return prompt


def build_generation_payload(prompt: str, system_instruction: str = "") -> dict:
    return {
        "contents": [
            {"parts": [{"text": build_prompt_text(prompt, system_instruction)}]}
        ],
        "generationConfig": dict(GENERATION_CONFIG),
    }


def extract_candidate_text(data) -> str:
    """Return the first candidate's first text part.

    Raises:
        EmptyResponse: If the body carries no candidate content.
    """
    candidates = data.get("candidates") if isinstance(data, dict) else None
    if not candidates or not isinstance(candidates[0], dict):
        raise EmptyResponse()

    content = candidates[0].get("content") or {}
    parts = content.get("parts") if isinstance(content, dict) else None
    if not parts or not isinstance(parts[0], dict) or "text" not in parts[0]:
        raise EmptyResponse()

    return parts[0]["text"]


def extract_error_message(response: httpx.Response) -> str:
    """Best-effort human-readable message from a non-success response.

    Order: `error.message`, JSON-encoded `error`, JSON-encoded body, raw text,
    reason phrase.
    """
    try:
        body = response.json()
    except ValueError:
        text = response.text.strip()
        return text or response.reason_phrase or f"HTTP {response.status_code}"

    if isinstance(body, dict) and body.get("error"):
        error = body["error"]
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        return json.dumps(error)
    return json.dumps(body)


class ProviderClient:
    """Text/image provider client with key rotation and image fallback.

    Args:
        config: Provider configuration; read from the environment when omitted.
        transport: Optional `httpx` transport (tests use `httpx.MockTransport`).
        connect: WebSocket connect factory for the image provider.

    Raises:
        ValueError: If no text-provider credentials are configured.
    """

    def __init__(
        self,
        config: ProviderConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        connect=websockets.connect,
    ) -> None:
        self.config = config or ProviderConfig()
        self.credentials = CredentialPool(self.config.gemini_keys)
        self.current_model = self.config.default_model
        self._transport = transport
        self._connect = connect
        self._discovery_started = 0
        self._discovery_applied = 0
        self._tasks: set[asyncio.Task] = set()

    # ============================================================
    # Credentials & model discovery
    # ============================================================

    def initialize(self) -> asyncio.Task | None:
        """Schedule the first discovery pass.

        Returns:
            The discovery task (callers may await it), or `None` when called
            outside a running event loop.
        """
        return self._schedule_discovery()

    def current_credential(self) -> str:
        return self.credentials.current()

    def rotate_credential(self) -> asyncio.Task | None:
        """Advance to the next credential and re-run discovery in the background."""
        self.credentials.advance()
        return self._schedule_discovery()

    async def discover_models(self) -> str:
        """Query the model listing and apply the selection policy.

        Returns:
            The model id in effect after this pass. Never raises.
        """
        self._discovery_started += 1
        sequence = self._discovery_started
        credential = self.current_credential()

        try:
            selected = await self._fetch_selected_model(credential)
        except DiscoveryFailure as exc:
            logger.warning("Model discovery failed, keeping %s: %s", self.current_model, exc)
            return self.current_model
        except Exception:
            logger.exception("Model discovery failed, keeping %s", self.current_model)
            return self.current_model

        if selected is None:
            logger.warning("Model discovery found no candidates, keeping %s", self.current_model)
            return self.current_model

        if sequence < self._discovery_applied:
            logger.info("Discarding stale discovery result %s", selected)
            return self.current_model

        self._discovery_applied = sequence
        self.current_model = selected
        logger.info("Selected best model: %s", selected)
        return self.current_model

    async def _fetch_selected_model(self, credential: str) -> str | None:
        url = f"{self.config.gemini_base_url}/models"

        try:
            async with self._http_client() as client:
                response = await client.get(url, params={"key": credential})
        except httpx.RequestError as exc:
            raise DiscoveryFailure(f"Model listing request failed: {exc}") from exc

        if not response.is_success:
            raise DiscoveryFailure(f"Model listing returned HTTP {response.status_code}")

        try:
            names = filter_generation_models(response.json())
        except ValueError as exc:
            raise DiscoveryFailure(f"Malformed model listing: {exc}") from exc

        logger.info("Available models: %s", names)
        return select_model(names)

    def _schedule_discovery(self) -> asyncio.Task | None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("No running event loop, model discovery skipped")
            return None

        task = loop.create_task(self.discover_models())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    # ============================================================
    # Text generation
    # ============================================================

    async def generate_text(self, prompt: str, system_instruction: str = "") -> str:
        """Generate text with the current model and credential.

        Returns:
            Generated text, or `"Error: <message>."` on any failure.
        """
        try:
            return await self._request_text(prompt, system_instruction)
        except ProviderError as exc:
            logger.error("Gemini API call failed: %s", exc)
            return f"Error: {exc}."
        except Exception:
            logger.exception("Gemini API call failed")
            return "Error: Gemini request failed."

    async def _request_text(self, prompt: str, system_instruction: str) -> str:
        url = f"{self.config.gemini_base_url}/models/{self.current_model}:generateContent"
        payload = build_generation_payload(prompt, system_instruction)

        try:
            async with self._http_client() as client:
                response = await client.post(
                    url,
                    params={"key": self.current_credential()},
                    json=payload,
                )
        except httpx.RequestError as exc:
            raise TransportFailure(f"Request to Gemini failed: {exc}") from exc

        if not response.is_success:
            message = extract_error_message(response)
            logger.error("API Error (%s): %s", response.status_code, message)
            if response.status_code in ROTATE_ON_STATUS:
                self.rotate_credential()
            raise GenerationHttpError(response.status_code, message)

        try:
            data = response.json()
        except ValueError as exc:
            raise EmptyResponse("Malformed response body") from exc

        return extract_candidate_text(data)

    # ============================================================
    # Image generation
    # ============================================================

    async def generate_image(self, prompt: str) -> list[GeneratedImage]:
        """Generate one image; always resolves (primary or fallback provider)."""
        logger.info("Generating image for: %s", prompt)
        return await image_service.generate_image(prompt, self.config, connect=self._connect)

    def generate_image_fallback(self, prompt: str, width: int, height: int) -> list[GeneratedImage]:
        return generate_image_fallback(
            prompt,
            width,
            height,
            base_url=self.config.image_fallback_base_url,
        )

    # ============================================================
    # Lifecycle
    # ============================================================

    async def aclose(self) -> None:
        """Cancel pending discovery tasks."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    def _http_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.config.llm_timeout_seconds,
            transport=self._transport,
        )
