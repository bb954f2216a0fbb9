"""Runware-specific image-generation client (WebSocket).

Processing flow:
    1. Open a WebSocket to the Runware endpoint.
    2. Send the authentication frame.
    3. On the authentication acknowledgement, send one `imageInference` task with a
       fresh seed and task UUID.
    4. On the inference result, return the first image URL and close the socket.

Watchdog:
    The whole exchange after the connection opens is bounded by
    `timeout_seconds`. Expiry cancels the exchange, closes the socket, and raises
    `ImageProviderTimeout`. The socket is opened with a zero close timeout, so
    closing never waits for a stalled server to acknowledge the close frame.

Error handling strategy:
    - Provider error frames raise `ImageProviderError`.
    - Transport failures (`websockets` exceptions, `OSError`) propagate.
    - Frames that cannot be decoded as JSON are logged and skipped.
    The fallback decision is made by `multimode.image.service`, not here.

Determinism:
    - Frame construction is deterministic apart from seed and task UUID.
    - Completion timing and generated output are non-deterministic externally.
"""

import asyncio
import json
import logging
import random
import uuid

import websockets

from multimode.image.types import GeneratedImage, PROVIDER_RUNWARE
from multimode.llm.errors import ImageProviderError, ImageProviderTimeout
from multimode.llm.provider_config import RUNWARE_CLOSE_TIMEOUT_SECONDS


logger = logging.getLogger(__name__)


def build_auth_frame(api_key: str) -> list[dict]:
    return [{"taskType": "authentication", "apiKey": api_key}]


def build_inference_frame(
    prompt: str,
    width: int,
    height: int,
    model_id: str,
    seed: int,
    task_uuid: str,
) -> list[dict]:
    return [{
        "taskType": "imageInference",
        "taskUUID": task_uuid,
        "positivePrompt": prompt,
        "width": width,
        "height": height,
        "numberResults": 1,
        "modelId": model_id,
        "seed": seed,
        "steps": 20,
        "CFGScale": 7,
    }]


async def send_runware_request(
    prompt: str,
    width: int,
    height: int,
    *,
    api_key: str,
    ws_url: str,
    model_id: str,
    timeout_seconds: float,
    connect=websockets.connect,
) -> GeneratedImage:
    """Run one authenticate-then-infer exchange against Runware.

    Args:
        prompt: Positive prompt forwarded to the provider.
        width: Requested output width.
        height: Requested output height.
        api_key: Runware API key.
        ws_url: WebSocket endpoint.
        model_id: Runware model identifier.
        timeout_seconds: Watchdog budget measured from connection open.
        connect: WebSocket connect factory; replaced in tests.

    Returns:
        The generated image reference.

    Raises:
        ImageProviderTimeout: No terminal frame before the watchdog fired.
        ImageProviderError: Provider sent an error frame.
    """
    async with connect(ws_url, close_timeout=RUNWARE_CLOSE_TIMEOUT_SECONDS) as socket:
        try:
            return await asyncio.wait_for(
                _run_session(socket, prompt, width, height, api_key, model_id),
                timeout=timeout_seconds,
            )
        except asyncio.TimeoutError as exc:
            raise ImageProviderTimeout(
                f"Runware sent no result within {timeout_seconds}s"
            ) from exc


async def _run_session(socket, prompt, width, height, api_key, model_id):
    """Drive the frame exchange until an image URL or an error frame arrives."""
    seed = random.randrange(1_000_000_000)
    await socket.send(json.dumps(build_auth_frame(api_key)))

    while True:
        raw = await socket.recv()
        try:
            frame = json.loads(raw)
        except (TypeError, ValueError):
            logger.exception("Error parsing Runware message")
            continue

        if not isinstance(frame, dict):
            continue

        error = frame.get("error") or frame.get("errors")
        if error:
            raise ImageProviderError(f"Runware error: {error}")

        for task in frame.get("data") or []:
            if not isinstance(task, dict):
                continue

            task_type = task.get("taskType")
            if task_type == "authentication":
                logger.info("Runware authenticated")
                inference = build_inference_frame(
                    prompt,
                    width,
                    height,
                    model_id,
                    seed,
                    str(uuid.uuid4()),
                )
                await socket.send(json.dumps(inference))

            elif task_type == "imageInference" and task.get("imageURL"):
                logger.info("Runware image received: %s", task["imageURL"])
                return GeneratedImage(
                    url=task["imageURL"],
                    width=width,
                    height=height,
                    provider=PROVIDER_RUNWARE,
                )
