"""Image service dispatcher with primary/fallback provider policy.

Role in pipeline:
    - Receives a prompt from `ProviderClient.generate_image`.
    - Derives dimensions from prompt keywords before any network activity.
    - Tries the Runware WebSocket provider; on timeout, error frame, transport
      failure, or missing key, switches to the Pollinations fallback URL.

State machine:
    Connecting -> Authenticating -> Requesting -> Completed, with a timeout or
    error transition from any non-terminal state to Fallback -> Completed.

Error handling strategy:
    This function never raises. The caller can only tell which provider served
    the request from `GeneratedImage.provider` (and the URL host); the reason for a
    fallback is visible in the logs only.
"""

import asyncio
import logging

import websockets
from websockets.exceptions import WebSocketException

from multimode.image.client import send_runware_request
from multimode.image.fallback import generate_image_fallback
from multimode.image.sizing import choose_dimensions
from multimode.image.types import GeneratedImage
from multimode.llm.errors import ImageProviderError, ImageProviderTimeout
from multimode.llm.provider_config import ProviderConfig


logger = logging.getLogger(__name__)


async def generate_image(
    prompt: str,
    config: ProviderConfig,
    connect=websockets.connect,
) -> list[GeneratedImage]:
    """Generate one image for `prompt`, falling back when Runware is unavailable.

    Args:
        prompt: Text prompt for generation.
        config: Provider configuration (Runware key/endpoint, fallback base URL,
            watchdog budget).
        connect: WebSocket connect factory forwarded to the Runware client.

    Returns:
        Single-element list of `GeneratedImage`.
    """
    width, height = choose_dimensions(prompt)
    logger.info("Generating %dx%d image via Runware", width, height)

    if not config.runware_key:
        logger.warning("RUNWARE_API_KEY not configured, using fallback")
        return _fallback(prompt, width, height, config)

    try:
        image = await send_runware_request(
            prompt,
            width,
            height,
            api_key=config.runware_key,
            ws_url=config.runware_ws_url,
            model_id=config.runware_model_id,
            timeout_seconds=config.image_timeout_seconds,
            connect=connect,
        )
        return [image]

    except ImageProviderTimeout:
        logger.warning("Runware timeout, using fallback")

    except ImageProviderError as exc:
        logger.error("%s, using fallback", exc)

    except (WebSocketException, OSError, asyncio.TimeoutError):
        logger.exception("Runware WebSocket error, using fallback")

    except Exception:
        logger.exception("Unexpected Runware failure, using fallback")

    return _fallback(prompt, width, height, config)


def _fallback(prompt, width, height, config):
    return generate_image_fallback(
        prompt,
        width,
        height,
        base_url=config.image_fallback_base_url,
    )
