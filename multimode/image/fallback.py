"""No-auth fallback image provider (Pollinations).

Processing flow:
    1. URL-encode the prompt into the path.
    2. Attach width/height, a fresh seed, and the fixed model tag as query params.
    3. Return one `GeneratedImage` pointing at that URL.

The URL is only constructed, never fetched: the provider renders on first GET by
whoever displays it. This path therefore has no failure modes.
"""

import random
from urllib.parse import quote, urlencode

from multimode.image.types import GeneratedImage, PROVIDER_POLLINATIONS
from multimode.llm.provider_config import IMAGE_FALLBACK_BASE_URL, IMAGE_FALLBACK_MODEL


def build_fallback_url(
    prompt: str,
    width: int,
    height: int,
    seed: int,
    base_url: str = IMAGE_FALLBACK_BASE_URL,
) -> str:
    query = urlencode({
        "width": width,
        "height": height,
        "nologo": "true",
        "seed": seed,
        "model": IMAGE_FALLBACK_MODEL,
    })
    return f"{base_url}/prompt/{quote(prompt or '', safe='')}?{query}"


def generate_image_fallback(
    prompt: str,
    width: int,
    height: int,
    base_url: str = IMAGE_FALLBACK_BASE_URL,
) -> list[GeneratedImage]:
    """Build exactly one fallback image for the prompt."""
    seed = random.randrange(1_000_000)
    return [
        GeneratedImage(
            url=build_fallback_url(prompt, width, height, seed, base_url=base_url),
            width=width,
            height=height,
            provider=PROVIDER_POLLINATIONS,
        )
    ]
