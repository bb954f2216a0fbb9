"""Image result data contract shared by image adapters and the mode registry."""

from dataclasses import asdict, dataclass

from multimode.llm.provider_config import IMAGE_PLACEHOLDER


PROVIDER_RUNWARE = "runware"
PROVIDER_POLLINATIONS = "pollinations"


@dataclass(frozen=True)
class GeneratedImage:
    """One generated image reference.

    Attributes:
        url: Image location (provider CDN URL or fallback render URL).
        width: Requested width in pixels.
        height: Requested height in pixels.
        placeholder: Display glyph shown while the image loads.
        provider: Which provider produced `url` (`runware` or `pollinations`).
    """

    url: str
    width: int
    height: int
    placeholder: str = IMAGE_PLACEHOLDER
    provider: str = PROVIDER_RUNWARE

    def to_dict(self, image_id: int = 1) -> dict:
        """Gallery record; `image_id` is the 1-based position in the gallery."""
        return {"id": image_id, **asdict(self)}
