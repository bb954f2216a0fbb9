"""Provider failure taxonomy.

Propagation policy:
    - `DiscoveryFailure` is swallowed by `ProviderClient.discover_models`.
    - `GenerationHttpError`, `EmptyResponse` and `TransportFailure` are converted
      to `"Error: ..."` strings by `ProviderClient.generate_text`.
    - `ImageProviderTimeout` and `ImageProviderError` are converted to the fallback
      image path by `multimode.image.service.generate_image`.

None of these classes reach callers of the public client API; they exist so the
internal control flow and the logs can tell the failure modes apart.
"""


class ProviderError(Exception):
    """Base class for provider-layer failures."""


class DiscoveryFailure(ProviderError):
    """Model listing failed or returned an unusable body."""


class GenerationHttpError(ProviderError):
    """Text provider answered with a non-success status."""

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(f"Gemini API Error ({status_code}): {message}")


class EmptyResponse(ProviderError):
    """Successful response without usable candidate content."""

    def __init__(self, message: str = "No content in response"):
        super().__init__(message)


class TransportFailure(ProviderError):
    """No HTTP response was received at all."""


class ImageProviderTimeout(ProviderError):
    """Primary image provider sent no terminal frame before the watchdog fired."""


class ImageProviderError(ProviderError):
    """Primary image provider sent an error frame."""
