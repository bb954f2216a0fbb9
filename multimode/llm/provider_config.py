"""Provider/runtime configuration for the provider layer.

Architectural role:
    Centralizes endpoint, model, and credential lookup for `multimode.llm.client`
    and the `multimode.image` adapters.

Model call flow integration:
    - `client.ProviderClient` consumes `ProviderConfig` for endpoints, sampling
      settings, timeouts, and the credential pool.
    - `image.service.generate_image` consumes the Runware and fallback settings.

Determinism:
    Deterministic for a fixed process environment and key files. Defaults are
    resolved when `ProviderConfig` is instantiated (plus key-file reads in
    `load_key` / `load_credentials`).

Failure behavior:
    Missing key material is represented as `None` / an empty tuple. The client
    rejects an empty text credential pool at construction time.
"""

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()


GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_MODEL = "gemini-1.5-flash"

# Ordered from most to least preferred; ids as returned by the model listing.
PREFERRED_MODELS = (
    "models/gemini-1.5-flash",
    "models/gemini-1.5-pro",
    "models/gemini-pro",
    "models/gemini-1.0-pro",
)

GENERATION_CONFIG = {
    "temperature": 0.7,
    "topK": 40,
    "topP": 0.95,
    "maxOutputTokens": 2048,
}

# Status codes that suggest exhausted quota or access denial for the active key.
ROTATE_ON_STATUS = (429, 403, 503)

RUNWARE_WS_URL = "wss://ws-api.runware.ai/v1"
RUNWARE_MODEL_ID = "runware:100@1"
# Closing a socket sends the close frame and drops the connection without
# waiting for the server to answer it.
RUNWARE_CLOSE_TIMEOUT_SECONDS = 0
IMAGE_FALLBACK_BASE_URL = "https://image.pollinations.ai"
IMAGE_FALLBACK_MODEL = "flux"
IMAGE_PLACEHOLDER = "\U0001F3A8"


def load_key(path):
    """Load API key from environment override or key file.

    Resolution order:
        1. Environment variable inferred from file stem (for example
           `config/runware.key` -> `RUNWARE_API_KEY`).
        2. Raw file contents at `path`.

    Args:
        path: Configured key file path or `None`.

    Returns:
        Key string or `None` when not available.

    Edge cases:
        - `None` path returns `None`.
        - Missing file returns `None`.
    """
    if not path:
        return None
    key_name = os.path.splitext(os.path.basename(path))[0].upper() + "_API_KEY"
    env_value = os.getenv(key_name)
    if env_value:
        return env_value.strip()
    if not os.path.exists(path):
        return None
    with open(path, "r") as f:
        return f.read().strip() or None


def load_credentials(path, env_name="GEMINI_API_KEYS"):
    """Load an ordered credential pool.

    Resolution order:
        1. Comma-separated list in `env_name`.
        2. `load_key(path)` contents, one key per line (the single-key
           environment override, e.g. `GEMINI_API_KEY`, also applies here).

    Returns:
        Tuple of non-empty, stripped credentials in configured order.
    """
    raw = os.getenv(env_name, "")
    if raw.strip():
        return tuple(part.strip() for part in raw.split(",") if part.strip())

    content = load_key(path)
    if not content:
        return ()
    return tuple(line.strip() for line in content.splitlines() if line.strip())


@dataclass(frozen=True)
class ProviderConfig:
    """Runtime configuration for `ProviderClient`.

    Relevant environment variables:
        - `GEMINI_API_KEYS` / `GEMINI_API_KEY` / `config/gemini.key`
        - `RUNWARE_API_KEY` / `config/runware.key`
        - `GEMINI_BASE_URL`
        - `GEMINI_DEFAULT_MODEL`
        - `LLM_TIMEOUT_SECONDS`
        - `RUNWARE_WS_URL`
        - `RUNWARE_MODEL_ID`
        - `IMAGE_FALLBACK_BASE_URL`
        - `IMAGE_TIMEOUT_SECONDS`
    """

    gemini_keys: tuple = field(
        default_factory=lambda: load_credentials("config/gemini.key")
    )
    runware_key: str | None = field(
        default_factory=lambda: load_key("config/runware.key")
    )
    gemini_base_url: str = field(
        default_factory=lambda: os.getenv("GEMINI_BASE_URL", GEMINI_BASE_URL).rstrip("/")
    )
    default_model: str = field(
        default_factory=lambda: os.getenv("GEMINI_DEFAULT_MODEL", DEFAULT_MODEL)
    )
    llm_timeout_seconds: float = field(
        default_factory=lambda: float(os.getenv("LLM_TIMEOUT_SECONDS", "120"))
    )
    runware_ws_url: str = field(
        default_factory=lambda: os.getenv("RUNWARE_WS_URL", RUNWARE_WS_URL)
    )
    runware_model_id: str = field(
        default_factory=lambda: os.getenv("RUNWARE_MODEL_ID", RUNWARE_MODEL_ID)
    )
    image_fallback_base_url: str = field(
        default_factory=lambda: os.getenv(
            "IMAGE_FALLBACK_BASE_URL", IMAGE_FALLBACK_BASE_URL
        ).rstrip("/")
    )
    image_timeout_seconds: float = field(
        default_factory=lambda: float(os.getenv("IMAGE_TIMEOUT_SECONDS", "12"))
    )
