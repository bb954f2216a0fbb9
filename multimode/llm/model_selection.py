"""Model catalog filtering and selection policy.

Pure functions, no I/O. `ProviderClient.discover_models` feeds them the parsed
model-listing body and applies the result.

Selection policy:
    1. First id from `PREFERRED_MODELS` present in the filtered catalog.
    2. Else the first id containing `flash`, else the first containing `pro`,
       else the first catalog entry.
    3. Empty catalog -> `None` (caller keeps its current model).
"""

from typing import Any

from multimode.llm.provider_config import PREFERRED_MODELS


MODEL_PREFIX = "models/"
GENERATE_METHOD = "generateContent"


def filter_generation_models(catalog: Any) -> list[str]:
    """Return model names from a listing body that support content generation.

    Args:
        catalog: Parsed `GET /models` body (`{"models": [...]}`).

    Returns:
        Model names in catalog order. Malformed entries are skipped.

    Raises:
        ValueError: If the body has no `models` list.
    """
    if not isinstance(catalog, dict) or not isinstance(catalog.get("models"), list):
        raise ValueError("Model listing has no 'models' array")

    names = []
    for entry in catalog["models"]:
        if not isinstance(entry, dict):
            continue
        name = entry.get("name")
        methods = entry.get("supportedGenerationMethods") or []
        if isinstance(name, str) and name and GENERATE_METHOD in methods:
            names.append(name)
    return names


def select_model(names: list[str], preferred=PREFERRED_MODELS) -> str | None:
    """Pick one model from filtered catalog names.

    Returns:
        Selected id with the `models/` prefix stripped, or `None` for an empty
        catalog.
    """
    if not names:
        return None

    selected = next((pref for pref in preferred if pref in names), None)
    if selected is None:
        selected = (
            next((name for name in names if "flash" in name), None)
            or next((name for name in names if "pro" in name), None)
            or names[0]
        )
    return strip_model_prefix(selected)


def strip_model_prefix(name: str) -> str:
    if name.startswith(MODEL_PREFIX):
        return name[len(MODEL_PREFIX):]
    return name
