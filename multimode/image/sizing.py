"""Prompt keyword heuristics for image dimensions.

Rules are scanned in order against the lower-cased prompt; the first rule with a
matching keyword wins. No match yields the square default.
"""

SQUARE = (1024, 1024)
PORTRAIT = (1024, 1792)
LANDSCAPE = (1792, 1024)

DIMENSION_RULES = (
    (("portrait", "tall", "vertical", "9:16"), PORTRAIT),
    (("landscape", "wide", "horizontal", "16:9"), LANDSCAPE),
    (("wallpaper",), LANDSCAPE),
)


def choose_dimensions(prompt: str) -> tuple[int, int]:
    """Return `(width, height)` for a prompt."""
    text = (prompt or "").lower()
    for keywords, size in DIMENSION_RULES:
        if any(keyword in text for keyword in keywords):
            return size
    return SQUARE
