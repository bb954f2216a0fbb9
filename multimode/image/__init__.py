"""Image generation adapter package.

Scope:
    Provides the Runware WebSocket client, the Pollinations fallback URL builder,
    prompt-based dimension heuristics, and the dispatch service that chooses
    between primary and fallback providers.

Non-goals:
    - No image download, decoding, or caching.
    - No temporary-file creation or cleanup responsibilities.
"""
