"""Core orchestration package.

Architectural role:
    Exposes the request-orchestration layer that sits between API/CLI entrypoints
    and the mode registry and transcript store.

Composition:
    - `engine`: message validation, command guards, mode dispatch, transcript writes.
    - `result_types`: mode result, canvas, and transcript message schemas.
"""
