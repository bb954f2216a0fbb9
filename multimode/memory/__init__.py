"""Transcript persistence package.

Architectural role:
    Holds `chat_history`, the per-session transcript cache mirrored to JSON so
    API and CLI sessions survive restarts.
"""
