"""Per-session chat transcript cache mirrored to a JSON file.

Purpose of this abstraction:
    Keep every session's transcript as a thread-safe in-memory list keyed by
    session id, and mirror the whole mapping to disk so a restarted process can
    reload it. The cache is passthrough: reads never touch the disk.

File format:
    `{"<session_id>": [{"text", "sender", "mode", "timestamp"}, ...], ...}`

Failure handling:
    - Missing file -> empty cache.
    - Unreadable/corrupt file -> empty cache, logged.
    - Write failures are logged; in-memory state remains updated.
"""

import json
import logging
import os
import threading

from multimode.core.result_types import ChatMessage


logger = logging.getLogger(__name__)

DEFAULT_HISTORY_PATH = "chat_history.json"


class ChatHistory:
    """Transcript store keyed by session id.

    Args:
        path: JSON mirror location, or `None` for a memory-only cache.
    """

    def __init__(self, path: str | None = DEFAULT_HISTORY_PATH):
        self.path = path
        self._lock = threading.Lock()
        self._sessions: dict[str, list[ChatMessage]] = self._load()

    def _load(self) -> dict[str, list[ChatMessage]]:
        if not self.path or not os.path.exists(self.path):
            return {}

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError):
            logger.exception("Failed to load chat history from %s", self.path)
            return {}

        if not isinstance(data, dict):
            logger.warning("Ignoring chat history with unexpected shape in %s", self.path)
            return {}

        sessions = {}
        for session_id, messages in data.items():
            if not isinstance(messages, list):
                continue
            sessions[str(session_id)] = [
                ChatMessage.from_dict(item) for item in messages if isinstance(item, dict)
            ]
        return sessions

    def _save(self) -> None:
        # Caller holds the lock.
        if not self.path:
            return

        payload = {
            session_id: [message.to_dict() for message in messages]
            for session_id, messages in self._sessions.items()
        }
        try:
            directory = os.path.dirname(self.path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(payload, f, ensure_ascii=False, indent=2)
        except OSError:
            logger.exception("Failed to persist chat history to %s", self.path)

    def get(self, session_id: str) -> list[ChatMessage]:
        """Return a copy of the session transcript in chronological order."""
        with self._lock:
            return list(self._sessions.get(session_id, []))

    def append(self, session_id: str, message: ChatMessage) -> None:
        with self._lock:
            self._sessions.setdefault(session_id, []).append(message)
            self._save()

    def clear(self, session_id: str) -> None:
        with self._lock:
            if self._sessions.pop(session_id, None) is not None:
                self._save()

    def sessions(self) -> list[str]:
        with self._lock:
            return list(self._sessions)
