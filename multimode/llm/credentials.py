"""Rotating credential pool for the text provider."""

import logging


logger = logging.getLogger(__name__)


class CredentialPool:
    """Ordered credentials with a wrapping cursor.

    Invariant:
        `index` is always in `[0, len(pool))` and the pool is never empty.
    """

    def __init__(self, credentials):
        self._credentials = tuple(credentials)
        if not self._credentials:
            raise ValueError("Credential pool must contain at least one key")
        self._index = 0

    def __len__(self):
        return len(self._credentials)

    @property
    def index(self) -> int:
        return self._index

    def current(self) -> str:
        """Return the credential at the current index."""
        return self._credentials[self._index]

    def advance(self) -> str:
        """Move to the next credential, wrapping at the end, and return it."""
        self._index = (self._index + 1) % len(self._credentials)
        logger.warning("Rotating to Gemini API key #%d", self._index + 1)
        return self._credentials[self._index]
