"""Error taxonomy shared by the core and adapters."""

from __future__ import annotations


class RewindError(Exception):
    """Base class for rewind errors."""


class IdConflict(RewindError):
    """Raised when a content id already exists in its kind's table."""

    def __init__(self, kind, content_id: str) -> None:
        super().__init__(f"{kind.value} id already stored: {content_id}")
        self.kind = kind
        self.content_id = content_id


class StorageUnavailable(RewindError):
    """Raised when the content store cannot be opened or initialised."""


class TransportError(RewindError):
    """Raised when a payload cannot be retrieved from the chat transport."""
