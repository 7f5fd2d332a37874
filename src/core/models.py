"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to any integration-specific types.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Union


class ContentKind(str, Enum):
    """Discriminator for the two content tables."""

    TEXT = "text"
    IMAGE = "image"


@dataclass(frozen=True)
class TextRecord:
    """Stored text message."""

    id: str
    body: str
    sender: str
    inserted_at: datetime

    @property
    def content(self) -> str:
        return self.body


@dataclass(frozen=True)
class ImageRecord:
    """Stored image with its fully downloaded payload."""

    id: str
    payload: bytes
    sender: str
    inserted_at: datetime

    @property
    def content(self) -> bytes:
        return self.payload


ContentRecord = Union[TextRecord, ImageRecord]


# Classified transport events. The classifier emits exactly one of these per
# raw event (or one ContentRecalled per deleted id).


@dataclass(frozen=True)
class TextPosted:
    id: str
    body: str
    sender: str


@dataclass(frozen=True)
class ImagePosted:
    id: str
    payload: bytes
    sender: str


@dataclass(frozen=True)
class ContentRecalled:
    id: str


@dataclass(frozen=True)
class OtherEvent:
    """Anything the core does not act on."""


ChatEvent = Union[TextPosted, ImagePosted, ContentRecalled, OtherEvent]


@dataclass(frozen=True)
class Found:
    """A recalled id matched a stored record."""

    kind: ContentKind
    sender: str
    content: Union[str, bytes]


class _NotFound:
    _instance = None

    def __new__(cls) -> "_NotFound":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NOT_FOUND"

    def __bool__(self) -> bool:
        return False


NOT_FOUND = _NotFound()

RecallOutcome = Union[Found, _NotFound]


@dataclass(frozen=True)
class Notification:
    """Outbound value handed to the notifier for a resolved recall."""

    sender: str
    kind: ContentKind
    content: Union[str, bytes]

    @classmethod
    def from_found(cls, outcome: Found) -> "Notification":
        return cls(sender=outcome.sender, kind=outcome.kind, content=outcome.content)
