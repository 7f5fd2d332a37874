"""Ports (interfaces) used by the core pipeline.

Ports define the minimal contracts for storage and notification adapters so
that the core can be reused with different backends.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Optional, Protocol, Union

from core.models import ContentKind, ContentRecord, Notification


class ContentStorePort(Protocol):
    """Storage operations required by the core pipeline."""

    def put(
        self, kind: ContentKind, content_id: str, content: Union[str, bytes], sender: str
    ) -> ContentRecord:
        ...

    def get(self, kind: ContentKind, content_id: str) -> Optional[ContentRecord]:
        ...

    def delete(self, kind: ContentKind, content_id: str) -> None:
        ...

    def sweep(self, kind: ContentKind, max_age: timedelta) -> int:
        ...


class NotifierPort(Protocol):
    """Notification operations required by the core pipeline."""

    async def send(self, notification: Notification) -> None:
        ...
