"""Core event processing.

This module is integration-agnostic. It only relies on ports for storage and
notifications, enabling other transports without changes here.
"""

from __future__ import annotations

import logging

from core.errors import IdConflict
from core.models import (
    ChatEvent,
    ContentKind,
    ContentRecalled,
    Found,
    ImagePosted,
    Notification,
    OtherEvent,
    TextPosted,
)
from core.ports import ContentStorePort, NotifierPort
from core.resolver import RecallResolver

LOGGER = logging.getLogger(__name__)


class RecallProcessor:
    """Persist posted content and forward anything that gets recalled."""

    def __init__(
        self,
        store: ContentStorePort,
        resolver: RecallResolver,
        notifier: NotifierPort,
    ) -> None:
        self._store = store
        self._resolver = resolver
        self._notifier = notifier

    async def handle(self, event: ChatEvent) -> None:
        """Process one classified event."""

        if isinstance(event, TextPosted):
            self._store_content(ContentKind.TEXT, event.id, event.body, event.sender)
        elif isinstance(event, ImagePosted):
            self._store_content(ContentKind.IMAGE, event.id, event.payload, event.sender)
        elif isinstance(event, ContentRecalled):
            await self._handle_recall(event)
        elif isinstance(event, OtherEvent):
            return
        else:
            raise TypeError(f"Unsupported event type: {type(event).__name__}")

    def _store_content(self, kind: ContentKind, content_id: str, content, sender: str) -> None:
        try:
            self._store.put(kind, content_id, content, sender)
        except IdConflict:
            # Already recorded; the first copy wins.
            LOGGER.warning("Skipping duplicate %s %s from %s", kind.value, content_id, sender)
            return
        LOGGER.info("Stored %s %s from %s", kind.value, content_id, sender)

    async def _handle_recall(self, event: ContentRecalled) -> None:
        outcome = self._resolver.resolve(event.id)
        if not isinstance(outcome, Found):
            return
        LOGGER.info("%s recalled %s %s", outcome.sender, outcome.kind.value, event.id)
        await self._notifier.send(Notification.from_found(outcome))
