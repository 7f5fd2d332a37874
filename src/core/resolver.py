"""Recall resolution (core domain).

A recall carries only the id of the deleted message. Texts are checked before
images; a hit in either table is authoritative.
"""

from __future__ import annotations

import logging

from core.models import NOT_FOUND, ContentKind, Found, RecallOutcome
from core.ports import ContentStorePort
from core.retention import RetentionSweeper

LOGGER = logging.getLogger(__name__)

_LOOKUP_ORDER = (ContentKind.TEXT, ContentKind.IMAGE)


class RecallResolver:
    """Match a recalled id back to stored content, then prune aged rows."""

    def __init__(self, store: ContentStorePort, sweeper: RetentionSweeper) -> None:
        self._store = store
        self._sweeper = sweeper

    def resolve(self, content_id: str) -> RecallOutcome:
        outcome = self._lookup(content_id)
        # Growth control rides on recall cadence: every resolution prunes,
        # whether or not it found anything.
        try:
            self._sweeper.prune()
        except Exception:
            LOGGER.exception("Retention sweep failed after recall %s", content_id)
        return outcome

    def _lookup(self, content_id: str) -> RecallOutcome:
        for kind in _LOOKUP_ORDER:
            record = self._store.get(kind, content_id)
            if record is not None:
                return Found(kind=kind, sender=record.sender, content=record.content)
        LOGGER.info("Recalled id %s is not stored", content_id)
        return NOT_FOUND
