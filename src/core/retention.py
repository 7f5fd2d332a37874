"""Age-based pruning of stored content (core domain)."""

from __future__ import annotations

import logging

from core.config import RetentionPolicy
from core.models import ContentKind
from core.ports import ContentStorePort

LOGGER = logging.getLogger(__name__)


class RetentionSweeper:
    """Delete every stored record older than the policy's max age."""

    def __init__(self, store: ContentStorePort, policy: RetentionPolicy) -> None:
        self._store = store
        self._policy = policy


    def prune(self) -> dict[ContentKind, int]:
        """Sweep both kinds and return the number of rows removed per kind."""

        removed = {kind: self._store.sweep(kind, self._policy.max_age) for kind in ContentKind}
        if any(removed.values()):
            LOGGER.info(
                "Retention sweep removed %s texts and %s images",
                removed[ContentKind.TEXT],
                removed[ContentKind.IMAGE],
            )
        return removed
