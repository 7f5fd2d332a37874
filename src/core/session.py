"""Session context and destination resolution.

The context is built once after login and passed to the components that need
to know who we are and where recalled content goes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional, Union

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class StaticDestination:
    """Destination chat key configured up front (`@name` or `chat_id:<id>`)."""

    name: str


@dataclass(frozen=True)
class DiscoverOnKeyword:
    """Destination is the chat where `trigger_sender` first posts `keyword`."""

    trigger_sender: int
    keyword: str


DestinationStrategy = Union[StaticDestination, DiscoverOnKeyword]


class _Pending:
    def __repr__(self) -> str:
        return "PENDING"


PENDING = _Pending()


@dataclass(frozen=True)
class Resolved:
    destination: Any


DestinationState = Union[_Pending, Resolved]


class SessionContext:
    """Per-run session handles: the logged-in user and the destination state."""

    def __init__(self, me: Any, strategy: DestinationStrategy) -> None:
        self.me = me
        self.strategy = strategy
        self.state: DestinationState = PENDING

    @property
    def destination(self) -> Optional[Any]:
        if isinstance(self.state, Resolved):
            return self.state.destination
        return None

    def resolve(self, destination: Any) -> None:
        self.state = Resolved(destination)
        LOGGER.info("Destination resolved: %s", destination)

    def observe(self, chat: Any, sender_id: Optional[int], text: str) -> bool:
        """Resolve a pending keyword discovery from one incoming message.

        Returns True only for the message that resolved the destination.
        """

        if isinstance(self.state, Resolved):
            return False
        if not isinstance(self.strategy, DiscoverOnKeyword):
            return False
        if sender_id != self.strategy.trigger_sender:
            return False
        if text.strip() != self.strategy.keyword:
            return False
        self.resolve(chat)
        return True
