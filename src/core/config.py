"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from core.session import DestinationStrategy, DiscoverOnKeyword, StaticDestination

DEFAULT_MAX_AGE = timedelta(minutes=5)
DEFAULT_DISCOVERY_KEYWORD = "#rewind"


@dataclass(frozen=True)
class RetentionPolicy:
    """How long stored content stays eligible for recall."""

    max_age: timedelta = DEFAULT_MAX_AGE


@dataclass(frozen=True)
class StorageConfig:
    """Where the content store lives and whether it is wiped on startup."""

    db_path: str
    wipe_on_start: bool = True


def build_destination_strategy(raw: dict) -> DestinationStrategy:
    """Validate the destination block and return a strategy value."""

    strategy = (raw.get("strategy") or "static").strip().lower()
    if strategy == "static":
        chat = raw.get("chat")
        if not chat:
            raise ValueError("destination.chat is required for the static strategy")
        return StaticDestination(name=str(chat))
    if strategy == "discover":
        trigger_sender = raw.get("trigger_sender")
        if trigger_sender is None:
            raise ValueError("destination.trigger_sender is required for the discover strategy")
        return DiscoverOnKeyword(
            trigger_sender=int(trigger_sender),
            keyword=str(raw.get("keyword") or DEFAULT_DISCOVERY_KEYWORD),
        )
    raise ValueError(f"Unsupported destination strategy: {strategy}")
