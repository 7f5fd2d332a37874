"""Telegram-to-core event classification adapter.

This keeps Telethon-specific details out of the core pipeline: every raw
update is turned into exactly one of the core event variants before it is
queued.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Iterable, Optional

from telethon import utils
from telethon.tl.types import Chat

from core.errors import TransportError
from core.models import ChatEvent, ContentRecalled, ImagePosted, OtherEvent, TextPosted
from core.source_keys import keys_for_chat, parse_chat_id

LOGGER = logging.getLogger(__name__)

Downloader = Callable[[Any], Awaitable[Optional[bytes]]]


def is_monitored(chat: Any, chat_id: Optional[int], source_keys: set[str]) -> bool:
    return bool(keys_for_chat(chat, chat_id) & source_keys)


async def sender_label(message: Any) -> str:
    """Return a display name for the author, falling back to the sender id."""

    sender = None
    get_sender = getattr(message, "get_sender", None)
    if get_sender is not None:
        try:
            sender = await get_sender()
        except Exception:
            LOGGER.debug("Could not fetch sender for message %s", message.id, exc_info=True)
    if sender is not None:
        name = utils.get_display_name(sender)
        if name:
            return name
    sender_id = getattr(message, "sender_id", None)
    return str(sender_id) if sender_id is not None else "unknown"


async def download_bytes(message: Any) -> Optional[bytes]:
    """Download a message's media fully into memory."""

    return await message.download_media(file=bytes)


async def classify_new_message(
    message: Any,
    source_keys: set[str],
    downloader: Downloader = download_bytes,
) -> ChatEvent:
    """Classify a new Telethon message into a core event.

    Raises TransportError when a photo cannot be downloaded; the caller drops
    that one event.
    """

    if not is_monitored(getattr(message, "chat", None), message.chat_id, source_keys):
        return OtherEvent()

    content_id = str(message.id)
    if getattr(message, "photo", None) is not None:
        try:
            payload = await downloader(message)
        except Exception as exc:
            raise TransportError(f"Failed to download photo {content_id}: {exc}") from exc
        if not payload:
            raise TransportError(f"Photo {content_id} downloaded empty")
        return ImagePosted(id=content_id, payload=payload, sender=await sender_label(message))

    text = message.raw_text or ""
    if text.strip():
        return TextPosted(id=content_id, body=text, sender=await sender_label(message))

    # Stickers, documents, service messages and the like.
    return OtherEvent()


def is_basic_group_source(source_key: str, entity: Any = None) -> bool:
    """Return True when the monitored chat is a basic (non-channel) group.

    Only basic groups share the account-wide message id sequence, so only
    they can be matched by deletions that carry no chat id.
    """

    if entity is not None:
        return isinstance(entity, Chat)
    chat_id = parse_chat_id(source_key)
    if chat_id is None:
        # Public usernames belong to supergroups and channels.
        return False
    return not str(chat_id).startswith("-100")


def classify_deleted(
    event: Any,
    source_keys: set[str],
    accept_unscoped: bool = False,
) -> list[ChatEvent]:
    """Classify a Telethon MessageDeleted update into recall events.

    Deletions without a chat id come from basic groups or private chats and
    are only accepted when `accept_unscoped` says the source is a basic group.
    """

    deleted_ids: Iterable[int] = getattr(event, "deleted_ids", None) or []
    chat_id = getattr(event, "chat_id", None)
    if chat_id is None:
        if not accept_unscoped:
            return []
    elif not is_monitored(None, chat_id, source_keys):
        return []
    return [ContentRecalled(id=str(deleted_id)) for deleted_id in deleted_ids]
