from __future__ import annotations

import asyncio

import pytest
from telethon.tl.types import Chat, User

from adapters.telegram_mapper import classify_deleted, classify_new_message, is_basic_group_source
from core.errors import TransportError
from core.models import ContentRecalled, ImagePosted, OtherEvent, TextPosted
from core.source_keys import expand_source_key_variants

SOURCE_KEYS = expand_source_key_variants("chat_id:-100123")


class DummyChat:
    def __init__(self, username: "str | None" = None) -> None:
        self.username = username


class DummyMessage:
    def __init__(
        self,
        *,
        chat_id: int,
        message_id: int,
        text: str = "",
        photo=None,
        sender=None,
        chat: "DummyChat | None" = None,
    ) -> None:
        self.chat_id = chat_id
        self.id = message_id
        self.raw_text = text
        self.photo = photo
        self.chat = chat or DummyChat()
        self.sender_id = getattr(sender, "id", None)
        self._sender = sender

    async def get_sender(self):
        return self._sender


class DummyDeleted:
    def __init__(self, chat_id: "int | None", deleted_ids: list[int]) -> None:
        self.chat_id = chat_id
        self.deleted_ids = deleted_ids


async def _download(message) -> bytes:
    return b"\xff\xd8jpeg"


async def _failing_download(message) -> bytes:
    raise ConnectionError("reset by peer")


def test_text_from_monitored_chat() -> None:
    message = DummyMessage(
        chat_id=-100123, message_id=1001, text="hello", sender=User(id=5, first_name="Alice")
    )

    event = asyncio.run(classify_new_message(message, SOURCE_KEYS, _download))

    assert event == TextPosted(id="1001", body="hello", sender="Alice")


def test_message_from_other_chat_is_other() -> None:
    message = DummyMessage(chat_id=-100999, message_id=1, text="hello")

    event = asyncio.run(classify_new_message(message, SOURCE_KEYS, _download))

    assert isinstance(event, OtherEvent)


def test_username_source_matches() -> None:
    message = DummyMessage(
        chat_id=-100999,
        message_id=3,
        text="hi",
        chat=DummyChat(username="Owners"),
        sender=User(id=5, first_name="Alice", last_name="Liddell"),
    )

    event = asyncio.run(classify_new_message(message, {"@owners"}, _download))

    assert event == TextPosted(id="3", body="hi", sender="Alice Liddell")


def test_photo_is_downloaded_before_emitting() -> None:
    message = DummyMessage(
        chat_id=-100123, message_id=2002, photo=object(), sender=User(id=6, first_name="Bob")
    )

    event = asyncio.run(classify_new_message(message, SOURCE_KEYS, _download))

    assert event == ImagePosted(id="2002", payload=b"\xff\xd8jpeg", sender="Bob")


def test_photo_download_failure_raises_transport_error() -> None:
    message = DummyMessage(chat_id=-100123, message_id=2002, photo=object())

    with pytest.raises(TransportError):
        asyncio.run(classify_new_message(message, SOURCE_KEYS, _failing_download))


def test_sender_falls_back_to_id() -> None:
    message = DummyMessage(chat_id=-100123, message_id=1, text="hi")
    message.sender_id = 77

    event = asyncio.run(classify_new_message(message, SOURCE_KEYS, _download))

    assert event.sender == "77"


def test_empty_text_is_other() -> None:
    message = DummyMessage(chat_id=-100123, message_id=1, text="   ")

    event = asyncio.run(classify_new_message(message, SOURCE_KEYS, _download))

    assert isinstance(event, OtherEvent)


def test_deleted_in_monitored_chat_yields_one_recall_per_id() -> None:
    events = classify_deleted(DummyDeleted(-100123, [10, 11]), SOURCE_KEYS)

    assert events == [ContentRecalled(id="10"), ContentRecalled(id="11")]


def test_deleted_in_other_chat_is_dropped() -> None:
    assert classify_deleted(DummyDeleted(-100999, [10]), SOURCE_KEYS) == []


def test_deleted_without_chat_id_is_dropped_for_supergroup_source() -> None:
    # Private-chat deletions carry no chat id and reuse the account-wide id
    # sequence; they must not match supergroup message ids.
    assert classify_deleted(DummyDeleted(None, [10]), SOURCE_KEYS) == []


def test_deleted_without_chat_id_passes_for_basic_group_source() -> None:
    keys = expand_source_key_variants("chat_id:-4567")

    events = classify_deleted(DummyDeleted(None, [10]), keys, accept_unscoped=True)

    assert events == [ContentRecalled(id="10")]


def test_basic_group_source_detection() -> None:
    assert is_basic_group_source("chat_id:-4567")
    assert not is_basic_group_source("chat_id:-100123")
    assert not is_basic_group_source("@owners")
    basic = Chat(id=4567, title="Owners", photo=None, participants_count=3, date=None, version=1)
    assert is_basic_group_source("@owners", basic)
    assert not is_basic_group_source("chat_id:-4567", User(id=5))
