from __future__ import annotations

import asyncio

from adapters.telegram_notifier import TelegramNotifier
from core.models import ContentKind, Notification
from core.session import DiscoverOnKeyword, SessionContext, StaticDestination


class DummyClient:
    def __init__(self) -> None:
        self.messages: list[tuple[object, str]] = []
        self.files: list[tuple[object, bytes]] = []

    async def send_message(self, entity, message, parse_mode=None) -> None:
        self.messages.append((entity, message))

    async def send_file(self, entity, file) -> None:
        self.files.append((entity, file.read()))


def _resolved_session() -> SessionContext:
    session = SessionContext(me=None, strategy=StaticDestination(name="@audit"))
    session.resolve("audit-entity")
    return session


def test_text_recall_sends_one_message() -> None:
    client = DummyClient()
    notifier = TelegramNotifier(client, _resolved_session())

    asyncio.run(notifier.send(Notification(sender="Alice", kind=ContentKind.TEXT, content="hello")))

    assert len(client.messages) == 1
    entity, text = client.messages[0]
    assert entity == "audit-entity"
    assert text.endswith("**Alice** recalled:\nhello")
    assert client.files == []


def test_image_recall_sends_caption_then_bytes() -> None:
    client = DummyClient()
    notifier = TelegramNotifier(client, _resolved_session())

    asyncio.run(notifier.send(Notification(sender="Bob", kind=ContentKind.IMAGE, content=b"jpeg")))

    assert client.messages[0][1].endswith("**Bob** recalled an image:")
    assert client.files == [("audit-entity", b"jpeg")]


def test_pending_destination_drops_notice() -> None:
    client = DummyClient()
    session = SessionContext(me=None, strategy=DiscoverOnKeyword(trigger_sender=1, keyword="#rewind"))
    notifier = TelegramNotifier(client, session)

    asyncio.run(notifier.send(Notification(sender="Alice", kind=ContentKind.TEXT, content="hello")))

    assert client.messages == []
