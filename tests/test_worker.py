from __future__ import annotations

import asyncio
from functools import partial

from adapters.telegram_mapper import classify_new_message
from core.config import RetentionPolicy
from core.errors import TransportError
from core.models import ContentKind, ContentRecalled, TextPosted
from core.processor import RecallProcessor
from core.resolver import RecallResolver
from core.retention import RetentionSweeper
from core.worker import EventWorker
from fakes import FakeNotifier, FakeStore


class FlakyNotifier(FakeNotifier):
    def __init__(self) -> None:
        super().__init__()
        self.calls = 0

    async def send(self, notification) -> None:
        self.calls += 1
        if self.calls == 1:
            raise ConnectionError("destination unreachable")
        await super().send(notification)


def _worker(store: FakeStore, notifier: FakeNotifier) -> EventWorker:
    resolver = RecallResolver(store, RetentionSweeper(store, RetentionPolicy()))
    return EventWorker(RecallProcessor(store=store, resolver=resolver, notifier=notifier))


def test_worker_processes_events_in_order() -> None:
    store = FakeStore()
    notifier = FakeNotifier()

    async def scenario() -> EventWorker:
        worker = _worker(store, notifier)
        worker.start()
        await worker.submit(TextPosted(id="1", body="first", sender="S"))
        await worker.submit(ContentRecalled(id="1"))
        await worker.stop()
        return worker

    worker = asyncio.run(scenario())

    assert worker.processed == 2
    assert [n.content for n in notifier.sent] == ["first"]


def test_worker_survives_a_failing_event() -> None:
    store = FakeStore()
    notifier = FlakyNotifier()

    async def scenario() -> EventWorker:
        worker = _worker(store, notifier)
        worker.start()
        await worker.submit(TextPosted(id="1", body="one", sender="S"))
        await worker.submit(TextPosted(id="2", body="two", sender="S"))
        await worker.submit(ContentRecalled(id="1"))
        await worker.submit(ContentRecalled(id="2"))
        await worker.join()
        await worker.stop()
        return worker

    worker = asyncio.run(scenario())

    assert worker.failed == 1
    assert worker.processed == 3
    assert [n.content for n in notifier.sent] == ["two"]
    assert "2" in store.rows[ContentKind.TEXT]


def test_recall_queued_during_image_download_waits_for_it() -> None:
    store = FakeStore()
    notifier = FakeNotifier()

    class PhotoMessage:
        chat_id = -100123
        id = 5
        raw_text = ""
        photo = object()
        chat = None
        sender_id = 9

    async def slow_download(message) -> bytes:
        await asyncio.sleep(0.05)
        return b"jpeg"

    async def scenario() -> None:
        worker = _worker(store, notifier)
        worker.start()
        # Same order the update handlers enqueue in: post first, deletion right after.
        worker.submit_nowait(
            partial(classify_new_message, PhotoMessage(), {"chat_id:-100123"}, slow_download)
        )
        worker.submit_nowait(ContentRecalled(id="5"))
        await worker.stop()

    asyncio.run(scenario())

    assert [(n.kind, n.content) for n in notifier.sent] == [(ContentKind.IMAGE, b"jpeg")]


def test_failed_download_is_skipped_and_worker_continues() -> None:
    store = FakeStore()
    notifier = FakeNotifier()

    async def broken() -> None:
        raise TransportError("download failed")

    async def scenario() -> EventWorker:
        worker = _worker(store, notifier)
        worker.start()
        worker.submit_nowait(broken)
        worker.submit_nowait(TextPosted(id="1", body="still here", sender="S"))
        await worker.stop()
        return worker

    worker = asyncio.run(scenario())

    assert worker.skipped == 1
    assert worker.processed == 1
    assert "1" in store.rows[ContentKind.TEXT]
