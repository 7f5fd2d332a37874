"""Single-consumer event queue.

Transport callbacks only enqueue work, synchronously and in arrival order;
one worker task drains the queue so the store sees serialized calls. Work
that still needs I/O to classify (an image download) is queued as a pending
classification and awaited inside the worker step, so a recall can never
overtake the post it refers to.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Union

from core.errors import TransportError
from core.models import ChatEvent
from core.processor import RecallProcessor

LOGGER = logging.getLogger(__name__)

PendingEvent = Callable[[], Awaitable[ChatEvent]]
WorkItem = Union[ChatEvent, PendingEvent]

_STOP = object()


class EventWorker:
    """Drain classified events into the processor one at a time."""

    def __init__(self, processor: RecallProcessor, maxsize: int = 0) -> None:
        self._processor = processor
        self._queue: "asyncio.Queue[object]" = asyncio.Queue(maxsize=maxsize)
        self._task: Optional[asyncio.Task] = None
        self.processed = 0
        self.failed = 0
        self.skipped = 0

    def submit_nowait(self, item: WorkItem) -> None:
        """Enqueue without yielding, keeping the caller's arrival order."""

        self._queue.put_nowait(item)

    async def submit(self, item: WorkItem) -> None:
        await self._queue.put(item)

    def start(self) -> asyncio.Task:
        if self._task is None:
            self._task = asyncio.ensure_future(self.run())
        return self._task

    async def run(self) -> None:
        while True:
            item = await self._queue.get()
            try:
                if item is _STOP:
                    return
                await self._process(item)
            finally:
                self._queue.task_done()

    async def _process(self, item: WorkItem) -> None:
        try:
            event = await item() if callable(item) else item
        except TransportError:
            self.skipped += 1
            LOGGER.warning("Skipping event whose payload could not be retrieved", exc_info=True)
            return
        except Exception:
            self.failed += 1
            LOGGER.exception("Error while classifying event")
            return
        try:
            await self._processor.handle(event)
        except Exception:
            # One bad event must not stall the ones queued behind it.
            self.failed += 1
            LOGGER.exception("Error while processing %s", type(event).__name__)
            return
        self.processed += 1

    async def join(self) -> None:
        await self._queue.join()

    async def stop(self) -> None:
        """Finish queued events, then end the worker task."""

        await self._queue.put(_STOP)
        if self._task is not None:
            await self._task
            self._task = None
