"""Read loop: log lines in, one independent dispatch task per completed request."""

import asyncio
import logging
from collections.abc import AsyncIterable

from vlt.assembler import RequestAssembler
from vlt.dispatcher import Dispatcher
from vlt.errors import TranslationError
from vlt.models import RequestRecord
from vlt.stats import ReplayStats
from vlt.translator import translate

logger = logging.getLogger(__name__)


class ReplayDriver:
    def __init__(
        self,
        target_host: str,
        dispatcher: Dispatcher,
        assembler: RequestAssembler | None = None,
        stats: ReplayStats | None = None,
    ):
        self.target_host = target_host
        self.dispatcher = dispatcher
        self.assembler = assembler or RequestAssembler()
        self.stats = stats or ReplayStats()
        self._tasks: set[asyncio.Task] = set()
        self.spawned = 0

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    async def run(self, lines: AsyncIterable[str]) -> dict:
        """Consume *lines* until end of stream, then wait for in-flight requests.

        A StreamError from the source propagates to the caller.
        """
        async for line in lines:
            record = self.assembler.feed_line(line)
            if record is not None:
                self.handle_record(record)

        logger.info("End of log stream, waiting for %d in-flight requests", self.in_flight)
        await self.drain()
        self._sync_counters()
        return self.stats.summary()

    def handle_record(self, record: RequestRecord) -> asyncio.Task | None:
        """Translate a completed record and start its dispatch without waiting."""
        self._sync_counters()
        try:
            outbound = translate(record, self.target_host)
        except TranslationError as e:
            self.stats.record_invalid()
            logger.warning("Dropping request: %s", e)
            return None

        task = asyncio.create_task(self.dispatcher.dispatch(outbound))
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        self.spawned += 1
        return task

    def _sync_counters(self):
        self.stats.abandoned = self.assembler.abandoned
        self.stats.malformed_headers = self.assembler.malformed_headers

    def _task_done(self, task: asyncio.Task):
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Dispatch task failed", exc_info=task.exception())

    async def drain(self):
        """Wait for every dispatch task started so far."""
        while self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
