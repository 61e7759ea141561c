"""
Job Queue: serializes pipeline runs.
Processes one URL at a time, in submission order, on a single drain task.
"""

import asyncio
import logging
from collections import deque
from typing import Awaitable, Callable, Optional

from vidtext.core.error_codes import PipelineError, JobTimeout, UnknownPipelineFailure
from vidtext.core.models import QueueEntry, TranscriptRecord

logger = logging.getLogger(__name__)

Handler = Callable[[str], Awaitable[TranscriptRecord]]


class JobQueue:
    """
    FIFO, single-flight admission control for an async handler.

    Every submission owns a future that the drain loop resolves with the
    handler's result or exception. A failing job fails only its own
    submission; draining continues with the next entry.
    """

    def __init__(self, handler: Handler, job_timeout: float | None = None):
        self._handler = handler
        self._job_timeout = job_timeout
        self._pending: deque[QueueEntry] = deque()
        self._processing = False
        self._current: Optional[QueueEntry] = None
        self._drain_task: Optional[asyncio.Task] = None

    # ── Queue management ──────────────────────────────────────────────

    async def submit(self, url: str) -> TranscriptRecord:
        """Enqueue url and wait for its outcome."""
        entry = QueueEntry(url=url, future=asyncio.get_running_loop().create_future())
        self._pending.append(entry)
        logger.info("Queued %s (%d pending)", url, len(self._pending))
        self._start_draining()
        return await entry.future

    def pending_urls(self) -> list[str]:
        return [entry.url for entry in self._pending]

    @property
    def is_processing(self) -> bool:
        return self._processing

    async def shutdown(self):
        """Cancel the drain task and every submission still waiting."""
        if self._current is not None and not self._current.future.done():
            self._current.future.cancel()
        while self._pending:
            entry = self._pending.popleft()
            if not entry.future.done():
                entry.future.cancel()
        if self._drain_task is not None:
            self._drain_task.cancel()
            try:
                await self._drain_task
            except asyncio.CancelledError:
                pass
            self._drain_task = None

    # ── Drain loop ────────────────────────────────────────────────────

    def _start_draining(self):
        if self._processing:
            return
        self._processing = True
        self._drain_task = asyncio.create_task(self._drain())

    async def _drain(self):
        """Consume the queue until empty, one entry at a time."""
        try:
            while self._pending:
                self._current = self._pending.popleft()
                await self._process_entry(self._current)
                self._current = None
        finally:
            self._current = None
            self._processing = False

    async def _process_entry(self, entry: QueueEntry):
        try:
            result = await self._run_handler(entry.url)
        except PipelineError as e:
            logger.warning("Job failed for %s: %s", entry.url, e)
            self._settle(entry, error=e)
        except Exception as e:
            logger.error("Unexpected error processing %s: %s", entry.url, e, exc_info=True)
            failure = UnknownPipelineFailure(str(e)[:2000])
            failure.__cause__ = e
            self._settle(entry, error=failure)
        else:
            self._settle(entry, result=result)

    async def _run_handler(self, url: str) -> TranscriptRecord:
        if self._job_timeout is None:
            return await self._handler(url)
        try:
            return await asyncio.wait_for(self._handler(url), timeout=self._job_timeout)
        except asyncio.TimeoutError as e:
            raise JobTimeout(f"Job for {url} exceeded {self._job_timeout:.0f}s") from e

    @staticmethod
    def _settle(entry: QueueEntry, result=None, error: Exception | None = None):
        # The caller may have stopped waiting (cancelled await)
        if entry.future.done():
            return
        if error is not None:
            entry.future.set_exception(error)
        else:
            entry.future.set_result(result)
