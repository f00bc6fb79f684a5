"""
Bounded-concurrency queue consumer.

A poll loop feeds an asyncio.Queue backlog consumed by a fixed pool of
max_concurrent_requests worker tasks. The loop asks the queue for more
messages only while in-flight plus backlogged messages are below the
pool size, so no more than max_concurrent_requests jobs are ever
mid-pipeline.

Queue error policy:
- transient errors retry with exponential backoff (5s doubling to a 30s cap)
- max_consecutive_fatal_errors fatal errors in a row stop the consumer
- with short polling (wait_time_seconds=0) an empty receive pauses for
  idle_poll_seconds

Dependencies: tenacity, content_review.workers.review_processor
System role: Long-running worker entry point for review jobs
"""

import asyncio
import logging

from tenacity import AsyncRetrying, RetryCallState, retry_if_exception_type, wait_exponential

from content_review.boundary.aws.interfaces import MessageQueue
from content_review.configs.queue import QueueSettings
from content_review.core.exceptions import QueueFatalError, QueueTransientError
from content_review.models.queue_message import QueueMessage
from content_review.models.worker import WorkerStatus
from content_review.observability.log_utils import log_exception_with_context
from content_review.workers.review_processor import ReviewProcessor

logger = logging.getLogger(__name__)


class QueueConsumer:
    """Polls the message queue and runs review jobs on a fixed-size pool."""

    def __init__(
        self,
        queue: MessageQueue,
        processor: ReviewProcessor,
        settings: QueueSettings,
    ) -> None:
        """
        Initialize consumer.

        Args:
            queue: Source of review messages
            processor: Per-message pipeline
            settings: Pool size, long-poll and backoff settings
        """
        self._queue = queue
        self._processor = processor
        self._settings = settings
        self._max_concurrent = settings.max_concurrent_requests
        self._backlog: asyncio.Queue[QueueMessage | None] = asyncio.Queue()
        self._capacity = asyncio.Event()
        self._stop_requested = asyncio.Event()
        self._in_flight = 0
        self._running = False
        self._consecutive_fatal = 0
        self._workers: list[asyncio.Task] = []
        self._poll_task: asyncio.Task | None = None
        self.stop_reason: str | None = None

    @property
    def running(self) -> bool:
        return self._running

    def get_status(self) -> WorkerStatus:
        """Snapshot of running state, pool size, in-flight and backlogged messages."""
        return WorkerStatus(
            running=self._running,
            max_concurrent_requests=self._max_concurrent,
            current_concurrent_requests=self._in_flight,
            queued_messages=self._backlog.qsize(),
        )

    async def start(self) -> None:
        """Start the worker pool and the poll loop."""
        if self._running:
            logger.warning(f"{__name__}:start - Consumer already running")
            return
        self._running = True
        self.stop_reason = None
        self._stop_requested.clear()
        self._consecutive_fatal = 0
        self._workers = [
            asyncio.create_task(self._worker(slot), name=f"review-worker-{slot}")
            for slot in range(self._max_concurrent)
        ]
        self._poll_task = asyncio.create_task(self._poll_loop(), name="review-poll-loop")
        logger.info(
            "%s:start - Consumer started",
            __name__,
            extra={"max_concurrent_requests": self._max_concurrent},
        )

    async def run(self) -> None:
        """Run until stopped, then finish in-flight and backlogged jobs."""
        await self.start()
        try:
            if self._poll_task is not None:
                await self._poll_task
        finally:
            await self._drain()

    def stop(self, reason: str = "requested") -> None:
        """Stop fetching new messages; in-flight and backlogged jobs still finish."""
        if not self._running:
            return
        self._running = False
        self.stop_reason = reason
        self._capacity.set()
        self._stop_requested.set()
        logger.info(f"{__name__}:stop - Consumer stopping ({reason})")

    async def shutdown(self) -> None:
        """Stop and wait for the pool to drain."""
        self.stop()
        if self._poll_task is not None:
            await asyncio.gather(self._poll_task, return_exceptions=True)
        await self._drain()

    async def wait_until_idle(self) -> None:
        """Wait until every backlogged message has been processed."""
        await self._backlog.join()

    async def _drain(self) -> None:
        workers, self._workers = self._workers, []
        for _ in workers:
            self._backlog.put_nowait(None)
        await asyncio.gather(*workers, return_exceptions=True)

    # ------------------------------------------------------------------ poll loop

    def _spare_capacity(self) -> int:
        return self._max_concurrent - self._in_flight - self._backlog.qsize()

    async def _poll_loop(self) -> None:
        while self._running:
            spare = self._spare_capacity()
            if spare <= 0:
                self._capacity.clear()
                await self._capacity.wait()
                continue

            try:
                messages = await self._receive(min(spare, self._settings.max_messages))
            except QueueFatalError as e:
                self._consecutive_fatal += 1
                logger.critical(
                    "%s:poll - Fatal queue error %d/%d: %s",
                    __name__,
                    self._consecutive_fatal,
                    self._settings.max_consecutive_fatal_errors,
                    e.message,
                    extra={"aws_code": e.aws_code},
                )
                if self._consecutive_fatal >= self._settings.max_consecutive_fatal_errors:
                    self.stop(reason=f"fatal queue error: {e.aws_code or e.message}")
                    break
                await asyncio.sleep(self._fatal_backoff())
                continue
            except QueueTransientError:
                # Only reached when the consumer stopped during backoff
                continue

            self._consecutive_fatal = 0
            for message in messages:
                self._backlog.put_nowait(message)
            if not messages:
                await self._idle()

        logger.info(f"{__name__}:poll - Poll loop exited ({self.stop_reason})")

    async def _idle(self) -> None:
        """Pause after an empty receive unless the receive itself long-polled."""
        if self._settings.wait_time_seconds > 0 or self._settings.idle_poll_seconds <= 0:
            await asyncio.sleep(0)
            return
        try:
            await asyncio.wait_for(self._stop_requested.wait(), timeout=self._settings.idle_poll_seconds)
        except asyncio.TimeoutError:
            pass

    async def _receive(self, max_messages: int) -> list[QueueMessage]:
        retrying = AsyncRetrying(
            retry=retry_if_exception_type(QueueTransientError),
            wait=wait_exponential(
                multiplier=self._settings.backoff_initial_seconds,
                min=self._settings.backoff_initial_seconds,
                max=self._settings.backoff_max_seconds,
            ),
            stop=self._stopped,
            before_sleep=self._log_backoff,
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                return await self._queue.receive(max_messages, self._settings.wait_time_seconds)
        return []

    def _stopped(self, retry_state: RetryCallState) -> bool:
        return not self._running

    def _log_backoff(self, retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(
            "%s:poll - Transient queue error, backing off %.1fs (attempt %d): %s",
            __name__,
            retry_state.next_action.sleep if retry_state.next_action else 0.0,
            retry_state.attempt_number,
            error,
        )

    def _fatal_backoff(self) -> float:
        delay = self._settings.backoff_initial_seconds * 2 ** (self._consecutive_fatal - 1)
        return min(delay, self._settings.backoff_max_seconds)

    # ------------------------------------------------------------------ pool

    async def _worker(self, slot: int) -> None:
        while True:
            message = await self._backlog.get()
            try:
                if message is None:
                    return
                self._in_flight += 1
                try:
                    outcome = await self._processor.process_message(message)
                    logger.debug(f"{__name__}:worker-{slot} - Message {message.message_id} {outcome.value}")
                except Exception as e:
                    log_exception_with_context(
                        logger,
                        f"{__name__}:worker - Unhandled error processing message",
                        e,
                        message_id=message.message_id,
                        slot=slot,
                    )
                finally:
                    self._in_flight -= 1
                    self._capacity.set()
            finally:
                self._backlog.task_done()
