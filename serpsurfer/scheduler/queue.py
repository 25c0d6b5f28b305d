"""
Serial task queue.

An in-memory FIFO of zero-argument coroutine functions, drained by exactly
one worker loop. Tasks run one at a time; concurrency lives inside a task
(the bots of one campaign), never across queued tasks. Nothing is
persisted: whatever is still queued when the process exits is lost.
"""

import asyncio
from collections import deque
from typing import Any, Awaitable, Callable, Deque, Optional

from serpsurfer.core.error_logger import ErrorLogger, get_error_logger
from serpsurfer.core.error_models import ErrorComponent, ErrorStage, ErrorType
from serpsurfer.core.logging import get_logger

logger = get_logger(__name__)


QueuedTask = Callable[[], Awaitable[Any]]


class TaskQueue:
    """
    Single-consumer FIFO with an explicit start/stop lifecycle.

    Producers call ``enqueue`` from the event loop; ``start`` launches the
    one worker that drains it.

    Usage:
        >>> queue = TaskQueue()
        >>> queue.start()
        >>> queue.enqueue(lambda: runner.run(task))
        >>> await queue.stop()
    """

    def __init__(
        self,
        idle_delay: float = 1.0,
        sleeper: Optional[Callable[[float], Awaitable[None]]] = None,
        error_logger: Optional[ErrorLogger] = None,
    ):
        if idle_delay <= 0:
            raise ValueError("idle_delay must be positive")
        self.idle_delay = idle_delay
        self._sleeper = sleeper or asyncio.sleep
        self._error_logger = error_logger
        self._tasks: Deque[QueuedTask] = deque()
        self._consuming = False
        self._stopping = False
        self._worker: Optional[asyncio.Task] = None
        self.completed = 0
        self.failed = 0

    def __len__(self) -> int:
        return len(self._tasks)

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    def enqueue(self, task: QueuedTask) -> None:
        """
        Append a deferred task.

        Raises:
            TypeError: If ``task`` is not callable
        """
        if not callable(task):
            raise TypeError(f"queued task must be callable, got {type(task).__name__}")
        self._tasks.append(task)
        logger.debug(f"task enqueued ({len(self._tasks)} pending)")

    async def run_next(self) -> bool:
        """
        Run the oldest task, if any.

        A failing task is logged and counted; it never propagates.

        Returns:
            False if the queue was empty
        """
        if not self._tasks:
            return False
        task = self._tasks.popleft()
        try:
            await task()
            self.completed += 1
        except Exception as e:
            self.failed += 1
            logger.error(f"Error executing task: {e}")
            (self._error_logger or get_error_logger()).log_exception(
                e,
                component=ErrorComponent.SCHEDULER,
                stage=ErrorStage.RUN_TASK,
                domain="queue",
                error_type=ErrorType.TASK_ERROR,
                metadata={"pending": len(self._tasks)},
            )
        return True

    async def drain(self) -> int:
        """
        Run queued tasks until the queue is empty.

        Returns:
            Number of tasks taken off the queue
        """
        self._claim_consumer()
        try:
            count = 0
            while await self.run_next():
                count += 1
            return count
        finally:
            self._consuming = False

    async def run_forever(self) -> None:
        """Worker loop: run tasks in order, sleep ``idle_delay`` when empty, until stopped."""
        self._claim_consumer()
        logger.info("queue worker started")
        try:
            while not self._stopping:
                if not await self.run_next():
                    await self._sleeper(self.idle_delay)
        finally:
            self._consuming = False
            logger.info(f"queue worker stopped ({self.completed} done, {self.failed} failed)")

    def start(self) -> asyncio.Task:
        """Launch the worker loop on the running event loop."""
        if self.running:
            raise RuntimeError("queue worker already running")
        self._stopping = False
        self._worker = asyncio.create_task(self.run_forever())
        return self._worker

    async def stop(self) -> None:
        """Let the in-flight task finish, then end the worker loop."""
        self._stopping = True
        if self._worker is not None:
            await self._worker
            self._worker = None

    def _claim_consumer(self) -> None:
        if self._consuming:
            raise RuntimeError("queue already has a consumer")
        self._consuming = True
