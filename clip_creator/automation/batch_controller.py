"""
Batch Controller

Runs many video generations with a cap on how many run at once.
"""

import asyncio
import os
import time
from collections import deque
from threading import Lock
from typing import Callable, Deque, Dict, List, Optional, Set

from ..utils.config import PipelineConfig
from ..utils.logger import LoggerMixin
from .automation_models import (
    BatchStatus, BatchSummary, BatchTask, TaskError, TaskOutcome, TaskResult
)
from .task_runner import TaskRunner

EVENTS = ("progress", "error", "complete")


def default_max_concurrent() -> int:
    return max(1, (os.cpu_count() or 1) - 1)


class BatchController(LoggerMixin):
    """
    FIFO queue of video tasks with a concurrency ceiling.

    Admission (queue -> active) and completion (active -> results/errors,
    then admit the next task) each happen under `state_lock`, so
    `len(active) <= max_concurrent` and
    `queued + active + finished == count` hold at every observation.
    """

    def __init__(self, runner: TaskRunner, max_concurrent: Optional[int] = None):
        self.runner = runner
        self.max_concurrent = max(1, max_concurrent or default_max_concurrent())

        self.state_lock = Lock()
        self.queue: Deque[BatchTask] = deque()
        self.active: Set[str] = set()
        self.results: List[TaskResult] = []
        self.errors: List[TaskError] = []

        self.batch_id: Optional[str] = None
        self.summary: Optional[BatchSummary] = None
        self._listeners: Dict[str, List[Callable]] = {event: [] for event in EVENTS}
        self._running: Set[asyncio.Task] = set()
        self._done: Optional[asyncio.Event] = None

    def on(self, event: str, callback: Callable) -> None:
        """Register a listener for progress, error or complete"""
        if event not in self._listeners:
            raise ValueError(f"Unknown batch event '{event}', expected one of {', '.join(EVENTS)}")
        self._listeners[event].append(callback)

    def _emit(self, event: str, payload) -> None:
        for callback in self._listeners[event]:
            try:
                callback(payload)
            except Exception as e:
                self.logger.error(f"Batch '{event}' listener failed: {e}")

    def get_status(self) -> BatchStatus:
        with self.state_lock:
            return BatchStatus(
                queued=len(self.queue),
                active=len(self.active),
                completed=len(self.results),
                errors=len(self.errors),
            )

    def _admit_locked(self) -> List[BatchTask]:
        # Caller holds state_lock
        admitted = []
        while self.queue and len(self.active) < self.max_concurrent:
            task = self.queue.popleft()
            self.active.add(task.id)
            admitted.append(task)
        return admitted

    def _start(self, tasks: List[BatchTask]) -> None:
        for task in tasks:
            self.logger.info(
                f"Starting task {task.id} ({len(self.active)}/{self.max_concurrent} active)"
            )
            running = asyncio.ensure_future(self._run_task(task))
            self._running.add(running)
            running.add_done_callback(self._running.discard)

    async def _run_task(self, task: BatchTask) -> None:
        started = time.monotonic()
        try:
            handle = await self.runner.submit(task)
            outcome = await self.runner.wait(handle)
        except Exception as e:
            outcome = TaskOutcome(
                task_id=task.id,
                success=False,
                duration=round(time.monotonic() - started, 2),
                error=str(e),
            )
        self._complete(task, outcome)

    def _complete(self, task: BatchTask, outcome: TaskOutcome) -> None:
        with self.state_lock:
            self.active.discard(task.id)
            if outcome.success:
                record = TaskResult(task_id=task.id, duration=outcome.duration, output=outcome.output)
                self.results.append(record)
            else:
                record = TaskError(task_id=task.id, error=outcome.error or "Unknown error",
                                   duration=outcome.duration)
                self.errors.append(record)
            admitted = self._admit_locked()
            finished = not self.queue and not self.active

        if outcome.success:
            self.logger.info(f"Task {task.id} completed in {outcome.duration}s: {outcome.output}")
            self._emit("progress", record)
        else:
            self.logger.error(f"Task {task.id} failed after {outcome.duration}s: {record.error}")
            self._emit("error", record)

        self._start(admitted)
        if finished:
            self._finish()

    def _finish(self) -> None:
        with self.state_lock:
            if self.summary is not None:
                return
            self.summary = BatchSummary(
                batch_id=self.batch_id or "",
                success_count=len(self.results),
                failure_count=len(self.errors),
                total_duration=round(sum(r.duration for r in self.results), 2),
                results=list(self.results),
                errors=list(self.errors),
            )

        self.logger.info(
            f"Batch {self.summary.batch_id} complete: {self.summary.success_count} succeeded, "
            f"{self.summary.failure_count} failed, {self.summary.total_duration}s total"
        )
        self._emit("complete", self.summary)
        if self._done is not None:
            self._done.set()

    async def process(self, base_config: PipelineConfig, count: int) -> BatchSummary:
        """Generate `count` videos from the same configuration"""
        if count < 1:
            raise ValueError("Batch count must be at least 1")

        self.batch_id = str(int(time.time() * 1000))
        self.summary = None
        self._done = asyncio.Event()
        tasks = [BatchTask.create(self.batch_id, index, base_config) for index in range(count)]

        self.logger.info(
            f"Starting batch {self.batch_id}: {count} videos, max {self.max_concurrent} concurrent"
        )
        with self.state_lock:
            self.results, self.errors = [], []
            self.queue.extend(tasks)
            admitted = self._admit_locked()
        self._start(admitted)

        await self._done.wait()
        return self.summary
