"""Deterministic virtual host loop for headless runs and tests."""

from __future__ import annotations

from dataclasses import dataclass
from heapq import heappop, heappush

from framepace.api.timing import TaskCallback


@dataclass(slots=True)
class _Task:
    task_id: int
    due_ms: float
    callback: TaskCallback
    interval_ms: float | None = None
    cancelled: bool = False


class VirtualScheduler:
    """Single-threaded time-based scheduler driven by `advance`.

    One `run_due` call models one host loop iteration: tasks scheduled while
    callbacks run become eligible on the next call, so zero-delay tasks that
    reschedule themselves run once per iteration instead of spinning.
    """

    def __init__(self, start_ms: float = 0.0) -> None:
        self._now_ms = float(start_ms)
        self._next_task_id = 1
        self._tasks: dict[int, _Task] = {}
        self._queue: list[tuple[float, int]] = []
        self._executed_total = 0

    @property
    def now_ms(self) -> float:
        return self._now_ms

    @property
    def queued_task_count(self) -> int:
        """Return count of active queued tasks."""
        return sum(1 for task in self._tasks.values() if not task.cancelled)

    @property
    def executed_total(self) -> int:
        return self._executed_total

    def call_later(self, delay_ms: float, callback: TaskCallback) -> int:
        """Schedule a one-shot callback after delay."""
        if delay_ms < 0.0:
            raise ValueError("delay_ms must be >= 0")
        return self._schedule(due_ms=self._now_ms + delay_ms, callback=callback, interval_ms=None)

    def call_every(self, interval_ms: float, callback: TaskCallback) -> int:
        """Schedule a recurring callback at fixed interval."""
        if interval_ms <= 0.0:
            raise ValueError("interval_ms must be > 0")
        return self._schedule(
            due_ms=self._now_ms + interval_ms,
            callback=callback,
            interval_ms=interval_ms,
        )

    def cancel(self, task_id: int) -> None:
        """Cancel a scheduled task if it exists."""
        task = self._tasks.get(task_id)
        if task is not None:
            task.cancelled = True

    def advance(self, delta_ms: float) -> int:
        """Advance virtual time and run due callbacks."""
        if delta_ms < 0.0:
            raise ValueError("delta_ms must be >= 0")
        return self.run_due(self._now_ms + delta_ms)

    def run_for(self, duration_ms: float, *, tick_ms: float) -> int:
        """Advance in `tick_ms` iterations until `duration_ms` has elapsed."""
        if duration_ms < 0.0:
            raise ValueError("duration_ms must be >= 0")
        if tick_ms <= 0.0:
            raise ValueError("tick_ms must be > 0")
        target_ms = self._now_ms + duration_ms
        executed = 0
        while self._now_ms < target_ms:
            executed += self.run_due(min(target_ms, self._now_ms + tick_ms))
        return executed

    def run_due(self, now_ms: float) -> int:
        """Run callbacks due at or before `now_ms`."""
        if now_ms < self._now_ms:
            raise ValueError("now_ms cannot move backwards")
        newest_eligible_id = self._next_task_id - 1
        deferred: list[tuple[float, int]] = []
        executed = 0
        while self._queue and self._queue[0][0] <= now_ms:
            due_ms, task_id = heappop(self._queue)
            task = self._tasks.get(task_id)
            if task is None or task.cancelled:
                self._tasks.pop(task_id, None)
                continue
            if task_id > newest_eligible_id:
                deferred.append((due_ms, task_id))
                continue
            self._now_ms = max(self._now_ms, due_ms)
            task.callback()
            executed += 1
            if task.cancelled or task.interval_ms is None:
                self._tasks.pop(task_id, None)
                continue
            task.due_ms += task.interval_ms
            heappush(self._queue, (task.due_ms, task.task_id))
        for entry in deferred:
            heappush(self._queue, entry)
        self._now_ms = now_ms
        self._executed_total += executed
        return executed

    def _schedule(
        self,
        *,
        due_ms: float,
        callback: TaskCallback,
        interval_ms: float | None,
    ) -> int:
        task_id = self._next_task_id
        self._next_task_id += 1
        self._tasks[task_id] = _Task(
            task_id=task_id,
            due_ms=due_ms,
            callback=callback,
            interval_ms=interval_ms,
        )
        heappush(self._queue, (due_ms, task_id))
        return task_id
