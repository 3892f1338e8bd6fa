# memory_match/scheduler.py
"""
Deferred-callback schedulers.

The engine never sleeps. It asks a scheduler to run a callback later and keeps
the returned ScheduledTask so it can cancel it. Three implementations:

  - ManualScheduler: a fake clock driven by ``advance()``; used by tests
  - ThreadingScheduler: threading.Timer based; used by the Flask host
  - AsyncioScheduler: loop.call_later based; used by the simulation
"""
from __future__ import annotations

import asyncio
import heapq
import itertools
import threading
from typing import Callable, List, Optional, Tuple

Callback = Callable[[], None]


class ScheduledTask:
    """Handle for a pending callback. ``cancel()`` is idempotent."""

    def __init__(self, delay: float, interval: Optional[float] = None):
        self.delay = delay
        self.interval = interval
        self._cancelled = False
        self._fired = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def active(self) -> bool:
        """True while the callback may still run."""
        return not self._cancelled and not (self._fired and not self.repeating)

    @property
    def repeating(self) -> bool:
        return self.interval is not None

    def cancel(self) -> None:
        self._cancelled = True


class Scheduler:
    def call_later(self, delay: float, callback: Callback) -> ScheduledTask:
        raise NotImplementedError

    def call_every(self, interval: float, callback: Callback) -> ScheduledTask:
        raise NotImplementedError

    def shutdown(self) -> None:
        pass


def _check_delay(delay: float) -> None:
    if delay < 0:
        raise ValueError("delay must be non-negative")


def _check_interval(interval: float) -> None:
    if interval <= 0:
        raise ValueError("interval must be positive")


# ----- fake clock -----

class _ManualTask(ScheduledTask):
    def __init__(self, callback: Callback, due: float, delay: float, interval: Optional[float]):
        super().__init__(delay, interval)
        self.callback = callback
        self.due = due


class ManualScheduler(Scheduler):
    """Runs callbacks only when the test advances the clock."""

    def __init__(self, start: float = 0.0):
        self.now = float(start)
        self._queue: List[Tuple[float, int, _ManualTask]] = []
        self._seq = itertools.count()

    def call_later(self, delay: float, callback: Callback) -> ScheduledTask:
        _check_delay(delay)
        task = _ManualTask(callback, self.now + delay, delay, None)
        heapq.heappush(self._queue, (task.due, next(self._seq), task))
        return task

    def call_every(self, interval: float, callback: Callback) -> ScheduledTask:
        _check_interval(interval)
        task = _ManualTask(callback, self.now + interval, interval, interval)
        heapq.heappush(self._queue, (task.due, next(self._seq), task))
        return task

    def pending(self) -> int:
        return sum(1 for _, _, task in self._queue if task.active)

    def advance(self, seconds: float) -> int:
        """Move the clock forward, running every callback that falls due. Returns how many ran."""
        if seconds < 0:
            raise ValueError("cannot move the clock backwards")
        target = self.now + seconds
        ran = 0
        while self._queue and self._queue[0][0] <= target:
            due, _, task = heapq.heappop(self._queue)
            if task.cancelled:
                continue
            self.now = due
            if task.repeating:
                task.due = due + task.interval
                heapq.heappush(self._queue, (task.due, next(self._seq), task))
            else:
                task._fired = True
            task.callback()
            ran += 1
        self.now = target
        return ran


# ----- real time, threads -----

class _ThreadTask(ScheduledTask):
    def __init__(self, delay: float, interval: Optional[float]):
        super().__init__(delay, interval)
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None

    def _set_timer(self, timer: threading.Timer) -> bool:
        with self._lock:
            if self._cancelled:
                return False
            self._timer = timer
            return True

    def cancel(self) -> None:
        with self._lock:
            self._cancelled = True
            timer = self._timer
        if timer is not None:
            timer.cancel()


class ThreadingScheduler(Scheduler):
    """Fires callbacks on daemon timer threads."""

    def __init__(self):
        self._lock = threading.Lock()
        self._tasks: List[_ThreadTask] = []

    def _start(self, task: _ThreadTask, delay: float, fire: Callback) -> None:
        timer = threading.Timer(delay, fire)
        timer.daemon = True
        if task._set_timer(timer):
            timer.start()

    def _track(self, task: _ThreadTask) -> None:
        with self._lock:
            self._tasks = [t for t in self._tasks if t.active]
            self._tasks.append(task)

    def call_later(self, delay: float, callback: Callback) -> ScheduledTask:
        _check_delay(delay)
        task = _ThreadTask(delay, None)

        def fire():
            if task.active:
                task._fired = True
                callback()

        self._track(task)
        self._start(task, delay, fire)
        return task

    def call_every(self, interval: float, callback: Callback) -> ScheduledTask:
        _check_interval(interval)
        task = _ThreadTask(interval, interval)

        def fire():
            if task.cancelled:
                return
            self._start(task, interval, fire)
            callback()

        self._track(task)
        self._start(task, interval, fire)
        return task

    def shutdown(self) -> None:
        with self._lock:
            tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()


# ----- asyncio -----

class _AsyncTask(ScheduledTask):
    def __init__(self, delay: float, interval: Optional[float]):
        super().__init__(delay, interval)
        self.handle: Optional[asyncio.TimerHandle] = None

    def cancel(self) -> None:
        self._cancelled = True
        if self.handle is not None:
            self.handle.cancel()


class AsyncioScheduler(Scheduler):
    """Schedules on an asyncio event loop; must be used from the loop's thread."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def call_later(self, delay: float, callback: Callback) -> ScheduledTask:
        _check_delay(delay)
        task = _AsyncTask(delay, None)

        def fire():
            if task.active:
                task._fired = True
                callback()

        task.handle = self.loop.call_later(delay, fire)
        return task

    def call_every(self, interval: float, callback: Callback) -> ScheduledTask:
        _check_interval(interval)
        task = _AsyncTask(interval, interval)

        def fire():
            if task.cancelled:
                return
            task.handle = self.loop.call_later(interval, fire)
            callback()

        task.handle = self.loop.call_later(interval, fire)
        return task
