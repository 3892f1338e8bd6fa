import asyncio
import threading

import pytest
from memory_match.scheduler import AsyncioScheduler, ManualScheduler, ThreadingScheduler


def test_manual_runs_callbacks_in_due_order():
    s = ManualScheduler()
    calls = []
    s.call_later(1.0, lambda: calls.append("late"))
    s.call_later(0.5, lambda: calls.append("early"))

    assert s.advance(0.4) == 0
    assert s.advance(0.1) == 1
    assert calls == ["early"]
    s.advance(0.5)
    assert calls == ["early", "late"]
    assert s.now == pytest.approx(1.0)
    assert s.pending() == 0


def test_manual_cancel():
    s = ManualScheduler()
    calls = []
    task = s.call_later(1.0, lambda: calls.append(1))
    task.cancel()
    task.cancel()
    s.advance(5)
    assert calls == []
    assert task.cancelled
    assert not task.active


def test_manual_repeating_task():
    s = ManualScheduler()
    ticks = []
    task = s.call_every(1.0, lambda: ticks.append(s.now))
    s.advance(3.5)
    assert ticks == [1.0, 2.0, 3.0]
    assert task.active
    task.cancel()
    s.advance(3)
    assert len(ticks) == 3


def test_manual_callback_may_schedule_more_work():
    s = ManualScheduler()
    calls = []
    s.call_later(1.0, lambda: s.call_later(1.0, lambda: calls.append(s.now)))
    s.advance(2.0)
    assert calls == [2.0]


def test_manual_rejects_bad_arguments():
    s = ManualScheduler()
    with pytest.raises(ValueError):
        s.call_later(-1, lambda: None)
    with pytest.raises(ValueError):
        s.call_every(0, lambda: None)
    with pytest.raises(ValueError):
        s.advance(-1)


def test_threading_scheduler_fires_and_cancels():
    s = ThreadingScheduler()
    fired = threading.Event()
    never = []
    s.call_later(0.01, fired.set)
    task = s.call_later(0.05, lambda: never.append(1))
    task.cancel()

    assert fired.wait(2.0)
    s.shutdown()
    assert never == []


def test_threading_repeating_task_until_shutdown():
    s = ThreadingScheduler()
    count = []
    enough = threading.Event()

    def tick():
        count.append(1)
        if len(count) >= 3:
            enough.set()

    s.call_every(0.01, tick)
    assert enough.wait(2.0)
    s.shutdown()


def test_asyncio_scheduler():
    async def scenario():
        s = AsyncioScheduler()
        calls = []
        s.call_later(0.01, lambda: calls.append("once"))
        cancelled = s.call_later(0.01, lambda: calls.append("cancelled"))
        cancelled.cancel()
        ticker = s.call_every(0.01, lambda: calls.append("tick"))
        await asyncio.sleep(0.08)
        ticker.cancel()
        return calls

    calls = asyncio.run(scenario())
    assert "once" in calls
    assert "cancelled" not in calls
    assert calls.count("tick") >= 2
