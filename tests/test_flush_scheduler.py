"""Tests for debounce and repeat scheduling."""

import asyncio

from codestats_client.scheduler import FlushScheduler

QUIET_PERIOD = 0.1
TOLERANCE = 0.01


def test_burst_of_activity_flushes_once_after_last_event():
    async def scenario():
        loop = asyncio.get_running_loop()
        fired = []
        scheduler = FlushScheduler(trigger=lambda: fired.append(loop.time()), quiet_period=QUIET_PERIOD, repeat_interval=30)

        first = loop.time()
        last = first
        for _ in range(5):
            scheduler.on_activity()
            last = loop.time()
            await asyncio.sleep(0.03)

        await asyncio.sleep(QUIET_PERIOD * 3)
        return fired, first, last, scheduler

    fired, first, last, scheduler = asyncio.run(scenario())

    assert len(fired) == 1, f"Expected exactly one flush, got {len(fired)}"
    assert fired[0] - last >= QUIET_PERIOD - TOLERANCE
    assert fired[0] - first > QUIET_PERIOD
    assert not scheduler.has_pending_flush
    assert scheduler.get_stats()["total_debounce_fires"] == 1


def test_separate_bursts_flush_separately():
    async def scenario():
        fired = []
        scheduler = FlushScheduler(trigger=lambda: fired.append(1), quiet_period=0.05, repeat_interval=30)

        scheduler.on_activity()
        await asyncio.sleep(0.15)
        scheduler.on_activity()
        await asyncio.sleep(0.15)
        return fired

    assert len(asyncio.run(scenario())) == 2


def test_repeat_timer_is_one_shot_and_not_stacked():
    async def scenario():
        fired = []
        scheduler = FlushScheduler(trigger=lambda: fired.append(1), quiet_period=30, repeat_interval=0.05)

        scheduler.schedule_repeat()
        scheduler.schedule_repeat()
        scheduler.schedule_repeat()
        assert scheduler.has_repeat_scheduled

        await asyncio.sleep(0.2)
        return fired, scheduler

    fired, scheduler = asyncio.run(scenario())

    assert len(fired) == 1
    assert not scheduler.has_repeat_scheduled


def test_repeat_timer_can_be_rearmed_after_firing():
    async def scenario():
        fired = []
        scheduler = FlushScheduler(trigger=lambda: fired.append(1), quiet_period=30, repeat_interval=0.03)

        scheduler.schedule_repeat()
        await asyncio.sleep(0.1)
        scheduler.schedule_repeat()
        await asyncio.sleep(0.1)
        return fired

    assert len(asyncio.run(scenario())) == 2


def test_cancel_stops_both_timers():
    async def scenario():
        fired = []
        scheduler = FlushScheduler(trigger=lambda: fired.append(1), quiet_period=0.03, repeat_interval=0.03)

        scheduler.on_activity()
        scheduler.schedule_repeat()
        scheduler.cancel()

        await asyncio.sleep(0.1)
        return fired, scheduler

    fired, scheduler = asyncio.run(scenario())

    assert fired == []
    assert not scheduler.has_pending_flush
    assert not scheduler.has_repeat_scheduled


def test_trigger_errors_do_not_break_scheduling():
    async def scenario():
        calls = []

        def trigger():
            calls.append(1)
            raise RuntimeError("boom")

        scheduler = FlushScheduler(trigger=trigger, quiet_period=0.02, repeat_interval=30)
        scheduler.on_activity()
        await asyncio.sleep(0.08)
        scheduler.on_activity()
        await asyncio.sleep(0.08)
        return calls

    assert len(asyncio.run(scenario())) == 2
