"""Tests for core.tick_scheduler — start/cancel lifecycle and manual stepping."""

import asyncio

import pytest

from core.tick_scheduler import TickScheduler


class TestStep:
    def test_step_calls_callback(self):
        calls = []
        scheduler = TickScheduler(lambda: calls.append(1), interval=1.0)
        scheduler.step()
        scheduler.step()
        assert len(calls) == 2
        assert scheduler.tick_count == 2

    def test_step_after_cancel_is_noop(self):
        calls = []
        scheduler = TickScheduler(lambda: calls.append(1))
        scheduler.cancel()
        scheduler.step()
        assert calls == []

    def test_callback_error_does_not_stop_schedule(self, caplog):
        results = []

        def flaky():
            if not results:
                results.append("fail")
                raise RuntimeError("boom")
            results.append("ok")

        scheduler = TickScheduler(flaky)
        scheduler.step()
        scheduler.step()
        assert results == ["fail", "ok"]
        assert "Tick 1 failed" in caplog.text

    def test_invalid_interval(self):
        with pytest.raises(ValueError):
            TickScheduler(lambda: None, interval=0)


class TestLifecycle:
    def test_run_for_counts_ticks(self):
        calls = []
        scheduler = TickScheduler(lambda: calls.append(1), interval=0.01)
        asyncio.run(scheduler.run_for(3))
        assert scheduler.tick_count == 3
        assert len(calls) == 3
        assert scheduler.cancelled
        assert not scheduler.running

    def test_cancel_idempotent(self):
        async def main():
            scheduler = TickScheduler(lambda: None, interval=0.01)
            task = scheduler.start()
            assert scheduler.running
            scheduler.cancel()
            scheduler.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task
            return scheduler

        scheduler = asyncio.run(main())
        assert scheduler.cancelled
        assert not scheduler.running

    def test_no_ticks_after_cancel(self):
        calls = []

        async def main():
            scheduler = TickScheduler(lambda: calls.append(1), interval=0.01)
            scheduler.start()
            await asyncio.sleep(0.05)
            scheduler.cancel()
            seen = len(calls)
            await asyncio.sleep(0.05)
            return seen

        seen = asyncio.run(main())
        assert seen >= 1
        assert len(calls) == seen

    def test_start_twice_rejected(self):
        async def main():
            scheduler = TickScheduler(lambda: None, interval=0.01)
            scheduler.start()
            try:
                with pytest.raises(RuntimeError):
                    scheduler.start()
            finally:
                scheduler.cancel()

        asyncio.run(main())

    def test_start_after_cancel_rejected(self):
        async def main():
            scheduler = TickScheduler(lambda: None)
            scheduler.cancel()
            with pytest.raises(RuntimeError):
                scheduler.start()

        asyncio.run(main())
