# ================================
# SCHEDULER TESTS (test_scheduler.py)
# ================================

from datetime import datetime, timezone

from app.core.scheduler import BackgroundScheduler, seconds_until


class TestScheduler:
    """Task registration and daily timing."""

    def test_seconds_until_later_today(self):
        now = datetime(2025, 1, 15, 18, 30, tzinfo=timezone.utc)
        assert seconds_until(20, now) == 90 * 60

    def test_seconds_until_rolls_over_to_tomorrow(self):
        now = datetime(2025, 1, 15, 20, 0, tzinfo=timezone.utc)
        assert seconds_until(20, now) == 24 * 3600

    def test_task_status(self):
        scheduler = BackgroundScheduler()

        async def noop():
            return None

        scheduler.add_task("session_cleanup", noop, interval_seconds=3600, initial_delay=600)

        status = scheduler.get_task_status("session_cleanup")
        assert status["interval"] == 3600
        assert status["run_count"] == 0
        assert status["last_error"] is None
        assert "error" in scheduler.get_task_status("missing")
