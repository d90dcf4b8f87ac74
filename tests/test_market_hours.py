"""Tests for core.market_hours — NSE session gate."""

from datetime import datetime, timezone

import pytest

from core.market_hours import IST, is_market_open, market_status, to_ist


class TestIsMarketOpen:
    @pytest.mark.parametrize("hour", [0, 9, 12, 15, 23])
    def test_saturday_closed_all_day(self, hour):
        assert not is_market_open(datetime(2026, 10, 24, hour, 30, tzinfo=IST))

    def test_sunday_closed(self):
        assert not is_market_open(datetime(2026, 10, 25, 11, 0, tzinfo=IST))

    def test_one_second_before_open(self):
        assert not is_market_open(datetime(2026, 10, 21, 9, 14, 59, tzinfo=IST))

    def test_exactly_at_open(self):
        assert is_market_open(datetime(2026, 10, 21, 9, 15, 0, tzinfo=IST))

    def test_last_second_before_close(self):
        assert is_market_open(datetime(2026, 10, 21, 15, 29, 59, tzinfo=IST))

    def test_exactly_at_close(self):
        assert not is_market_open(datetime(2026, 10, 21, 15, 30, 0, tzinfo=IST))

    def test_midday_weekday(self):
        assert is_market_open(datetime(2026, 10, 19, 12, 0, tzinfo=IST))

    def test_utc_input_converted(self):
        # 03:45 UTC == 09:15 IST
        assert is_market_open(datetime(2026, 10, 21, 3, 45, tzinfo=timezone.utc))
        assert not is_market_open(datetime(2026, 10, 21, 3, 44, 59, tzinfo=timezone.utc))

    def test_naive_treated_as_utc(self):
        assert is_market_open(datetime(2026, 10, 21, 6, 0))
        assert not is_market_open(datetime(2026, 10, 21, 10, 0))  # 15:30 IST

    def test_utc_friday_evening_is_saturday_ist(self):
        # Friday 19:00 UTC is Saturday 00:30 IST
        assert not is_market_open(datetime(2026, 10, 23, 19, 0, tzinfo=timezone.utc))


class TestMarketStatus:
    def test_open_label(self):
        status = market_status(datetime(2026, 10, 21, 10, 0, tzinfo=IST))
        assert status.is_open is True
        assert status.status_text == "OPEN"

    def test_closed_label(self):
        status = market_status(datetime(2026, 10, 21, 16, 0, tzinfo=IST))
        assert status.is_open is False
        assert status.status_text == "CLOSED"


class TestToIst:
    def test_offset(self):
        dt = to_ist(datetime(2026, 1, 1, 0, 0, tzinfo=timezone.utc))
        assert dt.hour == 5 and dt.minute == 30
        assert dt.utcoffset().total_seconds() == 5.5 * 3600
