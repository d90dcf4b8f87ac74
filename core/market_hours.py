"""NSE market hours utilities.

Centralised weekday + time-of-day check so every component uses the same
definition of "market open".  The session runs 09:15 to 15:30 IST, open at
09:15:00 and closed from 15:30:00.
"""

from __future__ import annotations

from datetime import datetime, time, timedelta, timezone
from typing import Literal

from pydantic import BaseModel

IST = timezone(timedelta(hours=5, minutes=30))

MARKET_OPEN = time(9, 15)
MARKET_CLOSE = time(15, 30)


class MarketStatus(BaseModel):
    is_open: bool
    status_text: Literal["OPEN", "CLOSED"]


def to_ist(dt: datetime) -> datetime:
    """Convert a datetime to IST. Naive datetimes are assumed to be UTC."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(IST)


def now_ist() -> datetime:
    return datetime.now(IST)


def is_market_open(now: datetime | None = None) -> bool:
    """True if ``now`` (default: current time) is within NSE hours, Mon-Fri 9:15-15:30 IST."""
    local = to_ist(now) if now is not None else now_ist()
    if local.weekday() >= 5:
        return False
    hm = time(local.hour, local.minute)
    return MARKET_OPEN <= hm < MARKET_CLOSE


def market_status(now: datetime | None = None) -> MarketStatus:
    is_open = is_market_open(now)
    return MarketStatus(is_open=is_open, status_text="OPEN" if is_open else "CLOSED")
