"""Display helpers shared by the UI and the CLI."""

from __future__ import annotations

from datetime import datetime

from core.market_hours import to_ist


def group_indian(whole: int) -> str:
    """Group digits the Indian way: 1234567 -> "12,34,567"."""
    digits = str(abs(whole))
    if len(digits) > 3:
        head, tail = digits[:-3], digits[-3:]
        pairs = []
        while len(head) > 2:
            pairs.insert(0, head[-2:])
            head = head[:-2]
        if head:
            pairs.insert(0, head)
        digits = ",".join(pairs) + "," + tail
    return ("-" if whole < 0 else "") + digits


def format_inr(amount: float, decimals: int = 2, signed: bool = False) -> str:
    """Format an amount as rupees with lakh/crore grouping, e.g. ``₹1,23,456.78``."""
    rounded = round(abs(amount), decimals)
    whole = int(rounded)
    text = "₹" + group_indian(whole)
    if decimals > 0:
        frac = f"{rounded - whole:.{decimals}f}"[1:]  # ".78"
        text += frac
    if rounded == 0:
        return text
    if amount < 0:
        return "-" + text
    if signed:
        return "+" + text
    return text


def format_timestamp(dt: datetime) -> str:
    """IST timestamp for the market panel, e.g. ``19 Oct 2026, 02:15:07 PM``."""
    return to_ist(dt).strftime("%d %b %Y, %I:%M:%S %p")
