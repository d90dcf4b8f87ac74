"""Headless entry point for the paper desk simulator.

Usage::

    # Tick a seeded session 10 times, 2s apart, printing quotes
    python -m core.cli simulate --ticks 10 --seed 42

    # Tick on a virtual clock that starts at the last session's open
    python -m core.cli simulate --ticks 20 --interval 0.1 --force-open

    # Is the market open right now?
    python -m core.cli status
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime, timedelta

import click

from core.config import load_config
from core.error_types import ConfigError
from core.formatting import format_inr, format_timestamp
from core.market_hours import IST, MARKET_OPEN, market_status, now_ist
from core.paper_session import PaperSession

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("paper_desk")


@click.group()
def cli():
    """NIFTY paper desk simulator."""
    pass


def last_weekday(d: date) -> date:
    """``d`` itself if it is Mon-Fri, otherwise the Friday before it."""
    while d.weekday() >= 5:
        d -= timedelta(days=1)
    return d


class VirtualClock:
    """Clock that advances by ``step`` seconds per reading, starting at ``start``."""

    def __init__(self, start: datetime, step: float) -> None:
        self._next = start
        self._step = timedelta(seconds=step)

    def __call__(self) -> datetime:
        now = self._next
        self._next += self._step
        return now


def _print_quotes(session: PaperSession) -> None:
    parts = []
    for q in session.quotes:
        color = "green" if q.change >= 0 else "red"
        parts.append(click.style(
            f"{q.name.value} {q.price:,.2f} ({q.change:+.2f}, {q.change_percent:+.3f}%)", fg=color,
        ))
    summary = session.summary()
    click.echo(
        f"[{format_timestamp(session.last_updated)}] "
        + " | ".join(parts)
        + f" | P&L {format_inr(summary.total_pnl, signed=True)}"
    )


@cli.command()
@click.option("--ticks", default=10, type=int, help="Number of ticks to run")
@click.option("--seed", default=None, type=int, help="RNG seed for reproducibility")
@click.option("--interval", default=None, type=float, help="Seconds between ticks (default: config)")
@click.option("--force-open", is_flag=True, help="Run on a virtual clock inside market hours")
def simulate(ticks: int, seed: int | None, interval: float | None, force_open: bool):
    """Run a session through the asyncio tick scheduler."""
    config = load_config()
    interval = interval or float(config.get("market", {}).get("tick_interval_seconds", 2.0))
    try:
        session = PaperSession.from_config(config, seed=seed)
    except ConfigError as e:
        raise click.ClickException(str(e)) from e

    drift = ", ".join(f"{k.value}={v:+.6f}" for k, v in session.simulator.drift.items())
    click.echo(f"Seed: {seed}  Interval: {interval}s  Drift: {drift}")

    clock = None
    if force_open:
        start = datetime.combine(last_weekday(now_ist().date()), MARKET_OPEN, tzinfo=IST)
        clock = VirtualClock(start, interval)
    elif not market_status().is_open:
        click.echo(click.style("Market is CLOSED; quotes will not move (use --force-open).", fg="yellow"))

    scheduler = session.attach_scheduler(interval=interval, clock=clock, on_tick=_print_quotes)
    try:
        asyncio.run(scheduler.run_for(ticks))
    finally:
        session.close()


@cli.command()
def status():
    """Print the NSE market status in IST."""
    s = market_status()
    color = "green" if s.is_open else "red"
    click.echo(click.style(s.status_text, fg=color, bold=True) + f"  {format_timestamp(now_ist())} IST")


if __name__ == "__main__":
    cli()
