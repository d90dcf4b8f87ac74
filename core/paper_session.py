"""One in-memory paper trading session: quotes, simulator, ledger and clock.

Every mutation happens through ``PaperSession`` methods called from a
single thread (the Streamlit script run or the asyncio loop), so readers
never see a half-applied tick.  After ``close()`` the session is frozen:
ticks and ledger mutations become no-ops, so a provider result that
arrives late is dropped.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any

import numpy as np
from pydantic import ValidationError

from core.config_schema import validate_config_dict
from core.error_types import ConfigError
from core.market_hours import MarketStatus, market_status, now_ist, to_ist
from core.market_simulator import MarketSimulator, seed_quotes
from core.paper_trading_models import (
    BacktestResult,
    Instrument,
    InstrumentQuote,
    OptionPick,
    PortfolioSummary,
    Position,
    PositionSource,
    StrategyLeg,
    StrategySelection,
)
from core.portfolio_ledger import PortfolioLedger
from core.position_marker import DEFAULT_FLUCTUATION, DEFAULT_PRICE_FLOOR
from core.tick_scheduler import TickScheduler

logger = logging.getLogger(__name__)

_DEFAULT_SEED: dict[Instrument, tuple[float, float]] = {
    Instrument.NIFTY: (23500.0, 0.0),
    Instrument.BANKNIFTY: (50000.0, 0.0),
}


class PaperSession:
    """State container read by the UI and mutated by ticks and user actions.

    Parameters
    ----------
    simulator:
        Market simulator for this session (owns the session drift).
    ledger:
        Portfolio ledger for this session.
    initial:
        ``{instrument: (price, change)}`` seeds for the opening quotes.
    rng:
        Random source for position marking.  Pass the simulator's generator
        to drive the whole session from one seed.
    mark_positions_when_closed:
        Re-price positions even while the market is closed.
    """

    def __init__(
        self,
        simulator: MarketSimulator | None = None,
        ledger: PortfolioLedger | None = None,
        initial: dict[Instrument, tuple[float, float]] | None = None,
        rng: np.random.Generator | None = None,
        mark_positions_when_closed: bool = False,
        price_fluctuation: float = DEFAULT_FLUCTUATION,
        price_floor: float = DEFAULT_PRICE_FLOOR,
    ) -> None:
        self.simulator = simulator if simulator is not None else MarketSimulator(rng=rng)
        self.rng = rng if rng is not None else self.simulator.rng
        self.ledger = ledger if ledger is not None else PortfolioLedger()
        self.mark_positions_when_closed = mark_positions_when_closed
        self.price_fluctuation = price_fluctuation
        self.price_floor = price_floor

        self._quotes: list[InstrumentQuote] = seed_quotes(initial or _DEFAULT_SEED)
        self.last_updated: datetime = now_ist()
        self.strategy_to_test: StrategySelection | None = None
        self._scheduler: TickScheduler | None = None
        self._closed = False
        logger.info("Paper session opened with %d instruments", len(self._quotes))

    @classmethod
    def from_config(cls, config: dict[str, Any], seed: int | None = None) -> "PaperSession":
        """Build a session from the ``market`` and ``portfolio`` config sections.

        Raises ConfigError if the sections do not validate.
        """
        try:
            cfg = validate_config_dict(config)
        except ValidationError as e:
            raise ConfigError(f"Invalid paper desk config: {e}") from e
        rng = np.random.default_rng(seed)
        instruments = {Instrument(name): ic for name, ic in cfg.market.instruments.items()}
        simulator = MarketSimulator(
            volatility={name: ic.volatility for name, ic in instruments.items()},
            rng=rng,
            max_drift=cfg.market.max_drift,
        )
        ledger = PortfolioLedger(
            nifty_lot_size=cfg.portfolio.nifty_lot_size,
            banknifty_lot_size=cfg.portfolio.banknifty_lot_size,
        )
        return cls(
            simulator=simulator,
            ledger=ledger,
            initial={name: (ic.initial_price, ic.initial_change) for name, ic in instruments.items()},
            rng=rng,
            mark_positions_when_closed=cfg.portfolio.mark_positions_when_closed,
            price_fluctuation=cfg.portfolio.price_fluctuation,
            price_floor=cfg.portfolio.price_floor,
        )

    # -- read side --

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def quotes(self) -> tuple[InstrumentQuote, ...]:
        return tuple(self._quotes)

    def quote(self, instrument: Instrument | str) -> InstrumentQuote:
        name = Instrument(instrument)
        return next(q for q in self._quotes if q.name == name)

    @property
    def positions(self) -> tuple[Position, ...]:
        return self.ledger.positions

    @property
    def realized_pnl(self) -> float:
        return self.ledger.realized_pnl

    def summary(self) -> PortfolioSummary:
        return self.ledger.summary()

    def market_status(self, now: datetime | None = None) -> MarketStatus:
        return market_status(now)

    # -- ticking --

    def tick(self, now: datetime | None = None) -> bool:
        """Run one simulation step.  Returns True if quotes moved."""
        if self._closed:
            return False
        now = to_ist(now) if now is not None else now_ist()
        is_open = market_status(now).is_open

        if is_open:
            self._quotes = self.simulator.tick(self._quotes)
            self.last_updated = now
        if is_open or self.mark_positions_when_closed:
            self.ledger.mark(self.rng, self.price_fluctuation, self.price_floor)

        logger.debug(
            "Tick at %s (open=%s, positions=%d)",
            now.strftime("%H:%M:%S"), is_open, len(self.ledger.positions),
        )
        return is_open

    def attach_scheduler(
        self,
        interval: float = 2.0,
        clock: Callable[[], datetime] | None = None,
        on_tick: Callable[["PaperSession"], None] | None = None,
    ) -> TickScheduler:
        """Create the periodic driver for this session; ``close()`` cancels it.

        ``clock`` supplies the time for each tick (default: wall clock) and
        ``on_tick`` runs after every tick.
        """
        if self._scheduler is not None:
            raise RuntimeError("session already has a scheduler")

        def _scheduled_tick() -> None:
            self.tick(clock() if clock is not None else None)
            if on_tick is not None:
                on_tick(self)

        self._scheduler = TickScheduler(_scheduled_tick, interval=interval)
        return self._scheduler

    # -- user actions --

    def select_strategy(self, name: str, instrument: Instrument | str) -> StrategySelection | None:
        if self._closed:
            return None
        self.strategy_to_test = StrategySelection(name=name, instrument=Instrument(instrument))
        logger.info("Strategy selected for simulation: %s on %s", name, self.strategy_to_test.instrument.value)
        return self.strategy_to_test

    def add_position(self, pick: OptionPick) -> Position | None:
        if self._closed:
            return None
        return self.ledger.add_position(pick)

    def add_strategy_legs(self, legs: list[StrategyLeg], total_required_capital: float) -> list[Position]:
        if self._closed:
            return []
        return self.ledger.add_strategy_legs(legs, total_required_capital)

    def add_backtest_result(self, result: BacktestResult) -> list[Position]:
        if self._closed:
            return []
        return self.ledger.add_backtest_result(result)

    def exit_position(self, position_id: int) -> None:
        if not self._closed:
            self.ledger.exit_position(position_id)

    def exit_by_source(self, source: PositionSource | str | None = None) -> None:
        if not self._closed:
            self.ledger.exit_by_source(source)

    # -- teardown --

    def close(self) -> None:
        """Cancel the scheduler (once) and freeze the session.  Idempotent."""
        if self._closed:
            return
        self._closed = True
        if self._scheduler is not None:
            self._scheduler.cancel()
        logger.info(
            "Paper session closed (realized=%.2f, open=%d)",
            self.ledger.realized_pnl, len(self.ledger.positions),
        )
