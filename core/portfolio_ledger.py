"""Virtual portfolio: open positions plus a realized P&L accumulator.

No Streamlit imports — the ledger takes ideas in and hands positions out.
Exits fold the exiting positions' last marked P&L into ``realized_pnl`` and
drop them; no closed-position history is kept.
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Sequence

import numpy as np

from core.paper_trading_models import (
    BacktestResult,
    OptionPick,
    PortfolioSummary,
    Position,
    PositionSource,
    StrategyLeg,
    TradeAction,
)
from core.position_marker import DEFAULT_FLUCTUATION, DEFAULT_PRICE_FLOOR, mark_positions

logger = logging.getLogger(__name__)

NIFTY_LOT_SIZE = 25
BANKNIFTY_LOT_SIZE = 15


def lot_size_for(
    instrument: str,
    nifty_lot_size: int = NIFTY_LOT_SIZE,
    banknifty_lot_size: int = BANKNIFTY_LOT_SIZE,
) -> int:
    """Contract multiplier for an option on either index.

    "BANK NIFTY 50000 PE" and "BANKNIFTY 50000 PE" use the BANK NIFTY lot;
    every other name is treated as a NIFTY option.
    """
    compact = instrument.upper().replace(" ", "")
    if "BANKNIFTY" in compact:
        return banknifty_lot_size
    return nifty_lot_size


class PortfolioLedger:
    """Authoritative list of open positions and realized P&L for one session."""

    def __init__(
        self,
        nifty_lot_size: int = NIFTY_LOT_SIZE,
        banknifty_lot_size: int = BANKNIFTY_LOT_SIZE,
    ) -> None:
        self.nifty_lot_size = nifty_lot_size
        self.banknifty_lot_size = banknifty_lot_size
        self._positions: list[Position] = []
        self._realized_pnl = 0.0
        self._ids = itertools.count(1)

    # -- read side --

    @property
    def positions(self) -> tuple[Position, ...]:
        return tuple(self._positions)

    @property
    def realized_pnl(self) -> float:
        return self._realized_pnl

    @property
    def unrealized_pnl(self) -> float:
        return sum(p.pnl for p in self._positions)

    @property
    def total_pnl(self) -> float:
        return self._realized_pnl + self.unrealized_pnl

    def get(self, position_id: int) -> Position | None:
        return next((p for p in self._positions if p.id == position_id), None)

    def summary(self) -> PortfolioSummary:
        return PortfolioSummary(
            realized_pnl=self._realized_pnl,
            unrealized_pnl=self.unrealized_pnl,
            open_count=len(self._positions),
            has_picks=any(p.source == PositionSource.PICK for p in self._positions),
            has_strategies=any(p.source == PositionSource.STRATEGY for p in self._positions),
        )

    # -- insertion --

    def _new_position(
        self,
        instrument: str,
        action: TradeAction,
        entry_price: float,
        source: PositionSource,
        required_capital: float,
    ) -> Position:
        return Position(
            id=next(self._ids),
            instrument=instrument,
            action=action,
            entry_price=entry_price,
            current_price=entry_price,
            quantity=1,
            lot_size=lot_size_for(instrument, self.nifty_lot_size, self.banknifty_lot_size),
            source=source,
            required_capital=required_capital,
        )

    def add_position(self, pick: OptionPick) -> Position:
        """Open one lot of a top pick at its suggested entry price."""
        position = self._new_position(
            pick.instrument, pick.action, pick.entry_price,
            PositionSource.PICK, pick.required_capital,
        )
        self._positions.append(position)
        logger.info(
            "Opened %s %s @ %.2f (id=%d, pick)",
            position.action.value, position.instrument, position.entry_price, position.id,
        )
        return position

    def add_strategy_legs(
        self, legs: Sequence[StrategyLeg], total_required_capital: float,
    ) -> list[Position]:
        """Open one position per leg; capital is split evenly across legs."""
        capital_per_leg = total_required_capital / len(legs) if legs else 0.0
        new_positions = [
            self._new_position(
                leg.instrument, leg.action, leg.entry_price,
                PositionSource.STRATEGY, capital_per_leg,
            )
            for leg in legs
        ]
        self._positions.extend(new_positions)
        logger.info(
            "Opened %d strategy legs (capital/leg=%.2f, ids=%s)",
            len(new_positions), capital_per_leg, [p.id for p in new_positions],
        )
        return new_positions

    def add_backtest_result(self, result: BacktestResult) -> list[Position]:
        return self.add_strategy_legs(result.strategy_legs, result.required_capital)

    # -- marking --

    def mark(
        self,
        rng: np.random.Generator,
        fluctuation: float = DEFAULT_FLUCTUATION,
        price_floor: float = DEFAULT_PRICE_FLOOR,
    ) -> None:
        """Re-price the whole open set in one step."""
        if self._positions:
            self._positions = mark_positions(self._positions, rng, fluctuation, price_floor)

    # -- exits --

    def exit_position(self, position_id: int) -> None:
        """Close one position.  Unknown ids are ignored."""
        position = self.get(position_id)
        if position is None:
            logger.debug("Exit ignored: no open position with id=%s", position_id)
            return
        pnl = position.pnl
        self._positions = [p for p in self._positions if p.id != position_id]
        self._realized_pnl += pnl
        logger.info(
            "Closed %s %s (id=%d) realized %.2f",
            position.action.value, position.instrument, position.id, pnl,
        )

    def exit_by_source(self, source: PositionSource | str | None = None) -> None:
        """Close every position with the given source tag, or all when ``source`` is None."""
        if source is None:
            to_exit, to_keep = list(self._positions), []
        else:
            source = PositionSource(source)
            to_exit = [p for p in self._positions if p.source == source]
            to_keep = [p for p in self._positions if p.source != source]

        realized = sum(p.pnl for p in to_exit)
        self._positions = to_keep
        if not to_exit:
            return
        self._realized_pnl += realized
        logger.info(
            "Closed %d positions (%s) realized %.2f",
            len(to_exit), source.value if source is not None else "all", realized,
        )
