"""Mark-to-market for open positions.

Each tick moves every position's price by an independent uniform draw in
a band of ``fluctuation`` around the current price.  Prices never reach
zero: anything at or below zero is replaced by ``price_floor``.  P&L is a
computed field on ``Position`` and always reflects the stored price.
"""

from __future__ import annotations

from collections.abc import Iterable

import numpy as np

from core.paper_trading_models import Position

DEFAULT_FLUCTUATION = 0.01
DEFAULT_PRICE_FLOOR = 0.05


def next_price(
    current_price: float,
    u: float,
    fluctuation: float = DEFAULT_FLUCTUATION,
    price_floor: float = DEFAULT_PRICE_FLOOR,
) -> float:
    """Price after one tick for a draw ``u`` in [-0.5, 0.5)."""
    new_price = current_price + u * current_price * fluctuation
    return new_price if new_price > 0 else price_floor


def mark_position(
    position: Position,
    rng: np.random.Generator,
    fluctuation: float = DEFAULT_FLUCTUATION,
    price_floor: float = DEFAULT_PRICE_FLOOR,
) -> Position:
    u = float(rng.uniform(-0.5, 0.5))
    price = next_price(position.current_price, u, fluctuation, price_floor)
    return position.model_copy(update={"current_price": price})


def mark_positions(
    positions: Iterable[Position],
    rng: np.random.Generator,
    fluctuation: float = DEFAULT_FLUCTUATION,
    price_floor: float = DEFAULT_PRICE_FLOOR,
) -> list[Position]:
    """Re-price every position.  Returns new objects; the inputs are untouched."""
    return [mark_position(p, rng, fluctuation, price_floor) for p in positions]
