"""Synthetic index quotes: bounded uniform noise plus a per-session drift.

All randomness flows from a single ``numpy.random.Generator`` so a seeded
session replays exactly.  Drift is drawn once when the simulator is built
and is read on every tick; building a new simulator starts a new session.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence

import numpy as np

from core.error_types import DataValidationError
from core.paper_trading_models import Instrument, InstrumentQuote

logger = logging.getLogger(__name__)

DEFAULT_VOLATILITY: dict[Instrument, float] = {
    Instrument.NIFTY: 0.0001,
    Instrument.BANKNIFTY: 0.00015,
}


def seed_quotes(initial: Mapping[Instrument, tuple[float, float]]) -> list[InstrumentQuote]:
    """Build session-opening quotes from ``{instrument: (price, change)}``.

    Raises DataValidationError if any opening price (price - change) is not
    positive; ticks divide by it.
    """
    quotes = []
    for name, (price, change) in initial.items():
        if price <= 0 or price - change <= 0:
            raise DataValidationError(
                f"{Instrument(name).value}: price {price} and opening price {price - change} must be positive"
            )
        quotes.append(InstrumentQuote(name=name, price=price, change=change))
    return quotes


class MarketSimulator:
    """Advances index quotes one tick at a time.

    Parameters
    ----------
    volatility:
        Fixed noise scale per instrument (fraction of price per tick).
    drift:
        Per-tick drift per instrument.  Drawn from
        ``uniform(-max_drift, max_drift)`` for every instrument missing here.
    rng:
        Random source.  Defaults to an unseeded ``np.random.default_rng()``.
    """

    def __init__(
        self,
        volatility: Mapping[Instrument, float] | None = None,
        drift: Mapping[Instrument, float] | None = None,
        rng: np.random.Generator | None = None,
        max_drift: float = 0.00002,
    ) -> None:
        self.rng = rng if rng is not None else np.random.default_rng()
        self.volatility: dict[Instrument, float] = {
            Instrument(k): float(v) for k, v in (volatility or DEFAULT_VOLATILITY).items()
        }
        given = {Instrument(k): float(v) for k, v in (drift or {}).items()}
        self.drift: dict[Instrument, float] = {}
        for name in self.volatility:
            if name in given:
                self.drift[name] = given[name]
            else:
                self.drift[name] = float(self.rng.uniform(-max_drift, max_drift))
        logger.info(
            "Market session drift drawn",
            extra={"drift": {k.value: v for k, v in self.drift.items()}},
        )

    def step_quote(self, quote: InstrumentQuote) -> InstrumentQuote:
        """Return the next snapshot of one quote."""
        opening = quote.opening_price
        u = self.rng.uniform(-0.5, 0.5)
        noise = u * quote.price * self.volatility.get(quote.name, 0.0)
        drift_term = quote.price * self.drift.get(quote.name, 0.0)
        new_price = float(quote.price + noise + drift_term)
        return InstrumentQuote(name=quote.name, price=new_price, change=new_price - opening)

    def tick(self, quotes: Sequence[InstrumentQuote]) -> list[InstrumentQuote]:
        """Advance every quote by one tick.  The input snapshots are not modified."""
        return [self.step_quote(q) for q in quotes]
