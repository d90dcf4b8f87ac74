"""Shared test fixtures for the NIFTY paper desk."""

from datetime import datetime

import numpy as np
import pytest

from core.market_hours import IST
from core.paper_trading_models import OptionPick, StrategyLeg, TradeAction
from core.portfolio_ledger import PortfolioLedger


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(42)


@pytest.fixture
def ledger() -> PortfolioLedger:
    return PortfolioLedger(nifty_lot_size=25, banknifty_lot_size=15)


@pytest.fixture
def make_pick():
    def _make(
        instrument: str = "NIFTY 23500 CE",
        action: TradeAction = TradeAction.BUY,
        entry_price: float = 100.0,
        required_capital: float = 2500.0,
    ) -> OptionPick:
        return OptionPick(
            instrument=instrument,
            action=action,
            entry_price=entry_price,
            required_capital=required_capital,
            potential_profit=1000.0,
            potential_loss=500.0,
            rationale="test pick",
        )
    return _make


@pytest.fixture
def straddle_legs() -> list[StrategyLeg]:
    return [
        StrategyLeg(instrument="NIFTY 23500 CE", action=TradeAction.BUY, entry_price=120.0),
        StrategyLeg(instrument="NIFTY 23500 PE", action=TradeAction.BUY, entry_price=110.0),
    ]


@pytest.fixture
def wednesday_open() -> datetime:
    """Wednesday 21 Oct 2026, 11:00 IST."""
    return datetime(2026, 10, 21, 11, 0, tzinfo=IST)


@pytest.fixture
def saturday_noon() -> datetime:
    """Saturday 24 Oct 2026, 12:00 IST."""
    return datetime(2026, 10, 24, 12, 0, tzinfo=IST)
