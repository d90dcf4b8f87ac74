"""Tests for core.paper_trading_models — quotes, position PnL, provider payloads."""

import pytest
from pydantic import ValidationError

from core.paper_trading_models import (
    STRATEGIES,
    BacktestResult,
    Instrument,
    InstrumentQuote,
    OptionPick,
    PortfolioSummary,
    Position,
    PositionSource,
    StrategyLeg,
    TradeAction,
)


# ── InstrumentQuote ──────────────────────────────────────────────────────

class TestInstrumentQuote:
    def test_opening_price(self):
        q = InstrumentQuote(name=Instrument.NIFTY, price=23600.0, change=100.0)
        assert q.opening_price == 23500.0

    def test_change_percent(self):
        q = InstrumentQuote(name=Instrument.BANKNIFTY, price=49500.0, change=-500.0)
        assert q.change_percent == pytest.approx(-1.0)

    def test_frozen(self):
        q = InstrumentQuote(name=Instrument.NIFTY, price=23500.0)
        with pytest.raises(ValidationError):
            q.price = 1.0

    def test_name_from_display_string(self):
        assert InstrumentQuote(name="BANK NIFTY", price=50000.0).name is Instrument.BANKNIFTY

    def test_dump_includes_computed(self):
        data = InstrumentQuote(name=Instrument.NIFTY, price=23550.0, change=50.0).model_dump()
        assert data["opening_price"] == 23500.0


# ── Position PnL ─────────────────────────────────────────────────────────

def _position(action, entry, current, lot_size=25, quantity=1):
    return Position(
        id=1, instrument="NIFTY 23500 CE", action=action,
        entry_price=entry, current_price=current,
        lot_size=lot_size, quantity=quantity, source=PositionSource.PICK,
    )


class TestPositionPnl:
    def test_buy_profit(self):
        assert _position(TradeAction.BUY, 100.0, 120.0).pnl == 20.0 * 25

    def test_buy_loss(self):
        assert _position(TradeAction.BUY, 100.0, 80.0, quantity=2).pnl == -20.0 * 25 * 2

    def test_sell_profit(self):
        assert _position(TradeAction.SELL, 100.0, 70.0, lot_size=15).pnl == 30.0 * 15

    def test_sell_loss(self):
        assert _position(TradeAction.SELL, 100.0, 130.0).pnl == -30.0 * 25

    def test_flat(self):
        assert _position(TradeAction.BUY, 100.0, 100.0).pnl == 0.0

    def test_sign(self):
        assert TradeAction.BUY.sign == 1
        assert TradeAction("Sell").sign == -1


class TestPortfolioSummary:
    def test_total(self):
        s = PortfolioSummary(realized_pnl=-50.0, unrealized_pnl=75.0, open_count=1,
                             has_picks=True, has_strategies=False)
        assert s.total_pnl == 25.0


# ── Provider payloads ────────────────────────────────────────────────────

class TestPayloads:
    def test_pick_requires_positive_entry(self):
        with pytest.raises(ValidationError):
            OptionPick(instrument="NIFTY 23500 CE", action="Buy", entry_price=0,
                       required_capital=100, potential_profit=1, potential_loss=1, rationale="")

    def test_leg_action_parsed(self):
        leg = StrategyLeg(instrument="NIFTY 23500 PE", action="Sell", entry_price=80.0)
        assert leg.action is TradeAction.SELL

    def test_leg_rejects_unknown_action(self):
        with pytest.raises(ValidationError):
            StrategyLeg(instrument="NIFTY 23500 PE", action="Hold", entry_price=80.0)

    def test_backtest_defaults(self):
        result = BacktestResult(pnl=0.0, pnl_amount=0.0, required_capital=0.0, max_loss=0.0)
        assert result.strategy_legs == []
        assert result.historical_pnl is None

    def test_strategy_templates(self):
        names = [s.name for s in STRATEGIES]
        assert names == ["Long Straddle", "Bull Call Spread", "Bear Put Spread", "Iron Condor"]
        assert len({s.id for s in STRATEGIES}) == len(STRATEGIES)
