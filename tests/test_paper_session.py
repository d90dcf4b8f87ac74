"""Tests for core.paper_session — gated ticks, ledger forwarding, teardown."""

import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import numpy as np
import pytest

from analyzers.idea_provider import IdeaRequestKind, fetch_ideas
from core.config_schema import validate_config_dict
from core.error_types import ConfigError, IdeaProviderError
from core.market_simulator import MarketSimulator
from core.paper_session import PaperSession
from core.paper_trading_models import BacktestResult, Instrument, PositionSource


@pytest.fixture
def session() -> PaperSession:
    rng = np.random.default_rng(123)
    return PaperSession(simulator=MarketSimulator(rng=rng, max_drift=0.0005), rng=rng)


class TestTickGating:
    def test_open_market_moves_quotes(self, session, wednesday_open):
        before = session.quotes
        assert session.tick(wednesday_open) is True
        assert session.quotes != before
        assert session.last_updated == wednesday_open

    def test_closed_market_freezes_quotes(self, session, saturday_noon):
        before = session.quotes
        last = session.last_updated
        assert session.tick(saturday_noon) is False
        assert session.quotes == before
        assert session.last_updated == last

    def test_positions_frozen_when_closed_by_default(self, session, make_pick, saturday_noon):
        pos = session.add_position(make_pick())
        session.tick(saturday_noon)
        assert session.positions[0].current_price == pos.current_price

    def test_positions_move_when_closed_if_configured(self, make_pick, saturday_noon):
        session = PaperSession(rng=np.random.default_rng(1), mark_positions_when_closed=True)
        session.add_position(make_pick())
        session.tick(saturday_noon)
        assert session.positions[0].current_price != 100.0

    def test_positions_move_when_open(self, session, make_pick, wednesday_open):
        session.add_position(make_pick())
        session.tick(wednesday_open)
        assert session.positions[0].current_price != 100.0

    def test_opening_price_invariant_across_session(self, session, wednesday_open):
        openings = {q.name: q.opening_price for q in session.quotes}
        now = wednesday_open
        for _ in range(100):
            now += timedelta(seconds=2)
            session.tick(now)
            for q in session.quotes:
                assert q.price - q.change == pytest.approx(openings[q.name])

    def test_total_pnl_invariant(self, session, make_pick, straddle_legs, wednesday_open):
        session.add_position(make_pick())
        session.add_strategy_legs(straddle_legs, 4600.0)
        now = wednesday_open
        for i in range(30):
            now += timedelta(seconds=2)
            session.tick(now)
            if i == 10:
                session.exit_position(session.positions[0].id)
            if i == 20:
                session.exit_by_source(PositionSource.STRATEGY)
            summary = session.summary()
            assert summary.total_pnl == pytest.approx(
                session.realized_pnl + sum(p.pnl for p in session.positions)
            )

    def test_quote_lookup(self, session):
        assert session.quote("NIFTY 50").name is Instrument.NIFTY
        assert session.quote(Instrument.BANKNIFTY).price == 50000.0


class TestUserActions:
    def test_select_strategy(self, session):
        selection = session.select_strategy("Iron Condor", "BANK NIFTY")
        assert selection.name == "Iron Condor"
        assert selection.instrument is Instrument.BANKNIFTY
        assert session.strategy_to_test == selection

    def test_add_backtest_result(self, session, straddle_legs):
        result = BacktestResult(
            pnl=1.0, pnl_amount=100.0, required_capital=1000.0, max_loss=1000.0,
            strategy_legs=straddle_legs,
        )
        positions = session.add_backtest_result(result)
        assert len(positions) == 2
        assert session.summary().has_strategies

    def test_provider_failure_leaves_session_untouched(self, session, make_pick, wednesday_open):
        session.add_position(make_pick())
        session.select_strategy("Iron Condor", "NIFTY 50")
        session.tick(wednesday_open)
        positions, quotes = session.positions, session.quotes
        realized, selection = session.realized_pnl, session.strategy_to_test

        provider = MagicMock()
        provider.request = AsyncMock(side_effect=RuntimeError("upstream unavailable"))
        with pytest.raises(IdeaProviderError, match="upstream unavailable"):
            asyncio.run(fetch_ideas(provider, IdeaRequestKind.BACKTEST, "NIFTY 50",
                                    strategy_name=selection.name))

        assert provider.request.await_count == 1
        assert session.positions == positions
        assert session.quotes == quotes
        assert session.realized_pnl == realized
        assert session.strategy_to_test == selection


class TestTeardown:
    def test_close_is_idempotent_and_cancels_scheduler_once(self, session):
        scheduler = session.attach_scheduler(interval=0.5)
        session.close()
        session.close()
        assert session.closed
        assert scheduler.cancelled

    def test_late_results_dropped(self, session, make_pick, straddle_legs, wednesday_open):
        session.close()
        assert session.add_position(make_pick()) is None
        assert session.add_strategy_legs(straddle_legs, 100.0) == []
        assert session.select_strategy("Long Straddle", "NIFTY 50") is None
        assert session.positions == ()

    def test_ticks_ignored_after_close(self, session, wednesday_open):
        before = session.quotes
        session.close()
        assert session.tick(wednesday_open) is False
        assert session.quotes == before

    def test_exits_ignored_after_close(self, session, make_pick):
        pos = session.add_position(make_pick())
        session.close()
        session.exit_position(pos.id)
        session.exit_by_source()
        assert len(session.positions) == 1

    def test_only_one_scheduler(self, session):
        session.attach_scheduler()
        with pytest.raises(RuntimeError):
            session.attach_scheduler()

    def test_scheduled_tick_uses_clock_and_hook(self, session, wednesday_open):
        seen = []
        scheduler = session.attach_scheduler(
            interval=1.0, clock=lambda: wednesday_open, on_tick=seen.append,
        )
        scheduler.step()
        assert seen == [session]
        assert session.last_updated == wednesday_open


class TestFromConfig:
    def test_seeded_sessions_reproducible(self, wednesday_open):
        a = PaperSession.from_config({}, seed=42)
        b = PaperSession.from_config({}, seed=42)
        assert a.simulator.drift == b.simulator.drift
        a.tick(wednesday_open)
        b.tick(wednesday_open)
        assert a.quotes == b.quotes

    def test_config_values_applied(self):
        cfg = {
            "market": {
                "max_drift": 0.0,
                "instruments": {
                    "NIFTY 50": {"initial_price": 24000.0, "initial_change": 100.0, "volatility": 0.0002},
                    "BANK NIFTY": {"initial_price": 51000.0, "volatility": 0.0003},
                },
            },
            "portfolio": {"nifty_lot_size": 75, "banknifty_lot_size": 30, "mark_positions_when_closed": True},
        }
        session = PaperSession.from_config(cfg, seed=1)
        assert session.quote(Instrument.NIFTY).opening_price == 23900.0
        assert session.simulator.volatility[Instrument.BANKNIFTY] == 0.0003
        assert all(d == 0.0 for d in session.simulator.drift.values())
        assert session.ledger.nifty_lot_size == 75
        assert session.mark_positions_when_closed is True

    def test_defaults_match_schema(self):
        cfg = validate_config_dict({})
        session = PaperSession.from_config({}, seed=0)
        assert session.quote(Instrument.NIFTY).price == cfg.market.instruments["NIFTY 50"].initial_price

    def test_invalid_config_raises(self):
        with pytest.raises(ConfigError):
            PaperSession.from_config({"portfolio": {"nifty_lot_size": 0}})
