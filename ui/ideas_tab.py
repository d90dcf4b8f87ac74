"""Streamlit UI for the AI idea panels: suggester, backtester, finder, top picks.

Each panel keeps its last result and last error in ``st.session_state``.
A failed request shows the provider's message and leaves the session as
it was.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Any

import plotly.graph_objects as go
import streamlit as st

from analyzers.idea_provider import IdeaProvider, IdeaRequestKind, fetch_ideas
from core.error_types import IdeaProviderError
from core.formatting import format_inr
from core.paper_session import PaperSession
from core.paper_trading_models import (
    STRATEGIES,
    BacktestResult,
    FoundStrategy,
    Instrument,
    OptionPick,
    StrategySuggestion,
)

logger = logging.getLogger(__name__)


def run_async(coro):
    """Run an async coroutine from sync Streamlit context."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def _request(panel: str, provider: IdeaProvider, kind: IdeaRequestKind, instrument: Instrument, **params: Any) -> None:
    """Fetch one result into ``st.session_state[panel]``; errors go to ``<panel>_error``."""
    st.session_state[f"{panel}_error"] = None
    st.session_state[panel] = None
    st.session_state[f"{panel}_instrument"] = instrument
    with st.spinner(f"Asking the AI for {kind.value.replace('_', ' ')} on {instrument.value}..."):
        try:
            st.session_state[panel] = run_async(fetch_ideas(provider, kind, instrument, **params))
        except IdeaProviderError as e:
            st.session_state[f"{panel}_error"] = str(e)


def _instrument_buttons(panel: str, label: str) -> Instrument | None:
    c1, c2 = st.columns(2)
    with c1:
        if st.button(f"{label} NIFTY 50", key=f"{panel}_nifty", type="primary", use_container_width=True):
            return Instrument.NIFTY
    with c2:
        if st.button(f"{label} BANK NIFTY", key=f"{panel}_banknifty", use_container_width=True):
            return Instrument.BANKNIFTY
    return None


def _show_error(panel: str) -> bool:
    err = st.session_state.get(f"{panel}_error")
    if err:
        st.error(err)
        return True
    return False


def _pnl_color(value: float) -> str:
    return "green" if value >= 0 else "red"


# ---------------------------------------------------------------------------
# Strategy suggester
# ---------------------------------------------------------------------------

def render_strategy_suggester(session: PaperSession, provider: IdeaProvider) -> None:
    st.subheader("AI Strategy Suggester")
    st.caption("Let the AI analyze today's market conditions and suggest a potential options strategy.")

    instrument = _instrument_buttons("suggestion", "Analyze")
    if instrument is not None:
        _request("suggestion", provider, IdeaRequestKind.SUGGESTION, instrument)

    if _show_error("suggestion"):
        return
    suggestion: StrategySuggestion | None = st.session_state.get("suggestion")
    if suggestion is None:
        with st.expander("Strategy catalog"):
            for tmpl in STRATEGIES:
                st.markdown(f"**{tmpl.name}**: {tmpl.description}")
        return

    st.markdown(f"### {suggestion.strategy_name}")
    st.markdown(f"**View:** {suggestion.parameters.view.value}  \n"
                f"**Strikes:** {suggestion.parameters.suggested_strikes}  \n"
                f"**Stop loss:** {suggestion.parameters.stop_loss}")
    st.write(suggestion.rationale)
    st.warning(f"Risks: {suggestion.risks}")
    if st.button("Simulate this strategy", key="suggestion_simulate"):
        session.select_strategy(suggestion.strategy_name, st.session_state["suggestion_instrument"])
        st.rerun()


# ---------------------------------------------------------------------------
# Backtester
# ---------------------------------------------------------------------------

def _intraday_chart(result: BacktestResult) -> go.Figure:
    fig = go.Figure(go.Scatter(
        x=[p.time for p in result.data_points],
        y=[p.pnl_amount for p in result.data_points],
        mode="lines",
        line=dict(color="#3b82f6", width=2),
        name="Intraday P/L",
    ))
    fig.add_hline(y=0, line_dash="dash", line_color="#999")
    fig.update_layout(height=260, margin=dict(l=10, r=10, t=30, b=10), title="Intraday P&L",
                      yaxis_title="₹")
    return fig


def _historical_label(raw: str) -> str:
    try:
        return datetime.fromisoformat(raw).strftime("%b %d")
    except ValueError:
        return raw


def _historical_chart(result: BacktestResult) -> go.Figure:
    points = list(reversed(result.historical_pnl or []))
    fig = go.Figure(go.Bar(
        x=[_historical_label(p.time) for p in points],
        y=[p.pnl_amount for p in points],
        marker_color=["#22c55e" if p.pnl_amount >= 0 else "#ef4444" for p in points],
        name="Daily P/L",
    ))
    fig.update_layout(height=260, margin=dict(l=10, r=10, t=30, b=10), title="Recent sessions",
                      yaxis_title="₹")
    return fig


def render_backtester(session: PaperSession, provider: IdeaProvider) -> None:
    st.subheader("One-Day Strategy Simulator")
    selection = session.strategy_to_test
    if selection is None:
        st.info("Select a strategy from the suggester or the finder to simulate today's P&L.")
        return

    st.markdown(f"**{selection.name}** on **{selection.instrument.value}**")
    last_run = st.session_state.get("backtest_selection")
    if last_run != selection or st.button("Re-run simulation", key="backtest_rerun"):
        st.session_state["backtest_selection"] = selection
        _request(
            "backtest", provider, IdeaRequestKind.BACKTEST, selection.instrument,
            strategy_name=selection.name,
        )

    if _show_error("backtest"):
        return
    result: BacktestResult | None = st.session_state.get("backtest")
    if result is None:
        return

    m1, m2, m3 = st.columns(3)
    with m1:
        st.metric("P&L", format_inr(result.pnl_amount), delta=f"{result.pnl:+.2f}%")
    with m2:
        st.metric("Required Capital", format_inr(result.required_capital, decimals=0))
    with m3:
        st.metric("Max Loss", format_inr(result.max_loss, decimals=0))

    if result.strategy_legs:
        st.markdown("\n".join(
            f"- {leg.action.value} {leg.instrument} @ {leg.entry_price:.2f}" for leg in result.strategy_legs
        ))
    if result.commentary:
        st.write(result.commentary)
    if result.data_points:
        st.plotly_chart(_intraday_chart(result), use_container_width=True)
    if result.historical_pnl:
        st.plotly_chart(_historical_chart(result), use_container_width=True)

    if st.button("Add Today's Strategy to Portfolio", key="backtest_add", type="primary",
                 disabled=not result.strategy_legs, use_container_width=True):
        added = session.add_backtest_result(result)
        st.toast(f"Added {len(added)} legs to the portfolio")
        st.rerun()


# ---------------------------------------------------------------------------
# Strategy finder
# ---------------------------------------------------------------------------

def render_strategy_finder(session: PaperSession, provider: IdeaProvider) -> None:
    st.subheader("AI Strategy Finder")
    st.caption("Find strategies that match your profit and loss targets for today's market.")

    c1, c2 = st.columns(2)
    with c1:
        target_profit = st.number_input("Target Profit (₹)", min_value=0.0, value=1000.0, step=100.0,
                                        key="finder_target_profit")
    with c2:
        max_loss = st.number_input("Max Acceptable Loss (₹)", min_value=0.0, value=500.0, step=100.0,
                                   key="finder_max_loss")

    instrument = _instrument_buttons("finder", "Find strategies for")
    if instrument is not None:
        _request(
            "finder", provider, IdeaRequestKind.FIND_STRATEGIES, instrument,
            target_profit=target_profit, max_loss=max_loss,
        )

    if _show_error("finder"):
        return
    found: list[FoundStrategy] | None = st.session_state.get("finder")
    if found is None:
        st.caption("Set your criteria and pick an index to find matching strategies.")
        return
    if not found:
        st.info("The AI could not find any strategies matching your criteria for today's market. "
                "Try adjusting your profit or loss targets.")
        return

    selected_instrument = st.session_state["finder_instrument"]
    for i, strategy in enumerate(found):
        with st.container(border=True):
            h1, h2 = st.columns([4, 1])
            with h1:
                st.markdown(f"**{strategy.strategy_name}**  \n`{strategy.suggested_strikes}`")
            with h2:
                if st.button("Simulate", key=f"finder_simulate_{i}", use_container_width=True):
                    session.select_strategy(strategy.strategy_name, selected_instrument)
                    st.rerun()
            st.write(strategy.rationale)
            st.markdown(
                f"Est. Profit: :{_pnl_color(strategy.estimated_profit)}[{format_inr(strategy.estimated_profit, 0)}]"
                f" &nbsp; Est. Loss: :{_pnl_color(-strategy.estimated_loss)}[{format_inr(strategy.estimated_loss, 0)}]"
            )


# ---------------------------------------------------------------------------
# Top picks
# ---------------------------------------------------------------------------

def render_top_picks(session: PaperSession, provider: IdeaProvider) -> None:
    st.subheader("AI Top Picks")
    st.caption("Ranked single-leg option trades for today's session.")

    instrument = _instrument_buttons("picks", "Top picks for")
    if instrument is not None:
        _request("picks", provider, IdeaRequestKind.TOP_PICKS, instrument)

    if _show_error("picks"):
        return
    picks: list[OptionPick] | None = st.session_state.get("picks")
    if picks is None:
        return
    if not picks:
        st.info("No picks returned for today.")
        return

    for i, pick in enumerate(picks):
        with st.container(border=True):
            h1, h2 = st.columns([4, 1])
            with h1:
                st.markdown(f"**{i + 1}. {pick.action.value} {pick.instrument}** @ {pick.entry_price:.2f}")
            with h2:
                if st.button("Add to portfolio", key=f"picks_add_{i}", use_container_width=True):
                    position = session.add_position(pick)
                    if position is not None:
                        st.toast(f"Added {pick.instrument} (id {position.id})")
                    st.rerun()
            st.write(pick.rationale)
            st.caption(
                f"Capital {format_inr(pick.required_capital, 0)} | "
                f"Potential profit {format_inr(pick.potential_profit, 0)} | "
                f"Potential loss {format_inr(pick.potential_loss, 0)}"
            )
