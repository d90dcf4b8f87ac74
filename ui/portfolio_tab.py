"""Streamlit UI for the virtual portfolio."""

from __future__ import annotations

import pandas as pd
import streamlit as st

from core.formatting import format_inr
from core.paper_session import PaperSession
from core.paper_trading_models import PositionSource


def _pnl_delta(pnl: float) -> str | None:
    return format_inr(pnl, signed=True) if pnl != 0 else None


def _positions_frame(session: PaperSession) -> pd.DataFrame:
    rows = [
        {
            "Instrument": p.instrument,
            "Action": p.action.value,
            "Source": p.source.value,
            "Lots": p.quantity,
            "Entry": p.entry_price,
            "Current": p.current_price,
            "Capital": p.required_capital,
            "P&L": p.pnl,
        }
        for p in session.positions
    ]
    return pd.DataFrame(rows)


def render_portfolio(session: PaperSession) -> None:
    summary = session.summary()

    st.subheader("My Portfolio")
    c1, c2, c3 = st.columns(3)
    with c1:
        st.metric("Realized P&L", format_inr(summary.realized_pnl), delta=_pnl_delta(summary.realized_pnl))
    with c2:
        st.metric("Unrealized P&L", format_inr(summary.unrealized_pnl), delta=_pnl_delta(summary.unrealized_pnl))
    with c3:
        st.metric("Total P&L", format_inr(summary.total_pnl), delta=_pnl_delta(summary.total_pnl))

    b1, b2, b3 = st.columns(3)
    with b1:
        if st.button("Exit All Picks", key="exit_all_picks", disabled=not summary.has_picks,
                     use_container_width=True):
            session.exit_by_source(PositionSource.PICK)
            st.rerun(scope="fragment")
    with b2:
        if st.button("Exit All Strategies", key="exit_all_strategies", disabled=not summary.has_strategies,
                     use_container_width=True):
            session.exit_by_source(PositionSource.STRATEGY)
            st.rerun(scope="fragment")
    with b3:
        if st.button("Exit All Positions", key="exit_all_positions", disabled=summary.open_count == 0,
                     type="primary", use_container_width=True):
            session.exit_by_source()
            st.rerun(scope="fragment")

    if summary.open_count == 0:
        st.info("No open positions. Add a top pick or a simulated strategy to start paper trading.")
        return

    df = _positions_frame(session)
    st.dataframe(
        df.style.format({"Entry": "{:.2f}", "Current": "{:.2f}", "Capital": "{:,.0f}", "P&L": "{:+,.2f}"})
        .map(lambda v: f"color: {'#22c55e' if v >= 0 else '#ef4444'}", subset=["P&L"]),
        hide_index=True,
        use_container_width=True,
    )

    for pos in session.positions:
        i1, i2 = st.columns([5, 1])
        with i1:
            st.caption(
                f"#{pos.id} {pos.action.value} {pos.instrument} ({pos.source.value}) "
                f"P&L {format_inr(pos.pnl, signed=True)}"
            )
        with i2:
            if st.button("Exit", key=f"exit_pos_{pos.id}", use_container_width=True):
                session.exit_position(pos.id)
                st.rerun(scope="fragment")
