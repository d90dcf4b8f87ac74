"""Streamlit UI for the live market panel and its tick driver."""

from __future__ import annotations

import time

import streamlit as st

from core.formatting import format_timestamp
from core.paper_session import PaperSession

_STATUS_BADGE = {
    "OPEN": "#22c55e",
    "CLOSED": "#ef4444",
}


def maybe_tick(session: PaperSession, interval: float) -> bool:
    """Tick the session if at least ``interval`` seconds passed since the last tick.

    Full-page reruns (button clicks) also execute the live fragment, so the
    cadence is kept by wall-clock spacing rather than by call count.
    """
    key = "paper_last_tick_mono"
    now = time.monotonic()
    last = st.session_state.get(key)
    if last is not None and now - last < interval:
        return False
    st.session_state[key] = now
    if last is None:
        return False
    session.tick()
    return True


def render_market_overview(session: PaperSession) -> None:
    status = session.market_status()
    color = _STATUS_BADGE[status.status_text]

    h1, h2 = st.columns([3, 2])
    with h1:
        st.subheader("Market Overview")
    with h2:
        label = "Last Update:" if status.is_open else "As of:"
        st.markdown(
            f'<span style="background:{color};color:white;padding:2px 8px;border-radius:4px;'
            f'font-weight:700">{status.status_text}</span> '
            f'<span style="color:#999">{label} {format_timestamp(session.last_updated)}</span>',
            unsafe_allow_html=True,
        )

    cols = st.columns(len(session.quotes))
    for col, quote in zip(cols, session.quotes):
        with col:
            st.metric(
                quote.name.value,
                f"{quote.price:,.2f}",
                delta=f"{quote.change:+,.2f} ({quote.change_percent:+.2f}%)",
            )

    st.caption("Note: Market data is simulated for paper trading and does not represent live NSE prices.")
