"""NIFTY Paper Desk - Streamlit app."""

import sys
from pathlib import Path

# Ensure project root is on sys.path for imports
sys.path.insert(0, str(Path(__file__).resolve().parent))

import streamlit as st

from analyzers.idea_provider import ClaudeIdeaProvider
from core.config import load_config
from core.error_types import ConfigError
from core.logging_config import setup_from_config
from core.paper_session import PaperSession
from ui.ideas_tab import (
    render_backtester,
    render_strategy_finder,
    render_strategy_suggester,
    render_top_picks,
)
from ui.market_overview import maybe_tick, render_market_overview
from ui.portfolio_tab import render_portfolio

st.set_page_config(
    page_title="NIFTY Paper Desk",
    page_icon="📈",
    layout="wide",
)

config = load_config()
setup_from_config(config)

_TICK_INTERVAL = float(config.get("market", {}).get("tick_interval_seconds", 2.0))

# --- Session State Init ---
if "paper_session" not in st.session_state:
    try:
        st.session_state.paper_session = PaperSession.from_config(config)
    except ConfigError as e:
        st.error(f"Cannot start the paper desk: {e}")
        st.stop()
if "idea_provider" not in st.session_state:
    st.session_state.idea_provider = ClaudeIdeaProvider()
session: PaperSession = st.session_state.paper_session
provider: ClaudeIdeaProvider = st.session_state.idea_provider

# --- Header ---
h1, h2 = st.columns([5, 1])
with h1:
    st.title("NIFTY Paper Desk")
    st.caption("Disclaimer: This is a simulation tool and not financial advice.")
with h2:
    if st.button("Reset session", key="reset_session", type="secondary", use_container_width=True):
        session.close()
        for key in ("paper_session", "paper_last_tick_mono", "suggestion", "backtest",
                    "backtest_selection", "finder", "picks"):
            st.session_state.pop(key, None)
        st.rerun()


@st.fragment(run_every=_TICK_INTERVAL)
def _live_panel() -> None:
    maybe_tick(session, _TICK_INTERVAL)
    render_market_overview(session)
    st.divider()
    render_portfolio(session)


tab_live, tab_ideas, tab_picks = st.tabs(["Market & Portfolio", "Strategies", "Top Picks"])

with tab_live:
    _live_panel()

with tab_ideas:
    left, right = st.columns(2)
    with left:
        render_strategy_suggester(session, provider)
    with right:
        render_backtester(session, provider)
    st.divider()
    render_strategy_finder(session, provider)

with tab_picks:
    render_top_picks(session, provider)
