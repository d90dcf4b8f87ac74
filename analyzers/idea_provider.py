"""AI trade-idea provider backed by the Claude API with structured outputs.

The dashboard depends only on the ``IdeaProvider`` protocol: one async
``request(kind, instrument, **params)`` call per idea type.  Failures of
any sort come back as ``IdeaProviderError`` with a message fit to show the
user; there is no retry, caching or timeout on this side.
"""

from __future__ import annotations

import json
import logging
from enum import Enum
from typing import Any, Protocol

import anthropic
from pydantic import ValidationError

from core.config import get_env, get_section
from core.error_types import IdeaProviderError
from core.paper_trading_models import (
    BacktestResult,
    FoundStrategy,
    Instrument,
    OptionPick,
    StrategySuggestion,
)

logger = logging.getLogger(__name__)


class IdeaRequestKind(str, Enum):
    SUGGESTION = "suggestion"
    TOP_PICKS = "top_picks"
    FIND_STRATEGIES = "find_strategies"
    BACKTEST = "backtest"


class IdeaProvider(Protocol):
    async def request(self, kind: IdeaRequestKind, instrument: Instrument | str, **params: Any) -> Any:
        ...


# ---------------------------------------------------------------------------
# JSON Schemas for structured output
# ---------------------------------------------------------------------------

_ACTION = {"type": "string", "enum": ["Buy", "Sell"]}

_LEG_SCHEMA = {
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "instrument": {"type": "string", "description": "e.g. 'NIFTY 23500 CE'"},
        "action": _ACTION,
        "entry_price": {"type": "number", "description": "Option premium at entry, INR"},
    },
    "required": ["instrument", "action", "entry_price"],
}

_PNL_POINT_SCHEMA = {
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "time": {"type": "string"},
        "pnl_amount": {"type": "number"},
    },
    "required": ["time", "pnl_amount"],
}

SUGGESTION_SCHEMA = {
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "strategy_name": {"type": "string"},
        "rationale": {"type": "string"},
        "parameters": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "view": {"type": "string", "enum": ["Bullish", "Bearish", "Neutral", "Volatile"]},
                "suggested_strikes": {"type": "string"},
                "stop_loss": {"type": "string"},
            },
            "required": ["view", "suggested_strikes", "stop_loss"],
        },
        "risks": {"type": "string"},
    },
    "required": ["strategy_name", "rationale", "parameters", "risks"],
}

TOP_PICKS_SCHEMA = {
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "picks": {
            "type": "array",
            "items": {
                "type": "object",
                "additionalProperties": False,
                "properties": {
                    "instrument": {"type": "string"},
                    "action": _ACTION,
                    "entry_price": {"type": "number"},
                    "required_capital": {"type": "number"},
                    "potential_profit": {"type": "number"},
                    "potential_loss": {"type": "number"},
                    "rationale": {"type": "string"},
                },
                "required": [
                    "instrument", "action", "entry_price", "required_capital",
                    "potential_profit", "potential_loss", "rationale",
                ],
            },
        },
    },
    "required": ["picks"],
}

FIND_STRATEGIES_SCHEMA = {
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "strategies": {
            "type": "array",
            "items": {
                "type": "object",
                "additionalProperties": False,
                "properties": {
                    "strategy_name": {"type": "string"},
                    "rationale": {"type": "string"},
                    "suggested_strikes": {"type": "string"},
                    "estimated_profit": {"type": "number"},
                    "estimated_loss": {"type": "number"},
                },
                "required": [
                    "strategy_name", "rationale", "suggested_strikes",
                    "estimated_profit", "estimated_loss",
                ],
            },
        },
    },
    "required": ["strategies"],
}

BACKTEST_SCHEMA = {
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "pnl": {"type": "number", "description": "P&L as a percentage of required capital"},
        "pnl_amount": {"type": "number", "description": "P&L in INR"},
        "required_capital": {"type": "number"},
        "max_loss": {"type": "number"},
        "strategy_legs": {"type": "array", "items": _LEG_SCHEMA},
        "commentary": {"type": "string"},
        "data_points": {
            "type": "array",
            "items": _PNL_POINT_SCHEMA,
            "description": "Intraday P&L every 15 minutes from 09:15 to 15:30, time as HH:MM",
        },
        "historical_pnl": {
            "type": "array",
            "items": _PNL_POINT_SCHEMA,
            "description": "Daily P&L of the same strategy over the last 10 sessions, time as YYYY-MM-DD",
        },
    },
    "required": [
        "pnl", "pnl_amount", "required_capital", "max_loss",
        "strategy_legs", "commentary", "data_points",
    ],
}

_SCHEMAS: dict[IdeaRequestKind, dict] = {
    IdeaRequestKind.SUGGESTION: SUGGESTION_SCHEMA,
    IdeaRequestKind.TOP_PICKS: TOP_PICKS_SCHEMA,
    IdeaRequestKind.FIND_STRATEGIES: FIND_STRATEGIES_SCHEMA,
    IdeaRequestKind.BACKTEST: BACKTEST_SCHEMA,
}

SYSTEM_PROMPT = (
    "You are an Indian index options desk analyst. You produce paper-trading ideas "
    "for NIFTY 50 and BANK NIFTY weekly options. Use realistic NSE strikes "
    "(NIFTY in steps of 50, BANK NIFTY in steps of 100), realistic premiums in INR, "
    "and lot sizes of 25 (NIFTY) and 15 (BANK NIFTY). This is a simulation, not advice."
)


# ---------------------------------------------------------------------------
# Prompts
# ---------------------------------------------------------------------------

def _example_strike(instrument: str) -> str:
    if instrument == Instrument.BANKNIFTY.value:
        return "BANKNIFTY 50000 PE"
    return "NIFTY 23500 CE"


def build_prompt(kind: IdeaRequestKind, instrument: str, **params: Any) -> str:
    if kind is IdeaRequestKind.SUGGESTION:
        return f"""Analyze today's intraday market conditions for {instrument} and suggest ONE options strategy.

Give the strategy name, a short rationale, the market view (Bullish, Bearish, Neutral or Volatile),
suggested strikes, a stop loss, and the key risks."""
    if kind is IdeaRequestKind.TOP_PICKS:
        return f"""List the 3 to 5 best single-leg intraday option trades on {instrument} for today.

For each pick give the option instrument (e.g. "{_example_strike(instrument)}"), Buy or Sell,
the entry premium, required capital for one lot, potential profit, potential loss and a one-line rationale.
Rank them best first."""
    if kind is IdeaRequestKind.FIND_STRATEGIES:
        return f"""Find options strategies on {instrument} for today's session that target a profit of about
INR {params['target_profit']:,.0f} while keeping the maximum loss within INR {params['max_loss']:,.0f} for one lot per leg.

Return up to 4 strategies with name, rationale, suggested strikes, estimated profit and estimated loss.
Return an empty list if nothing fits the targets."""
    if kind is IdeaRequestKind.BACKTEST:
        return f"""Simulate how a {params['strategy_name']} on {instrument} would have performed over today's session,
entered at 09:20 and exited at 15:15, one lot per leg.

Give the P&L as a percentage of required capital and in INR, the required capital, the maximum loss,
each strategy leg with its entry premium, a short commentary, intraday P&L points every 15 minutes,
and the daily P&L of the same setup over the previous 10 sessions."""
    raise IdeaProviderError(f"Unknown request kind: {kind!r}")


def parse_result(kind: IdeaRequestKind, payload: dict) -> Any:
    """Validate the JSON payload of one response into the matching model(s)."""
    if kind is IdeaRequestKind.SUGGESTION:
        return StrategySuggestion.model_validate(payload)
    if kind is IdeaRequestKind.TOP_PICKS:
        return [OptionPick.model_validate(p) for p in payload.get("picks", [])]
    if kind is IdeaRequestKind.FIND_STRATEGIES:
        return [FoundStrategy.model_validate(s) for s in payload.get("strategies", [])]
    if kind is IdeaRequestKind.BACKTEST:
        return BacktestResult.model_validate(payload)
    raise IdeaProviderError(f"Unknown request kind: {kind!r}")


def validate_request(kind: IdeaRequestKind, **params: Any) -> None:
    """Reject requests that are missing what the prompt needs, before calling out."""
    if kind is IdeaRequestKind.FIND_STRATEGIES:
        if not params.get("target_profit") or not params.get("max_loss"):
            raise IdeaProviderError("Please enter both a target profit and a maximum loss.")
    if kind is IdeaRequestKind.BACKTEST and not params.get("strategy_name"):
        raise IdeaProviderError("Select a strategy to simulate first.")


# ---------------------------------------------------------------------------
# Claude binding
# ---------------------------------------------------------------------------

class ClaudeIdeaProvider:
    """``IdeaProvider`` that asks Claude for JSON matching a per-kind schema.

    Without an injected ``client`` a fresh ``AsyncAnthropic`` is opened and
    closed around every request, with SDK retries off.  The dashboard runs
    each request on its own short-lived event loop, so no connection may
    outlive the call.  An injected client belongs to the caller.
    """

    def __init__(
        self,
        client: anthropic.AsyncAnthropic | None = None,
        model: str | None = None,
        max_tokens: int | None = None,
    ) -> None:
        cfg = get_section("claude")
        self._client = client
        self.model = model or cfg.get("model", "claude-sonnet-4-5-20250929")
        self.max_tokens = max_tokens or cfg.get("max_tokens", 4096)

    def _new_client(self) -> anthropic.AsyncAnthropic:
        api_key = get_env("ANTHROPIC_API_KEY")
        if not api_key:
            raise IdeaProviderError("ANTHROPIC_API_KEY not set")
        return anthropic.AsyncAnthropic(api_key=api_key, max_retries=0)

    async def _create(self, **kwargs: Any) -> Any:
        if self._client is not None:
            return await self._client.messages.create(**kwargs)
        async with self._new_client() as client:
            return await client.messages.create(**kwargs)

    async def request(self, kind: IdeaRequestKind, instrument: Instrument | str, **params: Any) -> Any:
        kind = IdeaRequestKind(kind)
        instrument_name = Instrument(instrument).value
        validate_request(kind, **params)
        prompt = build_prompt(kind, instrument_name, **params)

        try:
            response = await self._create(
                model=self.model,
                max_tokens=self.max_tokens,
                system=SYSTEM_PROMPT,
                messages=[{"role": "user", "content": prompt}],
                output_config={
                    "format": {
                        "type": "json_schema",
                        "schema": _SCHEMAS[kind],
                    },
                },
            )
        except anthropic.APIError as e:
            logger.warning("Idea request %s for %s failed: %s", kind.value, instrument_name, e)
            raise IdeaProviderError(f"Failed to get {kind.value.replace('_', ' ')} from AI: {e}") from e

        try:
            payload = json.loads(response.content[0].text)
            result = parse_result(kind, payload)
        except (json.JSONDecodeError, IndexError, AttributeError, ValidationError) as e:
            logger.warning("Idea response %s for %s unparseable: %s", kind.value, instrument_name, e)
            raise IdeaProviderError(
                f"The AI returned an invalid {kind.value.replace('_', ' ')} response. Please try again."
            ) from e

        logger.info("Idea request %s for %s succeeded", kind.value, instrument_name)
        return result


async def fetch_ideas(
    provider: IdeaProvider, kind: IdeaRequestKind, instrument: Instrument | str, **params: Any,
) -> Any:
    """Validate then forward one request; every failure surfaces as IdeaProviderError."""
    kind = IdeaRequestKind(kind)
    validate_request(kind, **params)
    try:
        return await provider.request(kind, instrument, **params)
    except IdeaProviderError:
        raise
    except Exception as e:
        logger.warning("Idea provider raised %s: %s", type(e).__name__, e)
        raise IdeaProviderError(str(e) or type(e).__name__) from e

