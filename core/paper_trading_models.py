"""Pydantic models for the paper trading desk."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, computed_field


class Instrument(str, Enum):
    NIFTY = "NIFTY 50"
    BANKNIFTY = "BANK NIFTY"


class TradeAction(str, Enum):
    BUY = "Buy"
    SELL = "Sell"

    @property
    def sign(self) -> int:
        return 1 if self is TradeAction.BUY else -1


class PositionSource(str, Enum):
    PICK = "pick"
    STRATEGY = "strategy"


class MarketView(str, Enum):
    BULLISH = "Bullish"
    BEARISH = "Bearish"
    NEUTRAL = "Neutral"
    VOLATILE = "Volatile"


# ---------------------------------------------------------------------------
# Market
# ---------------------------------------------------------------------------

class InstrumentQuote(BaseModel):
    """Immutable snapshot of one index quote.

    ``change`` is always relative to the session opening price, so
    ``opening_price = price - change`` is the same on every snapshot of a
    session.
    """

    model_config = ConfigDict(frozen=True)

    name: Instrument
    price: float
    change: float = 0.0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def opening_price(self) -> float:
        return self.price - self.change

    @computed_field  # type: ignore[prop-decorator]
    @property
    def change_percent(self) -> float:
        return self.change / self.opening_price * 100


# ---------------------------------------------------------------------------
# Portfolio
# ---------------------------------------------------------------------------

class Position(BaseModel):
    """One open option position. Closed positions are not kept."""

    id: int
    instrument: str  # e.g. "NIFTY 23500 CE"
    action: TradeAction
    entry_price: float
    current_price: float
    quantity: int = 1  # lots
    lot_size: int
    source: PositionSource
    required_capital: float = 0.0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def pnl(self) -> float:
        return (self.current_price - self.entry_price) * self.action.sign * self.lot_size * self.quantity


class PortfolioSummary(BaseModel):
    realized_pnl: float
    unrealized_pnl: float
    open_count: int
    has_picks: bool
    has_strategies: bool

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_pnl(self) -> float:
        return self.realized_pnl + self.unrealized_pnl


# ---------------------------------------------------------------------------
# Idea provider payloads
# ---------------------------------------------------------------------------

class StrategyParameters(BaseModel):
    view: MarketView
    suggested_strikes: str
    stop_loss: str


class StrategySuggestion(BaseModel):
    strategy_name: str
    rationale: str
    parameters: StrategyParameters
    risks: str


class OptionPick(BaseModel):
    instrument: str
    action: TradeAction
    entry_price: float = Field(gt=0)
    required_capital: float = Field(ge=0)
    potential_profit: float
    potential_loss: float
    rationale: str


class FoundStrategy(BaseModel):
    strategy_name: str
    rationale: str
    suggested_strikes: str
    estimated_profit: float
    estimated_loss: float


class StrategyLeg(BaseModel):
    instrument: str
    action: TradeAction
    entry_price: float = Field(gt=0)


class PnlPoint(BaseModel):
    time: str  # "10:15" intraday, ISO date for historical points
    pnl_amount: float


class BacktestResult(BaseModel):
    """One-day simulated run of a strategy."""

    pnl: float  # percent
    pnl_amount: float  # INR
    required_capital: float = Field(ge=0)
    max_loss: float
    strategy_legs: list[StrategyLeg] = Field(default_factory=list)
    commentary: str = ""
    data_points: list[PnlPoint] = Field(default_factory=list)
    historical_pnl: list[PnlPoint] | None = None


class StrategySelection(BaseModel):
    """A strategy the user picked for simulation, handed to the backtester."""

    name: str
    instrument: Instrument


class StrategyTemplate(BaseModel):
    id: str
    name: str
    description: str


STRATEGIES: list[StrategyTemplate] = [
    StrategyTemplate(
        id="long_straddle",
        name="Long Straddle",
        description="Buy a call and a put at the same strike. Profits from high volatility.",
    ),
    StrategyTemplate(
        id="bull_call_spread",
        name="Bull Call Spread",
        description="Buy a call and sell a higher strike call. Profits from a moderate rise in price.",
    ),
    StrategyTemplate(
        id="bear_put_spread",
        name="Bear Put Spread",
        description="Buy a put and sell a lower strike put. Profits from a moderate fall in price.",
    ),
    StrategyTemplate(
        id="iron_condor",
        name="Iron Condor",
        description="Sell a call spread and a put spread. Profits from low volatility.",
    ),
]
