"""Pydantic schema validation for config.yaml.

Called at startup to catch misconfigurations before the session starts
ticking.  Every section has defaults, so an empty file is valid.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

logger = logging.getLogger(__name__)


class InstrumentConfig(BaseModel):
    """Session seed and noise level for one index."""
    initial_price: float = Field(gt=0)
    initial_change: float = 0.0
    volatility: float = Field(ge=0.0, le=0.05)

    @model_validator(mode="after")
    def validate_opening_price(self) -> "InstrumentConfig":
        if self.initial_price - self.initial_change <= 0:
            raise ValueError(
                f"opening price (initial_price - initial_change = "
                f"{self.initial_price - self.initial_change}) must be positive"
            )
        return self


def _default_instruments() -> dict[str, InstrumentConfig]:
    return {
        "NIFTY 50": InstrumentConfig(initial_price=23500.0, volatility=0.0001),
        "BANK NIFTY": InstrumentConfig(initial_price=50000.0, volatility=0.00015),
    }


class MarketConfig(BaseModel):
    tick_interval_seconds: float = Field(gt=0, le=60, default=2.0)
    max_drift: float = Field(ge=0.0, le=0.01, default=0.00002)
    instruments: dict[str, InstrumentConfig] = Field(default_factory=_default_instruments)

    model_config = ConfigDict(extra="allow")

    @field_validator("instruments")
    @classmethod
    def validate_known_instruments(cls, v: dict[str, InstrumentConfig]) -> dict[str, InstrumentConfig]:
        from core.paper_trading_models import Instrument

        known = {i.value for i in Instrument}
        unknown = set(v) - known
        if unknown:
            raise ValueError(f"unknown instruments: {sorted(unknown)} (expected {sorted(known)})")
        return v


class PortfolioConfig(BaseModel):
    nifty_lot_size: int = Field(gt=0, default=25)
    banknifty_lot_size: int = Field(gt=0, default=15)
    price_fluctuation: float = Field(gt=0.0, le=0.5, default=0.01)
    price_floor: float = Field(gt=0.0, default=0.05)
    mark_positions_when_closed: bool = False

    model_config = ConfigDict(extra="allow")


class ClaudeConfig(BaseModel):
    model: str = "claude-sonnet-4-5-20250929"
    max_tokens: int = Field(gt=0, le=64000, default=4096)

    model_config = ConfigDict(extra="allow")


class LoggingConfig(BaseModel):
    dir: str = "data/logs"
    level: str = "INFO"

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        if v.upper() not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"invalid log level: {v!r}")
        return v.upper()


class PaperDeskConfig(BaseModel):
    """Top-level config schema."""
    market: MarketConfig = Field(default_factory=MarketConfig)
    portfolio: PortfolioConfig = Field(default_factory=PortfolioConfig)
    claude: ClaudeConfig = Field(default_factory=ClaudeConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = ConfigDict(extra="allow")

    @model_validator(mode="after")
    def warn_lot_size_order(self) -> "PaperDeskConfig":
        """NIFTY contracts carry more units than BANK NIFTY ones; flag inverted settings."""
        if self.portfolio.banknifty_lot_size > self.portfolio.nifty_lot_size:
            logger.warning(
                "portfolio.banknifty_lot_size=%d exceeds nifty_lot_size=%d",
                self.portfolio.banknifty_lot_size, self.portfolio.nifty_lot_size,
            )
        return self


def validate_config_dict(raw: dict[str, Any] | None) -> PaperDeskConfig:
    """Validate a raw config dict. Raises pydantic.ValidationError on failure."""
    return PaperDeskConfig.model_validate(raw or {})
