"""Test doubles and helpers shared across test modules."""

from core.portfolio_ledger import PortfolioLedger


class FixedDraws:
    """Stand-in for ``np.random.Generator`` returning scripted uniform draws."""

    def __init__(self, *values: float) -> None:
        self._values = list(values)
        self.calls = 0

    def uniform(self, low: float = 0.0, high: float = 1.0) -> float:
        value = self._values[self.calls % len(self._values)]
        self.calls += 1
        return value


def reprice(ledger: PortfolioLedger, prices: dict[int, float]) -> None:
    """Set current prices directly, for tests that need exact P&L values."""
    ledger._positions = [
        p.model_copy(update={"current_price": prices[p.id]}) if p.id in prices else p
        for p in ledger._positions
    ]
