"""
Performance metrics used to rank parameter combinations.
"""

from enum import Enum
from typing import Iterable

import numpy as np
from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class PerformanceMetric(str, Enum):
    """Metrics a run can be ranked by."""
    PF = "pf"
    NET_PROFIT = "net_profit"
    KELLY = "kelly"
    PI = "pi"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @property
    def field(self) -> str:
        """Name of the matching ``PerformanceMetrics`` attribute."""
        return _FIELDS[self]

    @classmethod
    def from_name(cls, name: str) -> "PerformanceMetric":
        """Look a metric up by value, member name or display name, case-insensitively."""
        if isinstance(name, cls):
            return name
        key = str(name).strip().lower()
        for metric in cls:
            if key in (metric.value, metric.name.lower(), metric.display_name.lower(), metric.field):
                return metric
        raise ValueError(f"Unknown performance metric: {name!r}")


_DISPLAY_NAMES = {
    PerformanceMetric.PF: "PF",
    PerformanceMetric.NET_PROFIT: "Net Profit",
    PerformanceMetric.KELLY: "Kelly",
    PerformanceMetric.PI: "PI",
}

_FIELDS = {
    PerformanceMetric.PF: "profit_factor",
    PerformanceMetric.NET_PROFIT: "net_profit",
    PerformanceMetric.KELLY: "kelly",
    PerformanceMetric.PI: "profit_index",
}


class PerformanceMetrics(BaseModel):
    """
    Trade statistics returned by one backtest evaluation.

    Also accepts the camel-case and display names evaluators commonly report
    (``netProfit``, ``PF``, ``PI``, ``tradeCount``). Unknown keys are rejected.
    """

    model_config = ConfigDict(frozen=True, extra='forbid', populate_by_name=True)

    net_profit: float = Field(0.0, validation_alias=AliasChoices('net_profit', 'netProfit', 'Net Profit'))
    profit_factor: float = Field(0.0, validation_alias=AliasChoices('profit_factor', 'PF', 'pf', 'profitFactor'))
    kelly: float = Field(0.0, validation_alias=AliasChoices('kelly', 'Kelly'))
    profit_index: float = Field(0.0, validation_alias=AliasChoices('profit_index', 'PI', 'pi', 'profitIndex'))
    trade_count: int = Field(0, ge=0, validation_alias=AliasChoices('trade_count', 'tradeCount', 'trades'))

    def get(self, metric: PerformanceMetric) -> float:
        return getattr(self, PerformanceMetric.from_name(metric).field)


def metrics_from_trades(pnls: Iterable[float]) -> PerformanceMetrics:
    """
    Compute performance metrics from per-trade profits and losses.

    Args:
        pnls: Net profit of each closed trade, in trade order

    Returns:
        PerformanceMetrics where
        - profit factor is gross profit / gross loss (inf without losing trades)
        - kelly is ``100 * (W - (1 - W) / R)`` with W the win ratio and R avg win / avg loss
        - profit index is ``sqrt(n) * mean / std``, a t-statistic of the trade results
    """
    trades = np.asarray(list(pnls), dtype=float)
    trade_count = len(trades)

    if trade_count == 0:
        return PerformanceMetrics()

    wins = trades[trades > 0]
    losses = trades[trades < 0]
    gross_profit = wins.sum()
    gross_loss = -losses.sum()

    profit_factor = gross_profit / gross_loss if gross_loss > 0 else float('inf') if gross_profit > 0 else 0.0

    kelly = 0.0
    if len(wins) > 0 and len(losses) > 0:
        win_ratio = len(wins) / trade_count
        payoff_ratio = wins.mean() / -losses.mean()
        kelly = 100 * (win_ratio - (1 - win_ratio) / payoff_ratio)
    elif len(wins) > 0:
        kelly = 100.0

    profit_index = 0.0
    if trade_count > 1:
        std = trades.std(ddof=1)
        if std > 0:
            profit_index = float(np.sqrt(trade_count) * trades.mean() / std)

    return PerformanceMetrics(
        net_profit=float(trades.sum()),
        profit_factor=float(profit_factor),
        kelly=float(kelly),
        profit_index=profit_index,
        trade_count=trade_count,
    )
