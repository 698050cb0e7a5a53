# -*- coding: utf-8 -*-
"""
Backtest Configuration
======================
One config object shared by every simulation in a run.

Units:
- Fee and slippage rates are FRACTIONS (0.001 = 0.1%)
- Take-profit / stop-loss / trailing-stop are PERCENT (10.0 = 10%)

The defaults are the aggressive crypto research settings: half the capital
per trade, a wide take-profit, and a trailing stop to let winners run.

Usage:
    >>> config = BacktestConfig(initial_capital=5000)
    >>> config.position_value
    2500.0
"""

from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Dict


class ExitFill(str, Enum):
    """
    Price used when a take-profit / stop-loss / trailing stop fires.

    THRESHOLD: fill exactly at the level that was touched (default)
    CLOSE:     fill at the bar's close, no intrabar assumption
    """
    THRESHOLD = "threshold"
    CLOSE = "close"


@dataclass(frozen=True)
class FeeConfig:
    """Trading costs, as fractions of notional"""
    maker_fee: float = 0.001       # 0.1%
    taker_fee: float = 0.002       # 0.2% (market orders)
    slippage: float = 0.0005       # 0.05% against the trader on each leg

    def __post_init__(self):
        for name in ("maker_fee", "taker_fee", "slippage"):
            value = getattr(self, name)
            if value < 0:
                raise ValueError(f"{name} must be >= 0, got {value}")

    @property
    def round_trip_fee_rate(self) -> float:
        """Both legs charged flat, regardless of actual fill type."""
        return self.maker_fee + self.taker_fee


@dataclass(frozen=True)
class ExitConfig:
    """
    Fixed exit thresholds, in percent of entry price.

    fill decides the price of a take-profit, stop-loss or trailing exit.
    THRESHOLD (default) fills at the level that was crossed, so a stop-loss
    on a gap-down bar still books -stop_loss_pct. CLOSE fills at the bar
    close instead, which books the full gap (a 1.5% stop hit by a bar
    closing 6.67% down loses 6.67%). Signal and end-of-data exits always
    fill at the close.
    """
    take_profit_pct: float = 10.0
    stop_loss_pct: float = 1.5
    trailing_stop_pct: float = 2.0
    fill: ExitFill = ExitFill.THRESHOLD

    def __post_init__(self):
        for name in ("take_profit_pct", "stop_loss_pct", "trailing_stop_pct"):
            value = getattr(self, name)
            if value <= 0:
                raise ValueError(f"{name} must be > 0, got {value}")


@dataclass(frozen=True)
class BacktestConfig:
    """
    Everything the simulation needs besides bars and signals.

    Position size is fixed at initial_capital * position_size for every
    trade. It does not compound with running P&L, so two strategies are
    compared on signal quality alone.
    """
    initial_capital: float = 10000.0
    position_size: float = 0.50
    fees: FeeConfig = field(default_factory=FeeConfig)
    exits: ExitConfig = field(default_factory=ExitConfig)

    def __post_init__(self):
        if self.initial_capital <= 0:
            raise ValueError(f"initial_capital must be > 0, got {self.initial_capital}")
        if not 0 < self.position_size <= 1:
            raise ValueError(f"position_size must be in (0, 1], got {self.position_size}")

    @property
    def position_value(self) -> float:
        """Notional of every simulated position, in currency units"""
        return self.initial_capital * self.position_size

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
