# -*- coding: utf-8 -*-
"""
Backtest Data Model
===================
The records that flow through a simulation run.

    bars + signals  ->  Trade ledger  ->  PerformanceMetrics  ->  ScoredResult

Bars and signals come from outside (data feed, strategy). Everything after
that is produced by this package and never mutated once created.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, TYPE_CHECKING

import pandas as pd

if TYPE_CHECKING:
    from .metrics import PerformanceMetrics


class SignalType(str, Enum):
    """What the signal feed says for one bar"""
    BUY = "buy"
    SELL = "sell"
    HOLD = "hold"


class Side(str, Enum):
    """Direction of a simulated position"""
    LONG = "long"
    SHORT = "short"


class ExitReason(str, Enum):
    """Why a position was closed"""
    SIGNAL = "signal"
    TAKE_PROFIT = "take_profit"
    STOP_LOSS = "stop_loss"
    TRAILING_STOP = "trailing_stop"
    END_OF_DATA = "end_of_data"


# ============== PRICE DATA ==============

@dataclass(frozen=True)
class Bar:
    """One OHLCV candle. timestamp is epoch milliseconds."""
    timestamp: int
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0


def bars_from_dataframe(data: pd.DataFrame) -> List[Bar]:
    """
    Convert an OHLCV DataFrame into a list of Bars.

    Column names are matched case-insensitively. The timestamp is taken
    from a 'timestamp' column when present, otherwise from a DatetimeIndex.

    Args:
        data: DataFrame with open/high/low/close (and optionally volume)

    Returns:
        Bars in timestamp order
    """
    df = data.copy()
    df.columns = [str(c).lower().strip() for c in df.columns]

    for col in ("open", "high", "low", "close"):
        if col not in df.columns:
            raise ValueError(f"Missing required column: {col}")

    if "timestamp" in df.columns:
        stamps = df["timestamp"]
        if pd.api.types.is_datetime64_any_dtype(stamps):
            stamps = pd.DatetimeIndex(stamps).as_unit("ms").asi8
    elif isinstance(df.index, pd.DatetimeIndex):
        stamps = df.index.as_unit("ms").asi8
    else:
        raise ValueError("DataFrame needs a 'timestamp' column or a DatetimeIndex")

    volume = df["volume"] if "volume" in df.columns else pd.Series(0.0, index=df.index)

    bars = [
        Bar(
            timestamp=int(ts),
            open=float(o),
            high=float(h),
            low=float(lo),
            close=float(c),
            volume=float(v),
        )
        for ts, o, h, lo, c, v in zip(
            stamps, df["open"], df["high"], df["low"], df["close"], volume
        )
    ]
    bars.sort(key=lambda b: b.timestamp)
    return bars


def bars_to_dataframe(bars: Sequence[Bar]) -> pd.DataFrame:
    """Inverse of bars_from_dataframe, used to hand windows to strategies."""
    return pd.DataFrame(
        {
            "timestamp": [b.timestamp for b in bars],
            "open": [b.open for b in bars],
            "high": [b.high for b in bars],
            "low": [b.low for b in bars],
            "close": [b.close for b in bars],
            "volume": [b.volume for b in bars],
        }
    )


# ============== LEDGER ==============

@dataclass(frozen=True)
class Trade:
    """A finished round trip. Prices are already slippage-adjusted."""
    entry_time: int
    exit_time: int
    entry_price: float
    exit_price: float
    side: Side
    pnl: float
    pnl_percent: float
    fees: float
    exit_reason: ExitReason

    @property
    def is_winner(self) -> bool:
        return self.pnl > 0

    @property
    def net_pnl(self) -> float:
        return self.pnl - self.fees

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entry_time": self.entry_time,
            "exit_time": self.exit_time,
            "entry_price": self.entry_price,
            "exit_price": self.exit_price,
            "side": self.side.value,
            "pnl": self.pnl,
            "pnl_percent": self.pnl_percent,
            "fees": self.fees,
            "exit_reason": self.exit_reason.value,
        }


# ============== RESULTS ==============

@dataclass
class BacktestResult:
    """Ledger and metrics for one (strategy, symbol, interval) combination"""
    strategy_id: str
    symbol: str
    interval: int
    trades: List[Trade] = field(default_factory=list)
    metrics: Optional["PerformanceMetrics"] = None
    strategy_name: str = ""


@dataclass
class ScoredResult:
    """A BacktestResult that passed the quality gate, with its composite score"""
    result: BacktestResult
    score: float

    @property
    def strategy_id(self) -> str:
        return self.result.strategy_id

    @property
    def symbol(self) -> str:
        return self.result.symbol

    @property
    def interval(self) -> int:
        return self.result.interval

    @property
    def trades(self) -> List[Trade]:
        return self.result.trades

    @property
    def metrics(self) -> "PerformanceMetrics":
        return self.result.metrics
