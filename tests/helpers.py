"""Builders for bars, trades and results used across the test suite."""

import math
from typing import List, Optional

from backtest.config import BacktestConfig, ExitConfig, FeeConfig
from backtest.metrics import PerformanceMetrics
from backtest.models import Bar, BacktestResult, ExitReason, Side, Trade

MINUTE = 60_000


def bar(i: int, close: float, high: Optional[float] = None, low: Optional[float] = None) -> Bar:
    """Bar number i, one minute apart. high/low default to the close."""
    return Bar(
        timestamp=i * MINUTE,
        open=close,
        high=close if high is None else high,
        low=close if low is None else low,
        close=close,
        volume=1.0,
    )


def flat_bars(n: int, price: float = 100.0) -> List[Bar]:
    return [bar(i, price) for i in range(n)]


def wave_bars(n: int = 300, base: float = 100.0, amplitude: float = 10.0) -> List[Bar]:
    """Smooth oscillating series; moving-average strategies trade on it."""
    bars = []
    for i in range(n):
        close = base + amplitude * math.sin(i / 8)
        bars.append(bar(i, close, high=close + 1, low=close - 1))
    return bars


def zero_cost_config(
    take_profit_pct: float = 10.0,
    stop_loss_pct: float = 3.0,
    trailing_stop_pct: float = 2.0,
    **exit_kwargs
) -> BacktestConfig:
    return BacktestConfig(
        initial_capital=10000.0,
        position_size=0.5,
        fees=FeeConfig(maker_fee=0.0, taker_fee=0.0, slippage=0.0),
        exits=ExitConfig(
            take_profit_pct=take_profit_pct,
            stop_loss_pct=stop_loss_pct,
            trailing_stop_pct=trailing_stop_pct,
            **exit_kwargs
        ),
    )


def trade(
    pnl: float,
    pnl_percent: Optional[float] = None,
    fees: float = 0.0,
    entry_time: int = 0,
    exit_time: int = MINUTE,
    reason: ExitReason = ExitReason.SIGNAL
) -> Trade:
    if pnl_percent is None:
        pnl_percent = pnl / 50  # as if position value were 5000
    return Trade(
        entry_time=entry_time,
        exit_time=exit_time,
        entry_price=100.0,
        exit_price=100.0 + pnl_percent,
        side=Side.LONG,
        pnl=pnl,
        pnl_percent=pnl_percent,
        fees=fees,
        exit_reason=reason,
    )


def result(strategy_id: str = "s", symbol: str = "BTC-USD", interval: int = 15,
           trades: Optional[List[Trade]] = None, **metrics) -> BacktestResult:
    return BacktestResult(
        strategy_id=strategy_id,
        symbol=symbol,
        interval=interval,
        trades=trades or [],
        metrics=PerformanceMetrics(**metrics),
    )


def good_metrics(**overrides) -> dict:
    """Metrics that pass the quality gate and score above zero."""
    values = dict(
        total_trades=25,
        winning_trades=15,
        losing_trades=10,
        win_rate=60.0,
        total_pnl=500.0,
        total_pnl_percent=5.0,
        profit_factor=1.8,
        max_drawdown_percent=8.0,
        sharpe_ratio=1.5,
    )
    values.update(overrides)
    return values
