"""
Moving Average Crossover Strategy

How it works:
- Uses two moving averages (fast and slow)
- When fast crosses ABOVE slow = BUY signal
- When fast crosses BELOW slow = SELL signal
"""

import pandas as pd

from backtest.models import SignalType
from .base import Strategy, register_strategy


@register_strategy("trend/ma-crossover")
class MovingAverageCrossover(Strategy):
    """
    Moving Average Crossover Strategy

    Parameters:
        fast_period: Bars for fast average (default: 9)
        slow_period: Bars for slow average (default: 21)
    """

    def __init__(self, fast_period: int = 9, slow_period: int = 21):
        if fast_period >= slow_period:
            raise ValueError(
                f"fast_period ({fast_period}) must be below slow_period ({slow_period})"
            )
        self.fast_period = fast_period
        self.slow_period = slow_period

    @property
    def id(self) -> str:
        return "trend/ma-crossover"

    @property
    def name(self) -> str:
        return "Moving Average Crossover"

    @property
    def description(self) -> str:
        return "Buy when the short-term average crosses above the long-term average."

    @property
    def min_bars(self) -> int:
        return self.slow_period + 1

    def analyze(self, window: pd.DataFrame) -> SignalType:
        if len(window) < self.min_bars:
            return SignalType.HOLD

        close = window['close']
        fast = close.rolling(window=self.fast_period).mean()
        slow = close.rolling(window=self.slow_period).mean()

        current_fast, prev_fast = fast.iloc[-1], fast.iloc[-2]
        current_slow, prev_slow = slow.iloc[-1], slow.iloc[-2]

        # BUY: Fast crosses ABOVE slow
        if prev_fast <= prev_slow and current_fast > current_slow:
            return SignalType.BUY

        # SELL: Fast crosses BELOW slow
        if prev_fast >= prev_slow and current_fast < current_slow:
            return SignalType.SELL

        return SignalType.HOLD

    def get_parameters(self) -> dict:
        return {
            'fast_period': self.fast_period,
            'slow_period': self.slow_period
        }
