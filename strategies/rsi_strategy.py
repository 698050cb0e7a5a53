"""
RSI (Relative Strength Index) Strategy

How it works:
- RSI below the oversold level = BUY
- RSI above the overbought level = SELL
- In between = HOLD
"""

import numpy as np
import pandas as pd

from backtest.models import SignalType
from .base import Strategy, register_strategy


def calculate_rsi(prices: pd.Series, period: int) -> pd.Series:
    """Simple-average RSI. 100 when there were no losses in the window."""
    delta = prices.diff()

    gain = delta.where(delta > 0, 0.0).rolling(window=period).mean()
    loss = (-delta.where(delta < 0, 0.0)).rolling(window=period).mean()

    rs = gain / loss.replace(0, np.nan)
    rsi = 100 - (100 / (1 + rs))
    return rsi.where(loss != 0, 100.0)


@register_strategy("mean_reversion/rsi-reversal")
class RSIStrategy(Strategy):
    """
    Buys when oversold, sells when overbought.

    Parameters:
        period: RSI calculation period (default: 14)
        oversold: Buy below this level (default: 30)
        overbought: Sell above this level (default: 70)
    """

    def __init__(self, period: int = 14, oversold: float = 30, overbought: float = 70):
        self.period = period
        self.oversold = oversold
        self.overbought = overbought

    @property
    def id(self) -> str:
        return "mean_reversion/rsi-reversal"

    @property
    def name(self) -> str:
        return "RSI Reversal"

    @property
    def description(self) -> str:
        return f"Buy when RSI < {self.oversold}, sell when RSI > {self.overbought}."

    @property
    def min_bars(self) -> int:
        return self.period + 1

    def analyze(self, window: pd.DataFrame) -> SignalType:
        if len(window) < self.min_bars:
            return SignalType.HOLD

        rsi = calculate_rsi(window['close'], self.period).iloc[-1]

        if pd.isna(rsi):
            return SignalType.HOLD
        if rsi < self.oversold:
            return SignalType.BUY
        if rsi > self.overbought:
            return SignalType.SELL
        return SignalType.HOLD

    def get_parameters(self) -> dict:
        return {
            'period': self.period,
            'oversold': self.oversold,
            'overbought': self.overbought
        }
