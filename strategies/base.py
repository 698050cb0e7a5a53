"""
Base Strategy Class - One Signal Per Bar

A strategy has exactly one job: look at the bars seen so far and say
buy, sell or hold. It knows nothing about positions, exits or fees -
the backtest engine owns all of that.

Strategies are looked up by id through a registry, so the engine and the
suite never need to know how many there are or how they work.
"""

from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Sequence, Type

import pandas as pd

from backtest.models import Bar, SignalType, bars_to_dataframe


class UnknownStrategyError(ValueError):
    """Raised when a strategy id is not in the registry"""
    pass


class Strategy(ABC):
    """
    Base class for all signal producers.

    Every strategy must implement:
    1. id - unique registry key (e.g. "trend/ma-crossover")
    2. name / description
    3. analyze() - window of bars in, SignalType out
    """

    @property
    @abstractmethod
    def id(self) -> str:
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @property
    def description(self) -> str:
        return ""

    @property
    def min_bars(self) -> int:
        """Bars needed before analyze() can say anything but HOLD"""
        return 1

    @abstractmethod
    def analyze(self, window: pd.DataFrame) -> SignalType:
        """
        Decide on the latest bar of the window.

        Args:
            window: DataFrame of all bars up to and including the current
                one (timestamp, open, high, low, close, volume)

        Returns:
            SignalType for the last row
        """
        pass

    def get_parameters(self) -> dict:
        return {}

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.get_parameters()})"


def generate_signals(strategy: Strategy, bars: Sequence[Bar]) -> List[SignalType]:
    """
    Run a strategy over a bar series.

    Returns:
        One SignalType per bar, HOLD during warm-up
    """
    if not bars:
        return []

    frame = bars_to_dataframe(bars)
    warmup = max(strategy.min_bars, 1)
    signals = [SignalType.HOLD] * len(bars)

    for i in range(warmup - 1, len(bars)):
        signals[i] = SignalType(strategy.analyze(frame.iloc[:i + 1]))

    return signals


# ============== REGISTRY ==============

ALL_STRATEGIES: Dict[str, Type[Strategy]] = {}


def register_strategy(strategy_id: str) -> Callable[[Type[Strategy]], Type[Strategy]]:
    """
    Class decorator adding a strategy to ALL_STRATEGIES.

    Example:
        >>> @register_strategy("trend/ma-crossover")
        ... class MovingAverageCrossover(Strategy): ...
    """
    def decorator(cls: Type[Strategy]) -> Type[Strategy]:
        if strategy_id in ALL_STRATEGIES and ALL_STRATEGIES[strategy_id] is not cls:
            raise ValueError(f"Strategy id already registered: {strategy_id}")
        ALL_STRATEGIES[strategy_id] = cls
        return cls
    return decorator


def get_strategy(strategy_id: str, **params) -> Strategy:
    """Get a strategy instance by id"""
    if strategy_id not in ALL_STRATEGIES:
        raise UnknownStrategyError(
            f"Unknown strategy: {strategy_id}. Available: {sorted(ALL_STRATEGIES)}"
        )
    return ALL_STRATEGIES[strategy_id](**params)
