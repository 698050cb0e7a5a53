"""
Trading Strategies - Signal Producers
=====================================
Every strategy turns a window of bars into buy / sell / hold.

Strategies register themselves by id; look them up with get_strategy().

    >>> from strategies import get_strategy
    >>> strategy = get_strategy("trend/ma-crossover", fast_period=5, slow_period=20)
"""

from .base import (
    Strategy,
    UnknownStrategyError,
    ALL_STRATEGIES,
    register_strategy,
    get_strategy,
    generate_signals,
)
from .moving_average import MovingAverageCrossover
from .rsi_strategy import RSIStrategy, calculate_rsi


def list_strategies():
    """List all available strategies"""
    print("\n" + "=" * 50)
    print("AVAILABLE STRATEGIES")
    print("=" * 50)
    for strategy_id in sorted(ALL_STRATEGIES):
        strategy = ALL_STRATEGIES[strategy_id]()
        print(f"{strategy_id}: {strategy.description}")
    print()


__all__ = [
    'Strategy',
    'UnknownStrategyError',
    'ALL_STRATEGIES',
    'register_strategy',
    'get_strategy',
    'generate_signals',
    'list_strategies',
    'MovingAverageCrossover',
    'RSIStrategy',
    'calculate_rsi',
]
