# -*- coding: utf-8 -*-
"""
Backtesting Module
==================
Simulate strategies on historical bars and rank them.

Pipeline:
    signals -> simulate() -> trade ledger -> calculate_metrics()
            -> rank_results() -> ResultSink

Usage:
    >>> from backtest import Backtester, BacktestConfig, rank_results
    >>>
    >>> bt = Backtester(BacktestConfig(initial_capital=10000, position_size=0.5))
    >>> result = bt.run(bars, signals, strategy_id="ema-cross", symbol="BTC-USD", interval=15)
    >>> ranked = rank_results([result, ...])

The core (simulate, calculate_metrics, rank_results) is pure and
single-threaded. run_backtest_suite fans the combinations out over a
process pool.
"""

from .models import (
    Bar,
    SignalType,
    Side,
    ExitReason,
    Trade,
    BacktestResult,
    ScoredResult,
    bars_from_dataframe,
    bars_to_dataframe,
)
from .config import BacktestConfig, FeeConfig, ExitConfig, ExitFill
from .position import Position, open_position, evaluate_exit, close_position
from .engine import Backtester, InputContractError, simulate
from .metrics import (
    PerformanceMetrics,
    calculate_metrics,
    exit_reason_breakdown,
    print_report,
)
from .ranking import (
    passes_quality_gate,
    score_metrics,
    score_result,
    rank_results,
    best_of_the_rest,
    results_to_frame,
    print_results,
)
from .sink import ResultSink, JsonResultSink, InMemoryResultSink, result_to_dict
from .suite import (
    SuiteConfig, backtest_strategy, iter_backtest_suite, run_backtest_suite, run_from_settings
)

__all__ = [
    # Data model
    'Bar',
    'SignalType',
    'Side',
    'ExitReason',
    'Trade',
    'BacktestResult',
    'ScoredResult',
    'bars_from_dataframe',
    'bars_to_dataframe',
    # Config
    'BacktestConfig',
    'FeeConfig',
    'ExitConfig',
    'ExitFill',
    # Position lifecycle
    'Position',
    'open_position',
    'evaluate_exit',
    'close_position',
    # Engine
    'Backtester',
    'InputContractError',
    'simulate',
    # Metrics
    'PerformanceMetrics',
    'calculate_metrics',
    'exit_reason_breakdown',
    'print_report',
    # Ranking
    'passes_quality_gate',
    'score_metrics',
    'score_result',
    'rank_results',
    'best_of_the_rest',
    'results_to_frame',
    'print_results',
    # Sinks
    'ResultSink',
    'JsonResultSink',
    'InMemoryResultSink',
    'result_to_dict',
    # Suite
    'SuiteConfig',
    'backtest_strategy',
    'iter_backtest_suite',
    'run_backtest_suite',
    'run_from_settings',
]
