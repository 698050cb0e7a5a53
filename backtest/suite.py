# -*- coding: utf-8 -*-
"""
Backtest Suite - Every Strategy x Symbol x Interval
===================================================
The driving loop of strategy research.

For each (symbol, interval):
    1. Fetch bars through the caller's data provider (sequential - this is
       the rate-limited network part)
    2. Skip series that are too short
    3. Backtest every strategy on the series, in parallel

Each combination is independent, so the strategies run in a process pool
sized to the CPU count. Results come back in a fixed order
(symbol, interval, strategy) no matter which worker finishes first.

To stop a long run early, iterate iter_backtest_suite() and break; no
further series are fetched or submitted.

Example:
    >>> results = run_backtest_suite(
    ...     strategy_ids=["trend/ma-crossover", "mean_reversion/rsi-reversal"],
    ...     symbols=["BTC-USD", "ETH-USD"],
    ...     intervals=[15, 60, 240],
    ...     data_provider=my_fetch,
    ... )
    >>> ranked = rank_results(results)

NOTE: workers look strategies up by id. With the "spawn" start method a
strategy registered outside the strategies package must live in a module
the worker imports too.
"""

import logging
import os
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass
from typing import (
    Any, Callable, Dict, Iterator, List, Optional, Sequence, Tuple, Union, TYPE_CHECKING
)

import pandas as pd

from .config import BacktestConfig
from .engine import Backtester
from .models import Bar, BacktestResult, ScoredResult, bars_from_dataframe
from .ranking import print_results, rank_results
from .sink import ResultSink

if TYPE_CHECKING:
    from config.loader import Settings
    from strategies.base import Strategy

logger = logging.getLogger(__name__)

# (symbol, interval_minutes, limit) -> bars
DataProvider = Callable[[str, int, int], Union[Sequence[Bar], pd.DataFrame]]
StrategySpec = Union[str, Tuple[str, Dict[str, Any]]]


@dataclass
class SuiteConfig:
    """How the suite runs"""
    limit: int = 500                    # Bars requested per series
    min_candles: int = 100              # Shorter series are skipped
    parallel: bool = True               # Use a process pool
    max_workers: Optional[int] = None   # None = os.cpu_count()
    verbose: bool = True                # Log progress per series

    @property
    def workers(self) -> int:
        return self.max_workers or os.cpu_count() or 1


def backtest_strategy(
    strategy: 'Strategy',
    bars: Sequence[Bar],
    symbol: str,
    interval: int,
    config: Optional[BacktestConfig] = None
) -> BacktestResult:
    """
    Signals -> ledger -> metrics for one strategy on one series.

    Returns:
        BacktestResult
    """
    from strategies.base import generate_signals

    signals = generate_signals(strategy, bars)
    return Backtester(config).run(
        bars,
        signals,
        strategy_id=strategy.id,
        symbol=symbol,
        interval=interval,
        strategy_name=strategy.name,
    )


def _normalize_spec(spec: StrategySpec) -> Tuple[str, Dict[str, Any]]:
    if isinstance(spec, str):
        return spec, {}
    strategy_id, params = spec
    return strategy_id, dict(params or {})


def _run_strategy_task(
    strategy_id: str,
    params: Dict[str, Any],
    bars: List[Bar],
    symbol: str,
    interval: int,
    config: BacktestConfig
) -> BacktestResult:
    """Top-level so it can be pickled into a worker process."""
    from strategies.base import get_strategy

    strategy = get_strategy(strategy_id, **params)
    return backtest_strategy(strategy, bars, symbol, interval, config)


def _fetch(
    data_provider: DataProvider,
    symbol: str,
    interval: int,
    limit: int
) -> Optional[List[Bar]]:
    try:
        data = data_provider(symbol, interval, limit)
    except Exception as e:
        logger.warning(f"Error fetching {symbol} @ {interval}m: {e}")
        return None

    if isinstance(data, pd.DataFrame):
        return bars_from_dataframe(data)
    return list(data)


def _run_series(
    specs: List[Tuple[str, Dict[str, Any]]],
    bars: List[Bar],
    symbol: str,
    interval: int,
    config: BacktestConfig,
    executor: Optional[ProcessPoolExecutor]
) -> List[BacktestResult]:
    results: List[BacktestResult] = []

    if executor is None:
        for strategy_id, params in specs:
            try:
                results.append(
                    _run_strategy_task(strategy_id, params, bars, symbol, interval, config)
                )
            except Exception as e:
                logger.error(f"{strategy_id} failed on {symbol} @ {interval}m: {e}")
        return results

    futures = [
        (strategy_id, executor.submit(
            _run_strategy_task, strategy_id, params, bars, symbol, interval, config
        ))
        for strategy_id, params in specs
    ]
    # Collect in submission order to keep the output deterministic
    for strategy_id, future in futures:
        try:
            results.append(future.result())
        except Exception as e:
            logger.error(f"{strategy_id} failed on {symbol} @ {interval}m: {e}")
    return results


def iter_backtest_suite(
    strategy_ids: Optional[Sequence[StrategySpec]],
    symbols: Sequence[str],
    intervals: Sequence[int],
    data_provider: DataProvider,
    config: Optional[BacktestConfig] = None,
    suite_config: Optional[SuiteConfig] = None
) -> Iterator[List[BacktestResult]]:
    """
    Yield the results of one (symbol, interval) series at a time.

    Args:
        strategy_ids: Registry ids, or (id, params) pairs. None = all registered
        symbols: Symbols to test
        intervals: Bar intervals in minutes
        data_provider: fn(symbol, interval, limit) -> bars or OHLCV DataFrame
        config: Backtest config shared by every run
        suite_config: Pool size, series length limits

    Yields:
        List of BacktestResult for one series, in strategy order
    """
    from strategies.base import ALL_STRATEGIES

    config = config or BacktestConfig()
    suite_config = suite_config or SuiteConfig()

    if strategy_ids is None:
        strategy_ids = sorted(ALL_STRATEGIES)
    specs = [_normalize_spec(s) for s in strategy_ids]

    logger.info(
        f"Running backtest suite: {len(specs)} strategies x {len(symbols)} symbols "
        f"x {len(intervals)} intervals = {len(specs) * len(symbols) * len(intervals)} combinations"
    )

    executor = None
    if suite_config.parallel and len(specs) > 1:
        executor = ProcessPoolExecutor(max_workers=suite_config.workers)

    try:
        for symbol in symbols:
            for interval in intervals:
                bars = _fetch(data_provider, symbol, interval, suite_config.limit)
                if bars is None:
                    continue

                if len(bars) < suite_config.min_candles:
                    logger.warning(
                        f"Skipping {symbol} @ {interval}m: insufficient data "
                        f"({len(bars)} candles, need {suite_config.min_candles}+)"
                    )
                    continue

                results = _run_series(specs, bars, symbol, interval, config, executor)

                if suite_config.verbose:
                    logger.info(
                        f"{symbol} @ {interval}m: tested {len(results)}/{len(specs)} "
                        f"strategies on {len(bars)} candles"
                    )
                yield results
    finally:
        if executor is not None:
            executor.shutdown(wait=True, cancel_futures=True)


def run_backtest_suite(
    strategy_ids: Optional[Sequence[StrategySpec]],
    symbols: Sequence[str],
    intervals: Sequence[int],
    data_provider: DataProvider,
    config: Optional[BacktestConfig] = None,
    suite_config: Optional[SuiteConfig] = None
) -> List[BacktestResult]:
    """
    Run the whole suite and return every result.

    See iter_backtest_suite for arguments.
    """
    results: List[BacktestResult] = []
    for batch in iter_backtest_suite(
        strategy_ids, symbols, intervals, data_provider, config, suite_config
    ):
        results.extend(batch)

    logger.info(f"Backtest suite complete: {len(results)} results")
    return results


def run_from_settings(
    settings: 'Settings',
    data_provider: DataProvider,
    sink: Optional[ResultSink] = None
) -> List[ScoredResult]:
    """
    Run the suite described by settings.yaml.

    The suite section picks the symbols, intervals and strategies
    (None = every registered one); the backtest section the simulation
    config. Results go to the sink, and the top of the ranking is printed.

    Example:
        >>> settings = load_settings()
        >>> sink = JsonResultSink(get_results_path())
        >>> ranked = run_from_settings(settings, my_fetch, sink)

    Returns:
        Ranked results, best first
    """
    suite = settings.suite
    results = run_backtest_suite(
        suite.strategies,
        suite.symbols,
        suite.intervals,
        data_provider,
        config=settings.backtest.to_config(),
        suite_config=suite.to_config(),
    )

    if sink is not None:
        sink.add(results)
        sink.flush()

    print_results(results, top=suite.top)
    return rank_results(results)
