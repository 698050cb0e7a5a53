# -*- coding: utf-8 -*-
"""
Backtesting Engine - Time Machine for Trading!
==============================================
Walk a bar series once, open and close ONE position at a time, and hand
back the trade ledger.

The engine never generates signals. It receives one pre-computed signal
per bar (buy / sell / hold) and only manages the position lifecycle:

    for each bar (from the second one):
        1. Position open?  -> check exits (TP, SL, trailing, reversal)
        2. Flat?           -> open a new position on BUY / SELL
    last bar still open    -> close with reason "end_of_data"

A reversal exit may be followed by an entry on the same bar (flip in one
bar). Threshold exits (TP / SL / trailing) are not.

Usage:
    >>> bt = Backtester(BacktestConfig())
    >>> result = bt.run(bars, signals, strategy_id="ema-cross", symbol="BTC-USD", interval=15)
    >>> result.metrics.win_rate
"""

import logging
from typing import List, Optional, Sequence, Union

from utils.logger import log_trade

from .config import BacktestConfig
from .metrics import calculate_metrics
from .models import Bar, BacktestResult, ExitReason, SignalType, Trade
from .position import Position, close_position, evaluate_exit, open_position

logger = logging.getLogger(__name__)


class InputContractError(ValueError):
    """
    Raised when the caller hands the engine malformed input.

    This is a programming error (e.g. signals not aligned with bars), not
    a market condition, so it fails fast instead of returning an empty
    ledger that would look like an idle strategy.
    """
    pass


def _coerce_signal(value: Union[SignalType, str], index: int) -> SignalType:
    if isinstance(value, SignalType):
        return value
    try:
        return SignalType(str(value).lower())
    except ValueError:
        raise InputContractError(
            f"Invalid signal at index {index}: {value!r}. "
            f"Expected one of {[s.value for s in SignalType]}"
        ) from None


def simulate(
    bars: Sequence[Bar],
    signals: Sequence[Union[SignalType, str]],
    config: Optional[BacktestConfig] = None,
    min_bars: int = 0
) -> List[Trade]:
    """
    Run one single-position simulation.

    Pure function: same inputs, same ledger. Nothing outside is touched.

    Args:
        bars: Bars in timestamp order
        signals: One signal per bar, aligned by index
        config: Capital, fees and exit thresholds (defaults if None)
        min_bars: Minimum series length the caller considers valid

    Returns:
        Chronological list of closed trades (possibly empty)

    Raises:
        InputContractError: len(bars) != len(signals), fewer than
            min_bars bars, or an unknown signal value
    """
    if len(bars) != len(signals):
        raise InputContractError(
            f"Bars and signals must be aligned: got {len(bars)} bars "
            f"and {len(signals)} signals"
        )
    if len(bars) < min_bars:
        raise InputContractError(
            f"Need at least {min_bars} bars, got {len(bars)}"
        )

    config = config or BacktestConfig()
    feed = [_coerce_signal(s, i) for i, s in enumerate(signals)]
    position_value = config.position_value

    trades: List[Trade] = []
    position: Optional[Position] = None

    # First bar has no prior context, never trade on it
    for i in range(1, len(bars)):
        bar = bars[i]
        signal = feed[i]

        if position is not None:
            hit = evaluate_exit(position, bar, signal, config.exits)
            if hit is None:
                position.advance(bar)
            else:
                exit_price, reason = hit
                trades.append(close_position(
                    position, exit_price, bar.timestamp, reason,
                    position_value, config.fees
                ))
                position = None
                if reason is not ExitReason.SIGNAL:
                    continue

        if position is None:
            position = open_position(signal, bar, config.fees)
            if position is not None:
                logger.debug(
                    f"Opened {position.side.value} @ {position.entry_price:.6g} "
                    f"(bar {i}, t={bar.timestamp})"
                )

    if position is not None:
        last = bars[-1]
        trades.append(close_position(
            position, last.close, last.timestamp, ExitReason.END_OF_DATA,
            position_value, config.fees
        ))

    return trades


class Backtester:
    """
    Runs simulations with one fixed config and packages the results.

    Example:
        >>> bt = Backtester(BacktestConfig(initial_capital=10000))
        >>> result = bt.run(bars, signals, "rsi-reversal", "ETH-USD", 60)
        >>> print(result.metrics.sharpe_ratio)
    """

    def __init__(
        self,
        config: Optional[BacktestConfig] = None,
        min_bars: int = 0,
        log_trades: bool = False
    ):
        self.config = config or BacktestConfig()
        self.min_bars = min_bars
        self.log_trades = log_trades

    def run(
        self,
        bars: Sequence[Bar],
        signals: Sequence[Union[SignalType, str]],
        strategy_id: str = "",
        symbol: str = "",
        interval: int = 0,
        strategy_name: str = ""
    ) -> BacktestResult:
        """
        Simulate and compute metrics.

        Returns:
            BacktestResult with ledger and PerformanceMetrics
        """
        trades = simulate(bars, signals, self.config, self.min_bars)
        if self.log_trades:
            for trade in trades:
                log_trade(trade, symbol)

        metrics = calculate_metrics(trades, self.config.initial_capital)

        logger.debug(
            f"{strategy_id or '?'} {symbol} @ {interval}m: "
            f"{metrics.total_trades} trades, {metrics.total_pnl_percent:+.2f}%"
        )

        return BacktestResult(
            strategy_id=strategy_id,
            symbol=symbol,
            interval=interval,
            trades=trades,
            metrics=metrics,
            strategy_name=strategy_name or strategy_id,
        )
