# -*- coding: utf-8 -*-
"""
Backtest Metrics - The Report Card!
===================================
Turns a trade ledger into the numbers used to compare strategies.

Everything is recomputed from scratch on each call. Degenerate inputs
(no trades, no variance, no losses) give documented defaults instead of
errors or NaN:

- No trades           -> every field 0
- No losing trades    -> profit_factor = inf (0 if no profit either)
- < 2 trades or flat  -> sharpe_ratio = 0
- No negative returns -> sortino_ratio = 0

NOTE on Sharpe/Sortino: each TRADE counts as one return observation and
the result is scaled by sqrt(252). Trades are not evenly spaced in time,
so this is a ranking proxy, not a true annualized ratio.
"""

import math
from collections import Counter
from dataclasses import dataclass, asdict
from typing import Any, Dict, Sequence

import numpy as np

from .models import Trade

ANNUALIZATION_FACTOR = math.sqrt(252)
MS_PER_MINUTE = 60_000

# Below this a standard deviation is treated as zero
_ZERO_STD = 1e-12


@dataclass(frozen=True)
class PerformanceMetrics:
    """All the performance numbers"""

    # Win/Loss
    total_trades: int = 0
    winning_trades: int = 0
    losing_trades: int = 0
    win_rate: float = 0.0

    # Returns (net of fees)
    total_pnl: float = 0.0
    total_pnl_percent: float = 0.0
    avg_win: float = 0.0
    avg_loss: float = 0.0
    profit_factor: float = 0.0

    # Risk
    max_drawdown: float = 0.0
    max_drawdown_percent: float = 0.0

    # Risk-Adjusted
    sharpe_ratio: float = 0.0
    sortino_ratio: float = 0.0

    # Timing & streaks
    avg_holding_period: float = 0.0  # minutes
    consecutive_wins: int = 0
    consecutive_losses: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _max_drawdown(trades: Sequence[Trade], initial_capital: float):
    """
    Replay capital trade by trade (pnl - fees) and find the deepest fall
    from a running peak.

    Returns:
        (max drawdown in currency, same drawdown as % of the peak it fell from)
    """
    peak = initial_capital
    running = initial_capital
    max_dd = 0.0
    peak_at_max = initial_capital

    for trade in trades:
        running += trade.pnl - trade.fees
        if running > peak:
            peak = running
        drawdown = peak - running
        if drawdown > max_dd:
            max_dd = drawdown
            peak_at_max = peak

    max_dd_pct = max_dd / peak_at_max * 100 if peak_at_max > 0 else 0.0
    return max_dd, max_dd_pct


def _streaks(trades: Sequence[Trade]):
    """Longest run of winners (pnl > 0) and of losers (pnl <= 0)"""
    best_wins = best_losses = 0
    wins = losses = 0

    for trade in trades:
        if trade.pnl > 0:
            wins += 1
            losses = 0
            best_wins = max(best_wins, wins)
        else:
            losses += 1
            wins = 0
            best_losses = max(best_losses, losses)

    return best_wins, best_losses


def _sharpe(returns: np.ndarray) -> float:
    if len(returns) < 2:
        return 0.0
    std = float(np.std(returns))  # population
    if std < _ZERO_STD:
        return 0.0
    return float(np.mean(returns)) / std * ANNUALIZATION_FACTOR


def _sortino(returns: np.ndarray) -> float:
    downside = returns[returns < 0]
    if len(downside) == 0:
        return 0.0
    # Downside deviation: root mean square of the losing returns
    downside_dev = float(np.sqrt(np.mean(downside ** 2)))
    return float(np.mean(returns)) / downside_dev * ANNUALIZATION_FACTOR


def calculate_metrics(trades: Sequence[Trade], initial_capital: float) -> PerformanceMetrics:
    """
    Calculate performance metrics from a trade ledger.

    Args:
        trades: Closed trades in chronological order
        initial_capital: Starting capital of the simulation

    Returns:
        PerformanceMetrics object
    """
    if not trades:
        return PerformanceMetrics()

    total = len(trades)
    winners = [t for t in trades if t.pnl > 0]
    losers = [t for t in trades if t.pnl <= 0]

    gross_profit = sum(t.pnl for t in winners)
    gross_loss = abs(sum(t.pnl for t in losers))

    if gross_loss > 0:
        profit_factor = gross_profit / gross_loss
    elif gross_profit > 0:
        profit_factor = math.inf
    else:
        profit_factor = 0.0

    net_pnl = sum(t.pnl for t in trades) - sum(t.fees for t in trades)
    max_dd, max_dd_pct = _max_drawdown(trades, initial_capital)

    returns = np.array([t.pnl_percent for t in trades], dtype=float)
    best_wins, best_losses = _streaks(trades)

    holding_ms = sum(t.exit_time - t.entry_time for t in trades)

    return PerformanceMetrics(
        total_trades=total,
        winning_trades=len(winners),
        losing_trades=len(losers),
        win_rate=len(winners) / total * 100,
        total_pnl=net_pnl,
        total_pnl_percent=net_pnl / initial_capital * 100 if initial_capital else 0.0,
        avg_win=gross_profit / len(winners) if winners else 0.0,
        avg_loss=sum(t.pnl for t in losers) / len(losers) if losers else 0.0,
        profit_factor=profit_factor,
        max_drawdown=max_dd,
        max_drawdown_percent=max_dd_pct,
        sharpe_ratio=_sharpe(returns),
        sortino_ratio=_sortino(returns),
        avg_holding_period=holding_ms / total / MS_PER_MINUTE,
        consecutive_wins=best_wins,
        consecutive_losses=best_losses,
    )


def exit_reason_breakdown(trades: Sequence[Trade]) -> Dict[str, Dict[str, float]]:
    """
    How often each exit rule closed a trade.

    Returns:
        {reason: {'count': n, 'percent': share of all trades}}
    """
    if not trades:
        return {}
    counts = Counter(t.exit_reason.value for t in trades)
    return {
        reason: {'count': count, 'percent': count / len(trades) * 100}
        for reason, count in counts.most_common()
    }


def print_report(metrics: PerformanceMetrics):
    """Print a performance report"""

    print("\n" + "=" * 60)
    print("PERFORMANCE REPORT")
    print("=" * 60)

    print(f"\n{'--- RETURNS ---':^60}")
    print(f"Total P&L:         ${metrics.total_pnl:>12,.2f} ({metrics.total_pnl_percent:+.2f}%)")
    print(f"Profit Factor:     {metrics.profit_factor:>12.2f}")

    print(f"\n{'--- RISK ---':^60}")
    print(f"Max Drawdown:      ${metrics.max_drawdown:>12,.2f} ({metrics.max_drawdown_percent:.1f}%)")

    print(f"\n{'--- RISK-ADJUSTED RETURNS ---':^60}")
    print(f"Sharpe Ratio:      {metrics.sharpe_ratio:>12.2f}")
    print(f"Sortino Ratio:     {metrics.sortino_ratio:>12.2f}")

    print(f"\n{'--- TRADE ANALYSIS ---':^60}")
    print(f"Total Trades:      {metrics.total_trades:>12}")
    print(f"Win Rate:          {metrics.win_rate:>12.1f}%")
    print(f"Avg Win:           ${metrics.avg_win:>12,.2f}")
    print(f"Avg Loss:          ${metrics.avg_loss:>12,.2f}")
    print(f"Avg Holding:       {metrics.avg_holding_period:>12.1f} min")

    print(f"\n{'--- STREAKS ---':^60}")
    print(f"Max Win Streak:    {metrics.consecutive_wins:>12}")
    print(f"Max Loss Streak:   {metrics.consecutive_losses:>12}")

    print("\n" + "=" * 60)
