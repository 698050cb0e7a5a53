# -*- coding: utf-8 -*-
"""
Strategy Ranking
================
Order hundreds of (strategy, symbol, interval) backtests by one composite
score.

Two separate views:

- rank_results():     results that pass the quality gate, best score first
- best_of_the_rest(): everything with trades, best raw P&L first. Use it
                      when nothing passes the gate.

Score (each factor bounded so no single number dominates):

    sharpe_score    = max(sharpe, 0)                  hard gate on Sharpe
    pf_score        = min(profit_factor, 3)
    win_rate_factor = 0.5 + min(win_rate, 70) / 140   [0.5, 1.0]
    dd_penalty      = 1 / (1 + max_dd% / 10)          1 when no drawdown
    trade_factor    = sqrt(total_trades) / 5
    return_factor   = log10(1 + pnl%) if pnl% > 0 else 0

    score = sharpe_score * pf_score * win_rate_factor * dd_penalty
            * trade_factor * (1 + return_factor)
"""

import math
from typing import List, Sequence

import pandas as pd

from .metrics import PerformanceMetrics, exit_reason_breakdown
from .models import BacktestResult, ScoredResult

# Quality gate
MIN_TRADES = 5

PROFIT_FACTOR_CAP = 3.0
WIN_RATE_CAP = 70.0


def passes_quality_gate(metrics: PerformanceMetrics) -> bool:
    """Enough trades, at least one winner, and some gross profit"""
    return (
        metrics.total_trades >= MIN_TRADES
        and metrics.win_rate > 0
        and metrics.profit_factor > 0
    )


def score_metrics(metrics: PerformanceMetrics) -> float:
    """Composite score of one metrics record (see module docstring)"""
    sharpe_score = max(metrics.sharpe_ratio, 0.0)
    pf_score = min(metrics.profit_factor, PROFIT_FACTOR_CAP)
    win_rate_factor = 0.5 + min(metrics.win_rate, WIN_RATE_CAP) / 140

    if metrics.max_drawdown_percent > 0:
        dd_penalty = 1 / (1 + metrics.max_drawdown_percent / 10)
    else:
        dd_penalty = 1.0

    trade_factor = math.sqrt(metrics.total_trades) / 5

    if metrics.total_pnl_percent > 0:
        return_factor = math.log10(1 + metrics.total_pnl_percent)
    else:
        return_factor = 0.0

    return (
        sharpe_score * pf_score * win_rate_factor * dd_penalty
        * trade_factor * (1 + return_factor)
    )


def score_result(result: BacktestResult) -> ScoredResult:
    return ScoredResult(result=result, score=score_metrics(result.metrics))


def rank_results(results: Sequence[BacktestResult]) -> List[ScoredResult]:
    """
    Filter by the quality gate, score, and sort by score (highest first).

    Results that fail the gate are left out entirely, not scored as zero.
    """
    scored = [
        score_result(r) for r in results
        if r.metrics is not None and passes_quality_gate(r.metrics)
    ]
    scored.sort(key=lambda s: s.score, reverse=True)
    return scored


def best_of_the_rest(results: Sequence[BacktestResult], top: int = 10) -> List[BacktestResult]:
    """
    Fallback view: any result with at least one trade, sorted by net P&L %.

    No quality criteria, so treat these with suspicion.
    """
    traded = [r for r in results if r.metrics is not None and r.metrics.total_trades > 0]
    traded.sort(key=lambda r: r.metrics.total_pnl_percent, reverse=True)
    return traded[:top]


def results_to_frame(ranked: Sequence[ScoredResult]) -> pd.DataFrame:
    """
    Comparison table of ranked results.

    Returns:
        DataFrame with one row per result, in ranking order
    """
    columns = ['Rank', 'Strategy', 'Symbol', 'Interval', 'Trades', 'Win %',
               'PnL %', 'PF', 'Sharpe', 'Max DD %', 'Avg Win', 'Avg Loss', 'Score']
    rows = []
    for i, s in enumerate(ranked, start=1):
        m = s.metrics
        rows.append({
            'Rank': i,
            'Strategy': s.strategy_id,
            'Symbol': s.symbol,
            'Interval': s.interval,
            'Trades': m.total_trades,
            'Win %': m.win_rate,
            'PnL %': m.total_pnl_percent,
            'PF': m.profit_factor,
            'Sharpe': m.sharpe_ratio,
            'Max DD %': m.max_drawdown_percent,
            'Avg Win': m.avg_win,
            'Avg Loss': m.avg_loss,
            'Score': s.score,
        })
    return pd.DataFrame(rows, columns=columns)


def print_results(results: Sequence[BacktestResult], top: int = 20):
    """Print the top of the ranking, or the fallback view if it is empty"""
    print("\n" + "=" * 120)
    print("TOP PERFORMING STRATEGIES")
    print("=" * 120)

    ranked = rank_results(results)[:top]

    if not ranked:
        print(f"\nNo strategies met the criteria "
              f"({MIN_TRADES}+ trades, >0% win rate, >0 profit factor)")
        rest = best_of_the_rest(results)
        if rest:
            print("\nShowing top 10 by PnL (may not meet quality criteria):")
            for i, r in enumerate(rest, start=1):
                print(f"{i}. {r.strategy_id} - {r.symbol} @ {r.interval}m: "
                      f"{r.metrics.total_trades} trades, {r.metrics.win_rate:.1f}% win, "
                      f"{r.metrics.total_pnl_percent:.2f}% PnL")
        return

    print(results_to_frame(ranked).to_string(index=False, float_format=lambda x: f"{x:.2f}"))
    print("\n" + "=" * 120)

    top_result = ranked[0]
    print(f"\nTop Strategy Exit Breakdown ({top_result.strategy_id}):")
    for reason, stats in exit_reason_breakdown(top_result.trades).items():
        print(f"  {reason}: {stats['count']} ({stats['percent']:.1f}%)")
