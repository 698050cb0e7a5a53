# -*- coding: utf-8 -*-
"""
Result Sinks
============
Where finished backtest results go. The suite never writes files itself;
it hands results to a sink, which is the only serialization point of a
run.

- JsonResultSink:     one JSON array on disk, best P&L first
- InMemoryResultSink: keeps results in a list (tests, notebooks)
"""

import json
import logging
import math
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from .models import BacktestResult, ScoredResult

logger = logging.getLogger(__name__)

Result = Union[BacktestResult, ScoredResult]


def _finite(value: Any) -> Any:
    """JSON has no Infinity/NaN; write them as null."""
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value


def result_to_dict(item: Result) -> Dict[str, Any]:
    """Plain dict for one result, with its score when it has been ranked"""
    result = item.result if isinstance(item, ScoredResult) else item
    data: Dict[str, Any] = {
        'strategy_id': result.strategy_id,
        'strategy_name': result.strategy_name,
        'symbol': result.symbol,
        'interval': result.interval,
        'metrics': (
            {k: _finite(v) for k, v in result.metrics.to_dict().items()}
            if result.metrics is not None else None
        ),
        'trades': [t.to_dict() for t in result.trades],
    }
    if isinstance(item, ScoredResult):
        data['score'] = _finite(item.score)
    return data


def _pnl_key(item: Result) -> float:
    metrics = item.metrics
    return metrics.total_pnl_percent if metrics is not None else -math.inf


class ResultSink(ABC):
    """Abstract destination for backtest results"""

    @abstractmethod
    def add(self, results: Iterable[Result]) -> None:
        """Queue results for the next flush"""
        pass

    @abstractmethod
    def flush(self) -> Optional[Path]:
        """Persist everything queued so far"""
        pass


class InMemoryResultSink(ResultSink):
    """Keeps results in memory"""

    def __init__(self):
        self.results: List[Result] = []

    def add(self, results: Iterable[Result]) -> None:
        self.results.extend(results)

    def flush(self) -> Optional[Path]:
        return None


class JsonResultSink(ResultSink):
    """
    Writes all results as one JSON array, sorted by net P&L % (highest
    first). Each flush rewrites the whole file.

    Example:
        >>> sink = JsonResultSink(get_results_path())
        >>> sink.add(results)
        >>> sink.flush()
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._results: List[Result] = []

    def __len__(self) -> int:
        return len(self._results)

    def add(self, results: Iterable[Result]) -> None:
        self._results.extend(results)

    def flush(self) -> Path:
        ordered = sorted(self._results, key=_pnl_key, reverse=True)
        self.path.parent.mkdir(parents=True, exist_ok=True)

        with open(self.path, 'w', encoding='utf-8') as f:
            json.dump([result_to_dict(r) for r in ordered], f, allow_nan=False)

        logger.info(f"Saved {len(ordered)} results (sorted by PnL) to {self.path}")
        return self.path
