import json
import math

from backtest.models import ScoredResult
from backtest.sink import InMemoryResultSink, JsonResultSink, result_to_dict
from tests.helpers import good_metrics, result, trade


def test_json_sink_sorted_by_pnl(tmp_path):
    path = tmp_path / "nested" / "backtest.json"
    sink = JsonResultSink(path)
    sink.add([
        result("small", total_pnl_percent=1.0),
        result("big", total_pnl_percent=9.0),
        result("loss", total_pnl_percent=-4.0),
    ])
    assert len(sink) == 3
    written = sink.flush()

    assert written == path
    data = json.loads(path.read_text(encoding="utf-8"))
    assert [d["strategy_id"] for d in data] == ["big", "small", "loss"]


def test_infinite_profit_factor_written_as_null(tmp_path):
    sink = JsonResultSink(tmp_path / "out.json")
    sink.add([result("perfect", total_trades=5, profit_factor=math.inf)])
    sink.flush()

    data = json.loads((tmp_path / "out.json").read_text(encoding="utf-8"))
    assert data[0]["metrics"]["profit_factor"] is None
    assert data[0]["metrics"]["total_trades"] == 5


def test_scored_results_carry_score_and_trades():
    r = result("ranked", trades=[trade(10.0)], **good_metrics())
    data = result_to_dict(ScoredResult(result=r, score=2.5))

    assert data["score"] == 2.5
    assert data["trades"][0]["exit_reason"] == "signal"
    assert data["symbol"] == "BTC-USD"

    assert "score" not in result_to_dict(r)


def test_in_memory_sink_keeps_results():
    sink = InMemoryResultSink()
    sink.add([result("a"), result("b")])
    assert sink.flush() is None
    assert [r.strategy_id for r in sink.results] == ["a", "b"]
