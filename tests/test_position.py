import pytest

from backtest.config import ExitConfig, ExitFill, FeeConfig
from backtest.models import ExitReason, Side, SignalType
from backtest.position import (
    Position, close_position, evaluate_exit, open_position,
    stop_loss_price, take_profit_price, trailing_stop_price
)
from tests.helpers import bar

EXITS = ExitConfig(take_profit_pct=10.0, stop_loss_pct=3.0, trailing_stop_pct=2.0)
NO_FEES = FeeConfig(maker_fee=0.0, taker_fee=0.0, slippage=0.0)


def long_at(price=100.0, hwm=None):
    return Position(Side.LONG, price, 0, price if hwm is None else hwm)


def short_at(price=100.0, hwm=None):
    return Position(Side.SHORT, price, 0, price if hwm is None else hwm)


# ============== OPEN ==============

def test_open_long_pays_slippage():
    fees = FeeConfig(slippage=0.001)
    pos = open_position(SignalType.BUY, bar(1, 100.0, high=101.0, low=99.0), fees)
    assert pos.side is Side.LONG
    assert pos.entry_price == pytest.approx(100.1)
    assert pos.high_water_mark == 101.0
    assert pos.entry_time == bar(1, 100.0).timestamp
    assert pos.bars_held == 0


def test_open_short_receives_less():
    fees = FeeConfig(slippage=0.001)
    pos = open_position(SignalType.SELL, bar(1, 100.0, high=101.0, low=99.0), fees)
    assert pos.side is Side.SHORT
    assert pos.entry_price == pytest.approx(99.9)
    assert pos.high_water_mark == 99.0


def test_hold_opens_nothing():
    assert open_position(SignalType.HOLD, bar(1, 100.0), NO_FEES) is None


def test_advance_tracks_best_price():
    pos = long_at()
    pos.advance(bar(2, 104.0, high=105.0, low=103.0))
    pos.advance(bar(3, 102.0, high=103.0, low=101.0))
    assert pos.high_water_mark == 105.0
    assert pos.bars_held == 2

    short = short_at()
    short.advance(bar(2, 96.0, high=97.0, low=95.0))
    short.advance(bar(3, 98.0, high=99.0, low=97.0))
    assert short.high_water_mark == 95.0
    assert short.bars_held == 2


def test_threshold_prices():
    assert take_profit_price(long_at(), EXITS) == pytest.approx(110.0)
    assert stop_loss_price(long_at(), EXITS) == pytest.approx(97.0)
    assert take_profit_price(short_at(), EXITS) == pytest.approx(90.0)
    assert stop_loss_price(short_at(), EXITS) == pytest.approx(103.0)
    assert trailing_stop_price(long_at(hwm=110.0), EXITS) == pytest.approx(107.8)
    assert trailing_stop_price(short_at(hwm=90.0), EXITS) == pytest.approx(91.8)


# ============== EXIT PRIORITY ==============

def test_take_profit_on_intrabar_high():
    """The close does not need to reach the target"""
    hit = evaluate_exit(long_at(), bar(2, 104.0, high=111.0, low=103.0), SignalType.HOLD, EXITS)
    price, reason = hit
    assert reason is ExitReason.TAKE_PROFIT
    assert price == pytest.approx(110.0)


def test_take_profit_wins_when_both_levels_touched():
    """Optimistic fill: a bar spanning TP and SL resolves as take-profit"""
    wide = bar(2, 100.0, high=115.0, low=85.0)
    assert evaluate_exit(long_at(), wide, SignalType.SELL, EXITS)[1] is ExitReason.TAKE_PROFIT
    assert evaluate_exit(short_at(), wide, SignalType.BUY, EXITS)[1] is ExitReason.TAKE_PROFIT


def test_stop_loss_long_and_short():
    price, reason = evaluate_exit(long_at(), bar(2, 98.0, high=99.0, low=96.5), SignalType.HOLD, EXITS)
    assert reason is ExitReason.STOP_LOSS
    assert price == pytest.approx(97.0)

    price, reason = evaluate_exit(short_at(), bar(2, 102.0, high=104.0, low=101.0), SignalType.HOLD, EXITS)
    assert reason is ExitReason.STOP_LOSS
    assert price == pytest.approx(103.0)


def test_short_take_profit_on_intrabar_low():
    price, reason = evaluate_exit(short_at(), bar(2, 95.0, high=96.0, low=89.0), SignalType.HOLD, EXITS)
    assert reason is ExitReason.TAKE_PROFIT
    assert price == pytest.approx(90.0)


def test_trailing_stop_when_close_in_profit():
    pos = long_at(hwm=108.0)
    price, reason = evaluate_exit(pos, bar(3, 106.0, high=107.0, low=105.5), SignalType.HOLD, EXITS)
    assert reason is ExitReason.TRAILING_STOP
    assert price == pytest.approx(105.84)


def test_trailing_stop_skipped_when_close_not_in_profit():
    """Low is below the trailing level but the close is under entry"""
    pos = long_at(hwm=108.0)
    assert evaluate_exit(pos, bar(3, 99.5, high=100.0, low=99.0), SignalType.HOLD, EXITS) is None


def test_trailing_stop_short():
    pos = short_at(hwm=92.0)
    # trailing level 93.84, close 94 is still below entry
    price, reason = evaluate_exit(pos, bar(3, 94.0, high=94.5, low=93.5), SignalType.HOLD, EXITS)
    assert reason is ExitReason.TRAILING_STOP
    assert price == pytest.approx(93.84)


def test_signal_reversal_exits_at_close():
    price, reason = evaluate_exit(long_at(), bar(2, 101.0, high=102.0, low=100.5), SignalType.SELL, EXITS)
    assert reason is ExitReason.SIGNAL
    assert price == 101.0

    price, reason = evaluate_exit(short_at(), bar(2, 101.0, high=102.0, low=100.5), SignalType.BUY, EXITS)
    assert reason is ExitReason.SIGNAL
    assert price == 101.0


def test_same_side_signal_keeps_position():
    quiet = bar(2, 100.5, high=101.0, low=100.0)
    assert evaluate_exit(long_at(), quiet, SignalType.BUY, EXITS) is None
    assert evaluate_exit(short_at(), quiet, SignalType.SELL, EXITS) is None
    assert evaluate_exit(long_at(), quiet, SignalType.HOLD, EXITS) is None


def test_close_fill_uses_bar_close():
    exits = ExitConfig(take_profit_pct=10.0, stop_loss_pct=3.0, trailing_stop_pct=2.0,
                       fill=ExitFill.CLOSE)
    price, reason = evaluate_exit(long_at(), bar(2, 95.0, high=99.0, low=94.0), SignalType.HOLD, exits)
    assert reason is ExitReason.STOP_LOSS
    assert price == 95.0


# ============== CLOSE ==============

def test_close_long_applies_slippage_and_fees():
    fees = FeeConfig(maker_fee=0.001, taker_fee=0.002, slippage=0.001)
    t = close_position(long_at(100.0), 110.0, 5, ExitReason.TAKE_PROFIT, 5000.0, fees)

    assert t.exit_price == pytest.approx(109.89)
    assert t.pnl_percent == pytest.approx(9.89)
    assert t.pnl == pytest.approx(494.5)
    assert t.fees == pytest.approx(15.0)
    assert t.side is Side.LONG
    assert t.exit_time == 5
    assert t.exit_reason is ExitReason.TAKE_PROFIT


def test_close_short_profit_is_positive():
    fees = FeeConfig(maker_fee=0.0, taker_fee=0.0, slippage=0.001)
    t = close_position(short_at(100.0), 90.0, 5, ExitReason.TAKE_PROFIT, 5000.0, fees)

    assert t.exit_price == pytest.approx(90.09)
    assert t.pnl_percent == pytest.approx(9.91)
    assert t.pnl == pytest.approx(495.5)
    assert t.fees == 0.0


def test_fees_charged_even_on_losers():
    fees = FeeConfig(maker_fee=0.001, taker_fee=0.002, slippage=0.0)
    t = close_position(long_at(100.0), 97.0, 5, ExitReason.STOP_LOSS, 5000.0, fees)
    assert t.pnl == pytest.approx(-150.0)
    assert t.fees == pytest.approx(15.0)
    assert t.net_pnl == pytest.approx(-165.0)


def test_trade_is_immutable():
    t = close_position(long_at(), 101.0, 5, ExitReason.SIGNAL, 5000.0, NO_FEES)
    with pytest.raises(AttributeError):
        t.pnl = 0.0
