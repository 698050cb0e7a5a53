# -*- coding: utf-8 -*-
"""
Position Lifecycle - Flat -> Open -> Flat
=========================================
Holds the single open simulated position and decides, bar by bar,
whether it exits.

Exit checks run in a FIXED priority order, first hit wins:

    1. Take-profit     (intrabar: high for long, low for short)
    2. Stop-loss       (intrabar: low for long, high for short)
    3. Trailing stop   (only while the CLOSE is in profit; trigger is intrabar)
    4. Signal reversal (sell while long, buy while short; fills at close)

KNOWN BIAS: a bar whose range crosses both the take-profit and the
stop-loss is always resolved as a take-profit. We cannot know which level
was touched first inside the bar, so this is an optimistic fill and can
overstate profitability. Kept as is so results stay comparable across runs.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from .config import ExitConfig, ExitFill, FeeConfig
from .models import Bar, ExitReason, Side, SignalType, Trade

logger = logging.getLogger(__name__)


@dataclass
class Position:
    """
    The one open position. Owned by the backtest loop and thrown away
    the moment it closes.

    high_water_mark is the best price seen since entry: the running high
    for a long, the running LOW for a short.
    """
    side: Side
    entry_price: float
    entry_time: int
    high_water_mark: float
    bars_held: int = 0

    @property
    def is_long(self) -> bool:
        return self.side is Side.LONG

    def pnl_percent_at(self, price: float) -> float:
        """Unrealized P&L in percent if closed at price (no slippage)"""
        if self.is_long:
            return (price - self.entry_price) / self.entry_price * 100
        return (self.entry_price - price) / self.entry_price * 100

    def advance(self, bar: Bar) -> None:
        """Carry the position through a bar that did not close it."""
        if self.is_long:
            self.high_water_mark = max(self.high_water_mark, bar.high)
        else:
            self.high_water_mark = min(self.high_water_mark, bar.low)
        self.bars_held += 1


def open_position(signal: SignalType, bar: Bar, fees: FeeConfig) -> Optional[Position]:
    """
    Open a position from a BUY or SELL signal at the bar's close.

    Entry slippage goes against the trader: longs pay more, shorts
    receive less.

    Returns:
        New Position, or None for HOLD
    """
    if signal is SignalType.BUY:
        return Position(
            side=Side.LONG,
            entry_price=bar.close * (1 + fees.slippage),
            entry_time=bar.timestamp,
            high_water_mark=bar.high,
        )
    if signal is SignalType.SELL:
        return Position(
            side=Side.SHORT,
            entry_price=bar.close * (1 - fees.slippage),
            entry_time=bar.timestamp,
            high_water_mark=bar.low,
        )
    return None


def take_profit_price(position: Position, exits: ExitConfig) -> float:
    if position.is_long:
        return position.entry_price * (1 + exits.take_profit_pct / 100)
    return position.entry_price * (1 - exits.take_profit_pct / 100)


def stop_loss_price(position: Position, exits: ExitConfig) -> float:
    if position.is_long:
        return position.entry_price * (1 - exits.stop_loss_pct / 100)
    return position.entry_price * (1 + exits.stop_loss_pct / 100)


def trailing_stop_price(position: Position, exits: ExitConfig) -> float:
    if position.is_long:
        return position.high_water_mark * (1 - exits.trailing_stop_pct / 100)
    return position.high_water_mark * (1 + exits.trailing_stop_pct / 100)


def _touched_favorable(position: Position, bar: Bar, price: float) -> bool:
    if position.is_long:
        return bar.high >= price
    return bar.low <= price


def _touched_adverse(position: Position, bar: Bar, price: float) -> bool:
    if position.is_long:
        return bar.low <= price
    return bar.high >= price


def evaluate_exit(
    position: Position,
    bar: Bar,
    signal: SignalType,
    exits: ExitConfig
) -> Optional[Tuple[float, ExitReason]]:
    """
    Check the open position against the current bar.

    Args:
        position: The open position (not modified here)
        bar: Current bar
        signal: Current bar's signal
        exits: Exit thresholds

    Returns:
        (raw exit price, reason) for the first exit that fires, else None.
        The price is before slippage; close_position applies it.
    """
    at_close = exits.fill is ExitFill.CLOSE

    target = take_profit_price(position, exits)
    if _touched_favorable(position, bar, target):
        return (bar.close if at_close else target), ExitReason.TAKE_PROFIT

    stop = stop_loss_price(position, exits)
    if _touched_adverse(position, bar, stop):
        return (bar.close if at_close else stop), ExitReason.STOP_LOSS

    # Profitability is judged on the close, the trigger on the bar's range
    if position.pnl_percent_at(bar.close) > 0:
        trail = trailing_stop_price(position, exits)
        if _touched_adverse(position, bar, trail):
            return (bar.close if at_close else trail), ExitReason.TRAILING_STOP

    if (position.is_long and signal is SignalType.SELL) or \
            (not position.is_long and signal is SignalType.BUY):
        return bar.close, ExitReason.SIGNAL

    return None


def close_position(
    position: Position,
    exit_price: float,
    exit_time: int,
    exit_reason: ExitReason,
    position_value: float,
    fees: FeeConfig
) -> Trade:
    """
    Turn an open position into a finished Trade.

    - Exit slippage goes against the trader (long sells lower, short buys higher)
    - pnl_percent is signed so that a profit is positive for both sides
    - fees are a flat round trip: position_value * (maker + taker)

    Args:
        position: Position being closed
        exit_price: Raw exit price before slippage
        exit_time: Epoch ms of the exit bar
        exit_reason: Why we are closing
        position_value: Notional of the position
        fees: Fee and slippage rates

    Returns:
        Immutable Trade record
    """
    if position.is_long:
        adjusted_exit = exit_price * (1 - fees.slippage)
        pnl_percent = (adjusted_exit - position.entry_price) / position.entry_price * 100
    else:
        adjusted_exit = exit_price * (1 + fees.slippage)
        pnl_percent = (position.entry_price - adjusted_exit) / position.entry_price * 100

    trade = Trade(
        entry_time=position.entry_time,
        exit_time=exit_time,
        entry_price=position.entry_price,
        exit_price=adjusted_exit,
        side=position.side,
        pnl=pnl_percent / 100 * position_value,
        pnl_percent=pnl_percent,
        fees=position_value * fees.round_trip_fee_rate,
        exit_reason=exit_reason,
    )

    logger.debug(
        f"Closed {trade.side.value} after {position.bars_held} bars: "
        f"{trade.entry_price:.6g} -> {trade.exit_price:.6g} "
        f"({trade.pnl_percent:+.2f}%, {trade.exit_reason.value})"
    )
    return trade
