"""
Logging System

One "strategylab" logger tree for the whole project. Modules log through
logging.getLogger(__name__); setup_logging() decides where it ends up.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

from utils.paths import get_logs_dir

ROOT_LOGGER = "strategylab"

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(
    level: str = "INFO",
    log_to_file: bool = True,
    log_to_console: bool = True,
    log_dir: Optional[Path] = None,
    name: str = ROOT_LOGGER
) -> logging.Logger:
    """
    Set up logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        log_to_file: Save logs to a dated file
        log_to_console: Show logs in console
        log_dir: Where log files go (defaults to <project>/logs)
        name: Logger to configure. Pass "" for the root logger so that
            the backtest/strategies/config module loggers are captured.

    Returns:
        Configured logger
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Clear existing handlers
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    if log_to_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if log_to_file:
        log_dir = Path(log_dir) if log_dir is not None else get_logs_dir()
        log_dir.mkdir(parents=True, exist_ok=True)
        log_file = log_dir / f"strategylab_{datetime.now().strftime('%Y%m%d')}.log"
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str = ROOT_LOGGER) -> logging.Logger:
    """Get a logger instance"""
    return logging.getLogger(name)


def log_trade(trade, symbol: str, logger: Optional[logging.Logger] = None):
    """
    Log one simulated trade.

    Args:
        trade: backtest.models.Trade
        symbol: Symbol it was traded on
        logger: Logger to use (defaults to strategylab.trades)
    """
    if logger is None:
        logger = get_logger(f"{ROOT_LOGGER}.trades")

    logger.info(
        f"{trade.side.value.upper()} {symbol} "
        f"{trade.entry_price:.6g} -> {trade.exit_price:.6g} | "
        f"PnL {trade.pnl:+.2f} ({trade.pnl_percent:+.2f}%) fees {trade.fees:.2f} | "
        f"{trade.exit_reason.value}"
    )
