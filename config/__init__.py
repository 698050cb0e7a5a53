# Config package
"""
Configuration for strategy research
===================================
settings.yaml (YAML + ${ENV} substitution), validated with pydantic.

Example:
    from config import load_backtest_config
    config = load_backtest_config()       # BacktestConfig ready for the engine
"""

from config.loader import (
    ConfigurationError,
    ConfigLoader,
    Settings,
    BacktestSettings,
    SuiteSettings,
    FeeSettings,
    ExitSettings,
    load_settings,
    load_backtest_config,
)

__all__ = [
    'ConfigurationError',
    'ConfigLoader',
    'Settings',
    'BacktestSettings',
    'SuiteSettings',
    'FeeSettings',
    'ExitSettings',
    'load_settings',
    'load_backtest_config',
]
