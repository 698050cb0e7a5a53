"""
Configuration Loader Module
Loads research settings from YAML with environment variable substitution.

settings.yaml layout:

    backtest:
      initial_capital: 10000
      position_size: 0.5
      fees: {maker_fee: 0.001, taker_fee: 0.002, slippage: 0.0005}
      exits: {take_profit_pct: 10, stop_loss_pct: 1.5, trailing_stop_pct: 2, fill: threshold}
    suite:
      symbols: [BTC-USD, ETH-USD]
      intervals: [15, 60, 240]

Any value may be written as ${VAR} or ${VAR:-default}.
"""

import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError

from backtest.config import BacktestConfig, ExitConfig, ExitFill, FeeConfig
from backtest.suite import SuiteConfig
from utils.paths import get_config_dir

logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """
    Raised when configuration file is missing, corrupted or contains
    invalid values.
    """
    pass


# ============== SCHEMA ==============

class FeeSettings(BaseModel):
    maker_fee: float = Field(0.001, ge=0)
    taker_fee: float = Field(0.002, ge=0)
    slippage: float = Field(0.0005, ge=0)


class ExitSettings(BaseModel):
    take_profit_pct: float = Field(10.0, gt=0)
    stop_loss_pct: float = Field(1.5, gt=0)
    trailing_stop_pct: float = Field(2.0, gt=0)
    fill: ExitFill = ExitFill.THRESHOLD


class BacktestSettings(BaseModel):
    initial_capital: float = Field(10000.0, gt=0)
    position_size: float = Field(0.50, gt=0, le=1)
    fees: FeeSettings = Field(default_factory=FeeSettings)
    exits: ExitSettings = Field(default_factory=ExitSettings)

    def to_config(self) -> BacktestConfig:
        return BacktestConfig(
            initial_capital=self.initial_capital,
            position_size=self.position_size,
            fees=FeeConfig(**self.fees.model_dump()),
            exits=ExitConfig(**self.exits.model_dump()),
        )


class SuiteSettings(BaseModel):
    symbols: List[str] = Field(default_factory=lambda: ["BTC-USD", "ETH-USD", "SOL-USD"])
    intervals: List[int] = Field(default_factory=lambda: [15, 60, 240])
    strategies: Optional[List[str]] = None    # None = every registered strategy
    limit: int = Field(500, gt=0)
    min_candles: int = Field(100, ge=0)
    parallel: bool = True
    max_workers: Optional[int] = Field(None, gt=0)
    top: int = Field(30, gt=0)

    def to_config(self) -> SuiteConfig:
        return SuiteConfig(
            limit=self.limit,
            min_candles=self.min_candles,
            parallel=self.parallel,
            max_workers=self.max_workers,
        )


class Settings(BaseModel):
    backtest: BacktestSettings = Field(default_factory=BacktestSettings)
    suite: SuiteSettings = Field(default_factory=SuiteSettings)


# ============== LOADER ==============

class ConfigLoader:
    """Load and validate research settings."""

    def __init__(self, config_dir: Union[str, Path, None] = None):
        self.config_dir = Path(config_dir) if config_dir is not None else get_config_dir()
        self.raw: Optional[Dict[str, Any]] = None
        self._settings: Optional[Settings] = None

    @property
    def settings_path(self) -> Path:
        return self.config_dir / "settings.yaml"

    def load(self, required: bool = True) -> Settings:
        """
        Load settings.yaml.

        Args:
            required: If False, a missing file gives the defaults

        Raises:
            ConfigurationError: File missing (when required), bad YAML,
                or values that fail validation
        """
        path = self.settings_path
        try:
            with open(path, "r", encoding="utf-8") as f:
                text = self._substitute_env_vars(f.read())
            self.raw = yaml.safe_load(text) or {}
        except FileNotFoundError:
            if required:
                raise ConfigurationError(
                    f"Required configuration file not found: {path}"
                )
            logger.info(f"No settings file at {path}, using defaults")
            self.raw = {}
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Invalid YAML syntax in {path}: {e}\n"
                f"Please fix the file or delete it to use defaults."
            ) from e
        except PermissionError as e:
            raise ConfigurationError(
                f"Permission denied reading {path}: {e}\n"
                f"Check file permissions."
            ) from e

        if not isinstance(self.raw, dict):
            raise ConfigurationError(
                f"Top level of {path} must be a mapping, got {type(self.raw).__name__}"
            )

        try:
            self._settings = Settings(**self.raw)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid settings in {path}:\n{e}") from e

        return self._settings

    @property
    def settings(self) -> Settings:
        if self._settings is None:
            return self.load()
        return self._settings

    def _substitute_env_vars(self, text: str) -> str:
        """
        Substitute environment variables in format ${VAR_NAME} or ${VAR_NAME:-default}

        Examples:
            ${CAPITAL} -> value of CAPITAL
            ${CAPITAL:-10000} -> value of CAPITAL, or '10000' if not set
        """
        pattern = r'\$\{([^}:]+)(?::[-]([^}]+))?\}'

        def replacer(match):
            var_name = match.group(1)
            default_value = match.group(2) if match.group(2) else ""
            return os.environ.get(var_name, default_value)

        return re.sub(pattern, replacer, text)


def load_settings(config_dir: Union[str, Path, None] = None, required: bool = False) -> Settings:
    """Load settings, falling back to defaults when the file is absent"""
    return ConfigLoader(config_dir).load(required=required)


def load_backtest_config(config_dir: Union[str, Path, None] = None) -> BacktestConfig:
    """Shortcut: the BacktestConfig described by settings.yaml"""
    return load_settings(config_dir).backtest.to_config()
