import pytest

from backtest.config import BacktestConfig, ExitConfig, ExitFill, FeeConfig
from config import ConfigLoader, ConfigurationError, load_backtest_config, load_settings

SETTINGS = """
backtest:
  initial_capital: ${TEST_CAPITAL:-2500}
  position_size: 0.25
  fees:
    maker_fee: 0.0004
    taker_fee: 0.0006
    slippage: 0.0
  exits:
    take_profit_pct: 6
    stop_loss_pct: 2
    trailing_stop_pct: 1.5
    fill: close
suite:
  symbols: [BTC-USD]
  intervals: [60]
  parallel: false
"""


def _write(tmp_path, text):
    (tmp_path / "settings.yaml").write_text(text, encoding="utf-8")
    return tmp_path


def test_load_backtest_config(tmp_path, monkeypatch):
    monkeypatch.delenv("TEST_CAPITAL", raising=False)
    config = load_backtest_config(_write(tmp_path, SETTINGS))

    assert isinstance(config, BacktestConfig)
    assert config.initial_capital == 2500
    assert config.position_value == pytest.approx(625.0)
    assert config.fees.round_trip_fee_rate == pytest.approx(0.001)
    assert config.exits.fill is ExitFill.CLOSE
    assert config.exits.trailing_stop_pct == 1.5


def test_env_substitution(tmp_path, monkeypatch):
    monkeypatch.setenv("TEST_CAPITAL", "40000")
    settings = load_settings(_write(tmp_path, SETTINGS))
    assert settings.backtest.initial_capital == 40000


def test_suite_settings(tmp_path):
    settings = load_settings(_write(tmp_path, SETTINGS))
    suite = settings.suite.to_config()

    assert settings.suite.symbols == ["BTC-USD"]
    assert settings.suite.intervals == [60]
    assert suite.parallel is False
    assert suite.min_candles == 100


def test_missing_file_uses_defaults_unless_required(tmp_path):
    settings = load_settings(tmp_path)
    assert settings.backtest.to_config() == BacktestConfig()

    with pytest.raises(ConfigurationError):
        ConfigLoader(tmp_path).load(required=True)


def test_invalid_yaml(tmp_path):
    with pytest.raises(ConfigurationError):
        load_settings(_write(tmp_path, "backtest: [unclosed"))


def test_invalid_values(tmp_path):
    with pytest.raises(ConfigurationError) as excinfo:
        load_settings(_write(tmp_path, "backtest:\n  position_size: 2\n"))
    assert "position_size" in str(excinfo.value)


def test_non_mapping_document(tmp_path):
    with pytest.raises(ConfigurationError):
        load_settings(_write(tmp_path, "- just\n- a list\n"))


def test_project_settings_file_is_valid():
    settings = ConfigLoader().load(required=True)
    assert settings.backtest.position_size == 0.5
    assert settings.suite.min_candles == 100


def test_dataclass_validation():
    with pytest.raises(ValueError):
        BacktestConfig(initial_capital=0)
    with pytest.raises(ValueError):
        BacktestConfig(position_size=1.5)
    with pytest.raises(ValueError):
        FeeConfig(slippage=-0.1)
    with pytest.raises(ValueError):
        ExitConfig(stop_loss_pct=0)


def test_exit_fill_defaults_to_threshold():
    assert ExitConfig().fill is ExitFill.THRESHOLD
    assert ExitFill("close") is ExitFill.CLOSE
