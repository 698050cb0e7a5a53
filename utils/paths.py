# -*- coding: utf-8 -*-
"""
Research Folders
================
Where settings are read from and where results and logs are written.

    <home>/config/settings.yaml
    <home>/results/backtest_<timestamp>.json
    <home>/logs/strategylab_<date>.log

<home> is STRATEGYLAB_HOME when set, otherwise the checkout that holds
config/settings.yaml next to setup.py.
"""

import os
import logging
from datetime import datetime
from pathlib import Path
from functools import lru_cache
from typing import Optional

logger = logging.getLogger(__name__)

HOME_ENV_VAR = "STRATEGYLAB_HOME"


def _is_home(path: Path) -> bool:
    return (path / "config" / "settings.yaml").exists() and (
        (path / "setup.py").exists() or (path / "pyproject.toml").exists()
    )


@lru_cache(maxsize=1)
def find_project_root() -> Path:
    """
    Locate the research home directory.

    STRATEGYLAB_HOME wins when it names an existing directory. Otherwise
    walk up from this package until a directory with both a packaging file
    and config/settings.yaml turns up; an installed copy with no checkout
    around it falls back to the parent of the utils package.
    """
    env_home = os.environ.get(HOME_ENV_VAR)
    if env_home:
        home = Path(env_home).expanduser()
        if home.is_dir():
            logger.debug(f"Research home from {HOME_ENV_VAR}: {home}")
            return home
        logger.warning(f"{HOME_ENV_VAR}={env_home} is not a directory, ignoring it")

    package_parent = Path(__file__).resolve().parent.parent
    for candidate in (package_parent, *package_parent.parents):
        if _is_home(candidate):
            return candidate

    return package_parent


def get_config_dir() -> Path:
    return find_project_root() / "config"


def _ensure(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_results_dir() -> Path:
    """Results folder, created on first use"""
    return _ensure(find_project_root() / "results")


def get_logs_dir() -> Path:
    """Logs folder, created on first use"""
    return _ensure(find_project_root() / "logs")


def get_results_path(prefix: str = "backtest", when: Optional[datetime] = None) -> Path:
    """
    Timestamped JSON file for one suite run, e.g.
    results/backtest_2024-05-01_143000.json
    """
    when = when or datetime.now()
    return get_results_dir() / f"{prefix}_{when.strftime('%Y-%m-%d_%H%M%S')}.json"
