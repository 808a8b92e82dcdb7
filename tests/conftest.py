import os
from pathlib import Path

import pytest

from core.config import InstrumentConfig, LadderConfig, build_config


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    for key in list(os.environ):
        if key.startswith("LADDER_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("LADDER_KILL_SWITCH_FILE", str(tmp_path / ".ladder_kill"))
    return tmp_path


@pytest.fixture
def config() -> LadderConfig:
    return build_config(
        {
            "symbol": "EURUSD",
            "owner_tag": "ladder-1",
            "gap_points": 400,
            "take_profit_points": 400,
            "lots": 0.1,
            "instrument": InstrumentConfig(tick_size=0.0001, precision=4),
        }
    )


@pytest.fixture
def trailing_config(config: LadderConfig) -> LadderConfig:
    return config.with_overrides(trailing_enabled=True)
