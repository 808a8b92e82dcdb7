from __future__ import annotations

from pathlib import Path

import pytest

from core.config import LadderConfig, build_config, load_config
from services.ladder.errors import ConfigError


def test_defaults_match_reference_ladder() -> None:
    config = load_config()

    assert config.gap_points == 400
    assert config.take_profit_points == 400
    assert config.trailing_enabled is False
    assert (config.break_even_points, config.trailing_step_trigger, config.trailing_step_size) == (50, 50, 50)


def test_yaml_file_under_ladder_key(tmp_path: Path) -> None:
    path = tmp_path / "ladder.yaml"
    path.write_text(
        "ladder:\n"
        "  symbol: GBPUSD\n"
        "  owner_tag: '20240101'\n"
        "  gap_points: 250\n"
        "  trailing_enabled: true\n"
        "  instrument:\n"
        "    tick_size: 0.00001\n",
        encoding="utf-8",
    )

    config = load_config(path)
    instrument = config.instrument.resolve(config.symbol)

    assert config.symbol == "GBPUSD"
    assert config.owner_tag == "20240101"
    assert config.gap_points == 250
    assert config.trailing_enabled is True
    assert instrument.precision == 5


def test_environment_fills_missing_values(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("LADDER_LOTS", "0.5")
    monkeypatch.setenv("LADDER_GAP_POINTS", "10")
    path = tmp_path / "ladder.yaml"
    path.write_text("gap_points: 120\n", encoding="utf-8")

    config = load_config(path)

    assert config.lots == pytest.approx(0.5)
    assert config.gap_points == 120


@pytest.mark.parametrize(
    "payload",
    [
        {"gap_points": -1},
        {"take_profit_points": -5},
        {"lots": 0},
        {"owner_tag": "   "},
        {"trailing_step_trigger": 50, "trailing_step_size": 0},
        {"instrument": {"tick_size": 0}},
    ],
)
def test_invalid_values_raise_config_error(payload) -> None:
    with pytest.raises(ConfigError):
        build_config(payload)


def test_config_is_immutable() -> None:
    config = build_config()

    with pytest.raises(Exception):
        config.gap_points = 1  # type: ignore[misc]


def test_with_overrides_returns_new_config() -> None:
    config = build_config()

    changed = config.with_overrides(trailing_enabled=True, gap_points=None)

    assert isinstance(changed, LadderConfig)
    assert changed.trailing_enabled is True
    assert changed.gap_points == config.gap_points
    assert config.trailing_enabled is False


def test_unreadable_or_malformed_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        load_config(tmp_path / "missing.yaml")
    bad = tmp_path / "bad.yaml"
    bad.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(bad)
