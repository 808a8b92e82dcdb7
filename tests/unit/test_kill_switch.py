from __future__ import annotations

from pathlib import Path

from core.kill_switch import KillSwitch


def test_engage_and_reset(tmp_path: Path) -> None:
    kill = KillSwitch(tmp_path / "nested" / "kill")
    assert kill.engaged() is False

    kill.engage("drawdown")
    info = kill.info()
    assert kill.engaged() is True
    assert info["reason"] == "drawdown"
    assert info["engaged_at"].endswith("Z")

    kill.reset()
    kill.reset()
    assert kill.info() == {"engaged": False, "reason": None, "engaged_at": None}


def test_legacy_plain_text_file_counts_as_engaged(tmp_path: Path) -> None:
    path = tmp_path / "kill"
    path.write_text("halt", encoding="utf-8")

    assert KillSwitch(path).info() == {"engaged": True, "reason": None, "engaged_at": None}


def test_path_from_environment(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("LADDER_KILL_SWITCH_FILE", str(tmp_path / "env-kill"))

    assert KillSwitch().path == tmp_path / "env-kill"
