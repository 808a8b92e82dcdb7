from __future__ import annotations

from pathlib import Path

from core.kill_switch import KillSwitch
from services.execution.audit import CommandJournal
from services.ladder.controller import LadderController
from services.ladder.types import MarketSnapshot
from services.runtime.runner import LadderRunner, build_paper_runner, summarize_paper_run
from tests.fakes.fake_ledger import FakeLedger, FakeQuotes


def test_paper_run_tears_down_on_exit(config, tmp_path: Path) -> None:
    journal = tmp_path / "journal.ndjson"
    runner, ledger = build_paper_runner(
        config.with_overrides(gap_points=25, take_profit_points=50, trailing_enabled=True),
        iterations=250,
        seed=11,
        volatility_ticks=12.0,
        journal_path=journal,
    )

    summary = summarize_paper_run(runner, ledger)

    assert summary.cycles == 250
    assert summary.failed_cycles == 0
    assert summary.commands > 0
    assert ledger.list_owned(config.symbol, config.owner_tag).orders == ()
    assert summary.closed_trades == len(ledger.history)
    assert CommandJournal(journal).tail(1)


def test_engaged_kill_switch_halts_before_first_cycle(config, tmp_path: Path) -> None:
    kill = KillSwitch(tmp_path / "kill")
    kill.engage("maintenance")
    runner, ledger = build_paper_runner(config, iterations=50, kill_switch=kill)

    summary = runner.run()

    assert summary.halted is True
    assert summary.cycles == 0
    assert ledger.orders == []


def test_kill_switch_mid_run_cancels_the_ladder(config, tmp_path: Path) -> None:
    kill = KillSwitch(tmp_path / "kill")
    ledger = FakeLedger()
    controller = LadderController(config, FakeQuotes(), ledger)
    quotes = [MarketSnapshot("EURUSD", 1.1998, 1.2000, float(i)) for i in range(10)]

    def on_quote(snapshot: MarketSnapshot) -> None:
        if snapshot.ts == 3.0:
            kill.engage("operator")

    runner = LadderRunner(controller, quotes, on_quote=on_quote, kill_switch=kill)
    summary = runner.run()

    assert summary.halted is True
    assert summary.cycles == 4
    assert summary.teardown_cancels == 2
    assert ledger.orders == []


def test_cycle_failure_is_logged_and_loop_keeps_pacing(config) -> None:
    class Exploding(FakeLedger):
        def __init__(self) -> None:
            super().__init__()
            self.boom = 2

        def list_owned(self, symbol, owner_tag):
            if self.boom:
                self.boom -= 1
                raise ConnectionError("ledger offline")
            return super().list_owned(symbol, owner_tag)

    ledger = Exploding()
    controller = LadderController(config, FakeQuotes(), ledger)
    quotes = [MarketSnapshot("EURUSD", 1.1998, 1.2000, float(i)) for i in range(4)]
    sleeps: list[float] = []

    summary = LadderRunner(controller, quotes, interval=0.5, sleep=sleeps.append).run()

    assert summary.failed_cycles == 2
    assert summary.cycles == 4
    assert summary.teardown_cancels == 2
    assert sleeps == [0.5, 0.5, 0.5, 0.5]
