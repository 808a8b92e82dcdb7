"""Host loop that drives the ladder controller once per market update."""

from __future__ import annotations

import logging
import signal
import time
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Optional

from core.config import LadderConfig
from core.kill_switch import KillSwitch
from core.logging import with_trace
from services.execution.audit import CommandJournal
from services.execution.dispatcher import CommandDispatcher
from services.execution.paper_ledger import PaperLedger
from services.ladder.controller import LadderController
from services.ladder.types import MarketSnapshot
from services.market.mock_feed import MockQuoteFeed
from services.runtime.metrics import Metrics


@dataclass(slots=True)
class RunSummary:
    cycles: int = 0
    commands: int = 0
    rejected: int = 0
    failed_cycles: int = 0
    halted: bool = False
    teardown_cancels: int = 0
    closed_trades: int = 0
    realized_points: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class LadderRunner:
    """Feed quotes to the venue, then tick the controller, until told to stop.

    The controller itself never waits; the optional ``interval`` pause
    between cycles lives here. Teardown always runs on the way out.
    """

    def __init__(
        self,
        controller: LadderController,
        quotes: Iterable[MarketSnapshot],
        *,
        on_quote: Optional[Callable[[MarketSnapshot], None]] = None,
        kill_switch: Optional[KillSwitch] = None,
        interval: float = 0.0,
        sleep: Callable[[float], None] = time.sleep,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.controller = controller
        self.quotes = quotes
        self.on_quote = on_quote
        self.kill_switch = kill_switch
        self.interval = max(0.0, float(interval))
        self._sleep = sleep
        self._stop = False
        self.log = logger or logging.getLogger("ladder.runner")

    def request_stop(self, *_: Any) -> None:
        self._stop = True

    def install_signal_handlers(self) -> Dict[int, Any]:
        """Route SIGINT/SIGTERM to a graceful stop; returns the previous handlers."""

        previous: Dict[int, Any] = {}
        for sig in (signal.SIGINT, signal.SIGTERM):
            previous[sig] = signal.signal(sig, self.request_stop)
        return previous

    def run(self) -> RunSummary:
        summary = RunSummary()
        trace = with_trace({"symbol": self.controller.symbol, "owner_tag": self.controller.config.owner_tag})
        self.log.info("runner.start", extra=trace)
        try:
            for snapshot in self.quotes:
                if self._stop:
                    break
                if self.kill_switch is not None and self.kill_switch.engaged():
                    info = self.kill_switch.info()
                    self.log.warning("runner.kill_switch", extra={**trace, "reason": info.get("reason")})
                    summary.halted = True
                    break
                if self.on_quote is not None:
                    self.on_quote(snapshot)
                summary.cycles += 1
                try:
                    report = self.controller.on_tick()
                except Exception:
                    summary.failed_cycles += 1
                    self.log.exception("runner.cycle_failed", extra=trace)
                else:
                    summary.commands += len(report.executed)
                    summary.rejected += len(report.rejected)
                finally:
                    if self.interval:
                        self._sleep(self.interval)
        finally:
            teardown = self.controller.shutdown()
            summary.teardown_cancels = len(teardown.executed)
            self.log.info("runner.stop", extra={**trace, **summary.to_dict()})
        return summary


def build_paper_runner(
    config: LadderConfig,
    *,
    iterations: int = 200,
    seed: int = 42,
    drop_rate: float = 0.02,
    volatility_ticks: float = 40.0,
    start_price: float = 1.2000,
    interval: float = 0.0,
    journal_path: Optional[Path] = None,
    kill_switch: Optional[KillSwitch] = None,
    oco_auto_cancel: bool = False,
) -> tuple[LadderRunner, PaperLedger]:
    """Wire a controller to the mock feed and paper venue."""

    instrument = config.instrument.resolve(config.symbol)
    feed = MockQuoteFeed(
        instrument,
        start_price=start_price,
        volatility_ticks=volatility_ticks,
        drop_rate=drop_rate,
        seed=seed,
    )
    ledger = PaperLedger(oco_auto_cancel=oco_auto_cancel)
    metrics = Metrics()
    journal = CommandJournal(journal_path) if journal_path is not None else None
    dispatcher = CommandDispatcher(ledger, journal=journal, metrics=metrics)
    controller = LadderController(
        config,
        feed,
        ledger,
        dispatcher=dispatcher,
        instrument=instrument,
        metrics=metrics,
    )
    runner = LadderRunner(
        controller,
        feed.stream(iterations),
        on_quote=ledger.on_quote,
        kill_switch=kill_switch,
        interval=interval,
    )
    return runner, ledger


def summarize_paper_run(runner: LadderRunner, ledger: PaperLedger) -> RunSummary:
    summary = runner.run()
    summary.closed_trades = len(ledger.history)
    summary.realized_points = round(sum(t.points for t in ledger.history), 10)
    return summary


__all__ = ["LadderRunner", "RunSummary", "build_paper_runner", "summarize_paper_run"]
