from __future__ import annotations

from pathlib import Path

from services.execution.audit import CommandJournal
from services.execution.dispatcher import CommandDispatcher
from services.execution.types import CancelOrder, CreateOrder, ModifyStop
from services.runtime.metrics import Metrics
from tests.fakes.fake_ledger import FakeLedger


def _create(side: str = "buy_stop", price: float = 1.24) -> CreateOrder:
    return CreateOrder(
        symbol="EURUSD",
        side=side,  # type: ignore[arg-type]
        trigger_price=price,
        take_profit=None,
        lots=0.1,
        owner_tag="ladder-1",
        label="ladder",
    )


def test_commands_execute_in_emitted_order() -> None:
    ledger = FakeLedger()
    dispatcher = CommandDispatcher(ledger)

    report = dispatcher.execute([CancelOrder("old-1"), _create(), _create("sell_stop", 1.16)])

    assert ledger.kinds() == ["cancel", "create", "create"]
    assert [o.status for o in report.outcomes] == ["ok", "ok", "ok"]
    assert report.outcomes[1].order_id == "order-1"


def test_rejected_cancel_skips_creates_in_the_same_batch() -> None:
    ledger = FakeLedger()
    ledger.fail["cancel"] = "trade_context_busy"
    metrics = Metrics()
    dispatcher = CommandDispatcher(ledger, metrics=metrics)

    report = dispatcher.execute([CancelOrder("old-1"), _create(), _create("sell_stop", 1.16)])

    assert ledger.kinds() == ["cancel"]
    assert [o.status for o in report.outcomes] == ["rejected", "skipped", "skipped"]
    assert report.rejected[0].reason == "trade_context_busy"
    assert metrics.counter("rejections", kind="cancel") == 1


def test_rejected_modify_does_not_stop_the_batch() -> None:
    ledger = FakeLedger()
    ledger.fail["modify_stop"] = "invalid_stops"
    dispatcher = CommandDispatcher(ledger)

    report = dispatcher.execute([ModifyStop("pos-1", 1.2), _create()])

    assert [o.status for o in report.outcomes] == ["rejected", "ok"]


def test_outcomes_are_journaled(tmp_path: Path) -> None:
    ledger = FakeLedger()
    ledger.fail["create"] = "no_money"
    journal = CommandJournal(tmp_path / "journal.ndjson")
    dispatcher = CommandDispatcher(ledger, journal=journal)

    dispatcher.execute([CancelOrder("gone"), _create()])

    events = journal.tail(10)
    assert [e["event"] for e in events] == ["command_ok", "command_rejected"]
    assert events[1]["reason"] == "no_money"
    assert events[1]["command"]["side"] == "buy_stop"


def test_journal_tail_skips_garbage(tmp_path: Path) -> None:
    path = tmp_path / "journal.ndjson"
    journal = CommandJournal(path)
    journal.append({"event": "one"})
    with path.open("a", encoding="utf-8") as handle:
        handle.write("not json\n\n")
    journal.append({"event": "two"})

    assert [e["event"] for e in journal.tail(5)] == ["one", "two"]
    assert journal.tail(0) == []


def test_journal_tail_filters_by_event(tmp_path: Path) -> None:
    ledger = FakeLedger()
    ledger.fail["cancel"] = "unknown_order"
    journal = CommandJournal(tmp_path / "journal.ndjson")
    dispatcher = CommandDispatcher(ledger, journal=journal)

    dispatcher.execute([CancelOrder("o-1"), _create(), _create(price=1.25)])

    skipped = journal.tail(10, event="command_skipped")
    assert len(skipped) == 2
    assert journal.tail(1, event="command_rejected")[0]["reason"] == "unknown_order"
    assert len(journal.tail(2)) == 2
