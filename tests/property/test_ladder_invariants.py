from __future__ import annotations

import pytest

from services.execution.paper_ledger import PaperLedger
from services.ladder.controller import LadderController
from services.market.mock_feed import MockQuoteFeed


@pytest.mark.parametrize("seed", [1, 7, 42, 99, 2024])
@pytest.mark.parametrize("trailing", [False, True])
def test_pending_count_is_zero_or_two_after_every_cycle(config, seed, trailing) -> None:
    cfg = config.with_overrides(gap_points=30, take_profit_points=60, trailing_enabled=trailing)
    instrument = cfg.instrument.resolve(cfg.symbol)
    feed = MockQuoteFeed(instrument, volatility_ticks=15.0, drop_rate=0.05, seed=seed)
    ledger = PaperLedger()
    controller = LadderController(cfg, feed, ledger, instrument=instrument)

    armed_once = False
    saw_position = False
    for snapshot in feed.stream(400):
        ledger.on_quote(snapshot)
        controller.on_tick()
        view = ledger.list_owned(cfg.symbol, cfg.owner_tag)

        assert len(view.positions) <= 1
        if view.positions:
            saw_position = True
            assert len(view.orders) == 0
        elif snapshot.available:
            assert len(view.orders) == 2
            assert sorted(o.side for o in view.orders) == ["buy_stop", "sell_stop"]
            armed_once = True
        else:
            assert len(view.orders) in (0, 2)

    assert armed_once
    assert saw_position


def test_restarted_controller_resumes_from_ledger_state(config) -> None:
    instrument = config.instrument.resolve(config.symbol)
    feed = MockQuoteFeed(instrument, volatility_ticks=5.0, seed=3)
    ledger = PaperLedger()
    first = LadderController(config, feed, ledger, instrument=instrument)
    ledger.on_quote(feed.advance())
    first.on_tick()
    before = ledger.list_owned(config.symbol, config.owner_tag)

    restarted = LadderController(config, feed, ledger, instrument=instrument)
    report = restarted.on_tick()

    assert len(report) == 0
    assert ledger.list_owned(config.symbol, config.owner_tag) == before
