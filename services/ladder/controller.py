"""Order-lifecycle state machine for the breakout ladder."""

from __future__ import annotations

import logging
from typing import List, Optional

from core.config import LadderConfig
from core.interfaces import Ledger, QuoteSource
from services.execution.dispatcher import CommandDispatcher
from services.execution.types import CancelOrder, CreateOrder, DispatchReport, LedgerCommand, ModifyStop
from services.ladder.errors import InvariantViolation, SnapshotUnavailable
from services.ladder.pricing import compute_ladder_prices
from services.ladder.trailing import next_stop
from services.ladder.types import (
    BUY_STOP,
    SELL_STOP,
    Instrument,
    LadderState,
    LedgerView,
    MarketSnapshot,
)
from services.runtime.metrics import Metrics

log = logging.getLogger("ladder.controller")


def find_violations(view: LedgerView) -> List[InvariantViolation]:
    """Anomalies in an owner-scoped view that the next plan will correct."""

    found: List[InvariantViolation] = []
    if len(view.positions) > 1:
        found.append(
            InvariantViolation("multiple_positions", f"{len(view.positions)} open positions")
        )
    if len(view.orders) > 2:
        found.append(InvariantViolation("excess_orders", f"{len(view.orders)} pending orders"))
    for side in (BUY_STOP, SELL_STOP):
        if len(view.orders_on(side)) > 1:
            found.append(
                InvariantViolation("duplicate_leg", f"{len(view.orders_on(side))} {side} orders")
            )
    return found


def plan_cycle(
    snapshot: MarketSnapshot,
    view: LedgerView,
    instrument: Instrument,
    config: LadderConfig,
) -> List[LedgerCommand]:
    """Commands that bring the owned ladder back to its required shape.

    Pure: the result depends only on the arguments. ``view`` is narrowed to
    ``config.owner_tag`` and the instrument before anything is decided.
    """

    if not snapshot.available:
        return []

    owned = view.owned_by(config.owner_tag, instrument.symbol)
    state = LadderState.derive(owned)
    commands: List[LedgerCommand] = []

    if state is LadderState.POSITION_OPEN:
        # a filled leg dominates; the sibling goes even if the venue kept it
        commands.extend(CancelOrder(o.order_id) for o in owned.orders)
        if config.trailing_enabled:
            for position in owned.positions:
                price = snapshot.bid if position.is_long else snapshot.ask
                stop = next_stop(
                    position,
                    price,
                    config.break_even_points,
                    config.trailing_step_trigger,
                    config.trailing_step_size,
                    instrument.tick_size,
                    instrument.precision,
                )
                if stop is not None:
                    commands.append(ModifyStop(position.position_id, stop))
        return commands

    if state is LadderState.ARMED_PAIR:
        return commands

    commands.extend(CancelOrder(o.order_id) for o in owned.orders)
    prices = compute_ladder_prices(
        snapshot,
        config.gap_points,
        config.take_profit_points,
        instrument.tick_size,
        instrument.precision,
    )
    commands.append(
        CreateOrder(
            symbol=instrument.symbol,
            side=BUY_STOP,
            trigger_price=prices.buy_stop,
            take_profit=prices.buy_take_profit,
            lots=config.lots,
            owner_tag=config.owner_tag,
            label=config.label,
        )
    )
    commands.append(
        CreateOrder(
            symbol=instrument.symbol,
            side=SELL_STOP,
            trigger_price=prices.sell_stop,
            take_profit=prices.sell_take_profit,
            lots=config.lots,
            owner_tag=config.owner_tag,
            label=config.label,
        )
    )
    return commands


class LadderController:
    """Binds the planner to a quote source, a ledger and a command sink.

    Holds no ledger state between calls: every ``on_tick`` re-reads the
    ledger, so a restarted controller picks up exactly where the venue is.
    """

    def __init__(
        self,
        config: LadderConfig,
        quotes: QuoteSource,
        ledger: Ledger,
        *,
        dispatcher: Optional[CommandDispatcher] = None,
        instrument: Optional[Instrument] = None,
        metrics: Optional[Metrics] = None,
    ) -> None:
        self.config = config
        self.quotes = quotes
        self.ledger = ledger
        self.metrics = metrics or Metrics()
        self.dispatcher = dispatcher or CommandDispatcher(ledger, metrics=self.metrics)
        self.instrument = instrument or quotes.get_instrument(config.symbol)

    @property
    def symbol(self) -> str:
        return self.instrument.symbol

    def _owned_view(self) -> LedgerView:
        view = self.ledger.list_owned(self.symbol, self.config.owner_tag)
        return view.owned_by(self.config.owner_tag, self.symbol)

    def on_tick(self) -> DispatchReport:
        """Run one reconciliation cycle; the single entry point per market update."""

        self.metrics.inc("cycles")
        try:
            snapshot = self.quotes.get_snapshot(self.symbol)
        except SnapshotUnavailable as exc:
            snapshot = MarketSnapshot.unavailable(self.symbol)
            log.debug("ladder.snapshot_unavailable", extra={"symbol": self.symbol, "reason": exc.reason})
        if not snapshot.available:
            self.metrics.inc("snapshots_unavailable")
            log.debug(
                "ladder.skip_cycle",
                extra={"symbol": self.symbol, "bid": snapshot.bid, "ask": snapshot.ask},
            )
            return DispatchReport()

        view = self._owned_view()
        for violation in find_violations(view):
            self.metrics.inc("invariant_violations")
            log.warning(
                "ladder.invariant_violation",
                extra={"symbol": self.symbol, "kind": violation.kind, "detail": violation.detail},
            )

        state = LadderState.derive(view)
        commands = plan_cycle(snapshot, view, self.instrument, self.config)
        self.metrics.set("pending_orders", float(len(view.orders)))
        self.metrics.set("open_positions", float(len(view.positions)))
        if not commands:
            return DispatchReport()

        log.info(
            _event_for(state, commands),
            extra={
                "symbol": self.symbol,
                "state": state.value,
                "bid": snapshot.bid,
                "ask": snapshot.ask,
                "commands": [c.to_dict() for c in commands],
            },
        )
        return self.dispatcher.execute(commands)

    def shutdown(self) -> DispatchReport:
        """Cancel every owned pending order on the symbol; positions stay open."""

        view = self._owned_view()
        commands: List[LedgerCommand] = [CancelOrder(o.order_id) for o in view.orders]
        log.info(
            "ladder.teardown",
            extra={
                "symbol": self.symbol,
                "cancels": len(commands),
                "positions_left_open": len(view.positions),
            },
        )
        if not commands:
            return DispatchReport()
        return self.dispatcher.execute(commands)


def _event_for(state: LadderState, commands: List[LedgerCommand]) -> str:
    if state is LadderState.POSITION_OPEN:
        if any(isinstance(c, CancelOrder) for c in commands):
            return "ladder.oco_cancel"
        return "ladder.trail"
    if state is LadderState.NO_POSITION:
        return "ladder.arm"
    return "ladder.rearm"


__all__ = ["LadderController", "find_violations", "plan_cycle"]
