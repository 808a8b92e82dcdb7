"""In-memory paper venue implementing the ``Ledger`` contract."""

from __future__ import annotations

import itertools
import logging
import threading
import time
from dataclasses import dataclass, replace
from typing import Dict, List, Optional

from core.interfaces import Ledger
from services.ladder.errors import LedgerCommandRejected
from services.ladder.types import (
    BUY_STOP,
    LedgerView,
    MarketSnapshot,
    OrderSide,
    PendingOrder,
    Position,
)


@dataclass(slots=True)
class ClosedTrade:
    position: Position
    exit_price: float
    reason: str
    closed_at: float

    @property
    def points(self) -> float:
        move = self.exit_price - self.position.entry_price
        return move if self.position.is_long else -move


class PaperLedger(Ledger):
    """Simulated stop-order book driven by ``on_quote``.

    Stop orders trigger at their trigger price once the touch crosses it
    (buy-stops on the ask, sell-stops on the bid). Positions close at their
    take-profit or protective stop. With ``oco_auto_cancel`` the venue
    removes the sibling leg itself; by default it leaves that to the client.
    """

    def __init__(self, *, oco_auto_cancel: bool = False, logger: Optional[logging.Logger] = None) -> None:
        self.oco_auto_cancel = oco_auto_cancel
        self.log = logger or logging.getLogger("ladder.paper")
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._orders: Dict[str, PendingOrder] = {}
        self._positions: Dict[str, Position] = {}
        self._quotes: Dict[str, MarketSnapshot] = {}
        self._reject_next: Dict[str, List[str]] = {}
        self.history: List[ClosedTrade] = []

    # ------------------------------------------------------------------
    # test and simulation hooks
    def reject_next(self, kind: str, reason: str = "venue_rejected") -> None:
        """Make the next ``kind`` command (create, cancel, modify_stop) fail once."""

        with self._lock:
            self._reject_next.setdefault(kind, []).append(reason)

    def seed_order(self, order: PendingOrder) -> None:
        with self._lock:
            self._orders[order.order_id] = order

    def seed_position(self, position: Position) -> None:
        with self._lock:
            self._positions[position.position_id] = position

    @property
    def orders(self) -> List[PendingOrder]:
        with self._lock:
            return list(self._orders.values())

    @property
    def positions(self) -> List[Position]:
        with self._lock:
            return list(self._positions.values())

    def _next_id(self, prefix: str) -> str:
        return f"{prefix}-{next(self._ids)}"

    def _pop_rejection(self, kind: str) -> Optional[str]:
        queue = self._reject_next.get(kind)
        if queue:
            return queue.pop(0)
        return None

    # ------------------------------------------------------------------
    # Ledger contract
    def list_owned(self, symbol: str, owner_tag: str) -> LedgerView:
        with self._lock:
            return LedgerView.of(
                positions=[p for p in self._positions.values() if p.symbol == symbol and p.owner_tag == owner_tag],
                orders=[o for o in self._orders.values() if o.symbol == symbol and o.owner_tag == owner_tag],
            )

    def create_pending_order(
        self,
        symbol: str,
        side: OrderSide,
        trigger_price: float,
        take_profit: Optional[float],
        lots: float,
        owner_tag: str,
        label: str,
    ) -> str:
        with self._lock:
            reason = self._pop_rejection("create")
            if reason:
                raise LedgerCommandRejected(reason)
            if lots <= 0:
                raise LedgerCommandRejected("invalid_volume")
            quote = self._quotes.get(symbol)
            if quote is not None and quote.available:
                if side == BUY_STOP and trigger_price <= quote.ask:
                    raise LedgerCommandRejected("invalid_stops: buy_stop at or below ask")
                if side != BUY_STOP and trigger_price >= quote.bid:
                    raise LedgerCommandRejected("invalid_stops: sell_stop at or above bid")
            order = PendingOrder(
                order_id=self._next_id("ord"),
                symbol=symbol,
                side=side,
                trigger_price=trigger_price,
                take_profit=take_profit,
                owner_tag=owner_tag,
                lots=lots,
                label=label,
                created_at=time.time(),
            )
            self._orders[order.order_id] = order
            return order.order_id

    def cancel_pending_order(self, order_id: str) -> None:
        with self._lock:
            reason = self._pop_rejection("cancel")
            if reason:
                raise LedgerCommandRejected(reason)
            self._orders.pop(order_id, None)

    def modify_stop_loss(self, position_id: str, new_stop: float) -> None:
        with self._lock:
            reason = self._pop_rejection("modify_stop")
            if reason:
                raise LedgerCommandRejected(reason)
            position = self._positions.get(position_id)
            if position is None:
                raise LedgerCommandRejected(f"unknown_position: {position_id}")
            quote = self._quotes.get(position.symbol)
            if quote is not None and quote.available:
                if position.is_long and new_stop >= quote.bid:
                    raise LedgerCommandRejected("invalid_stops: long stop at or above bid")
                if not position.is_long and new_stop <= quote.ask:
                    raise LedgerCommandRejected("invalid_stops: short stop at or below ask")
            self._positions[position_id] = replace(position, stop_loss=new_stop)

    # ------------------------------------------------------------------
    def on_quote(self, snapshot: MarketSnapshot) -> None:
        """Record ``snapshot`` and apply triggers, take-profits and stops."""

        if not snapshot.available:
            return
        with self._lock:
            self._quotes[snapshot.symbol] = snapshot
            self._close_positions(snapshot)
            self._trigger_orders(snapshot)

    def _close_positions(self, snapshot: MarketSnapshot) -> None:
        for position in list(self._positions.values()):
            if position.symbol != snapshot.symbol:
                continue
            exit_price: Optional[float] = None
            reason = ""
            if position.is_long:
                if position.take_profit is not None and snapshot.bid >= position.take_profit:
                    exit_price, reason = position.take_profit, "take_profit"
                elif position.stop_loss is not None and snapshot.bid <= position.stop_loss:
                    exit_price, reason = position.stop_loss, "stop_loss"
            else:
                if position.take_profit is not None and snapshot.ask <= position.take_profit:
                    exit_price, reason = position.take_profit, "take_profit"
                elif position.stop_loss is not None and snapshot.ask >= position.stop_loss:
                    exit_price, reason = position.stop_loss, "stop_loss"
            if exit_price is None:
                continue
            del self._positions[position.position_id]
            trade = ClosedTrade(position, exit_price, reason, snapshot.ts)
            self.history.append(trade)
            self.log.info(
                "paper.position_closed",
                extra={
                    "position_id": position.position_id,
                    "side": position.side,
                    "exit_price": exit_price,
                    "reason": reason,
                    "points": trade.points,
                },
            )

    def _trigger_orders(self, snapshot: MarketSnapshot) -> None:
        for order in list(self._orders.values()):
            if order.symbol != snapshot.symbol:
                continue
            if order.side == BUY_STOP:
                hit = snapshot.ask >= order.trigger_price
            else:
                hit = snapshot.bid <= order.trigger_price
            if not hit or order.order_id not in self._orders:
                continue
            del self._orders[order.order_id]
            position = Position(
                position_id=self._next_id("pos"),
                symbol=order.symbol,
                side="long" if order.side == BUY_STOP else "short",
                entry_price=order.trigger_price,
                owner_tag=order.owner_tag,
                take_profit=order.take_profit,
                lots=order.lots,
                opened_at=snapshot.ts,
            )
            self._positions[position.position_id] = position
            self.log.info(
                "paper.order_filled",
                extra={"order_id": order.order_id, "position_id": position.position_id, "side": position.side},
            )
            if self.oco_auto_cancel:
                for sibling in list(self._orders.values()):
                    if sibling.owner_tag == order.owner_tag and sibling.symbol == order.symbol:
                        del self._orders[sibling.order_id]


__all__ = ["ClosedTrade", "PaperLedger"]
