"""Core interfaces defining contracts between the ladder and its venue."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from services.ladder.types import Instrument, LedgerView, MarketSnapshot, OrderSide


class QuoteSource(ABC):
    """Interface for point-in-time market snapshots."""

    @abstractmethod
    def get_snapshot(self, symbol: str) -> MarketSnapshot:
        """Return the latest quote for ``symbol``.

        Implementations return ``MarketSnapshot.unavailable`` rather than
        raising when no quote exists.
        """

    @abstractmethod
    def get_instrument(self, symbol: str) -> Instrument:
        """Return tick size and price precision for ``symbol``."""


class Ledger(ABC):
    """Interface for the order/position book the ladder trades against."""

    @abstractmethod
    def list_owned(self, symbol: str, owner_tag: str) -> LedgerView:
        """Return open positions and pending orders tagged ``owner_tag`` on ``symbol``."""

    @abstractmethod
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
        """Place a stop order and return its identifier.

        Raises ``LedgerCommandRejected`` when the venue refuses it.
        """

    @abstractmethod
    def cancel_pending_order(self, order_id: str) -> None:
        """Cancel ``order_id``. Absent orders must be treated as success."""

    @abstractmethod
    def modify_stop_loss(self, position_id: str, new_stop: float) -> None:
        """Move the protective stop of ``position_id``."""
