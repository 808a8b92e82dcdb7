"""Ladder domain types: instruments, quotes, ledger rows and derived state."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Literal, Optional, Tuple

OrderSide = Literal["buy_stop", "sell_stop"]
PositionSide = Literal["long", "short"]

BUY_STOP: OrderSide = "buy_stop"
SELL_STOP: OrderSide = "sell_stop"


@dataclass(frozen=True, slots=True)
class Instrument:
    """Static instrument metadata for one trading session."""

    symbol: str
    tick_size: float
    precision: int

    def __post_init__(self) -> None:
        if self.tick_size <= 0:
            raise ValueError(f"tick_size must be positive, got {self.tick_size!r}")
        if self.precision < 0:
            raise ValueError(f"precision must be >= 0, got {self.precision!r}")


@dataclass(frozen=True, slots=True)
class MarketSnapshot:
    """Point-in-time top of book. Zero on either side means no quote."""

    symbol: str
    bid: float
    ask: float
    ts: float = field(default_factory=time.time)

    @property
    def available(self) -> bool:
        if not self.bid or not self.ask:
            return False
        if self.bid <= 0 or self.ask <= 0:
            return False
        return self.bid <= self.ask

    @classmethod
    def unavailable(cls, symbol: str, ts: Optional[float] = None) -> "MarketSnapshot":
        return cls(symbol=symbol, bid=0.0, ask=0.0, ts=ts if ts is not None else time.time())


@dataclass(frozen=True, slots=True)
class PendingOrder:
    """A resting stop order as reported by the ledger."""

    order_id: str
    symbol: str
    side: OrderSide
    trigger_price: float
    take_profit: Optional[float]
    owner_tag: str
    lots: float = 0.0
    label: str = ""
    created_at: float = 0.0


@dataclass(frozen=True, slots=True)
class Position:
    """A filled ladder leg as reported by the ledger."""

    position_id: str
    symbol: str
    side: PositionSide
    entry_price: float
    owner_tag: str
    stop_loss: Optional[float] = None
    take_profit: Optional[float] = None
    lots: float = 0.0
    opened_at: float = 0.0

    @property
    def is_long(self) -> bool:
        return self.side == "long"


@dataclass(frozen=True, slots=True)
class LedgerView:
    """Transient per-cycle view of positions and pending orders."""

    positions: Tuple[Position, ...] = ()
    orders: Tuple[PendingOrder, ...] = ()

    @classmethod
    def of(
        cls,
        positions: Iterable[Position] = (),
        orders: Iterable[PendingOrder] = (),
    ) -> "LedgerView":
        return cls(positions=tuple(positions), orders=tuple(orders))

    def owned_by(self, owner_tag: str, symbol: str) -> "LedgerView":
        """Drop every row that does not carry ``owner_tag`` on ``symbol``."""

        return LedgerView(
            positions=tuple(
                p for p in self.positions if p.owner_tag == owner_tag and p.symbol == symbol
            ),
            orders=tuple(
                o for o in self.orders if o.owner_tag == owner_tag and o.symbol == symbol
            ),
        )

    def orders_on(self, side: OrderSide) -> Tuple[PendingOrder, ...]:
        return tuple(o for o in self.orders if o.side == side)


class LadderState(str, Enum):
    """Ladder phase derived from ledger counts; never persisted."""

    NO_POSITION = "no_position"
    ONE_PENDING_SIDE = "one_pending_side"
    ARMED_PAIR = "armed_pair"
    POSITION_OPEN = "position_open"

    @classmethod
    def derive(cls, view: LedgerView) -> "LadderState":
        """Classify an owner-scoped view.

        Every pending set other than empty or one buy-stop plus one sell-stop
        lands in ``ONE_PENDING_SIDE``, the bucket that gets cleared and
        re-armed.
        """

        if view.positions:
            return cls.POSITION_OPEN
        if not view.orders:
            return cls.NO_POSITION
        if len(view.orders) == 2 and len(view.orders_on(BUY_STOP)) == 1 and len(view.orders_on(SELL_STOP)) == 1:
            return cls.ARMED_PAIR
        return cls.ONE_PENDING_SIDE


__all__ = [
    "BUY_STOP",
    "SELL_STOP",
    "Instrument",
    "LadderState",
    "LedgerView",
    "MarketSnapshot",
    "OrderSide",
    "PendingOrder",
    "Position",
    "PositionSide",
]
