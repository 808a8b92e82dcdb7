"""Break-even and step trailing for open ladder positions."""

from __future__ import annotations

import math
from decimal import ROUND_CEILING, ROUND_FLOOR, Decimal
from typing import Optional

from services.ladder.pricing import precision_from_tick, round_price
from services.ladder.types import Position


def profit_ticks(position: Position, current_price: float, tick_size: float) -> Decimal:
    """Unrealized profit in ticks, positive when the position is in the money."""

    move = Decimal(str(current_price)) - Decimal(str(position.entry_price))
    if not position.is_long:
        move = -move
    return move / Decimal(str(tick_size))


def next_stop(
    position: Position,
    current_price: float,
    break_even_points: int,
    step_trigger: int,
    step_size: int,
    tick_size: float,
    precision: Optional[int] = None,
) -> Optional[float]:
    """Return the ratcheted stop for ``position`` or ``None`` when unchanged.

    Once profit reaches ``break_even_points`` the stop goes to entry. Every
    further ``step_trigger`` ticks of profit advance it ``step_size`` ticks.
    The stop always stays at least one tick behind ``current_price`` and
    only ever moves in the direction that locks in more profit.
    """

    if tick_size <= 0:
        raise ValueError(f"tick_size must be positive, got {tick_size!r}")
    if not current_price or current_price <= 0:
        return None
    if precision is None:
        precision = precision_from_tick(tick_size)

    profit = profit_ticks(position, current_price, tick_size)
    if profit < Decimal(break_even_points):
        return None

    steps = 0
    if step_trigger > 0 and step_size > 0:
        steps = math.floor((profit - Decimal(break_even_points)) / Decimal(step_trigger))
    offset = Decimal(steps * step_size) * Decimal(str(tick_size))

    tick = Decimal(str(tick_size))
    entry = Decimal(str(position.entry_price))
    price = Decimal(str(current_price))
    if position.is_long:
        candidate = min(entry + offset, price - tick)
    else:
        candidate = max(entry - offset, price + tick)
    stop = round_price(candidate, precision)
    if position.is_long and stop >= current_price:
        stop = round_price(price - tick, precision, ROUND_FLOOR)
    elif not position.is_long and stop <= current_price:
        stop = round_price(price + tick, precision, ROUND_CEILING)

    current = position.stop_loss
    if current is not None:
        if position.is_long and stop <= current:
            return None
        if not position.is_long and stop >= current:
            return None
    return stop


__all__ = ["next_stop", "profit_ticks"]
