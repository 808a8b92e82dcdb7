"""Ladder entry and take-profit price calculation."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_CEILING, ROUND_FLOOR, ROUND_HALF_UP, Decimal
from typing import Optional, Union

from services.ladder.types import MarketSnapshot

Number = Union[int, float, Decimal]


def _dec(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _quantum(precision: int) -> Decimal:
    return Decimal(1).scaleb(-int(precision))


def round_price(value: Number, precision: int, rounding: str = ROUND_HALF_UP) -> float:
    """Round ``value`` at ``precision`` decimal places, half away from zero by default."""

    return float(_dec(value).quantize(_quantum(precision), rounding=rounding))


def precision_from_tick(tick_size: Number) -> int:
    """Decimal places implied by a tick size, e.g. 0.0001 -> 4, 0.25 -> 2."""

    exponent = _dec(tick_size).normalize().as_tuple().exponent
    return max(0, -int(exponent))


@dataclass(frozen=True, slots=True)
class LadderPrices:
    buy_stop: float
    buy_take_profit: Optional[float]
    sell_stop: float
    sell_take_profit: Optional[float]


def compute_ladder_prices(
    snapshot: MarketSnapshot,
    gap_points: int,
    take_profit_points: int,
    tick_size: float,
    precision: int,
) -> LadderPrices:
    """Bracket the market with a buy-stop above ask and a sell-stop below bid.

    Both legs sit ``gap_points`` ticks away from the touch and are clamped to
    at least one tick beyond it. Take-profit levels are measured from the
    leg's own trigger; ``take_profit_points == 0`` leaves them unset.
    """

    if not snapshot.available:
        raise ValueError(f"cannot price ladder for {snapshot.symbol}: quote unavailable")
    if gap_points < 0 or take_profit_points < 0:
        raise ValueError("gap_points and take_profit_points must be non-negative")
    if tick_size <= 0:
        raise ValueError(f"tick_size must be positive, got {tick_size!r}")

    tick = _dec(tick_size)
    ask = _dec(snapshot.ask)
    bid = _dec(snapshot.bid)
    q = _quantum(precision)

    buy_stop = (ask + _dec(gap_points) * tick).quantize(q, rounding=ROUND_HALF_UP)
    if buy_stop <= ask:
        # round away from the touch so a sub-precision tick cannot land on it
        buy_stop = (ask + tick).quantize(q, rounding=ROUND_CEILING)

    sell_stop = (bid - _dec(gap_points) * tick).quantize(q, rounding=ROUND_HALF_UP)
    if sell_stop >= bid:
        sell_stop = (bid - tick).quantize(q, rounding=ROUND_FLOOR)

    buy_tp: Optional[float] = None
    sell_tp: Optional[float] = None
    if take_profit_points > 0:
        buy_tp = round_price(buy_stop + _dec(take_profit_points) * tick, precision)
        sell_tp = round_price(sell_stop - _dec(take_profit_points) * tick, precision)

    return LadderPrices(
        buy_stop=float(buy_stop),
        buy_take_profit=buy_tp,
        sell_stop=float(sell_stop),
        sell_take_profit=sell_tp,
    )


__all__ = ["LadderPrices", "compute_ladder_prices", "precision_from_tick", "round_price"]
