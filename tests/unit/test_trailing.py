from __future__ import annotations

from dataclasses import replace

import pytest

from services.ladder.trailing import next_stop, profit_ticks
from services.ladder.types import Position

TICK = 0.0001


def _long(stop=None) -> Position:
    return Position(
        position_id="pos-1",
        symbol="EURUSD",
        side="long",
        entry_price=1.2000,
        owner_tag="ladder-1",
        stop_loss=stop,
    )


def _short(stop=None) -> Position:
    return Position(
        position_id="pos-2",
        symbol="EURUSD",
        side="short",
        entry_price=1.2000,
        owner_tag="ladder-1",
        stop_loss=stop,
    )


def _trail(position: Position, price: float):
    return next_stop(position, price, 50, 50, 50, TICK)


def test_long_ratchet_sequence() -> None:
    position = _long()

    stop = _trail(position, 1.2050)
    assert stop == pytest.approx(1.2000)
    position = replace(position, stop_loss=stop)

    stop = _trail(position, 1.2100)
    assert stop == pytest.approx(1.2050)
    position = replace(position, stop_loss=stop)

    # pullback keeps the stop where it is
    assert _trail(position, 1.2080) is None


def test_below_break_even_leaves_stop_alone() -> None:
    assert _trail(_long(), 1.2049) is None
    assert _trail(_long(), 1.1900) is None


def test_repeated_identical_input_is_unchanged() -> None:
    position = _long(stop=1.2050)

    assert _trail(position, 1.2100) is None
    assert _trail(position, 1.2100) is None


def test_short_mirrors_long() -> None:
    position = _short()

    stop = _trail(position, 1.1950)
    assert stop == pytest.approx(1.2000)
    position = replace(position, stop_loss=stop)

    stop = _trail(position, 1.1900)
    assert stop == pytest.approx(1.1950)
    position = replace(position, stop_loss=stop)

    assert _trail(position, 1.1920) is None


def test_stop_is_kept_one_tick_behind_price() -> None:
    # break-even at zero profit would otherwise put the stop on the price
    stop = next_stop(_long(), 1.2000, 0, 0, 0, TICK)
    assert stop == pytest.approx(1.1999)

    stop = next_stop(_short(), 1.2000, 0, 0, 0, TICK)
    assert stop == pytest.approx(1.2001)


def test_several_steps_in_one_jump() -> None:
    stop = _trail(_long(), 1.2210)

    # 210 ticks: break-even at 50, then 3 full steps of 50
    assert stop == pytest.approx(1.2150)


def test_existing_stop_past_break_even_is_not_pulled_back() -> None:
    assert _trail(_long(stop=1.2010), 1.2060) is None


def test_break_even_only_when_steps_disabled() -> None:
    stop = next_stop(_long(stop=1.1950), 1.2300, 50, 0, 0, TICK)
    assert stop == pytest.approx(1.2000)


def test_profit_ticks_signed_by_side() -> None:
    assert float(profit_ticks(_long(), 1.2030, TICK)) == pytest.approx(30)
    assert float(profit_ticks(_short(), 1.2030, TICK)) == pytest.approx(-30)


def test_missing_price_is_unchanged() -> None:
    assert next_stop(_long(), 0.0, 50, 50, 50, TICK) is None


def test_sub_precision_tick_keeps_stop_behind_price() -> None:
    long_stop = next_stop(_long(), 1.2000, 0, 0, 0, 0.00005, 4)
    short_stop = next_stop(_short(), 1.2000, 0, 0, 0, 0.00005, 4)

    assert long_stop == pytest.approx(1.1999)
    assert long_stop < 1.2000
    assert short_stop == pytest.approx(1.2001)
