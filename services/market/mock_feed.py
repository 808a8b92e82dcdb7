"""Synthetic quote source used for offline paper runs."""

from __future__ import annotations

import random
import time
from typing import Dict, Iterator, Optional

from core.interfaces import QuoteSource
from services.ladder.pricing import round_price
from services.ladder.types import Instrument, MarketSnapshot


class MockQuoteFeed(QuoteSource):
    """Seeded random-walk bid/ask for a single instrument.

    ``advance()`` moves the walk one step; ``get_snapshot`` returns the
    current quote. With ``drop_rate`` > 0 some steps publish a zero bid, the
    same sentinel a real feed uses when it has no quote.
    """

    def __init__(
        self,
        instrument: Instrument,
        *,
        start_price: float = 1.2000,
        spread_ticks: int = 2,
        volatility_ticks: float = 40.0,
        drop_rate: float = 0.0,
        seed: int = 42,
        interval: float = 1.0,
    ) -> None:
        self.instrument = instrument
        self.spread_ticks = max(1, int(spread_ticks))
        self.volatility_ticks = float(volatility_ticks)
        self.drop_rate = float(drop_rate)
        self.interval = float(interval)
        self._rng = random.Random(seed)
        self._mid = float(start_price)
        self._ts = time.time()
        self._current: MarketSnapshot = self._quote()

    def _quote(self) -> MarketSnapshot:
        tick = self.instrument.tick_size
        half = self.spread_ticks * tick / 2.0
        bid = round_price(self._mid - half, self.instrument.precision)
        ask = round_price(bid + self.spread_ticks * tick, self.instrument.precision)
        return MarketSnapshot(symbol=self.instrument.symbol, bid=bid, ask=ask, ts=self._ts)

    def advance(self) -> MarketSnapshot:
        step = self._rng.gauss(0.0, self.volatility_ticks) * self.instrument.tick_size
        self._mid = max(self.instrument.tick_size * (self.spread_ticks + 1), self._mid + step)
        self._ts += self.interval
        if self.drop_rate and self._rng.random() < self.drop_rate:
            self._current = MarketSnapshot(
                symbol=self.instrument.symbol, bid=0.0, ask=self._current.ask, ts=self._ts
            )
        else:
            self._current = self._quote()
        return self._current

    def stream(self, iterations: int) -> Iterator[MarketSnapshot]:
        for _ in range(max(0, int(iterations))):
            yield self.advance()

    # QuoteSource contract
    def get_snapshot(self, symbol: str) -> MarketSnapshot:
        if symbol != self.instrument.symbol:
            return MarketSnapshot.unavailable(symbol, ts=self._ts)
        return self._current

    def get_instrument(self, symbol: str) -> Instrument:
        if symbol != self.instrument.symbol:
            raise KeyError(f"unknown instrument: {symbol}")
        return self.instrument


class StaticQuoteSource(QuoteSource):
    """Quote source whose snapshots are set explicitly by the caller."""

    def __init__(self, instrument: Instrument, snapshot: Optional[MarketSnapshot] = None) -> None:
        self.instrument = instrument
        self._quotes: Dict[str, MarketSnapshot] = {}
        if snapshot is not None:
            self.set(snapshot)

    def set(self, snapshot: MarketSnapshot) -> None:
        self._quotes[snapshot.symbol] = snapshot

    def set_prices(self, bid: float, ask: float) -> MarketSnapshot:
        snapshot = MarketSnapshot(symbol=self.instrument.symbol, bid=bid, ask=ask)
        self.set(snapshot)
        return snapshot

    def get_snapshot(self, symbol: str) -> MarketSnapshot:
        return self._quotes.get(symbol) or MarketSnapshot.unavailable(symbol)

    def get_instrument(self, symbol: str) -> Instrument:
        if symbol != self.instrument.symbol:
            raise KeyError(f"unknown instrument: {symbol}")
        return self.instrument


__all__ = ["MockQuoteFeed", "StaticQuoteSource"]
