"""Labelled Prometheus-style counters and gauges for the ladder runtime."""

from __future__ import annotations

import threading
from collections import defaultdict
from typing import Dict, List, Tuple

Labels = Tuple[Tuple[str, str], ...]
SeriesKey = Tuple[str, Labels]


def _labels(raw: Dict[str, object]) -> Labels:
    return tuple(sorted((key, str(value)) for key, value in raw.items()))


def _series(name: str, labels: Labels) -> str:
    if not labels:
        return name
    body = ",".join(f'{key}="{value}"' for key, value in labels)
    return f"{name}{{{body}}}"


class Metrics:
    """Thread-safe counters and gauges, one series per label set.

    ``metrics.inc("commands", kind="create")`` renders as
    ``ladder_commands_total{kind="create"}``.
    """

    def __init__(self, prefix: str = "ladder") -> None:
        self.prefix = prefix
        self._counters: Dict[SeriesKey, float] = {}
        self._gauges: Dict[SeriesKey, float] = {}
        self._lock = threading.Lock()

    def _family(self, name: str) -> str:
        name = name.replace(".", "_")
        return f"{self.prefix}_{name}" if self.prefix else name

    def inc(self, name: str, amount: float = 1.0, **labels: object) -> None:
        if amount < 0:
            raise ValueError(f"counter {name} cannot decrease")
        key = (name, _labels(labels))
        with self._lock:
            self._counters[key] = self._counters.get(key, 0.0) + amount

    def set(self, name: str, value: float, **labels: object) -> None:
        key = (name, _labels(labels))
        with self._lock:
            self._gauges[key] = float(value)

    def counter(self, name: str, **labels: object) -> float:
        with self._lock:
            return self._counters.get((name, _labels(labels)), 0.0)

    def gauge(self, name: str, **labels: object) -> float:
        with self._lock:
            return self._gauges.get((name, _labels(labels)), 0.0)

    def total(self, name: str) -> float:
        """Sum of a counter across all of its label sets."""

        with self._lock:
            return sum(value for (key, _), value in self._counters.items() if key == name)

    def render(self) -> str:
        with self._lock:
            counters = dict(self._counters)
            gauges = dict(self._gauges)

        families: Dict[Tuple[str, str], List[str]] = defaultdict(list)
        for (name, labels), value in sorted(counters.items()):
            family = f"{self._family(name)}_total"
            families[(family, "counter")].append(f"{_series(family, labels)} {value}")
        for (name, labels), value in sorted(gauges.items()):
            family = self._family(name)
            families[(family, "gauge")].append(f"{_series(family, labels)} {value}")

        lines: List[str] = []
        for (family, kind), series in families.items():
            lines.append(f"# TYPE {family} {kind}")
            lines.extend(series)
        return "\n".join(lines) + "\n"


__all__ = ["Metrics"]
