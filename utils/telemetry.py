from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Dict, Iterator, Tuple


class Telemetry:
    """In-process counters and latency stats for scorer calls.

    Timings are kept as running totals, so memory stays flat no matter how
    many calls a long-lived scorer serves.
    """

    def __init__(self) -> None:
        self.counters: Dict[str, int] = {}
        self.timings_ms: Dict[str, float] = {}
        self._extremes_ms: Dict[str, Tuple[float, float]] = {}

    def incr(self, name: str, value: int = 1) -> None:
        self.counters[name] = self.counters.get(name, 0) + value

    def count(self, name: str) -> int:
        return self.counters.get(name, 0)

    def observe_ms(self, name: str, ms: float) -> None:
        self.timings_ms[name] = self.timings_ms.get(name, 0.0) + ms
        self.incr(f"{name}:count")
        low, high = self._extremes_ms.get(name, (ms, ms))
        self._extremes_ms[name] = (min(low, ms), max(high, ms))

    @contextmanager
    def timer(self, name: str) -> Iterator[None]:
        start = time.perf_counter()
        try:
            yield
        finally:
            self.observe_ms(name, (time.perf_counter() - start) * 1000.0)

    def summary(self) -> Dict[str, Dict[str, float]]:
        out: Dict[str, Dict[str, float]] = {}
        for name, total in self.timings_ms.items():
            count = self.count(f"{name}:count")
            low, high = self._extremes_ms.get(name, (0.0, 0.0))
            out[name] = {
                "count": float(count),
                "total_ms": float(total),
                "avg_ms": float(total / count) if count else 0.0,
                "min_ms": float(low),
                "max_ms": float(high),
            }
        return out
