"""Timing histograms keyed by metric name."""

from __future__ import annotations

import logging
import math
import threading
from collections import Counter
from dataclasses import dataclass

logger = logging.getLogger(__name__)

_U64_MAX = (1 << 64) - 1
_NANOS_PER_SECOND = 1e9


class Histogram:
    """Records non-negative integer samples and answers quantile queries exactly."""

    def __init__(self) -> None:
        self._counts: Counter[int] = Counter()
        self._total = 0

    def __len__(self) -> int:
        return self._total

    def record(self, value: int) -> None:
        """Add one sample."""
        if value < 0:
            raise ValueError("histogram values must not be negative")
        self._counts[value] += 1
        self._total += 1

    def value_at_quantile(self, quantile: float) -> int:
        """Smallest recorded value at or below which ``quantile`` of the samples lie.

        The quantile is clamped to [0, 1]; an empty histogram yields 0.
        """
        if not self._total:
            return 0
        quantile = min(max(quantile, 0.0), 1.0)
        target = max(1, math.ceil(quantile * self._total))
        running = 0
        for value in sorted(self._counts):
            running += self._counts[value]
            if running >= target:
                return value
        return max(self._counts)


@dataclass(frozen=True)
class MetricReport:
    """Summary of one metric, all values in nanoseconds."""

    key: str
    percentile_25: int
    percentile_50: int
    percentile_75: int
    max: int


def _to_nanos(seconds: float) -> int:
    if math.isnan(seconds) or seconds <= 0:
        return 0
    nanos = seconds * _NANOS_PER_SECOND
    if nanos >= _U64_MAX:
        return _U64_MAX
    return int(nanos)


class Recorder:
    """Collects durations, given in seconds, into one histogram per key."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._histograms: dict[str, Histogram] = {}

    def record(self, key: str, value: float) -> None:
        """Record a duration of ``value`` seconds under ``key``."""
        with self._lock:
            self._histograms.setdefault(key, Histogram()).record(_to_nanos(value))

    def histogram(self, key: str) -> Histogram | None:
        """The histogram for ``key``, if anything was recorded under it."""
        with self._lock:
            return self._histograms.get(key)

    def report(self) -> list[MetricReport]:
        """Log and return the quartiles and maximum of every metric."""
        with self._lock:
            rows = [
                MetricReport(
                    key=key,
                    percentile_25=hist.value_at_quantile(0.25),
                    percentile_50=hist.value_at_quantile(0.50),
                    percentile_75=hist.value_at_quantile(0.75),
                    max=hist.value_at_quantile(1.0),
                )
                for key, hist in sorted(self._histograms.items())
            ]
        for row in rows:
            logger.info(
                "metric key=%s percentile_25=%dns percentile_50=%dns "
                "percentile_75=%dns max=%dns",
                row.key,
                row.percentile_25,
                row.percentile_50,
                row.percentile_75,
                row.max,
            )
        return rows