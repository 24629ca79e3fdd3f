"""Return and drawdown helpers for price series."""

from __future__ import annotations

from typing import Iterable


def simple_return(start: float, end: float) -> float:
    if start == 0:
        return 0.0
    return (end - start) / start


def peak_to_trough(values: Iterable[float]) -> float:
    """Fractional move from the series maximum to its minimum (<= 0)."""
    series = list(values)
    if not series:
        return 0.0
    peak = max(series)
    if peak <= 0:
        return 0.0
    return (min(series) - peak) / peak


def mean(values: Iterable[float]) -> float:
    series = list(values)
    if not series:
        return 0.0
    return sum(series) / len(series)


__all__ = ['mean', 'peak_to_trough', 'simple_return']
