"""Conversions between log-likelihood, distance and class-likelihood spaces."""

from __future__ import annotations

from typing import Sequence, Tuple

import numpy as np


def antilog(values: np.ndarray) -> np.ndarray:
    """Convert log-likelihoods back to likelihoods."""

    return np.exp(np.asarray(values, dtype=float))


def normalize(values: Sequence[float]) -> np.ndarray:
    """Scale non-negative ``values`` to sum to one; an all-zero input stays zero."""

    vector = np.asarray(values, dtype=float)
    total = vector.sum()
    if total == 0 or not np.isfinite(total):
        return np.zeros_like(vector)
    return vector / total


def log_likelihoods_to_likelihoods(distances: Sequence[float]) -> np.ndarray:
    """Normalized class likelihoods ``exp(d_k) / sum_j exp(d_j)``.

    The largest finite distance is subtracted before the antilog, which leaves
    the ratio unchanged but keeps long sequences (log-likelihoods in the
    thousands) from underflowing to an all-zero vector. ``-inf`` and NaN
    distances get zero likelihood.
    """

    vector = np.asarray(distances, dtype=float)
    vector = np.where(np.isnan(vector), -np.inf, vector)
    finite = np.isfinite(vector)
    if not finite.any():
        return np.zeros_like(vector)
    shifted = np.where(finite, vector - vector[finite].max(), -np.inf)
    return normalize(antilog(shifted))


def best_index(values: Sequence[float]) -> int:
    """Index of the strictly greatest value; ties resolve to the first occurrence."""

    vector = np.asarray(values, dtype=float)
    best, best_value = 0, -np.inf
    for index, value in enumerate(vector):
        if value > best_value:
            best, best_value = index, value
    return best


def min_max(values: Sequence[float]) -> Tuple[float, float]:
    """Minimum and maximum over the finite entries of ``values``."""

    vector = np.asarray(values, dtype=float)
    finite = vector[np.isfinite(vector)]
    if finite.size == 0:
        return -np.inf, -np.inf
    return float(finite.min()), float(finite.max())


__all__ = [
    "antilog",
    "best_index",
    "log_likelihoods_to_likelihoods",
    "min_max",
    "normalize",
]
