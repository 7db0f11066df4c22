"""Per-dimension feature ranges and min/max rescaling."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Tuple

import numpy as np
from sklearn.preprocessing import MinMaxScaler

from hmmclassifier.errors import InputValidationError


@dataclass(frozen=True, eq=False)
class FeatureRanges:
    """Minimum and maximum of every feature dimension seen during training."""

    minimums: np.ndarray
    maximums: np.ndarray
    _scalers: Dict[Tuple[float, float], MinMaxScaler] = field(
        default_factory=dict, init=False, repr=False
    )

    def __post_init__(self) -> None:
        minimums = np.asarray(self.minimums, dtype=float).reshape(-1)
        maximums = np.asarray(self.maximums, dtype=float).reshape(-1)
        if minimums.shape != maximums.shape:
            raise InputValidationError("range minimums and maximums must have the same length")
        if np.any(minimums > maximums):
            raise InputValidationError("range minimums must not exceed maximums")
        object.__setattr__(self, "minimums", minimums)
        object.__setattr__(self, "maximums", maximums)

    @classmethod
    def from_values(cls, values: np.ndarray) -> "FeatureRanges":
        """Capture the column-wise ranges of a ``(rows, dims)`` array."""

        matrix = np.asarray(values, dtype=float)
        if matrix.ndim != 2 or matrix.shape[0] == 0:
            raise InputValidationError("ranges require a non-empty 2D array")
        return cls(matrix.min(axis=0), matrix.max(axis=0))

    @classmethod
    def from_pairs(cls, pairs: Sequence[Tuple[float, float]]) -> "FeatureRanges":
        payload = np.asarray(pairs, dtype=float).reshape(-1, 2)
        return cls(payload[:, 0], payload[:, 1])

    @property
    def num_dimensions(self) -> int:
        return int(self.minimums.size)

    def pairs(self) -> List[Tuple[float, float]]:
        return [(float(low), float(high)) for low, high in zip(self.minimums, self.maximums)]

    def scaler(self, target: Tuple[float, float] = (0.0, 1.0)) -> MinMaxScaler:
        """Return the ``MinMaxScaler`` fitted to exactly these ranges, one per ``target``."""

        key = (float(target[0]), float(target[1]))
        scaler = self._scalers.get(key)
        if scaler is None:
            scaler = MinMaxScaler(feature_range=key)
            scaler.fit(np.vstack([self.minimums, self.maximums]))
            self._scalers[key] = scaler
        return scaler

    def transform(
        self,
        values: np.ndarray,
        target: Tuple[float, float] = (0.0, 1.0),
    ) -> np.ndarray:
        """Rescale ``values`` (a vector or ``(rows, dims)`` array) into ``target``.

        The input is never modified; values outside the training range map
        outside ``target``.
        """

        array = np.asarray(values, dtype=float)
        matrix = array.reshape(1, -1) if array.ndim == 1 else array
        if matrix.ndim != 2 or matrix.shape[1] != self.num_dimensions:
            raise InputValidationError(
                f"expected {self.num_dimensions} feature dimensions for scaling, "
                f"got shape {array.shape}"
            )
        scaled = self.scaler(target).transform(matrix)
        return scaled.reshape(array.shape)


__all__ = ["FeatureRanges"]
