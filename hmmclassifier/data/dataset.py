"""Labeled dataset containers consumed by the classifier."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

import numpy as np

from hmmclassifier.data.ranges import FeatureRanges
from hmmclassifier.errors import InputValidationError
from hmmclassifier.settings import NULL_CLASS_LABEL


@dataclass(frozen=True)
class ClassTrackerEntry:
    """Number of samples recorded for one class label."""

    class_label: int
    counter: int


@dataclass(frozen=True, eq=False)
class TimeSeriesSample:
    """A single labeled ``(timesteps, dims)`` time series."""

    class_label: int
    data: np.ndarray

    @property
    def length(self) -> int:
        return int(self.data.shape[0])


def _validate_label(label: int) -> int:
    if isinstance(label, bool) or int(label) != label:
        raise InputValidationError(f"class labels must be integers, got {label!r}")
    label = int(label)
    if label == NULL_CLASS_LABEL:
        raise InputValidationError(
            f"class label {NULL_CLASS_LABEL} is reserved for null rejection"
        )
    if label < 0:
        raise InputValidationError(f"class labels must be positive, got {label}")
    return label


class _LabeledData:
    """Bookkeeping shared by the flat and time-series containers."""

    def __init__(self, num_dimensions: Optional[int] = None, name: str = "") -> None:
        self.name = name
        self._num_dimensions = num_dimensions
        self._labels: List[int] = []
        self._counts: Dict[int, int] = {}

    def _track(self, label: int) -> None:
        self._labels.append(label)
        self._counts[label] = self._counts.get(label, 0) + 1

    def _check_dimensions(self, dims: int) -> None:
        if self._num_dimensions is None:
            self._num_dimensions = dims
        elif dims != self._num_dimensions:
            raise InputValidationError(
                f"sample has {dims} dimensions, dataset expects {self._num_dimensions}"
            )

    @property
    def num_samples(self) -> int:
        return len(self._labels)

    @property
    def num_dimensions(self) -> int:
        return int(self._num_dimensions or 0)

    @property
    def num_classes(self) -> int:
        return len(self._counts)

    @property
    def class_tracker(self) -> List[ClassTrackerEntry]:
        """Class labels with sample counts, ordered by first appearance."""

        return [ClassTrackerEntry(label, count) for label, count in self._counts.items()]

    @property
    def class_labels(self) -> List[int]:
        return list(self._counts)

    def __len__(self) -> int:
        return self.num_samples


class ClassificationData(_LabeledData):
    """Flat (unordered) labeled feature vectors.

    Kept so callers passing static vectors to the time-series classifier get a
    clear error instead of a shape failure deep inside a sub-model.
    """

    def __init__(self, num_dimensions: Optional[int] = None, name: str = "") -> None:
        super().__init__(num_dimensions, name)
        self._vectors: List[np.ndarray] = []

    def add_sample(self, class_label: int, vector: Sequence[float]) -> None:
        label = _validate_label(class_label)
        values = np.asarray(vector, dtype=float).reshape(-1)
        self._check_dimensions(values.size)
        self._vectors.append(values)
        self._track(label)

    def __getitem__(self, index: int) -> Tuple[int, np.ndarray]:
        return self._labels[index], self._vectors[index]


class TimeSeriesClassificationData(_LabeledData):
    """Ordered collection of labeled time series sharing one dimensionality."""

    def __init__(self, num_dimensions: Optional[int] = None, name: str = "") -> None:
        super().__init__(num_dimensions, name)
        self._samples: List[TimeSeriesSample] = []

    def add_sample(self, class_label: int, timeseries: np.ndarray) -> None:
        """Append a series; a 1D array is treated as a single-column series."""

        label = _validate_label(class_label)
        data = np.array(timeseries, dtype=float)
        if data.ndim == 1:
            data = data.reshape(-1, 1)
        if data.ndim != 2 or data.shape[0] == 0:
            raise InputValidationError(
                f"time series must be a non-empty (timesteps, dims) array, got shape {data.shape}"
            )
        self._check_dimensions(int(data.shape[1]))
        self._samples.append(TimeSeriesSample(label, data))
        self._track(label)

    def __getitem__(self, index: int) -> TimeSeriesSample:
        return self._samples[index]

    def __iter__(self) -> Iterator[TimeSeriesSample]:
        return iter(self._samples)

    def get_class_data(self, class_label: int) -> "TimeSeriesClassificationData":
        """Return a new dataset holding only the samples of ``class_label``."""

        subset = TimeSeriesClassificationData(self._num_dimensions, self.name)
        for sample in self._samples:
            if sample.class_label == class_label:
                subset.add_sample(sample.class_label, sample.data)
        return subset

    def get_ranges(self) -> FeatureRanges:
        if not self._samples:
            raise InputValidationError("cannot compute ranges of an empty dataset")
        return FeatureRanges.from_values(np.vstack([sample.data for sample in self._samples]))

    def scale(
        self,
        ranges: Optional[FeatureRanges] = None,
        target: Tuple[float, float] = (0.0, 1.0),
    ) -> "TimeSeriesClassificationData":
        """Return a copy with every dimension rescaled into ``target``.

        ``ranges`` defaults to this dataset's own ranges.
        """

        ranges = ranges or self.get_ranges()
        scaled = TimeSeriesClassificationData(self._num_dimensions, self.name)
        for sample in self._samples:
            scaled.add_sample(sample.class_label, ranges.transform(sample.data, target))
        return scaled


__all__ = [
    "ClassTrackerEntry",
    "ClassificationData",
    "TimeSeriesClassificationData",
    "TimeSeriesSample",
]
