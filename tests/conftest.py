import numpy as np
import pytest

from hmmclassifier.data import TimeSeriesClassificationData

CLASS_ONE_SEQUENCES = [
    [0, 1, 0, 0, 1, 1, 0, 1],
    [1, 0, 1, 0, 0, 1],
    [0, 0, 1, 1, 0, 1, 0],
]
CLASS_TWO_SEQUENCES = [
    [2, 3, 2, 2, 3, 3, 2],
    [3, 2, 3, 2, 2, 3],
    [2, 2, 3, 3, 2, 3, 2, 3],
]


@pytest.fixture
def symbol_dataset() -> TimeSeriesClassificationData:
    """Class 1 only emits symbols {0, 1}, class 2 only {2, 3}."""

    dataset = TimeSeriesClassificationData(name="symbols")
    for sequence in CLASS_ONE_SEQUENCES:
        dataset.add_sample(1, np.array(sequence, dtype=float))
    for sequence in CLASS_TWO_SEQUENCES:
        dataset.add_sample(2, np.array(sequence, dtype=float))
    return dataset


def exemplar(level: float, length: int = 10, dims: int = 1, slope: float = 0.0) -> np.ndarray:
    steps = np.arange(length, dtype=float).reshape(-1, 1)
    return np.repeat(level + slope * steps, dims, axis=1)


@pytest.fixture
def exemplar_dataset() -> TimeSeriesClassificationData:
    """Three class-1 exemplars near 0 and two class-2 exemplars near 5."""

    dataset = TimeSeriesClassificationData(name="exemplars")
    for offset in (0.0, 0.02, 0.04):
        dataset.add_sample(1, exemplar(offset))
    for offset in (5.0, 5.02):
        dataset.add_sample(2, exemplar(offset))
    return dataset
