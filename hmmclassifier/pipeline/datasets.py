"""Load long-format time-series CSV files into classifier datasets."""

from __future__ import annotations

from pathlib import Path
from typing import Iterator, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from hmmclassifier.data import TimeSeriesClassificationData
from hmmclassifier.errors import InputValidationError
from hmmclassifier.util import get_logger

_LOGGER = get_logger(__name__)

SAMPLE_COLUMN = "sample"
LABEL_COLUMN = "label"


def read_timeseries_frame(path: Path, *, require_label: bool = True) -> pd.DataFrame:
    """Read a CSV with one row per timestep, grouped by a ``sample`` column.

    Rows of each sample must already be in time order.
    """

    source = Path(path)
    if not source.exists():
        raise FileNotFoundError(f"Time-series CSV missing at {source}")

    frame = pd.read_csv(source)
    required = [SAMPLE_COLUMN, LABEL_COLUMN] if require_label else [SAMPLE_COLUMN]
    missing = [column for column in required if column not in frame.columns]
    if missing:
        raise InputValidationError(f"{source} is missing required columns {missing}")
    if frame.empty:
        raise InputValidationError(f"{source} contains no rows")
    return frame


def feature_columns_of(
    frame: pd.DataFrame,
    feature_columns: Optional[Sequence[str]] = None,
) -> List[str]:
    if feature_columns is not None:
        missing = [column for column in feature_columns if column not in frame.columns]
        if missing:
            raise InputValidationError(f"feature columns not found: {missing}")
        return list(feature_columns)

    columns = [column for column in frame.columns if column not in (SAMPLE_COLUMN, LABEL_COLUMN)]
    if not columns:
        raise InputValidationError("no feature columns found besides sample/label")
    return columns


def iter_samples(
    frame: pd.DataFrame,
    feature_columns: Sequence[str],
) -> Iterator[Tuple[object, pd.DataFrame, np.ndarray]]:
    """Yield ``(sample_id, rows, values)`` for each sample in order of first appearance."""

    for sample_id, rows in frame.groupby(SAMPLE_COLUMN, sort=False):
        values = rows.loc[:, list(feature_columns)].to_numpy(dtype=float)
        yield sample_id, rows, values


def load_timeseries_csv(
    path: Path,
    *,
    feature_columns: Optional[Sequence[str]] = None,
    name: str = "",
) -> TimeSeriesClassificationData:
    """Build a :class:`TimeSeriesClassificationData` from a long-format CSV."""

    frame = read_timeseries_frame(path)
    columns = feature_columns_of(frame, feature_columns)
    dataset = TimeSeriesClassificationData(num_dimensions=len(columns), name=name or Path(path).stem)

    for sample_id, rows, values in iter_samples(frame, columns):
        labels = rows[LABEL_COLUMN].unique()
        if len(labels) != 1:
            raise InputValidationError(
                f"sample {sample_id!r} carries {len(labels)} different labels"
            )
        dataset.add_sample(int(labels[0]), values)

    _LOGGER.info(
        "Loaded %d samples of %d classes from %s",
        dataset.num_samples,
        dataset.num_classes,
        path,
    )
    return dataset


__all__ = [
    "LABEL_COLUMN",
    "SAMPLE_COLUMN",
    "feature_columns_of",
    "iter_samples",
    "load_timeseries_csv",
    "read_timeseries_frame",
]
