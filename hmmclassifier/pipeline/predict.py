"""Classify every sample of a time-series CSV with a saved model."""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import pandas as pd

from hmmclassifier.errors import InputValidationError
from hmmclassifier.io.file_locator import ensure_directory
from hmmclassifier.io.model_file import load_model
from hmmclassifier.util import get_logger

from .datasets import SAMPLE_COLUMN, feature_columns_of, iter_samples, read_timeseries_frame

_LOGGER = get_logger(__name__)


def predict_from_csv(
    model_path: Path,
    csv_path: Path,
    output_path: Optional[Path] = None,
) -> pd.DataFrame:
    """Return one row per sample with its predicted label and class likelihoods.

    The ``label`` column is optional in ``csv_path``; when present it is
    ignored for prediction. Results are also written to ``output_path`` when
    given.
    """

    classifier = load_model(model_path)
    frame = read_timeseries_frame(csv_path, require_label=False)
    columns = feature_columns_of(frame)
    if len(columns) != classifier.num_input_dimensions:
        raise InputValidationError(
            f"{csv_path} has {len(columns)} feature columns, "
            f"the model expects {classifier.num_input_dimensions}"
        )

    records: List[Dict[str, object]] = []
    for sample_id, _, values in iter_samples(frame, columns):
        prediction = classifier.predict(values)
        record: Dict[str, object] = {
            SAMPLE_COLUMN: sample_id,
            "predicted_label": prediction.predicted_class_label,
            "max_likelihood": prediction.max_likelihood,
        }
        for label, likelihood in prediction.likelihood_by_label().items():
            record[f"likelihood_{label}"] = likelihood
        records.append(record)

    predictions = pd.DataFrame.from_records(records)

    if output_path is not None:
        target = Path(output_path)
        ensure_directory(target.parent)
        predictions.to_csv(target, index=False)
        _LOGGER.info("Wrote %d predictions to %s", len(predictions), target)

    return predictions


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("model_path", type=Path, help="model file written by training")
    parser.add_argument("csv_path", type=Path, help="long-format CSV to classify")
    parser.add_argument("--output", type=Path, default=None, help="where to write predictions")
    args = parser.parse_args(argv)
    predictions = predict_from_csv(args.model_path, args.csv_path, args.output)
    if args.output is None:
        print(predictions.to_csv(index=False), end="")


if __name__ == "__main__":
    main()
