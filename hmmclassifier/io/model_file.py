"""Read and write classifiers in the line-oriented ``HMM_MODEL_FILE_V1.0`` format.

A file starts with the classifier settings as ``Key: value`` lines, followed
by one block per trained sub-model: a per-class block (``Model_ID``) for
discrete classifiers, or the feature ``Ranges`` and one block per exemplar
(``Exemplar_ID``) for continuous ones. Matrices follow a bare ``A:``/``B:``/
``Means:``/``Covars:``/``Pi:`` marker, one whitespace separated row per line.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

import numpy as np
from pydantic import ValidationError

from hmmclassifier.classifier import HMMClassifier, TrainedState
from hmmclassifier.continuous import ContinuousEnsemble
from hmmclassifier.data import FeatureRanges
from hmmclassifier.discrete import DiscreteEnsemble
from hmmclassifier.errors import ModelFileError
from hmmclassifier.io.file_locator import ensure_directory
from hmmclassifier.io.schemas import DiscreteModelBlock, ExemplarModelBlock, ModelFileHeader
from hmmclassifier.models import (
    ContinuousHMM,
    ContinuousTrainingConfig,
    DiscreteHMM,
    DiscreteTrainingConfig,
)
from hmmclassifier.settings import ClassifierConfig, HMMType, config_from_mapping
from hmmclassifier.util import get_logger, log_and_raise

_LOGGER = get_logger(__name__)

FILE_HEADER = "HMM_MODEL_FILE_V1.0"
_NONE = "NONE"

# File key -> ClassifierConfig field, in the order they are written.
_SETTING_KEYS: Tuple[Tuple[str, str], ...] = (
    ("HMMType", "hmm_type"),
    ("ModelType", "model_type"),
    ("Delta", "delta"),
    ("NumStates", "num_states"),
    ("NumSymbols", "num_symbols"),
    ("DownsampleFactor", "downsample_factor"),
    ("CommitteeSize", "committee_size"),
    ("MaxTrainingEpochs", "max_training_epochs"),
    ("MinLogLikelihoodChange", "min_log_likelihood_change"),
    ("NumRandomTrainingIterations", "num_random_training_iterations"),
    ("RandomState", "random_state"),
    ("Sigma", "sigma"),
    ("AutoEstimateSigma", "auto_estimate_sigma"),
    ("UseScaling", "use_scaling"),
    ("UseNullRejection", "use_null_rejection"),
)


def _fmt(value: Any) -> str:
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, (int, np.integer)):
        return str(int(value))
    return repr(float(value))


def _row(values: Iterable[Any]) -> str:
    return " ".join(_fmt(value) for value in values)


class _Writer:
    def __init__(self) -> None:
        self.lines: List[str] = [FILE_HEADER]

    def value(self, key: str, value: Any) -> None:
        self.lines.append(f"{key}: {value}")

    def matrix(self, key: str, rows: np.ndarray) -> None:
        self.lines.append(f"{key}:")
        for row in np.atleast_2d(rows):
            self.lines.append(_row(row))


def _write_settings(writer: _Writer, config: ClassifierConfig) -> None:
    for key, field in _SETTING_KEYS:
        value = getattr(config, field)
        if field in ("hmm_type", "model_type"):
            writer.value(key, value.name)
        else:
            writer.value(key, _fmt(value))


def _write_discrete(writer: _Writer, ensemble: DiscreteEnsemble) -> None:
    for model_id, model in enumerate(ensemble.models, start=1):
        cfg = model.config
        writer.value("Model_ID", model_id)
        writer.value("NumStates", cfg.num_states)
        writer.value("NumSymbols", cfg.num_symbols)
        writer.value("ModelType", cfg.model_type.name)
        writer.value("Delta", cfg.delta)
        writer.value("MaxNumEpochs", cfg.max_epochs)
        writer.value("MinChange", _fmt(cfg.min_change))
        writer.matrix("A", model.transmat)
        writer.matrix("B", model.emissionprob)
        writer.matrix("Pi", model.startprob)


def _write_continuous(writer: _Writer, ensemble: ContinuousEnsemble) -> None:
    if ensemble.ranges is None:
        writer.value("Ranges", _NONE)
    else:
        writer.lines.append("Ranges:")
        writer.lines.extend(_row(pair) for pair in ensemble.ranges.pairs())

    writer.value("NumExemplars", len(ensemble.models))
    for exemplar_id, model in enumerate(ensemble.models, start=1):
        writer.value("Exemplar_ID", exemplar_id)
        writer.value("ClassLabel", model.class_label)
        writer.value("NumStates", model.num_states)
        writer.value("NumDimensions", model.num_dimensions)
        writer.value("ModelType", model.config.model_type.name)
        writer.value("Delta", model.config.delta)
        writer.matrix("A", model.transmat)
        writer.matrix("Means", model.means)
        writer.matrix("Covars", model.variances)
        writer.matrix("Pi", model.startprob)


def dumps_model(classifier: HMMClassifier) -> str:
    """Serialize ``classifier`` to the text model format."""

    writer = _Writer()
    _write_settings(writer, classifier.config)

    state = classifier.trained_state
    writer.value("Trained", _fmt(state is not None))
    writer.value("NumInputDimensions", classifier.num_input_dimensions)
    writer.value("NumClasses", classifier.num_classes)
    writer.value("ClassLabels", _row(classifier.class_labels))
    thresholds = classifier.null_rejection_thresholds
    writer.value("NullRejectionThresholds", _NONE if thresholds is None else _row(thresholds))

    if isinstance(state, DiscreteEnsemble):
        _write_discrete(writer, state)
    elif isinstance(state, ContinuousEnsemble):
        _write_continuous(writer, state)

    return "\n".join(writer.lines) + "\n"


def save_model(classifier: HMMClassifier, path: Path) -> Path:
    """Write ``classifier`` to ``path`` and return the path."""

    target = Path(path)
    ensure_directory(target.parent)
    with target.open("w", encoding="utf-8") as handle:
        handle.write(dumps_model(classifier))
    _LOGGER.info("Saved %r to %s", classifier, target)
    return target


class _Reader:
    """Sequential access to the non-blank lines of a model file."""

    def __init__(self, text: str) -> None:
        self._lines = [line.strip() for line in text.splitlines() if line.strip()]
        self._position = 0

    def _next(self) -> str:
        if self._position >= len(self._lines):
            raise ModelFileError("unexpected end of model file")
        line = self._lines[self._position]
        self._position += 1
        return line

    def peek_key(self) -> Optional[str]:
        if self._position >= len(self._lines):
            return None
        return self._lines[self._position].split(":", 1)[0].strip()

    def header(self) -> None:
        line = self._next()
        if line != FILE_HEADER:
            raise ModelFileError(f"invalid file header {line!r}, expected {FILE_HEADER!r}")

    def expect(self, key: str) -> str:
        line = self._next()
        found, separator, value = line.partition(":")
        if not separator or found.strip() != key:
            raise ModelFileError(
                f"line {self._position}: expected {key!r}, found {line!r}"
            )
        return value.strip()

    def rows(self, count: int) -> List[List[float]]:
        return [[float(token) for token in self._next().split()] for _ in range(count)]

    def matrix(self, key: str, count: int) -> List[List[float]]:
        if self.expect(key):
            raise ModelFileError(f"line {self._position}: {key!r} marker must stand alone")
        return self.rows(count)


def _split(value: str, kind: type) -> List[Any]:
    return [kind(token) for token in value.split()]


def _read_header(reader: _Reader) -> ModelFileHeader:
    reader.header()
    payload: Dict[str, Any] = {field: reader.expect(key) for key, field in _SETTING_KEYS}
    payload["trained"] = reader.expect("Trained")
    payload["num_input_dimensions"] = reader.expect("NumInputDimensions")
    payload["num_classes"] = reader.expect("NumClasses")
    payload["class_labels"] = _split(reader.expect("ClassLabels"), int)

    thresholds = reader.expect("NullRejectionThresholds")
    payload["null_rejection_thresholds"] = None if thresholds == _NONE else _split(thresholds, float)

    if reader.peek_key() == "Ranges":
        if reader.expect("Ranges") != _NONE:
            payload["ranges"] = reader.rows(int(payload["num_input_dimensions"]))
    return ModelFileHeader(**payload)


def _header_config(header: ModelFileHeader) -> ClassifierConfig:
    fields = {field for _, field in _SETTING_KEYS}
    return config_from_mapping(header.model_dump(include=fields))


def _read_discrete(
    reader: _Reader,
    header: ModelFileHeader,
) -> DiscreteEnsemble:
    models: List[DiscreteHMM] = []
    for expected_id in range(1, header.num_classes + 1):
        block_payload: Dict[str, Any] = {
            "model_id": reader.expect("Model_ID"),
            "num_states": reader.expect("NumStates"),
            "num_symbols": reader.expect("NumSymbols"),
            "model_type": reader.expect("ModelType"),
            "delta": reader.expect("Delta"),
            "max_num_epochs": reader.expect("MaxNumEpochs"),
            "min_change": reader.expect("MinChange"),
        }
        num_states = int(block_payload["num_states"])
        block_payload["transmat"] = reader.matrix("A", num_states)
        block_payload["emissionprob"] = reader.matrix("B", num_states)
        block_payload["startprob"] = reader.matrix("Pi", 1)[0]
        block = DiscreteModelBlock(**block_payload)
        if block.model_id != expected_id:
            raise ModelFileError(f"expected Model_ID {expected_id}, found {block.model_id}")

        config = DiscreteTrainingConfig(
            num_states=block.num_states,
            num_symbols=block.num_symbols,
            model_type=block.model_type,
            delta=block.delta,
            max_epochs=block.max_num_epochs,
            min_change=block.min_change,
            num_random_training_iterations=header.num_random_training_iterations,
            random_state=header.random_state,
        )
        models.append(
            DiscreteHMM.from_parameters(
                config,
                startprob=np.asarray(block.startprob),
                transmat=np.asarray(block.transmat),
                emissionprob=np.asarray(block.emissionprob),
            )
        )

    thresholds = header.null_rejection_thresholds
    if thresholds is None:
        raise ModelFileError("discrete model files must list NullRejectionThresholds")
    return DiscreteEnsemble(models=tuple(models), null_rejection_thresholds=np.asarray(thresholds))


def _read_exemplars(reader: _Reader, header: ModelFileHeader) -> ContinuousEnsemble:
    count = int(reader.expect("NumExemplars"))
    if count <= 0:
        raise ModelFileError("NumExemplars must be positive for a trained continuous model")

    models: List[ContinuousHMM] = []
    for expected_id in range(1, count + 1):
        block_payload: Dict[str, Any] = {
            "exemplar_id": reader.expect("Exemplar_ID"),
            "class_label": reader.expect("ClassLabel"),
            "num_states": reader.expect("NumStates"),
            "num_dimensions": reader.expect("NumDimensions"),
            "model_type": reader.expect("ModelType"),
            "delta": reader.expect("Delta"),
        }
        num_states = int(block_payload["num_states"])
        block_payload["transmat"] = reader.matrix("A", num_states)
        block_payload["means"] = reader.matrix("Means", num_states)
        block_payload["variances"] = reader.matrix("Covars", num_states)
        block_payload["startprob"] = reader.matrix("Pi", 1)[0]
        block = ExemplarModelBlock(**block_payload)

        if block.exemplar_id != expected_id:
            raise ModelFileError(f"expected Exemplar_ID {expected_id}, found {block.exemplar_id}")
        if block.class_label not in header.class_labels:
            raise ModelFileError(f"exemplar {expected_id} has unknown class label {block.class_label}")
        if block.num_dimensions != header.num_input_dimensions:
            raise ModelFileError(
                f"exemplar {expected_id} has {block.num_dimensions} dimensions, "
                f"expected {header.num_input_dimensions}"
            )

        config = ContinuousTrainingConfig(
            downsample_factor=header.downsample_factor,
            model_type=block.model_type,
            delta=block.delta,
            sigma=header.sigma,
            auto_estimate_sigma=header.auto_estimate_sigma,
        )
        models.append(
            ContinuousHMM.from_parameters(
                config,
                block.class_label,
                startprob=np.asarray(block.startprob),
                transmat=np.asarray(block.transmat),
                means=np.asarray(block.means),
                variances=np.asarray(block.variances),
            )
        )

    ranges = FeatureRanges.from_pairs(header.ranges) if header.ranges is not None else None
    return ContinuousEnsemble(models=tuple(models), ranges=ranges)


def loads_model(text: str) -> HMMClassifier:
    """Rebuild a classifier from text produced by :func:`dumps_model`."""

    reader = _Reader(text)
    try:
        header = _read_header(reader)
        config = _header_config(header)
        state: Optional[TrainedState] = None
        if header.trained:
            if config.hmm_type is HMMType.DISCRETE:
                state = _read_discrete(reader, header)
            else:
                state = _read_exemplars(reader, header)
        if reader.peek_key() is not None:
            raise ModelFileError(f"unexpected trailing content starting at {reader.peek_key()!r}")
        return HMMClassifier.from_trained_state(
            config, state, header.class_labels, header.num_input_dimensions
        )
    except (ValidationError, ValueError) as error:
        raise log_and_raise(_LOGGER, ModelFileError, "Failed to parse model file: %s", error) from error


def load_model(path: Path) -> HMMClassifier:
    """Load a classifier previously written by :func:`save_model`."""

    source = Path(path)
    if not source.exists():
        raise FileNotFoundError(f"Model file missing at {source}")
    classifier = loads_model(source.read_text(encoding="utf-8"))
    _LOGGER.info("Loaded %r from %s", classifier, source)
    return classifier


__all__ = ["FILE_HEADER", "dumps_model", "load_model", "loads_model", "save_model"]
