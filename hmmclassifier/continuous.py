"""Continuous HMM pipeline: one exemplar model per training sample and committee voting."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Mapping, Optional, Sequence, Tuple

import numpy as np

from hmmclassifier.data import FeatureRanges, TimeSeriesClassificationData
from hmmclassifier.errors import HMMClassifierError, InputValidationError, TrainingError
from hmmclassifier.models import ContinuousHMM, ContinuousTrainingConfig
from hmmclassifier.numerics import best_index, min_max, normalize
from hmmclassifier.prediction import Prediction
from hmmclassifier.settings import NULL_CLASS_LABEL, ClassifierConfig
from hmmclassifier.util import get_logger, log_and_raise

_LOGGER = get_logger(__name__, context="CONTINUOUS")


@dataclass(frozen=True, eq=False)
class ContinuousEnsemble:
    """Trained state of the continuous classifier, one model per training exemplar.

    ``null_rejection_thresholds`` is always ``None``: the committee vote has no
    rejection rule.
    """

    models: Tuple[ContinuousHMM, ...]
    ranges: Optional[FeatureRanges]
    null_rejection_thresholds: Optional[np.ndarray] = None


def check_training_data(dataset: TimeSeriesClassificationData) -> None:
    if dataset.num_samples == 0:
        raise log_and_raise(
            _LOGGER,
            InputValidationError,
            "There are no training samples to train the continuous HMM classifier!",
        )


def _model_config(config: ClassifierConfig) -> ContinuousTrainingConfig:
    # Scaling happens once for the whole ensemble, never inside an exemplar.
    return ContinuousTrainingConfig(
        downsample_factor=config.downsample_factor,
        model_type=config.model_type,
        delta=config.delta,
        sigma=config.sigma,
        auto_estimate_sigma=config.auto_estimate_sigma,
        use_scaling=False,
    )


def train_continuous(
    dataset: TimeSeriesClassificationData,
    config: ClassifierConfig,
) -> ContinuousEnsemble:
    """Fit one :class:`ContinuousHMM` per training sample."""

    check_training_data(dataset)

    ranges = dataset.get_ranges()
    data = dataset.scale(ranges) if config.use_scaling else dataset
    model_config = _model_config(config)

    models: List[ContinuousHMM] = []
    for index, sample in enumerate(data):
        model = ContinuousHMM(model_config, sample.class_label)
        try:
            model.fit(sample.data)
        except HMMClassifierError as error:
            raise log_and_raise(
                _LOGGER, TrainingError, "Failed to train HMM for sample %d: %s", index, error
            ) from error
        models.append(model)

    if config.committee_size > len(models):
        _LOGGER.warning(
            "Committee size %d exceeds the %d trained exemplars; votes will use all exemplars",
            config.committee_size,
            len(models),
        )
    if config.use_null_rejection:
        _LOGGER.warning("Null rejection is not supported for continuous HMMs and is ignored")

    _LOGGER.info("Trained %d exemplar models", len(models))
    return ContinuousEnsemble(models=tuple(models), ranges=ranges)


def committee_vote(
    distances: Sequence[float],
    labels: Sequence[int],
    committee_size: int,
    label_index: Mapping[int, int],
) -> np.ndarray:
    """Accumulate inverse-distance votes of the top ``committee_size`` exemplars.

    Exemplars are ranked by distance (log-likelihood, higher is better). Each
    committee member adds ``1 / (distance / min_distance)`` to its class,
    where ``min_distance`` is the worst distance over all exemplars, so the
    best exemplar casts the largest vote. The formula needs strictly negative
    distances; when the best distance is not negative, all distances are
    shifted down by ``best + 1`` first. Non-finite distances never vote.
    """

    scores = np.asarray(distances, dtype=float)
    accumulators = np.zeros(len(label_index), dtype=float)

    finite = np.isfinite(scores)
    if not finite.any():
        return accumulators

    worst, best = min_max(scores)
    shift = best + 1.0 if best >= 0 else 0.0
    min_distance = worst - shift

    ranked = [int(i) for i in np.argsort(-scores, kind="stable") if finite[i]]
    size = min(committee_size, len(scores))
    for i in ranked[:size]:
        accumulators[label_index[labels[i]]] += 1.0 / ((scores[i] - shift) / min_distance)
    return accumulators


def _predict(
    ensemble: ContinuousEnsemble,
    class_labels: Sequence[int],
    config: ClassifierConfig,
    observations: np.ndarray,
) -> Prediction:
    if config.use_scaling:
        if ensemble.ranges is None:
            raise log_and_raise(
                _LOGGER, InputValidationError, "Scaling is enabled but no feature ranges were stored"
            )
        observations = ensemble.ranges.transform(observations)

    distances = [model.score(observations) for model in ensemble.models]
    labels = [model.class_label for model in ensemble.models]
    label_index = {label: index for index, label in enumerate(class_labels)}

    votes = committee_vote(distances, labels, config.committee_size, label_index)
    likelihoods = normalize(votes)
    index = best_index(votes)
    label = class_labels[index] if votes.sum() > 0 else NULL_CLASS_LABEL

    return Prediction(
        predicted_class_label=int(label),
        best_class_index=index,
        max_likelihood=float(likelihoods[index]),
        class_likelihoods=likelihoods,
        class_distances=votes,
        class_labels=tuple(class_labels),
    )


def predict_continuous_vector(
    ensemble: ContinuousEnsemble,
    class_labels: Sequence[int],
    config: ClassifierConfig,
    vector: np.ndarray,
    num_input_dimensions: int,
) -> Prediction:
    """Classify a single feature vector."""

    values = np.array(vector, dtype=float).reshape(-1)
    if values.size != num_input_dimensions:
        raise log_and_raise(
            _LOGGER,
            InputValidationError,
            "The size of the input vector (%d) does not match the num features in the model (%d)",
            values.size,
            num_input_dimensions,
        )
    return _predict(ensemble, class_labels, config, values)


def predict_continuous_timeseries(
    ensemble: ContinuousEnsemble,
    class_labels: Sequence[int],
    config: ClassifierConfig,
    timeseries: np.ndarray,
    num_input_dimensions: int,
) -> Prediction:
    """Classify a ``(timesteps, dims)`` series."""

    values = np.array(timeseries, dtype=float)
    if values.ndim != 2 or values.shape[0] == 0 or values.shape[1] != num_input_dimensions:
        raise log_and_raise(
            _LOGGER,
            InputValidationError,
            "The input time series has shape %s, the model expects (timesteps, %d)",
            values.shape,
            num_input_dimensions,
        )
    return _predict(ensemble, class_labels, config, values)


__all__ = [
    "ContinuousEnsemble",
    "check_training_data",
    "committee_vote",
    "predict_continuous_timeseries",
    "predict_continuous_vector",
    "train_continuous",
]
