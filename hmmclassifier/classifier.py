"""HMM time-series classifier routing between discrete and continuous sub-models."""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import Any, List, Optional, Sequence, Tuple, Union

import numpy as np

from hmmclassifier import continuous, discrete
from hmmclassifier.continuous import ContinuousEnsemble
from hmmclassifier.data import ClassificationData, FeatureRanges, TimeSeriesClassificationData
from hmmclassifier.discrete import DiscreteEnsemble
from hmmclassifier.errors import (
    ConfigurationError,
    InputValidationError,
    NotTrainedError,
)
from hmmclassifier.models import ContinuousHMM, DiscreteHMM
from hmmclassifier.prediction import Prediction
from hmmclassifier.settings import ClassifierConfig, HMMType, ModelType
from hmmclassifier.util import get_logger, log_and_raise

_LOGGER = get_logger(__name__, context="HMM")

TrainedState = Union[DiscreteEnsemble, ContinuousEnsemble]


class HMMClassifier:
    """Classify time series with per-class discrete HMMs or a continuous exemplar ensemble.

    Parameters
    ----------
    config:
        Base settings; defaults to :class:`ClassifierConfig` defaults.
    **overrides:
        Individual settings replacing those of ``config``, e.g.
        ``HMMClassifier(hmm_type=HMMType.CONTINUOUS, committee_size=3)``.

    Training replaces all previously trained state. Prediction never writes
    to the instance, so one trained classifier may serve concurrent
    predictions; training concurrently with anything else is not supported.
    """

    def __init__(self, config: Optional[ClassifierConfig] = None, **overrides: Any) -> None:
        base = config or ClassifierConfig()
        self._config = replace(base, **overrides) if overrides else base
        self._state: Optional[TrainedState] = None
        self._class_labels: Tuple[int, ...] = ()
        self._num_input_dimensions = 0

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------
    @property
    def config(self) -> ClassifierConfig:
        return self._config

    @property
    def hmm_type(self) -> HMMType:
        return self._config.hmm_type

    @property
    def model_type(self) -> ModelType:
        return self._config.model_type

    @property
    def delta(self) -> int:
        return self._config.delta

    @property
    def num_states(self) -> int:
        return self._config.num_states

    @property
    def num_symbols(self) -> int:
        return self._config.num_symbols

    @property
    def downsample_factor(self) -> int:
        return self._config.downsample_factor

    @property
    def committee_size(self) -> int:
        return self._config.committee_size

    @property
    def is_trained(self) -> bool:
        return self._state is not None

    @property
    def num_classes(self) -> int:
        return len(self._class_labels)

    @property
    def class_labels(self) -> Tuple[int, ...]:
        return self._class_labels

    @property
    def num_input_dimensions(self) -> int:
        return self._num_input_dimensions

    @property
    def trained_state(self) -> Optional[TrainedState]:
        return self._state

    @property
    def discrete_models(self) -> List[DiscreteHMM]:
        if isinstance(self._state, DiscreteEnsemble):
            return list(self._state.models)
        return []

    @property
    def continuous_models(self) -> List[ContinuousHMM]:
        if isinstance(self._state, ContinuousEnsemble):
            return list(self._state.models)
        return []

    @property
    def null_rejection_thresholds(self) -> Optional[np.ndarray]:
        if self._state is None or self._state.null_rejection_thresholds is None:
            return None
        return self._state.null_rejection_thresholds.copy()

    @property
    def feature_ranges(self) -> Optional[FeatureRanges]:
        if isinstance(self._state, ContinuousEnsemble):
            return self._state.ranges
        return None

    def class_label_index(self, class_label: int) -> int:
        try:
            return self._class_labels.index(class_label)
        except ValueError:
            raise log_and_raise(
                _LOGGER, InputValidationError, "Unknown class label %s", class_label
            ) from None

    # ------------------------------------------------------------------
    # Training
    # ------------------------------------------------------------------
    def train(self, dataset: TimeSeriesClassificationData) -> None:
        """Fit sub-models for the configured HMM type.

        Input validation happens before any state changes, so a rejected
        dataset leaves an existing model untouched. A failure while fitting
        leaves the classifier cleared.
        """

        if isinstance(dataset, ClassificationData):
            raise log_and_raise(
                _LOGGER,
                InputValidationError,
                "The HMM classifier must be trained with a TimeSeriesClassificationData "
                "dataset, not static ClassificationData",
            )
        if not isinstance(dataset, TimeSeriesClassificationData):
            raise log_and_raise(
                _LOGGER,
                InputValidationError,
                "Expected TimeSeriesClassificationData, got %s",
                type(dataset).__name__,
            )

        hmm_type = self._config.hmm_type
        if hmm_type is HMMType.DISCRETE:
            discrete.check_training_data(dataset)
            self.clear()
            class_labels = self._labels_from(dataset)
            state: TrainedState = discrete.train_discrete(dataset, self._config, class_labels)
        elif hmm_type is HMMType.CONTINUOUS:
            continuous.check_training_data(dataset)
            self.clear()
            class_labels = self._labels_from(dataset)
            state = continuous.train_continuous(dataset, self._config)
        else:
            raise log_and_raise(
                _LOGGER, ConfigurationError, "Failed to train model, unknown HMM type %r", hmm_type
            )

        self._state = state
        self._class_labels = class_labels
        self._num_input_dimensions = dataset.num_dimensions

    @staticmethod
    def _labels_from(dataset: TimeSeriesClassificationData) -> Tuple[int, ...]:
        return tuple(entry.class_label for entry in dataset.class_tracker)

    # ------------------------------------------------------------------
    # Prediction
    # ------------------------------------------------------------------
    def predict(self, observations: Union[Sequence[float], np.ndarray]) -> Prediction:
        """Classify a feature vector (1D) or a ``(timesteps, dims)`` time series (2D)."""

        hmm_type = self._config.hmm_type
        if hmm_type not in (HMMType.DISCRETE, HMMType.CONTINUOUS):
            raise log_and_raise(
                _LOGGER, ConfigurationError, "Failed to predict, unknown HMM type %r", hmm_type
            )
        if self._state is None:
            raise log_and_raise(_LOGGER, NotTrainedError, "The HMM classifier has not been trained!")

        values = np.asarray(observations, dtype=float)
        if values.ndim not in (1, 2):
            raise log_and_raise(
                _LOGGER,
                InputValidationError,
                "Prediction input must be a vector or a (timesteps, dims) array, got shape %s",
                values.shape,
            )

        state = self._state
        if hmm_type is HMMType.DISCRETE and isinstance(state, DiscreteEnsemble):
            if values.ndim == 1:
                return discrete.predict_discrete_vector(
                    state, self._class_labels, self._config, values, self._num_input_dimensions
                )
            return discrete.predict_discrete_timeseries(
                state, self._class_labels, self._config, values
            )
        if hmm_type is HMMType.CONTINUOUS and isinstance(state, ContinuousEnsemble):
            if values.ndim == 1:
                return continuous.predict_continuous_vector(
                    state, self._class_labels, self._config, values, self._num_input_dimensions
                )
            return continuous.predict_continuous_timeseries(
                state, self._class_labels, self._config, values, self._num_input_dimensions
            )
        raise log_and_raise(
            _LOGGER,
            NotTrainedError,
            "The trained models do not match the configured HMM type %s",
            hmm_type.value,
        )

    # ------------------------------------------------------------------
    # Lifecycle and settings
    # ------------------------------------------------------------------
    def clear(self) -> None:
        """Discard all trained state and class bookkeeping."""

        self._state = None
        self._class_labels = ()
        self._num_input_dimensions = 0

    def _replace_config(self, *, clear: bool, **changes: Any) -> None:
        if clear:
            self.clear()
        try:
            self._config = replace(self._config, **changes)
        except ConfigurationError as error:
            _LOGGER.warning("%s", error)
            raise

    def set_hmm_type(self, hmm_type: HMMType) -> None:
        self._replace_config(clear=True, hmm_type=hmm_type)

    def set_model_type(self, model_type: ModelType) -> None:
        self._replace_config(clear=True, model_type=model_type)

    def set_delta(self, delta: int) -> None:
        self._replace_config(clear=True, delta=delta)

    def set_num_states(self, num_states: int) -> None:
        self._replace_config(clear=True, num_states=num_states)

    def set_num_symbols(self, num_symbols: int) -> None:
        self._replace_config(clear=True, num_symbols=num_symbols)

    def set_downsample_factor(self, downsample_factor: int) -> None:
        self._replace_config(clear=True, downsample_factor=downsample_factor)

    def set_num_random_training_iterations(self, iterations: int) -> None:
        self._replace_config(clear=True, num_random_training_iterations=iterations)

    def set_committee_size(self, committee_size: int) -> None:
        self._replace_config(clear=False, committee_size=committee_size)

    def set_max_training_epochs(self, epochs: int) -> None:
        self._replace_config(clear=False, max_training_epochs=epochs)

    def set_min_log_likelihood_change(self, min_change: float) -> None:
        self._replace_config(clear=False, min_log_likelihood_change=min_change)

    def enable_scaling(self, use_scaling: bool) -> None:
        self._replace_config(clear=True, use_scaling=bool(use_scaling))

    def enable_null_rejection(self, use_null_rejection: bool) -> None:
        self._replace_config(clear=False, use_null_rejection=bool(use_null_rejection))

    @classmethod
    def from_trained_state(
        cls,
        config: ClassifierConfig,
        state: Optional[TrainedState],
        class_labels: Sequence[int],
        num_input_dimensions: int,
    ) -> "HMMClassifier":
        """Rebuild a classifier around previously trained sub-models."""

        classifier = cls(config)
        if state is None:
            return classifier
        expected = DiscreteEnsemble if config.hmm_type is HMMType.DISCRETE else ContinuousEnsemble
        if not isinstance(state, expected):
            raise ConfigurationError(
                f"{type(state).__name__} does not match HMM type {config.hmm_type.value}"
            )
        if isinstance(state, DiscreteEnsemble) and len(state.models) != len(class_labels):
            raise ConfigurationError("one discrete model per class label is required")
        classifier._state = state
        classifier._class_labels = tuple(int(label) for label in class_labels)
        classifier._num_input_dimensions = int(num_input_dimensions)
        return classifier

    def save(self, path: Union[str, Path]) -> Path:
        """Write the classifier to a text model file (see :mod:`hmmclassifier.io.model_file`)."""

        from hmmclassifier.io.model_file import save_model

        return save_model(self, Path(path))

    @classmethod
    def load(cls, path: Union[str, Path]) -> "HMMClassifier":
        from hmmclassifier.io.model_file import load_model

        return load_model(Path(path))

    def __repr__(self) -> str:
        status = f"{self.num_classes} classes" if self.is_trained else "untrained"
        return f"HMMClassifier(hmm_type={self.hmm_type.value}, {status})"


__all__ = ["HMMClassifier", "TrainedState"]
