"""Continuous-observation exemplar HMM backed by :class:`hmmlearn.hmm.GaussianHMM`.

Each model is built from exactly one training time series. The exemplar is
downsampled into blocks of ``downsample_factor`` rows; every block becomes one
hidden state whose Gaussian emission is centred on the block mean. The state
chain follows the configured topology, so scoring a new series measures how
well it traces the exemplar's trajectory.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional

import numpy as np
from hmmlearn.hmm import GaussianHMM

from hmmclassifier.data.ranges import FeatureRanges
from hmmclassifier.errors import InputValidationError, NotTrainedError, TrainingError
from hmmclassifier.models.topology import build_startprob, build_transmat
from hmmclassifier.settings import ModelType


@dataclass(frozen=True)
class ContinuousTrainingConfig:
    """Configuration shared by every exemplar model of an ensemble."""

    downsample_factor: int = 5
    model_type: ModelType = ModelType.LEFT_RIGHT
    delta: int = 1
    sigma: float = 0.1
    auto_estimate_sigma: bool = True
    use_scaling: bool = False


def _as_matrix(values: np.ndarray) -> np.ndarray:
    matrix = np.asarray(values, dtype=float)
    if matrix.ndim == 1:
        matrix = matrix.reshape(-1, 1)
    return matrix


class ContinuousHMM:
    """Gaussian HMM fitted to a single labeled exemplar."""

    def __init__(self, config: ContinuousTrainingConfig, class_label: int):
        self._config = config
        self._class_label = int(class_label)
        self._model: Optional[GaussianHMM] = None
        self._ranges: Optional[FeatureRanges] = None

    @property
    def config(self) -> ContinuousTrainingConfig:
        return self._config

    @property
    def class_label(self) -> int:
        return self._class_label

    @property
    def model(self) -> GaussianHMM:
        if self._model is None:
            raise NotTrainedError("Continuous HMM has not been fitted")
        return self._model

    @property
    def num_states(self) -> int:
        return int(self.model.n_components)

    @property
    def num_dimensions(self) -> int:
        return int(self.model.n_features)

    @property
    def startprob(self) -> np.ndarray:
        return np.array(self.model.startprob_, dtype=float)

    @property
    def transmat(self) -> np.ndarray:
        return np.array(self.model.transmat_, dtype=float)

    @property
    def means(self) -> np.ndarray:
        return np.array(self.model.means_, dtype=float)

    @property
    def variances(self) -> np.ndarray:
        # GaussianHMM.covars_ expands diagonal covariances to full matrices.
        return np.array([np.diag(cov) for cov in self.model.covars_], dtype=float)

    def enable_scaling(self, use_scaling: bool) -> None:
        """Toggle the model's own min/max scaling; clears any fitted state."""

        self._config = replace(self._config, use_scaling=use_scaling)
        self._model = None
        self._ranges = None

    def fit(self, timeseries: np.ndarray) -> None:
        cfg = self._config
        data = _as_matrix(timeseries)
        if data.ndim != 2 or data.shape[0] == 0:
            raise TrainingError(f"exemplar must be a non-empty 2D array, got shape {data.shape}")
        if not np.all(np.isfinite(data)):
            raise TrainingError("exemplar contains non-finite values")

        if cfg.use_scaling:
            self._ranges = FeatureRanges.from_values(data)
            data = self._ranges.transform(data)

        num_states = max(1, data.shape[0] // cfg.downsample_factor)
        blocks = np.array_split(data, num_states)
        means = np.vstack([block.mean(axis=0) for block in blocks])

        floor = cfg.sigma ** 2
        if cfg.auto_estimate_sigma:
            variances = np.vstack([np.maximum(block.var(axis=0), floor) for block in blocks])
        else:
            variances = np.full_like(means, floor)

        self._model = self._build(
            build_startprob(num_states, cfg.model_type),
            build_transmat(num_states, cfg.model_type, cfg.delta),
            means,
            variances,
        )

    def score(self, observations: np.ndarray) -> float:
        """Log-likelihood of a single vector or a ``(timesteps, dims)`` series."""

        model = self.model
        array = np.asarray(observations, dtype=float)
        matrix = array.reshape(1, -1) if array.ndim == 1 else array
        if matrix.ndim != 2 or matrix.shape[0] == 0 or matrix.shape[1] != model.n_features:
            raise InputValidationError(
                f"expected observations with {model.n_features} dimensions, got shape {array.shape}"
            )
        if self._ranges is not None:
            matrix = self._ranges.transform(matrix)
        return float(model.score(matrix))

    def _build(
        self,
        startprob: np.ndarray,
        transmat: np.ndarray,
        means: np.ndarray,
        variances: np.ndarray,
    ) -> GaussianHMM:
        means = np.asarray(means, dtype=float)
        hmm = GaussianHMM(
            n_components=means.shape[0],
            covariance_type="diag",
            params="",
            init_params="",
        )
        hmm.n_features = means.shape[1]
        hmm.startprob_ = np.asarray(startprob, dtype=float)
        hmm.transmat_ = np.asarray(transmat, dtype=float)
        hmm.means_ = means
        hmm.covars_ = np.asarray(variances, dtype=float)
        return hmm

    @classmethod
    def from_parameters(
        cls,
        config: ContinuousTrainingConfig,
        class_label: int,
        *,
        startprob: np.ndarray,
        transmat: np.ndarray,
        means: np.ndarray,
        variances: np.ndarray,
    ) -> "ContinuousHMM":
        """Rebuild an exemplar model from stored parameters (no internal scaling)."""

        if config.use_scaling:
            raise InputValidationError("stored exemplar models cannot carry internal scaling")
        wrapper = cls(config, class_label)
        wrapper._model = wrapper._build(startprob, transmat, means, variances)
        return wrapper


__all__ = ["ContinuousHMM", "ContinuousTrainingConfig"]
