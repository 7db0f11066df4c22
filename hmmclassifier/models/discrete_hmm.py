"""Discrete-symbol HMM sub-model backed by :class:`hmmlearn.hmm.CategoricalHMM`."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple, Union

import numpy as np
from hmmlearn.hmm import CategoricalHMM

from hmmclassifier.errors import NotTrainedError, SymbolRangeError, TrainingError
from hmmclassifier.models.topology import build_emissionprob, build_startprob, build_transmat
from hmmclassifier.settings import ModelType
from hmmclassifier.util import get_logger

_LOGGER = get_logger(__name__)

Observations = Union[int, Sequence[int], np.ndarray]


@dataclass(frozen=True)
class DiscreteTrainingConfig:
    """Configuration values required for discrete HMM training."""

    num_states: int
    num_symbols: int
    model_type: ModelType = ModelType.LEFT_RIGHT
    delta: int = 1
    max_epochs: int = 1000
    min_change: float = 1.0e-5
    num_random_training_iterations: int = 5
    random_state: int = 42


class DiscreteHMM:
    """Thin wrapper around :class:`hmmlearn.hmm.CategoricalHMM`.

    Baum-Welch is restarted ``num_random_training_iterations`` times from
    random parameters inside the configured topology and the restart with the
    highest training log-likelihood is kept.
    """

    def __init__(self, config: DiscreteTrainingConfig):
        self._config = config
        self._model: Optional[CategoricalHMM] = None

    @property
    def config(self) -> DiscreteTrainingConfig:
        return self._config

    @property
    def model(self) -> CategoricalHMM:
        if self._model is None:
            raise NotTrainedError("Discrete HMM has not been fitted")
        return self._model

    @property
    def is_fitted(self) -> bool:
        return self._model is not None

    @property
    def startprob(self) -> np.ndarray:
        return np.array(self.model.startprob_, dtype=float)

    @property
    def transmat(self) -> np.ndarray:
        return np.array(self.model.transmat_, dtype=float)

    @property
    def emissionprob(self) -> np.ndarray:
        return np.array(self.model.emissionprob_, dtype=float)

    def _new_model(self, rng: Optional[np.random.Generator]) -> CategoricalHMM:
        cfg = self._config
        hmm = CategoricalHMM(
            n_components=cfg.num_states,
            n_features=cfg.num_symbols,
            n_iter=cfg.max_epochs,
            tol=cfg.min_change,
            params="ste",
            init_params="",
            random_state=cfg.random_state,
        )
        hmm.startprob_ = build_startprob(cfg.num_states, cfg.model_type, rng)
        hmm.transmat_ = build_transmat(cfg.num_states, cfg.model_type, cfg.delta, rng)
        hmm.emissionprob_ = build_emissionprob(cfg.num_states, cfg.num_symbols, rng)
        return hmm

    def _as_column(self, observations: Observations) -> np.ndarray:
        symbols = np.asarray(observations).reshape(-1)
        if symbols.size == 0:
            raise SymbolRangeError("observation sequence must not be empty")
        if not np.all(np.isfinite(symbols)):
            raise SymbolRangeError("observation symbols must be finite")
        if symbols.min() < 0 or symbols.max() >= self._config.num_symbols:
            raise SymbolRangeError(
                f"observation symbols must be in [0, {self._config.num_symbols - 1}], "
                f"got range [{symbols.min()}, {symbols.max()}]"
            )
        return symbols.astype(int).reshape(-1, 1)

    def fit(self, sequences: Sequence[Observations]) -> float:
        """Fit on a list of observation sequences and return their log-likelihood."""

        if len(sequences) == 0:
            raise TrainingError("at least one observation sequence is required")

        columns: List[np.ndarray] = [self._as_column(sequence) for sequence in sequences]
        observations = np.concatenate(columns)
        lengths = [len(column) for column in columns]

        rng = np.random.default_rng(self._config.random_state)
        best: Optional[Tuple[float, CategoricalHMM]] = None
        for attempt in range(self._config.num_random_training_iterations):
            hmm = self._new_model(rng)
            initial = {
                "transmat_": hmm.transmat_.copy(),
                "emissionprob_": hmm.emissionprob_.copy(),
            }
            try:
                hmm.fit(observations, lengths)
            except ValueError as error:
                _LOGGER.debug("Random restart %d failed: %s", attempt, error)
                continue
            _restore_unvisited_states(hmm, initial)
            score = float(hmm.score(observations, lengths))
            if np.isfinite(score) and (best is None or score > best[0]):
                best = (score, hmm)

        if best is None:
            raise TrainingError(
                f"all {self._config.num_random_training_iterations} training restarts failed"
            )

        self._model = best[1]
        return best[0]

    def score(self, observations: Observations) -> float:
        """Log-likelihood of a single symbol or a symbol sequence."""

        return float(self.model.score(self._as_column(observations)))

    @classmethod
    def from_parameters(
        cls,
        config: DiscreteTrainingConfig,
        *,
        startprob: np.ndarray,
        transmat: np.ndarray,
        emissionprob: np.ndarray,
    ) -> "DiscreteHMM":
        """Rebuild a fitted model from stored Pi, A and B matrices."""

        wrapper = cls(config)
        hmm = wrapper._new_model(None)
        hmm.startprob_ = np.asarray(startprob, dtype=float)
        hmm.transmat_ = np.asarray(transmat, dtype=float)
        hmm.emissionprob_ = np.asarray(emissionprob, dtype=float)
        wrapper._model = hmm
        return wrapper


def _restore_unvisited_states(hmm: CategoricalHMM, initial: Dict[str, np.ndarray]) -> None:
    # Baum-Welch leaves all-zero rows for states no training sequence reached.
    for attribute, initial_rows in initial.items():
        fitted = np.array(getattr(hmm, attribute), dtype=float)
        empty = fitted.sum(axis=1) == 0
        if np.any(empty):
            fitted[empty] = initial_rows[empty]
            setattr(hmm, attribute, fitted)


__all__ = ["DiscreteHMM", "DiscreteTrainingConfig"]
