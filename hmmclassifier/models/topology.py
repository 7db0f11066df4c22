"""Initial start/transition probabilities for ergodic and left-right HMMs."""

from __future__ import annotations

from typing import Optional

import numpy as np

from hmmclassifier.errors import ConfigurationError
from hmmclassifier.settings import ModelType


def _row_normalize(matrix: np.ndarray) -> np.ndarray:
    totals = matrix.sum(axis=1, keepdims=True)
    totals[totals == 0] = 1.0
    return matrix / totals


def transition_mask(num_states: int, model_type: ModelType, delta: int) -> np.ndarray:
    """Return a 0/1 mask of the transitions ``model_type`` allows.

    Left-right models may stay in a state or move forward by at most
    ``delta`` states; the last state is absorbing.
    """

    if num_states <= 0:
        raise ConfigurationError("num_states must be greater than zero")
    if delta <= 0:
        raise ConfigurationError("delta must be greater than zero")

    if model_type is ModelType.ERGODIC:
        return np.ones((num_states, num_states))
    if model_type is ModelType.LEFT_RIGHT:
        mask = np.zeros((num_states, num_states))
        for i in range(num_states):
            mask[i, i : min(i + delta, num_states - 1) + 1] = 1.0
        return mask
    raise ConfigurationError(f"Unknown model type: {model_type!r}")


def build_transmat(
    num_states: int,
    model_type: ModelType,
    delta: int,
    rng: Optional[np.random.Generator] = None,
) -> np.ndarray:
    """Row-stochastic transition matrix respecting the topology mask.

    Without ``rng`` the allowed transitions of each row are uniform.
    """

    mask = transition_mask(num_states, model_type, delta)
    weights = mask if rng is None else mask * rng.uniform(0.1, 1.0, size=mask.shape)
    return _row_normalize(weights)


def build_startprob(
    num_states: int,
    model_type: ModelType,
    rng: Optional[np.random.Generator] = None,
) -> np.ndarray:
    """Initial state distribution; left-right models always start in state 0."""

    if model_type is ModelType.LEFT_RIGHT:
        startprob = np.zeros(num_states)
        startprob[0] = 1.0
        return startprob
    if model_type is ModelType.ERGODIC:
        weights = np.ones(num_states) if rng is None else rng.uniform(0.1, 1.0, size=num_states)
        return weights / weights.sum()
    raise ConfigurationError(f"Unknown model type: {model_type!r}")


def build_emissionprob(
    num_states: int,
    num_symbols: int,
    rng: Optional[np.random.Generator] = None,
) -> np.ndarray:
    weights = (
        np.ones((num_states, num_symbols))
        if rng is None
        else rng.uniform(0.1, 1.0, size=(num_states, num_symbols))
    )
    return _row_normalize(weights)


__all__ = ["build_emissionprob", "build_startprob", "build_transmat", "transition_mask"]
