import numpy as np
import pytest

from hmmclassifier.errors import ConfigurationError
from hmmclassifier.models import build_emissionprob, build_startprob, build_transmat, transition_mask
from hmmclassifier.settings import ModelType


def test_left_right_mask_limits_forward_jumps():
    mask = transition_mask(4, ModelType.LEFT_RIGHT, delta=2)
    expected = np.array(
        [
            [1, 1, 1, 0],
            [0, 1, 1, 1],
            [0, 0, 1, 1],
            [0, 0, 0, 1],
        ],
        dtype=float,
    )
    np.testing.assert_array_equal(mask, expected)


def test_ergodic_mask_allows_every_transition():
    assert transition_mask(3, ModelType.ERGODIC, delta=1).sum() == 9


@pytest.mark.parametrize("rng", [None, np.random.default_rng(0)])
def test_matrices_are_row_stochastic(rng):
    transmat = build_transmat(5, ModelType.LEFT_RIGHT, 1, rng)
    emissions = build_emissionprob(5, 3, rng)

    np.testing.assert_allclose(transmat.sum(axis=1), 1.0)
    np.testing.assert_allclose(emissions.sum(axis=1), 1.0)
    assert np.all(np.tril(transmat, k=-1) == 0)
    assert np.all(np.triu(transmat, k=2) == 0)


def test_left_right_always_starts_in_first_state():
    np.testing.assert_array_equal(build_startprob(3, ModelType.LEFT_RIGHT), [1.0, 0.0, 0.0])
    np.testing.assert_allclose(build_startprob(4, ModelType.ERGODIC), 0.25)


def test_invalid_delta_is_rejected():
    with pytest.raises(ConfigurationError):
        transition_mask(3, ModelType.LEFT_RIGHT, delta=0)
