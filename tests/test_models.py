import numpy as np
import pytest

from hmmclassifier.errors import InputValidationError, NotTrainedError, SymbolRangeError, TrainingError
from hmmclassifier.models import (
    ContinuousHMM,
    ContinuousTrainingConfig,
    DiscreteHMM,
    DiscreteTrainingConfig,
)
from hmmclassifier.settings import ModelType

from conftest import CLASS_ONE_SEQUENCES, exemplar


def _discrete_config(**overrides) -> DiscreteTrainingConfig:
    settings = dict(
        num_states=3,
        num_symbols=4,
        model_type=ModelType.LEFT_RIGHT,
        delta=1,
        max_epochs=30,
        min_change=1e-4,
        num_random_training_iterations=2,
        random_state=7,
    )
    settings.update(overrides)
    return DiscreteTrainingConfig(**settings)


def test_discrete_hmm_fit_keeps_left_right_structure():
    model = DiscreteHMM(_discrete_config())
    log_likelihood = model.fit(CLASS_ONE_SEQUENCES)

    assert np.isfinite(log_likelihood)
    assert model.is_fitted
    np.testing.assert_allclose(model.transmat.sum(axis=1), 1.0)
    np.testing.assert_allclose(model.emissionprob.sum(axis=1), 1.0)
    np.testing.assert_allclose(np.tril(model.transmat, k=-1), 0.0, atol=1e-12)
    np.testing.assert_allclose(model.startprob, [1.0, 0.0, 0.0], atol=1e-12)
    assert np.isfinite(model.score(CLASS_ONE_SEQUENCES[0]))
    assert np.isfinite(model.score(0))


def test_discrete_hmm_rejects_out_of_range_symbols():
    model = DiscreteHMM(_discrete_config())
    with pytest.raises(SymbolRangeError):
        model.fit([[0, 1, 4]])
    with pytest.raises(SymbolRangeError):
        model.fit([[0, -1, 2]])

    model.fit(CLASS_ONE_SEQUENCES)
    with pytest.raises(SymbolRangeError):
        model.score([4])


def test_discrete_hmm_requires_sequences_and_fit():
    model = DiscreteHMM(_discrete_config())
    with pytest.raises(TrainingError):
        model.fit([])
    with pytest.raises(NotTrainedError):
        model.score([0, 1])


def test_discrete_hmm_from_parameters_scores_like_fitted_model():
    config = _discrete_config(model_type=ModelType.ERGODIC, num_states=2)
    fitted = DiscreteHMM(config)
    fitted.fit(CLASS_ONE_SEQUENCES)

    rebuilt = DiscreteHMM.from_parameters(
        config,
        startprob=fitted.startprob,
        transmat=fitted.transmat,
        emissionprob=fitted.emissionprob,
    )

    for sequence in CLASS_ONE_SEQUENCES:
        assert rebuilt.score(sequence) == pytest.approx(fitted.score(sequence))


def test_continuous_hmm_builds_one_state_per_block():
    model = ContinuousHMM(ContinuousTrainingConfig(downsample_factor=5), class_label=3)
    model.fit(exemplar(1.0, length=12, dims=2, slope=0.5))

    assert model.class_label == 3
    assert model.num_states == 2
    assert model.num_dimensions == 2
    np.testing.assert_array_equal(model.startprob, [1.0, 0.0])
    assert np.all(model.variances >= 0.1 ** 2)
    assert model.means[0, 0] < model.means[1, 0]


def test_continuous_hmm_short_exemplar_has_single_state():
    model = ContinuousHMM(ContinuousTrainingConfig(downsample_factor=5), class_label=1)
    model.fit(np.array([[0.0], [0.1]]))
    assert model.num_states == 1


def test_continuous_hmm_prefers_its_own_trajectory():
    model = ContinuousHMM(ContinuousTrainingConfig(downsample_factor=2, sigma=0.2), class_label=1)
    series = exemplar(0.0, length=10, slope=1.0)
    model.fit(series)

    assert model.score(series) > model.score(series[::-1].copy())
    assert model.score(series[0]) > model.score(np.array([9.0]))


def test_continuous_hmm_fixed_sigma_sets_every_variance():
    config = ContinuousTrainingConfig(downsample_factor=2, sigma=0.3, auto_estimate_sigma=False)
    model = ContinuousHMM(config, class_label=1)
    model.fit(exemplar(0.0, length=6, slope=2.0))
    np.testing.assert_allclose(model.variances, 0.09)


def test_continuous_hmm_validates_input():
    model = ContinuousHMM(ContinuousTrainingConfig(), class_label=1)
    with pytest.raises(NotTrainedError):
        model.score(np.zeros(1))
    with pytest.raises(TrainingError):
        model.fit(np.zeros((0, 1)))
    with pytest.raises(TrainingError):
        model.fit(np.array([[0.0], [np.nan]]))

    model.fit(exemplar(0.0, dims=2))
    with pytest.raises(InputValidationError):
        model.score(np.zeros(3))


def test_continuous_hmm_internal_scaling_uses_own_ranges():
    model = ContinuousHMM(ContinuousTrainingConfig(downsample_factor=2), class_label=1)
    model.enable_scaling(True)
    series = exemplar(100.0, length=8, slope=10.0)
    model.fit(series)

    assert model.means.min() == pytest.approx(1.0 / 14.0)
    assert model.score(series) > model.score(series + 500.0)
