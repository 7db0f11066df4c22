import numpy as np
import pytest

from hmmclassifier import (
    ClassificationData,
    ClassifierConfig,
    HMMClassifier,
    HMMType,
    ModelType,
    TimeSeriesClassificationData,
)
from hmmclassifier.errors import ConfigurationError, InputValidationError, NotTrainedError


def _classifier() -> HMMClassifier:
    return HMMClassifier(
        num_states=2,
        num_symbols=4,
        model_type=ModelType.ERGODIC,
        max_training_epochs=20,
        num_random_training_iterations=1,
    )


def test_overrides_replace_base_config():
    base = ClassifierConfig(num_states=4)
    classifier = HMMClassifier(base, committee_size=2)
    assert classifier.num_states == 4
    assert classifier.committee_size == 2
    assert not classifier.is_trained
    assert repr(classifier) == "HMMClassifier(hmm_type=discrete, untrained)"


def test_flat_dataset_is_rejected():
    data = ClassificationData()
    data.add_sample(1, [0.0])
    with pytest.raises(InputValidationError, match="TimeSeriesClassificationData"):
        _classifier().train(data)


def test_non_dataset_input_is_rejected():
    with pytest.raises(InputValidationError):
        _classifier().train(np.zeros((3, 1)))


def test_predict_before_training_raises():
    with pytest.raises(NotTrainedError):
        _classifier().predict([1])


def test_empty_dataset_leaves_prior_state(symbol_dataset):
    classifier = _classifier()
    classifier.train(symbol_dataset)
    models = classifier.discrete_models

    with pytest.raises(InputValidationError):
        classifier.train(TimeSeriesClassificationData())

    assert classifier.is_trained
    assert classifier.class_labels == (1, 2)
    assert classifier.discrete_models == models


def test_retraining_replaces_all_state(symbol_dataset):
    classifier = _classifier()
    classifier.train(symbol_dataset)
    first_models = classifier.discrete_models

    retrain = TimeSeriesClassificationData()
    retrain.add_sample(3, [0, 1, 2, 3])
    retrain.add_sample(4, [3, 2, 1, 0])
    retrain.add_sample(5, [1, 1, 2, 2])
    classifier.train(retrain)

    assert classifier.class_labels == (3, 4, 5)
    assert classifier.num_classes == 3
    assert len(classifier.discrete_models) == 3
    assert not set(map(id, classifier.discrete_models)) & set(map(id, first_models))
    assert classifier.null_rejection_thresholds.shape == (3,)


def test_switching_type_discards_trained_models(symbol_dataset):
    classifier = _classifier()
    classifier.train(symbol_dataset)

    classifier.set_hmm_type(HMMType.CONTINUOUS)

    assert not classifier.is_trained
    assert classifier.class_labels == ()
    with pytest.raises(NotTrainedError):
        classifier.predict([0.0])


def test_invalid_delta_keeps_prior_value():
    classifier = _classifier()
    classifier.set_delta(2)

    with pytest.raises(ConfigurationError):
        classifier.set_delta(0)

    assert classifier.delta == 2


def test_structural_setters_clear_and_tuning_setters_do_not(symbol_dataset):
    classifier = _classifier()
    classifier.train(symbol_dataset)

    classifier.set_committee_size(2)
    classifier.set_max_training_epochs(5)
    classifier.set_min_log_likelihood_change(1e-3)
    classifier.enable_null_rejection(True)
    assert classifier.is_trained
    assert classifier.committee_size == 2

    classifier.set_num_states(3)
    assert not classifier.is_trained
    assert classifier.num_states == 3

    for setter, value in [
        (classifier.set_model_type, ModelType.LEFT_RIGHT),
        (classifier.set_num_symbols, 6),
        (classifier.set_downsample_factor, 2),
        (classifier.set_num_random_training_iterations, 3),
        (classifier.enable_scaling, True),
    ]:
        classifier.train(symbol_dataset)
        setter(value)
        assert not classifier.is_trained


def test_unknown_hmm_type_fails_train_and_predict(symbol_dataset):
    classifier = _classifier()
    object.__setattr__(classifier.config, "hmm_type", "hidden_semi_markov")

    with pytest.raises(ConfigurationError):
        classifier.train(symbol_dataset)
    with pytest.raises(ConfigurationError):
        classifier.predict([0])


def test_prediction_input_must_be_vector_or_matrix(symbol_dataset):
    classifier = _classifier()
    classifier.train(symbol_dataset)
    with pytest.raises(InputValidationError):
        classifier.predict(np.zeros((2, 2, 1)))


def test_unknown_class_label_index(symbol_dataset):
    classifier = _classifier()
    classifier.train(symbol_dataset)
    assert classifier.class_label_index(2) == 1
    with pytest.raises(InputValidationError):
        classifier.class_label_index(9)


def test_predictions_do_not_mutate_classifier(symbol_dataset):
    classifier = _classifier()
    classifier.train(symbol_dataset)

    first = classifier.predict([0])
    second = classifier.predict([3])

    assert first.predicted_class_label == 1
    assert second.predicted_class_label == 2
    assert first.class_likelihoods is not second.class_likelihoods
    np.testing.assert_allclose(first.class_likelihoods, [1.0, 0.0])
