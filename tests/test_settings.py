import pytest

from hmmclassifier.errors import ConfigurationError
from hmmclassifier.io import clear_config_cache, get_config_path
from hmmclassifier.settings import (
    ClassifierConfig,
    HMMType,
    ModelType,
    coerce_enum,
    config_from_mapping,
    load_classifier_config,
)


def test_defaults_follow_documented_values():
    config = ClassifierConfig()
    assert config.hmm_type is HMMType.DISCRETE
    assert config.model_type is ModelType.LEFT_RIGHT
    assert config.delta == 1
    assert config.num_states == 10
    assert config.num_symbols == 20
    assert config.max_training_epochs == 1000
    assert config.min_log_likelihood_change == pytest.approx(1e-5)
    assert config.downsample_factor == 5
    assert config.committee_size == 5
    assert config.use_null_rejection is False


@pytest.mark.parametrize(
    "field, value",
    [
        ("delta", 0),
        ("num_states", 0),
        ("num_symbols", -1),
        ("committee_size", 0),
        ("downsample_factor", 0),
        ("min_log_likelihood_change", 0.0),
        ("sigma", -0.5),
    ],
)
def test_invalid_values_are_rejected(field, value):
    with pytest.raises(ConfigurationError):
        ClassifierConfig(**{field: value})


def test_unknown_hmm_type_is_rejected():
    with pytest.raises(ConfigurationError):
        ClassifierConfig(hmm_type="semi-markov")


def test_coerce_enum_accepts_values_and_names():
    assert coerce_enum(ModelType, "LEFT_RIGHT") is ModelType.LEFT_RIGHT
    assert coerce_enum(ModelType, "ergodic") is ModelType.ERGODIC
    assert coerce_enum(HMMType, " Continuous ") is HMMType.CONTINUOUS
    with pytest.raises(ConfigurationError):
        coerce_enum(HMMType, "hybrid")


def test_config_from_mapping_rejects_unknown_keys():
    with pytest.raises(ConfigurationError, match="num_state"):
        config_from_mapping({"num_state": 4})


def test_config_round_trips_through_dict():
    config = ClassifierConfig(hmm_type=HMMType.CONTINUOUS, committee_size=3, sigma=0.25)
    assert config_from_mapping(config.to_dict()) == config


def test_load_bundled_config():
    assert get_config_path("classifier.yaml").exists()
    config = load_classifier_config()
    assert config == ClassifierConfig()


def test_load_config_from_custom_file(tmp_path):
    path = tmp_path / "custom.yaml"
    path.write_text(
        "classifier:\n  hmm_type: continuous\n  model_type: ERGODIC\n  committee_size: 2\n",
        encoding="utf-8",
    )
    clear_config_cache()

    config = load_classifier_config(path)

    assert config.hmm_type is HMMType.CONTINUOUS
    assert config.model_type is ModelType.ERGODIC
    assert config.committee_size == 2
    assert config.num_states == ClassifierConfig().num_states


def test_load_config_accepts_top_level_settings(tmp_path):
    path = tmp_path / "flat.yaml"
    path.write_text("num_symbols: 8\n", encoding="utf-8")

    assert load_classifier_config(path).num_symbols == 8


def test_missing_config_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_classifier_config(tmp_path / "missing.yaml")


def test_non_mapping_config_raises(tmp_path):
    path = tmp_path / "list.yaml"
    path.write_text("- 1\n- 2\n", encoding="utf-8")

    with pytest.raises(ConfigurationError):
        load_classifier_config(path)
