import numpy as np
import pandas as pd
import pytest

from hmmclassifier.errors import InputValidationError
from hmmclassifier.io import get_model_path
from hmmclassifier.pipeline import load_timeseries_csv, predict_from_csv, train_classifier_from_csv
from hmmclassifier.pipeline import train as train_module

from conftest import CLASS_ONE_SEQUENCES, CLASS_TWO_SEQUENCES


def _write_symbol_csv(path, *, with_label=True):
    rows = []
    sequences = [(1, seq) for seq in CLASS_ONE_SEQUENCES] + [(2, seq) for seq in CLASS_TWO_SEQUENCES]
    for sample_id, (label, sequence) in enumerate(sequences):
        for symbol in sequence:
            row = {"sample": f"s{sample_id}", "symbol": symbol}
            if with_label:
                row["label"] = label
            rows.append(row)
    pd.DataFrame(rows).to_csv(path, index=False)
    return path


def _write_config(path, **settings):
    body = "\n".join(f"  {key}: {value}" for key, value in settings.items())
    path.write_text(f"classifier:\n{body}\n", encoding="utf-8")
    return path


def test_load_timeseries_csv_groups_rows_by_sample(tmp_path):
    dataset = load_timeseries_csv(_write_symbol_csv(tmp_path / "symbols.csv"))

    assert dataset.num_samples == len(CLASS_ONE_SEQUENCES) + len(CLASS_TWO_SEQUENCES)
    assert dataset.num_dimensions == 1
    assert dataset.class_labels == [1, 2]
    np.testing.assert_array_equal(dataset[0].data[:, 0], CLASS_ONE_SEQUENCES[0])


def test_load_timeseries_csv_rejects_mixed_labels(tmp_path):
    path = tmp_path / "mixed.csv"
    pd.DataFrame(
        {"sample": ["a", "a", "b"], "label": [1, 2, 1], "x": [0.0, 1.0, 2.0]}
    ).to_csv(path, index=False)

    with pytest.raises(InputValidationError, match="different labels"):
        load_timeseries_csv(path)


def test_load_timeseries_csv_requires_sample_and_label(tmp_path):
    path = tmp_path / "bare.csv"
    pd.DataFrame({"x": [0.0, 1.0]}).to_csv(path, index=False)

    with pytest.raises(InputValidationError):
        load_timeseries_csv(path)
    with pytest.raises(FileNotFoundError):
        load_timeseries_csv(tmp_path / "missing.csv")


def test_train_and_predict_from_csv(tmp_path):
    csv_path = _write_symbol_csv(tmp_path / "train.csv")
    config_path = _write_config(
        tmp_path / "classifier.yaml",
        hmm_type="discrete",
        model_type="ergodic",
        num_states=2,
        num_symbols=4,
        max_training_epochs=20,
        num_random_training_iterations=2,
    )

    artifacts = train_classifier_from_csv(csv_path, tmp_path / "out" / "model.hmm.txt", config_path)

    assert artifacts.model_path.exists()
    assert artifacts.num_samples == 6
    assert artifacts.class_labels == (1, 2)
    assert artifacts.training_accuracy == pytest.approx(1.0)

    query_path = _write_symbol_csv(tmp_path / "query.csv", with_label=False)
    output_path = tmp_path / "out" / "predictions.csv"
    predictions = predict_from_csv(artifacts.model_path, query_path, output_path)

    assert list(predictions.columns) == [
        "sample",
        "predicted_label",
        "max_likelihood",
        "likelihood_1",
        "likelihood_2",
    ]
    assert predictions["predicted_label"].tolist() == [1, 1, 1, 2, 2, 2]
    np.testing.assert_allclose(predictions[["likelihood_1", "likelihood_2"]].sum(axis=1), 1.0)

    written = pd.read_csv(output_path)
    assert written["sample"].tolist() == predictions["sample"].tolist()


def test_predict_from_csv_checks_feature_count(tmp_path):
    csv_path = _write_symbol_csv(tmp_path / "train.csv")
    config_path = _write_config(
        tmp_path / "classifier.yaml",
        num_states=2,
        num_symbols=4,
        model_type="ergodic",
        max_training_epochs=10,
        num_random_training_iterations=1,
    )
    artifacts = train_classifier_from_csv(csv_path, tmp_path / "model.hmm.txt", config_path)

    wide = tmp_path / "wide.csv"
    pd.DataFrame({"sample": ["a", "a"], "x": [0, 1], "y": [1, 0]}).to_csv(wide, index=False)

    with pytest.raises(InputValidationError):
        predict_from_csv(artifacts.model_path, wide)


def test_continuous_csv_pipeline(tmp_path):
    rows = []
    for sample_id, (label, level) in enumerate([(1, 0.0), (1, 0.05), (2, 4.0), (2, 4.05)]):
        for step in range(8):
            rows.append({"sample": sample_id, "label": label, "x": level + 0.01 * step, "y": -level})
    csv_path = tmp_path / "continuous.csv"
    pd.DataFrame(rows).to_csv(csv_path, index=False)
    config_path = _write_config(
        tmp_path / "continuous.yaml", hmm_type="continuous", committee_size=2, downsample_factor=4
    )

    artifacts = train_classifier_from_csv(csv_path, tmp_path / "continuous.hmm.txt", config_path)
    predictions = predict_from_csv(artifacts.model_path, csv_path)

    assert artifacts.hmm_type.value == "continuous"
    assert predictions["predicted_label"].tolist() == [1, 1, 2, 2]


def test_train_main_parses_arguments(tmp_path, monkeypatch):
    calls = {}

    def fake_train(csv_path, model_path, config_path):
        calls["args"] = (csv_path, model_path, config_path)

    monkeypatch.setattr(train_module, "train_classifier_from_csv", fake_train)
    train_module.main([str(tmp_path / "in.csv"), str(tmp_path / "m.hmm.txt"), "--config", "c.yaml"])

    csv_path, model_path, config_path = calls["args"]
    assert csv_path == tmp_path / "in.csv"
    assert model_path == tmp_path / "m.hmm.txt"
    assert str(config_path) == "c.yaml"


def test_train_main_defaults_model_path_from_csv_name(tmp_path, monkeypatch):
    calls = {}

    def fake_train(csv_path, model_path, config_path):
        calls["model_path"] = model_path

    monkeypatch.setattr(train_module, "train_classifier_from_csv", fake_train)
    train_module.main([str(tmp_path / "gestures.csv")])

    assert calls["model_path"] == get_model_path("gestures")
    assert calls["model_path"].name == "gestures.hmm.txt"
