import math

import numpy as np
import pandas as pd
import pytest

from survival_agent.models.trainer import LOOCVTrainer, encode_features


@pytest.fixture
def prepared():
    rng = np.random.default_rng(7)
    n = 24
    y = np.array(["Survived", "Died"] * (n // 2))
    X = pd.DataFrame({
        "albumin": np.where(y == "Survived", 42000.0, 29000.0) + rng.normal(0, 800, n),
        "age": rng.integers(40, 85, n).astype(float),
        "stage": np.where(y == "Survived", "Stage I", "Stage IV"),
        "KRAS": rng.integers(0, 2, n),
        "EGFR": rng.integers(0, 2, n),
    })
    return {
        "X": X,
        "y": y,
        "categorical_features": ["stage"],
        "patient_ids": [f"P{i:02d}" for i in range(n)],
    }


def test_encode_features_maps_categories_to_codes():
    X = pd.DataFrame({"stage": ["Stage IV", "Stage I", "Stage IV"], "age": [1, 2, 3]})
    out = encode_features(X, ["stage"])
    assert out["stage"].tolist() == [1.0, 0.0, 1.0]
    assert out.dtypes.eq(np.float64).all()


def test_one_held_out_prediction_per_patient(prepared):
    result = LOOCVTrainer(n_estimators=10, random_state=0).run(prepared)
    n = len(prepared["y"])
    assert result["n_splits"] == n
    assert len(result["y_pred"]) == n
    assert len(result["y_prob"]) == n
    assert result["patient_ids"] == prepared["patient_ids"]
    assert ((result["y_prob"] >= 0) & (result["y_prob"] <= 1)).all()


def test_predictions_match_probabilities(prepared):
    result = LOOCVTrainer(n_estimators=11, random_state=0).run(prepared)
    expected = np.where(result["y_prob"] > 0.5, "Survived", "Died")
    assert (result["y_pred"] == expected).all()
    assert result["classes"] == ["Died", "Survived"]


def test_separable_data_is_learned(prepared):
    result = LOOCVTrainer(n_estimators=25, random_state=0).run(prepared)
    assert result["cv_accuracy"] >= 0.9


def test_final_model_uses_sqrt_features(prepared):
    result = LOOCVTrainer(n_estimators=5, random_state=0).run(prepared)
    model = result["model"]
    assert model.max_features == "sqrt"
    assert model.n_features_in_ == 5
    assert model.estimators_[0].max_features_ == math.floor(math.sqrt(5))
    assert result["feature_names"] == ["albumin", "age", "stage", "KRAS", "EGFR"]


def test_single_class_is_rejected(prepared):
    prepared["y"] = np.array(["Died"] * len(prepared["y"]))
    with pytest.raises(ValueError, match="2 outcome classes"):
        LOOCVTrainer(n_estimators=5).run(prepared)


def test_class_with_one_patient_is_rejected(prepared):
    y = np.array(["Died"] * len(prepared["y"]))
    y[0] = "Survived"
    prepared["y"] = y
    with pytest.raises(ValueError, match="at least 2"):
        LOOCVTrainer(n_estimators=5).run(prepared)
