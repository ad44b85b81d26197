"""Random-forest training under leave-one-out cross-validation."""

import time

import numpy as np
import pandas as pd
from sklearn.ensemble import RandomForestClassifier
from sklearn.model_selection import LeaveOneOut, cross_val_predict

from survival_agent import config
from survival_agent.utils import get_logger

log = get_logger(__name__)


def encode_features(X: pd.DataFrame, categorical: list[str]) -> pd.DataFrame:
    """Replace categorical labels with integer codes so the forest can split on them."""
    X = X.copy()
    for col in categorical:
        if col in X.columns:
            X[col] = pd.Categorical(X[col]).codes
    return X.astype(np.float64)


class LOOCVTrainer:
    """Trains a random forest and collects one held-out prediction per patient."""

    def __init__(self, n_estimators: int = config.N_ESTIMATORS,
                 random_state: int = config.RANDOM_STATE,
                 max_features=config.MAX_FEATURES,
                 positive_label: str = config.POSITIVE_LABEL):
        """
        Args:
            n_estimators: trees per forest.
            random_state: seed shared by every forest in the run.
            max_features: candidate features per split; "sqrt" tries
                floor(sqrt(n_features)) of them.
            positive_label: class whose probability is reported as y_prob.
        """
        self.n_estimators = n_estimators
        self.random_state = random_state
        self.max_features = max_features
        self.positive_label = positive_label

    def _make_model(self) -> RandomForestClassifier:
        return RandomForestClassifier(
            n_estimators=self.n_estimators,
            max_features=self.max_features,
            random_state=self.random_state,
            n_jobs=-1,
        )

    def run(self, prepared: dict) -> dict:
        """
        Cross-validate and fit the final model.

        ``prepared`` carries the imputed feature table ``X``, the labels
        ``y``, and ``categorical_features``. Returns the model artifact dict.
        """
        X = encode_features(prepared["X"], prepared.get("categorical_features", []))
        y = np.asarray(prepared["y"])
        feature_names = list(X.columns)

        classes, counts = np.unique(y, return_counts=True)
        if len(classes) != 2:
            raise ValueError(f"Need exactly 2 outcome classes, found {list(classes)}")
        if counts.min() < 2:
            raise ValueError(
                f"Each class needs at least 2 patients for LOOCV, got {dict(zip(classes, counts))}"
            )
        if self.positive_label not in classes:
            raise ValueError(f"Positive label '{self.positive_label}' not in {list(classes)}")

        cv = LeaveOneOut()
        n_splits = cv.get_n_splits(X)
        held_out = np.zeros(len(X), dtype=int)
        for _, test_idx in cv.split(X):
            held_out[test_idx] += 1
        if n_splits != len(X) or not (held_out == 1).all():
            raise ValueError("Leave-one-out splits do not hold each patient out once")

        log.info(
            "Running LOOCV: %d folds, %d trees, %d features (max_features=%s)",
            n_splits, self.n_estimators, len(feature_names), self.max_features,
        )

        t0 = time.time()
        proba = cross_val_predict(
            self._make_model(), X, y, cv=cv, method="predict_proba", n_jobs=-1,
        )
        cv_time = time.time() - t0

        pos_idx = int(np.flatnonzero(classes == self.positive_label)[0])
        y_prob = proba[:, pos_idx]
        y_pred = classes[np.argmax(proba, axis=1)]

        if len(y_pred) != len(y):
            raise ValueError(
                f"LOOCV returned {len(y_pred)} predictions for {len(y)} patients"
            )

        t0 = time.time()
        model = self._make_model()
        model.fit(X, y)
        train_time = time.time() - t0

        cv_accuracy = float((y_pred == y).mean())
        log.info(
            "LOOCV accuracy=%.4f (%.1fs), final model fit in %.1fs",
            cv_accuracy, cv_time, train_time,
        )

        return {
            "model": model,
            "y_true": y,
            "y_pred": y_pred,
            "y_prob": y_prob,
            "classes": classes.tolist(),
            "positive_label": self.positive_label,
            "feature_names": feature_names,
            "patient_ids": list(prepared.get("patient_ids", range(len(y)))),
            "n_splits": n_splits,
            "cv_accuracy": round(cv_accuracy, 4),
            "timing": {
                "cv_time_seconds": round(cv_time, 3),
                "train_time_seconds": round(train_time, 3),
            },
            "params": {
                "n_estimators": self.n_estimators,
                "max_features": self.max_features,
                "random_state": self.random_state,
            },
        }
