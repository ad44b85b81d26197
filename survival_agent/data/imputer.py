"""Random-forest proximity imputation of missing feature values."""

import numpy as np
import pandas as pd
from sklearn.ensemble import RandomForestClassifier

from survival_agent import config
from survival_agent.utils import get_logger

log = get_logger(__name__)


def proximity_matrix(forest: RandomForestClassifier, X: np.ndarray) -> np.ndarray:
    """Fraction of trees in which each pair of samples lands in the same leaf."""
    leaves = forest.apply(X)
    n_samples, n_trees = leaves.shape
    prox = np.zeros((n_samples, n_samples))
    for t in range(n_trees):
        col = leaves[:, t]
        prox += col[:, None] == col[None, :]
    return prox / n_trees


def rough_fix(values: np.ndarray, is_categorical: list[bool]) -> np.ndarray:
    """Fill NaNs with the column median, or the most frequent code for categoricals."""
    filled = values.copy()
    for j, categorical in enumerate(is_categorical):
        col = filled[:, j]
        observed = col[~np.isnan(col)]
        if observed.size == 0:
            raise ValueError(f"Column {j} has no observed values to impute from")
        if categorical:
            codes, counts = np.unique(observed, return_counts=True)
            fill = codes[np.argmax(counts)]
        else:
            fill = np.median(observed)
        col[np.isnan(col)] = fill
    return filled


class ProximityImputer:
    """
    Iteratively imputes missing values from random-forest proximities.

    Starting from a median/mode fill, each iteration grows a forest on the
    current table and the outcome, then re-estimates every originally
    missing cell from the observed values of the same column, weighted by
    how often each other patient shares a leaf with the one being filled.
    Numeric cells get a weighted mean; categorical cells get the category
    with the largest total proximity.
    """

    def __init__(self, n_iter: int = config.IMPUTE_ITERATIONS,
                 n_estimators: int = config.IMPUTE_N_ESTIMATORS,
                 random_state: int = config.RANDOM_STATE):
        if n_iter < 1:
            raise ValueError(f"n_iter must be at least 1, got {n_iter}")
        self.n_iter = n_iter
        self.n_estimators = n_estimators
        self.random_state = random_state
        self.history = []

    def fit_transform(self, X: pd.DataFrame, y,
                      categorical: list[str] | None = None) -> pd.DataFrame:
        """Return a copy of ``X`` with every missing value filled."""
        categorical = [c for c in (categorical or []) if c in X.columns]
        missing = X.isna().to_numpy()
        n_missing = int(missing.sum())

        if n_missing == 0:
            log.info("No missing feature values, skipping imputation")
            return X.copy()

        log.info(
            "Imputing %d missing values across %d features (%d iterations)",
            n_missing, int(missing.any(axis=0).sum()), self.n_iter,
        )

        values, categories = self._encode(X, categorical)
        is_cat = [c in categorical for c in X.columns]
        filled = rough_fix(values, is_cat)
        y = np.asarray(y)

        for iteration in range(self.n_iter):
            forest = RandomForestClassifier(
                n_estimators=self.n_estimators,
                max_features=config.MAX_FEATURES,
                random_state=self.random_state + iteration,
                n_jobs=-1,
            )
            forest.fit(filled, y)
            prox = proximity_matrix(forest, filled)

            previous = filled.copy()
            for j in range(filled.shape[1]):
                rows = missing[:, j]
                if not rows.any():
                    continue
                filled[rows, j] = self._estimate(
                    prox[np.ix_(rows, ~rows)], previous[~rows, j],
                    previous[rows, j], is_cat[j],
                )

            change = float(np.abs(filled[missing] - previous[missing]).mean())
            self.history.append(change)
            log.info("  iteration %d: mean change in imputed values %.4f",
                     iteration + 1, change)

        return self._decode(filled, X, categories)

    @staticmethod
    def _estimate(weights: np.ndarray, observed: np.ndarray,
                  current: np.ndarray, categorical: bool) -> np.ndarray:
        total = weights.sum(axis=1)
        if categorical:
            codes = np.unique(observed)
            scores = np.column_stack(
                [weights[:, observed == code].sum(axis=1) for code in codes]
            )
            estimate = codes[np.argmax(scores, axis=1)]
        else:
            with np.errstate(invalid="ignore", divide="ignore"):
                estimate = weights @ observed / total
        # rows sharing no leaf with any observed patient keep their old value
        return np.where(total > 0, estimate, current)

    @staticmethod
    def _encode(X: pd.DataFrame, categorical: list[str]):
        categories = {}
        columns = []
        for col in X.columns:
            if col in categorical:
                cat = pd.Categorical(X[col])
                categories[col] = cat.categories
                codes = cat.codes.astype(np.float64)
                codes[codes < 0] = np.nan
                columns.append(codes)
            else:
                columns.append(pd.to_numeric(X[col]).to_numpy(dtype=np.float64))
        return np.column_stack(columns), categories

    @staticmethod
    def _decode(filled: np.ndarray, X: pd.DataFrame, categories: dict) -> pd.DataFrame:
        out = X.copy()
        for j, col in enumerate(X.columns):
            if col in categories:
                codes = np.rint(filled[:, j]).astype(int)
                out[col] = np.asarray(categories[col])[codes]
            else:
                out[col] = filled[:, j]
        return out
