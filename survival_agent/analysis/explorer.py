"""Exploratory statistics relating each candidate predictor to one-year survival."""

import numpy as np
import pandas as pd
from scipy import stats

from survival_agent import config
from survival_agent.utils import get_logger

log = get_logger(__name__)


class DataExplorer:
    """Describes the labelled cohort and tests each feature against the outcome."""

    def __init__(self):
        self.report = {}

    def run(self, features: dict) -> dict:
        """
        Run exploratory analysis on the output of FeatureReducer.

        Returns a report dict with descriptive statistics, class balance,
        missingness and univariate associations ranked by p-value.
        """
        df = features["df"]
        feature_names = features["feature_names"]
        categorical = features["categorical_features"]
        target = features["target_name"]
        genes = features.get("retained_genes", [])

        log.info("Running exploratory analysis on %d patients", len(df))

        self.report = {
            "basic_stats": self._basic_stats(df, feature_names, categorical),
            "class_balance": self._class_balance(df, target),
            "missing_values": self._missingness(df, feature_names),
            "associations": self._associations(df, feature_names, categorical, genes, target),
        }

        log.info("Exploration complete: %d analysis sections generated", len(self.report))
        return self.report

    def _basic_stats(self, df: pd.DataFrame, features: list[str],
                     categorical: list[str]) -> dict:
        """Compute basic descriptive statistics."""
        numeric = [f for f in features if f not in categorical]
        desc = df[numeric].describe() if numeric else pd.DataFrame()
        return {
            "shape": list(df.shape),
            "summary": desc.to_dict(),
            "category_counts": {
                c: df[c].value_counts(dropna=True).to_dict() for c in categorical
            },
        }

    def _class_balance(self, df: pd.DataFrame, target: str) -> dict:
        """Analyze target class distribution."""
        counts = df[target].value_counts()
        proportions = df[target].value_counts(normalize=True)
        if len(counts) < 2:
            imbalance_ratio = float("inf")
        else:
            imbalance_ratio = counts.max() / counts.min()

        balance_status = "balanced" if imbalance_ratio < 1.5 else (
            "moderate_imbalance" if imbalance_ratio < 3.0 else "severe_imbalance"
        )

        log.info(
            "Class balance: %s (ratio=%.2f)", balance_status, imbalance_ratio
        )

        return {
            "counts": counts.to_dict(),
            "proportions": proportions.to_dict(),
            "imbalance_ratio": imbalance_ratio,
            "status": balance_status,
        }

    def _missingness(self, df: pd.DataFrame, features: list[str]) -> dict:
        counts = df[features].isna().sum()
        counts = counts[counts > 0]
        if len(counts):
            log.info("Features with missing values: %s", counts.to_dict())
        return {
            "per_feature": counts.astype(int).to_dict(),
            "total": int(counts.sum()),
        }

    def _associations(self, df: pd.DataFrame, features: list[str],
                      categorical: list[str], genes: list[str],
                      target: str) -> list[dict]:
        """
        Test each feature for association with the outcome.

        Gene flags use Fisher's exact test on the mutant/wild-type 2x2 table,
        categorical fields a chi-square test of independence, and numeric
        fields the Mann-Whitney U test between survivors and non-survivors.
        """
        survived = df[target] == config.SURVIVED
        results = []

        for feat in features:
            col = df[feat]
            observed = col.notna()
            if observed.sum() == 0:
                continue

            if feat in genes:
                table = pd.crosstab(col[observed] > 0, survived[observed])
                table = table.reindex(index=[False, True], columns=[False, True], fill_value=0)
                odds_ratio, p_val = stats.fisher_exact(table.to_numpy())
                entry = {"test": "fisher_exact", "statistic": odds_ratio}
            elif feat in categorical:
                table = pd.crosstab(col[observed], survived[observed])
                if table.shape[0] < 2 or table.shape[1] < 2:
                    continue
                chi2, p_val, dof, _ = stats.chi2_contingency(table)
                entry = {"test": "chi_square", "statistic": chi2, "dof": int(dof)}
            else:
                alive = col[observed & survived]
                dead = col[observed & ~survived]
                if len(alive) == 0 or len(dead) == 0:
                    continue
                u_stat, p_val = stats.mannwhitneyu(alive, dead, alternative="two-sided")
                entry = {
                    "test": "mann_whitney_u",
                    "statistic": u_stat,
                    "median_survived": float(alive.median()),
                    "median_died": float(dead.median()),
                }

            entry["feature"] = feat
            entry["p_value"] = float(p_val) if not np.isnan(p_val) else None
            entry["n"] = int(observed.sum())
            results.append(entry)

        results.sort(key=lambda x: x["p_value"] if x["p_value"] is not None else 1.0)

        log.info("Strongest univariate associations with %s:", target)
        for i, r in enumerate(results[:5]):
            log.info(
                "  %d. %s (%s, p=%.2e)",
                i + 1, r["feature"], r["test"],
                r["p_value"] if r["p_value"] is not None else float("nan"),
            )

        return results
