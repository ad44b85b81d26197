"""Evaluation of the held-out LOOCV predictions."""

import numpy as np
from scipy import stats
from sklearn.metrics import (
    accuracy_score,
    precision_score,
    recall_score,
    f1_score,
    roc_auc_score,
    roc_curve,
    confusion_matrix,
    cohen_kappa_score,
)

from survival_agent import config
from survival_agent.utils import get_logger

log = get_logger(__name__)


def mcnemar_pvalue(cm: np.ndarray) -> float | None:
    """McNemar's test with continuity correction on the off-diagonal cells."""
    b, c = cm[0, 1], cm[1, 0]
    if b + c == 0:
        return None
    statistic = (abs(b - c) - 1) ** 2 / (b + c)
    return float(stats.chi2.sf(statistic, df=1))


class ModelEvaluator:
    """Summarises LOOCV predictions into a confusion matrix and agreement metrics."""

    def __init__(self, top_n: int = config.TOP_N_FEATURES,
                 labels: list[str] | None = None):
        self.top_n = top_n
        self.labels = labels or config.CLASS_LABELS

    def run(self, training_results: dict) -> dict:
        """
        Evaluate the held-out predictions of a training run.

        Returns a dict with a ``metrics`` block, the ``roc`` curve points
        and the ranked ``top_features``.
        """
        y_true = np.asarray(training_results["y_true"])
        y_pred = np.asarray(training_results["y_pred"])
        y_prob = np.asarray(training_results["y_prob"])
        positive = training_results.get("positive_label", config.POSITIVE_LABEL)
        negative = next(label for label in self.labels if label != positive)

        log.info("Evaluating %d held-out predictions", len(y_true))

        cm = confusion_matrix(y_true, y_pred, labels=self.labels)
        n = len(y_true)
        n_correct = int(np.trace(cm))

        accuracy = accuracy_score(y_true, y_pred)
        ci = stats.binomtest(n_correct, n).proportion_ci(
            confidence_level=0.95, method="exact",
        )
        nir = float(max((y_true == label).mean() for label in self.labels))
        acc_pvalue = stats.binomtest(n_correct, n, nir, alternative="greater").pvalue

        is_positive = (y_true == positive).astype(int)
        metrics = {
            "n": n,
            "accuracy": round(accuracy, 4),
            "accuracy_ci_95": [round(ci.low, 4), round(ci.high, 4)],
            "no_information_rate": round(nir, 4),
            "accuracy_pvalue": float(acc_pvalue),
            "kappa": round(cohen_kappa_score(y_true, y_pred, labels=self.labels), 4),
            "mcnemar_pvalue": mcnemar_pvalue(cm),
            "precision": round(precision_score(y_true, y_pred, pos_label=positive, zero_division=0), 4),
            "recall": round(recall_score(y_true, y_pred, pos_label=positive, zero_division=0), 4),
            "specificity": round(recall_score(y_true, y_pred, pos_label=negative, zero_division=0), 4),
            "f1": round(f1_score(y_true, y_pred, pos_label=positive, zero_division=0), 4),
            "confusion_matrix": cm.tolist(),
            "labels": list(self.labels),
            "positive_label": positive,
        }

        roc = None
        if 0 < is_positive.sum() < n:
            metrics["roc_auc"] = round(roc_auc_score(is_positive, y_prob), 4)
            fpr, tpr, thresholds = roc_curve(is_positive, y_prob)
            roc = {"fpr": fpr.tolist(), "tpr": tpr.tolist(),
                   "thresholds": thresholds.tolist()}
        else:
            log.warning("Only one outcome class present, ROC AUC is undefined")

        top_features = self._get_feature_importance(
            training_results["model"], training_results["feature_names"]
        )[: self.top_n]

        log.info(
            "  acc=%.4f (95%% CI %.4f-%.4f), kappa=%.4f, auc=%s, p[acc>nir]=%.3g",
            metrics["accuracy"], *metrics["accuracy_ci_95"], metrics["kappa"],
            metrics.get("roc_auc", "N/A"), metrics["accuracy_pvalue"],
        )

        return {
            "metrics": metrics,
            "roc": roc,
            "top_features": top_features,
        }

    def _get_feature_importance(self, model, feature_names: list[str]) -> list[dict]:
        """Rank the forest's built-in importances, highest first."""
        importances = getattr(model, "feature_importances_", None)
        if importances is None:
            return []

        paired = list(zip(feature_names, importances))
        paired.sort(key=lambda x: x[1], reverse=True)

        return [
            {"feature": name, "importance": round(float(imp), 6)}
            for name, imp in paired
        ]
