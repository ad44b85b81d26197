"""Report generation for the survival analysis pipeline."""

import json
import os
from datetime import datetime, timezone

import numpy as np
import pandas as pd

from survival_agent import __version__
from survival_agent.utils import get_logger

log = get_logger(__name__)


class Reporter:
    """Compiles stage outputs into a report and renders a console summary."""

    def generate(self, dataset_metadata: dict, feature_info: dict,
                 exploration: dict, imputation_info: dict,
                 training_results: dict, evaluation_results: dict,
                 figures: dict | None = None) -> dict:
        """Assemble a JSON-serializable report from every stage's output."""
        report = {
            "generated_at": datetime.now(timezone.utc).isoformat(),
            "version": __version__,
            "dataset": dataset_metadata,
            "features": feature_info,
            "exploration": exploration,
            "imputation": imputation_info,
            "training": {
                "n_splits": training_results["n_splits"],
                "cv_accuracy": training_results["cv_accuracy"],
                "params": training_results["params"],
                "timing": training_results["timing"],
                "predictions": [
                    {"patient_id": pid, "truth": t, "predicted": p, "probability": round(float(pr), 4)}
                    for pid, t, p, pr in zip(
                        training_results["patient_ids"],
                        training_results["y_true"],
                        training_results["y_pred"],
                        training_results["y_prob"],
                    )
                ],
            },
            "evaluation": {
                "metrics": evaluation_results["metrics"],
                "top_features": evaluation_results["top_features"],
            },
            "figures": figures or {},
        }
        return self._make_serializable(report)

    def print_summary(self, report: dict) -> str:
        """Render the headline statistics as plain text."""
        metrics = report["evaluation"]["metrics"]
        dataset = report["dataset"]
        lines = [
            "=" * 60,
            "ONE-YEAR SURVIVAL ANALYSIS",
            "=" * 60,
            f"Patients loaded:       {dataset.get('n_patients')}",
            f"Patients labelled:     {dataset.get('n_labelled')}",
            f"Class distribution:    {dataset.get('class_distribution')}",
            f"Genes retained:        {report['features'].get('retained_genes')}",
            "",
            "Leave-one-out random forest",
            "-" * 60,
            f"Accuracy:              {metrics['accuracy']:.4f} "
            f"(95% CI {metrics['accuracy_ci_95'][0]:.4f}-{metrics['accuracy_ci_95'][1]:.4f})",
            f"No information rate:   {metrics['no_information_rate']:.4f}",
            f"P-value [Acc > NIR]:   {metrics['accuracy_pvalue']:.4g}",
            f"Kappa:                 {self._fmt(metrics.get('kappa'))}",
            f"McNemar p-value:       {self._fmt(metrics.get('mcnemar_pvalue'))}",
            f"Precision / Recall:    {metrics['precision']:.4f} / {metrics['recall']:.4f}",
            f"Specificity:           {metrics['specificity']:.4f}",
            f"ROC AUC:               {self._fmt(metrics.get('roc_auc'))}",
            "",
            f"Confusion matrix (rows=truth, cols=predicted, {metrics['labels']}):",
        ]
        for label, row in zip(metrics["labels"], metrics["confusion_matrix"]):
            lines.append(f"  {label:<10} {row}")

        associations = report["exploration"].get("associations", [])
        albumin = next((a for a in associations if a["feature"] == "albumin"), None)
        if albumin is not None:
            lines.append("")
            lines.append(
                f"Albumin vs outcome ({albumin['test']}): p = {self._fmt(albumin['p_value'])}"
            )

        lines.append("")
        lines.append("Top features by importance:")
        for i, feat in enumerate(report["evaluation"]["top_features"], 1):
            lines.append(f"  {i:>2}. {feat['feature']:<25} {feat['importance']:.4f}")
        lines.append("=" * 60)
        return "\n".join(lines)

    def save_json(self, report: dict, path: str) -> None:
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        with open(path, "w") as f:
            json.dump(self._make_serializable(report), f, indent=2)
        log.info("Report written to %s", path)

    @staticmethod
    def _fmt(value) -> str:
        return "N/A" if value is None else f"{value:.4g}"

    def _make_serializable(self, obj):
        """Recursively convert numpy/pandas values to native Python types."""
        if isinstance(obj, dict):
            return {str(k): self._make_serializable(v) for k, v in obj.items()}
        if isinstance(obj, (list, tuple)):
            return [self._make_serializable(v) for v in obj]
        if isinstance(obj, np.ndarray):
            return [self._make_serializable(v) for v in obj.tolist()]
        if isinstance(obj, (pd.Series, pd.Index)):
            return [self._make_serializable(v) for v in obj.tolist()]
        if isinstance(obj, np.integer):
            return int(obj)
        if isinstance(obj, np.floating):
            obj = float(obj)
        if isinstance(obj, float) and (np.isnan(obj) or np.isinf(obj)):
            return None
        if isinstance(obj, np.bool_):
            return bool(obj)
        return obj
