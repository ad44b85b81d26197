"""Diagnostic plots for the survival model and its raw predictors."""

from __future__ import annotations

from pathlib import Path

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns

from survival_agent import config
from survival_agent.utils import get_logger

log = get_logger(__name__)

OUTCOME_PALETTE = {config.SURVIVED: "#3498db", config.DIED: "#e74c3c"}


def _finish(fig, output_path: str | Path | None):
    """Save and close the figure when a path is given, otherwise hand it back."""
    if output_path is None:
        return fig
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(output_path, dpi=150, bbox_inches="tight")
    plt.close(fig)
    log.info("Saved figure: %s", output_path)
    return str(output_path)


def plot_feature_jitter(df: pd.DataFrame, feature: str = "albumin",
                        target: str = config.TARGET_NAME,
                        output_path: str | Path | None = None):
    """
    Plot a raw feature against the outcome.

    Continuous features get a box plot with jittered points on top; binary
    flags get a count plot split by outcome.
    """
    data = df[[feature, target]].dropna()
    order = [label for label in config.CLASS_LABELS if label in set(data[target])]
    fig, ax = plt.subplots(figsize=(6, 5))

    if data[feature].nunique() <= 2:
        sns.countplot(data=data, x=feature, hue=target, hue_order=order,
                      palette=OUTCOME_PALETTE, ax=ax)
        ax.set_ylabel("Patients")
    else:
        sns.boxplot(data=data, x=target, y=feature, order=order,
                    color="white", showfliers=False, ax=ax)
        sns.stripplot(data=data, x=target, y=feature, order=order, hue=target,
                      palette=OUTCOME_PALETTE, jitter=0.25, alpha=0.7,
                      legend=False, ax=ax)
        ax.set_xlabel("One-year survival")

    ax.set_title(f"{feature} by one-year survival (n={len(data)})", fontweight="bold")
    ax.spines["top"].set_visible(False)
    ax.spines["right"].set_visible(False)
    return _finish(fig, output_path)


def plot_roc_curve(roc: dict, auc: float | None = None,
                   output_path: str | Path | None = None):
    """ROC curve of the held-out LOOCV probabilities."""
    fig, ax = plt.subplots(figsize=(6, 6))
    label = "Random forest (LOOCV)"
    if auc is not None:
        label += f", AUC = {auc:.3f}"
    ax.plot(roc["fpr"], roc["tpr"], color="#2c3e50", linewidth=2, label=label)
    ax.plot([0, 1], [0, 1], linestyle="--", color="grey", linewidth=1, label="Chance")
    ax.set_xlim(0, 1)
    ax.set_ylim(0, 1.02)
    ax.set_xlabel("False positive rate (1 - specificity)")
    ax.set_ylabel("True positive rate (sensitivity)")
    ax.set_title("ROC curve", fontweight="bold")
    ax.legend(loc="lower right")
    ax.grid(alpha=0.3, linestyle="--")
    return _finish(fig, output_path)


def plot_confusion_matrix(cm, labels: list[str],
                          output_path: str | Path | None = None):
    """Annotated heatmap of the aggregated LOOCV confusion matrix."""
    cm = np.asarray(cm)
    fig, ax = plt.subplots(figsize=(5, 4.5))
    sns.heatmap(cm, annot=True, fmt="d", cmap="Blues", cbar=False,
                xticklabels=labels, yticklabels=labels,
                linewidths=1, linecolor="white", ax=ax)
    ax.set_xlabel("Predicted")
    ax.set_ylabel("Actual")
    ax.set_title("Confusion matrix", fontweight="bold")
    return _finish(fig, output_path)


def plot_feature_importance(top_features: list[dict],
                            output_path: str | Path | None = None):
    """Horizontal bar chart of the highest-ranked importances."""
    names = [f["feature"] for f in top_features][::-1]
    values = [f["importance"] for f in top_features][::-1]
    fig, ax = plt.subplots(figsize=(7, max(3, 0.45 * len(names) + 1)))
    ax.barh(names, values, color="#16a085", edgecolor="black")
    ax.set_xlabel("Mean decrease in impurity")
    ax.set_title(f"Top {len(names)} features", fontweight="bold")
    ax.spines["top"].set_visible(False)
    ax.spines["right"].set_visible(False)
    ax.grid(axis="x", alpha=0.3, linestyle="--")
    return _finish(fig, output_path)


def render_all(features: dict, evaluation_results: dict,
               output_dir: str | Path) -> dict[str, str]:
    """Render every diagnostic figure into ``output_dir/figures``."""
    fig_dir = Path(output_dir) / "figures"
    metrics = evaluation_results["metrics"]
    df = features["df"]
    paths = {}

    jitter_features = [f for f in ["albumin", "total_metastases", "total_tumors", "age"]
                       if f in features["feature_names"]]
    jitter_features += features.get("retained_genes", [])
    for feat in jitter_features:
        if df[feat].notna().any():
            paths[f"jitter_{feat}"] = plot_feature_jitter(
                df, feat, features["target_name"], fig_dir / f"jitter_{feat}.png",
            )

    if evaluation_results.get("roc") is not None:
        paths["roc_curve"] = plot_roc_curve(
            evaluation_results["roc"], metrics.get("roc_auc"), fig_dir / "roc_curve.png",
        )
    paths["confusion_matrix"] = plot_confusion_matrix(
        metrics["confusion_matrix"], metrics["labels"], fig_dir / "confusion_matrix.png",
    )
    if evaluation_results["top_features"]:
        paths["feature_importance"] = plot_feature_importance(
            evaluation_results["top_features"], fig_dir / "feature_importance.png",
        )

    log.info("Rendered %d figures into %s", len(paths), fig_dir)
    return paths
