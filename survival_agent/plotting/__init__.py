from survival_agent.plotting.plots import (
    plot_confusion_matrix,
    plot_feature_importance,
    plot_feature_jitter,
    plot_roc_curve,
    render_all,
)

__all__ = [
    "plot_confusion_matrix",
    "plot_feature_importance",
    "plot_feature_jitter",
    "plot_roc_curve",
    "render_all",
]
