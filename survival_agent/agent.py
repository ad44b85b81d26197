"""
One-Year Survival Analysis Agent.

Orchestrates the full pipeline: loading -> feature reduction -> exploration
-> imputation -> LOOCV training -> evaluation -> plotting -> reporting. Each
stage consumes the complete output of the one before it.
"""

import os
import traceback
from pathlib import Path
from typing import Callable

from survival_agent import __version__, config
from survival_agent.data import ClinicalDataLoader, FeatureReducer, ProximityImputer
from survival_agent.analysis import DataExplorer
from survival_agent.models import LOOCVTrainer
from survival_agent.evaluation import ModelEvaluator, Reporter
from survival_agent.plotting import render_all
from survival_agent.utils import get_logger

log = get_logger("survival_agent")

DISCLAIMER = (
    "DISCLAIMER: This agent is a research tool for exploratory analysis of "
    "clinical data. It does NOT provide medical diagnoses, prognoses or "
    "treatment recommendations. All outputs are for research purposes only."
)

STAGES = [
    "Data Loading",
    "Feature Reduction",
    "Exploratory Analysis",
    "Imputation",
    "LOOCV Training",
    "Evaluation",
    "Plotting",
    "Report Generation",
]


class SurvivalAnalysisAgent:
    """
    Runs the complete one-year survival analysis.

    Stages:
        1. Data Loading          - read and join clinical/genomic/lab/onc tables
        2. Feature Reduction     - label, derive totals, drop rare genes
        3. Exploratory Analysis  - univariate association tests
        4. Imputation            - random-forest proximity imputation
        5. LOOCV Training        - leave-one-out random forest
        6. Evaluation            - confusion matrix, kappa, AUC, importances
        7. Plotting              - ROC, confusion heatmap, importance, jitter plots
        8. Report Generation     - console summary and report.json
    """

    def __init__(
        self,
        data_dir=config.DEFAULT_DATA_DIR,
        clinical_path=None,
        genomics_path=None,
        labs_path=None,
        onc_path=None,
        output_dir=config.DEFAULT_OUTPUT_DIR,
        n_estimators: int = config.N_ESTIMATORS,
        impute_iterations: int = config.IMPUTE_ITERATIONS,
        impute_n_estimators: int = config.IMPUTE_N_ESTIMATORS,
        random_state: int = config.RANDOM_STATE,
        cutoff_fraction: float = config.GENE_CUTOFF_FRACTION,
        top_n: int = config.TOP_N_FEATURES,
        make_plots: bool = True,
        on_progress: Callable[[int, int, str], None] | None = None,
    ):
        self.loader = ClinicalDataLoader(
            data_dir, clinical_path, genomics_path, labs_path, onc_path,
        )
        self.output_dir = Path(output_dir)
        self.n_estimators = n_estimators
        self.impute_iterations = impute_iterations
        self.impute_n_estimators = impute_n_estimators
        self.random_state = random_state
        self.cutoff_fraction = cutoff_fraction
        self.top_n = top_n
        self.make_plots = make_plots
        self.on_progress = on_progress

        # Pipeline state
        self._raw_data = None
        self._features = None
        self._exploration = None
        self._prepared = None
        self._imputation_info = None
        self._training_results = None
        self._evaluation_results = None
        self._figures = {}
        self._report = None

    def run(self) -> dict:
        """
        Execute the full pipeline.

        Returns the final report dict.
        """
        log.info("=" * 60)
        log.info("ONE-YEAR SURVIVAL ANALYSIS AGENT v%s", __version__)
        log.info("=" * 60)
        log.info(DISCLAIMER)

        stage_fns = [
            self._stage_load,
            self._stage_reduce,
            self._stage_explore,
            self._stage_impute,
            self._stage_train,
            self._stage_evaluate,
            self._stage_plot,
            self._stage_report,
        ]
        total = len(STAGES)

        for i, (stage_name, stage_fn) in enumerate(zip(STAGES, stage_fns), 1):
            log.info("-" * 60)
            log.info("STAGE %d/%d: %s", i, total, stage_name)
            log.info("-" * 60)
            if self.on_progress is not None:
                self.on_progress(i, total, stage_name)
            try:
                stage_fn()
            except Exception:
                log.error("Stage '%s' failed:\n%s", stage_name, traceback.format_exc())
                raise

        return self._report

    def _stage_load(self):
        self._raw_data = self.loader.load()

    def _stage_reduce(self):
        reducer = FeatureReducer(cutoff_fraction=self.cutoff_fraction)
        self._features = reducer.run(self._raw_data)

    def _stage_explore(self):
        explorer = DataExplorer()
        self._exploration = explorer.run(self._features)

    def _stage_impute(self):
        df = self._features["df"]
        feature_names = self._features["feature_names"]
        y = df[self._features["target_name"]].to_numpy()

        imputer = ProximityImputer(
            n_iter=self.impute_iterations,
            n_estimators=self.impute_n_estimators,
            random_state=self.random_state,
        )
        n_missing = int(df[feature_names].isna().sum().sum())
        X = imputer.fit_transform(
            df[feature_names], y, self._features["categorical_features"],
        )

        self._prepared = {
            "X": X,
            "y": y,
            "categorical_features": self._features["categorical_features"],
            "patient_ids": df[config.PATIENT_ID].tolist(),
        }
        self._imputation_info = {
            "method": "random_forest_proximity",
            "iterations": self.impute_iterations,
            "values_imputed": n_missing,
            "mean_change_per_iteration": imputer.history,
        }

    def _stage_train(self):
        trainer = LOOCVTrainer(
            n_estimators=self.n_estimators,
            random_state=self.random_state,
        )
        self._training_results = trainer.run(self._prepared)

    def _stage_evaluate(self):
        evaluator = ModelEvaluator(top_n=self.top_n)
        self._evaluation_results = evaluator.run(self._training_results)

    def _stage_plot(self):
        if not self.make_plots:
            log.info("Plotting disabled, skipping")
            return
        self._figures = render_all(
            self._features, self._evaluation_results, self.output_dir,
        )

    def _stage_report(self):
        reporter = Reporter()
        feature_info = {
            "feature_names": self._features["feature_names"],
            "categorical_features": self._features["categorical_features"],
            "retained_genes": self._features["retained_genes"],
            "dropped_genes": self._features["dropped_genes"],
            "gene_cutoff": self._features["cutoff"],
        }
        self._report = reporter.generate(
            dataset_metadata=self._features["metadata"],
            feature_info=feature_info,
            exploration=self._exploration,
            imputation_info=self._imputation_info,
            training_results=self._training_results,
            evaluation_results=self._evaluation_results,
            figures=self._figures,
        )

        summary = reporter.print_summary(self._report)
        print("\n" + summary)

        os.makedirs(self.output_dir, exist_ok=True)
        json_path = os.path.join(self.output_dir, "report.json")
        reporter.save_json(self._report, json_path)
        log.info("Full JSON report saved to: %s", json_path)
