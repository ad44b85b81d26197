"""Label derivation and feature reduction for one-year survival modelling."""

import numpy as np
import pandas as pd

from survival_agent import config
from survival_agent.utils import get_logger

log = get_logger(__name__)


def gene_cutoff(n_patients: int, fraction: float = config.GENE_CUTOFF_FRACTION) -> float:
    """Minimum mutated-patient count a gene must exceed to be kept."""
    if not 0.0 <= fraction <= 1.0:
        raise ValueError(f"Gene cutoff fraction must be in [0, 1], got {fraction}")
    return fraction * n_patients


def select_genes(df: pd.DataFrame, gene_columns: list[str],
                 cutoff: float) -> tuple[list[str], list[str]]:
    """
    Split genes into (retained, dropped).

    A gene is retained only when it is mutated in strictly more than
    ``cutoff`` patients.
    """
    counts = df[gene_columns].sum(axis=0) if gene_columns else pd.Series(dtype=int)
    retained = [g for g in gene_columns if counts[g] > cutoff]
    dropped = [g for g in gene_columns if counts[g] <= cutoff]
    return retained, dropped


def derive_one_year_survival(df: pd.DataFrame,
                             threshold: float = config.SURVIVAL_THRESHOLD_MONTHS
                             ) -> pd.DataFrame:
    """
    Add the ``one_year_survival`` label and drop rows it cannot be set for.

    Survived iff survival_months > threshold. Patients without follow-up,
    and patients not known to have died but followed for no longer than
    the threshold, are excluded as ambiguous.
    """
    months = df["survival_months"]
    status = df["vital_status"].where(df["vital_status"].notna(), "")
    status = status.astype(str).str.strip().str.lower()
    dead = status.isin(config.DEAD_STATUSES)

    no_followup = months.isna()
    censored = ~dead & (months <= threshold)
    keep = ~no_followup & ~censored

    if no_followup.any():
        log.info("Excluding %d patients with no survival follow-up", int(no_followup.sum()))
    if censored.any():
        log.info(
            "Excluding %d alive or unknown-status patients followed <= %s months",
            int(censored.sum()), threshold,
        )

    df = df[keep].copy()
    df[config.TARGET_NAME] = np.where(
        df["survival_months"] > threshold, config.SURVIVED, config.DIED
    )
    return df.reset_index(drop=True)


def _row_total(df: pd.DataFrame, prefix: str) -> pd.Series:
    cols = [c for c in df.columns if c.startswith(prefix)]
    if not cols:
        return pd.Series(np.nan, index=df.index)
    # a patient with none of the parts recorded has an unknown total
    return df[cols].sum(axis=1, min_count=1)


def derive_totals(df: pd.DataFrame) -> pd.DataFrame:
    """Add total_metastases and total_tumors summary columns."""
    df = df.copy()
    df["total_metastases"] = _row_total(df, config.METASTASIS_PREFIX)
    df["total_tumors"] = _row_total(df, config.TUMOR_COUNT_PREFIX)
    return df


class FeatureReducer:
    """Derives the survival label and summary features, and prunes rare genes."""

    def __init__(self, cutoff_fraction: float = config.GENE_CUTOFF_FRACTION,
                 threshold_months: float = config.SURVIVAL_THRESHOLD_MONTHS):
        self.cutoff_fraction = cutoff_fraction
        self.threshold_months = threshold_months

    def run(self, dataset: dict) -> dict:
        """
        Produce the modelling table from a loaded dataset dict.

        The gene cutoff is taken over the full merged cohort, before
        ambiguous survival rows are removed.
        """
        df = dataset["df"]
        gene_columns = dataset["gene_columns"]

        log.info("Starting feature reduction on %d patients", len(df))

        cutoff = gene_cutoff(len(df), self.cutoff_fraction)
        retained, dropped = select_genes(df, gene_columns, cutoff)
        log.info(
            "Gene cutoff %.1f patients: keeping %d of %d genes %s",
            cutoff, len(retained), len(gene_columns), retained,
        )

        df = derive_totals(df)
        labelled = derive_one_year_survival(df, self.threshold_months)

        feature_names = config.FIXED_FEATURES + retained
        empty = [c for c in feature_names if labelled[c].isna().all()]
        if empty:
            log.warning("Dropping features with no recorded values: %s", empty)
            feature_names = [c for c in feature_names if c not in empty]
        categorical = [c for c in config.CATEGORICAL_FEATURES if c in feature_names]
        columns = [config.PATIENT_ID] + feature_names + [
            "survival_months", config.TARGET_NAME,
        ]
        labelled = labelled[columns]

        counts = labelled[config.TARGET_NAME].value_counts()
        log.info(
            "Labelled %d patients: %s",
            len(labelled), counts.to_dict(),
        )

        metadata = dict(dataset["metadata"])
        metadata.update({
            "n_labelled": len(labelled),
            "n_excluded": len(df) - len(labelled),
            "gene_cutoff": cutoff,
            "n_genes_retained": len(retained),
            "n_features": len(feature_names),
            "class_distribution": counts.to_dict(),
        })

        return {
            "df": labelled,
            "feature_names": feature_names,
            "categorical_features": categorical,
            "target_name": config.TARGET_NAME,
            "retained_genes": retained,
            "dropped_genes": dropped,
            "cutoff": cutoff,
            "metadata": metadata,
        }
