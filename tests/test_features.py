import numpy as np
import pandas as pd
import pytest

from survival_agent import config
from survival_agent.data.features import (
    FeatureReducer,
    derive_one_year_survival,
    derive_totals,
    gene_cutoff,
    select_genes,
)
from survival_agent.data.loader import ClinicalDataLoader


def _followup(months, status):
    return pd.DataFrame({
        "patient_id": [f"P{i}" for i in range(len(months))],
        "survival_months": months,
        "vital_status": status,
    })


@pytest.mark.parametrize("months, label", [
    (12.0, "Died"),
    (12.01, "Survived"),
    (11.9, "Died"),
    (0.0, "Died"),
    (13.0, "Survived"),
    (120.0, "Survived"),
])
def test_survived_iff_strictly_more_than_twelve_months(months, label):
    df = derive_one_year_survival(_followup([months], ["Dead"]))
    assert df[config.TARGET_NAME].tolist() == [label]


def test_alive_within_threshold_is_excluded_as_ambiguous():
    df = derive_one_year_survival(_followup(
        [6.0, 12.0, 12.5, 6.0],
        ["Alive", "alive", "Alive", "Dead"],
    ))
    assert df["patient_id"].tolist() == ["P2", "P3"]
    assert df[config.TARGET_NAME].tolist() == ["Survived", "Died"]


def test_missing_followup_is_excluded():
    df = derive_one_year_survival(_followup([np.nan, 24.0], ["Dead", np.nan]))
    assert df["patient_id"].tolist() == ["P1"]


def test_gene_cutoff_is_ten_percent():
    assert gene_cutoff(100) == pytest.approx(10.0)
    assert gene_cutoff(37) == pytest.approx(3.7)
    with pytest.raises(ValueError):
        gene_cutoff(100, fraction=1.5)


def test_gene_boundary_is_strictly_greater_than():
    n = 100
    df = pd.DataFrame({
        "AT_CUTOFF": [1] * 10 + [0] * 90,
        "ABOVE": [1] * 11 + [0] * 89,
        "BELOW": [1] * 9 + [0] * 91,
    })
    retained, dropped = select_genes(df, list(df.columns), gene_cutoff(n))
    assert retained == ["ABOVE"]
    assert dropped == ["AT_CUTOFF", "BELOW"]


def test_totals_sum_prefixed_columns():
    df = pd.DataFrame({
        "met_brain": [1, 0, np.nan],
        "met_bone": [1, 1, np.nan],
        "tumors_primary": [1, 2, 1],
        "tumors_nodal": [3, np.nan, 0],
    })
    out = derive_totals(df)
    assert out["total_metastases"].iloc[:2].tolist() == [2, 1]
    assert np.isnan(out["total_metastases"].iloc[2])
    assert out["total_tumors"].tolist() == [4, 2, 1]


def test_totals_missing_when_no_columns():
    out = derive_totals(pd.DataFrame({"age": [60, 70]}))
    assert out["total_metastases"].isna().all()
    assert out["total_tumors"].isna().all()


def _scenario_dataset(n_patients=100, n_genes=20, mutated=(11, 14, 30)):
    """100 patients, 20 tracked genes; only the first len(mutated) exceed 10 carriers."""
    rng = np.random.default_rng(1)
    df = pd.DataFrame({
        "patient_id": [f"P{i:03d}" for i in range(n_patients)],
        "age": rng.integers(40, 90, n_patients).astype(float),
        "sex": rng.choice(["Male", "Female"], n_patients),
        "stage": rng.choice(["Stage I", "Stage IV"], n_patients),
        "histology": "Adenocarcinoma",
        "site": "Right Upper Lobe",
        "tumor_size": rng.uniform(1, 6, n_patients),
        "t_stage": "T2",
        "n_stage": "N1",
        "m_stage": "M0",
        "met_brain": rng.integers(0, 2, n_patients).astype(float),
        "tumors_primary": np.ones(n_patients),
        "albumin": rng.normal(38000, 4000, n_patients),
        "survival_months": rng.uniform(1, 40, n_patients),
        "vital_status": "Dead",
    })
    genes = []
    for g in range(n_genes):
        name = f"GENE{g:02d}"
        carriers = mutated[g] if g < len(mutated) else int(rng.integers(0, 11))
        df[name] = [1] * carriers + [0] * (n_patients - carriers)
        genes.append(name)
    return {"df": df, "gene_columns": genes, "metadata": {"n_patients": n_patients}}


def test_reduced_feature_set_scenario():
    """Cutoff of 10 patients keeps exactly the three genes with 11+ carriers."""
    result = FeatureReducer().run(_scenario_dataset())
    assert result["cutoff"] == pytest.approx(10.0)
    assert result["retained_genes"] == ["GENE00", "GENE01", "GENE02"]
    assert len(result["dropped_genes"]) == 17
    assert result["feature_names"] == config.FIXED_FEATURES + ["GENE00", "GENE01", "GENE02"]
    assert result["categorical_features"] == config.CATEGORICAL_FEATURES


def test_feature_reducer_on_loaded_cohort(cohort_dir):
    result = FeatureReducer().run(ClinicalDataLoader(cohort_dir).load())
    df = result["df"]
    assert sorted(result["retained_genes"]) == ["EGFR", "KRAS", "TP53"]
    assert result["dropped_genes"] == ["ALK"]
    assert len(df) == 38
    assert result["metadata"]["n_excluded"] == 2
    assert set(df[config.TARGET_NAME]) == {"Survived", "Died"}
    assert ((df["survival_months"] > 12) == (df[config.TARGET_NAME] == "Survived")).all()
    assert {"P039", "P040"}.isdisjoint(df["patient_id"])


def test_all_missing_feature_is_dropped():
    dataset = _scenario_dataset()
    dataset["df"]["albumin"] = np.nan
    result = FeatureReducer().run(dataset)
    assert "albumin" not in result["feature_names"]


@pytest.mark.parametrize("status", [None, np.nan, "UNKNOWN", "", "Alive", "Living"])
def test_short_followup_without_known_death_is_excluded(status):
    df = derive_one_year_survival(_followup([6.0, 6.0], [status, "Dead"]))
    assert df["patient_id"].tolist() == ["P1"]
    assert df[config.TARGET_NAME].tolist() == ["Died"]


@pytest.mark.parametrize("status", ["Deceased", " dead ", "DIED", "Expired"])
def test_known_death_spellings_label_died(status):
    df = derive_one_year_survival(_followup([3.0], [status]))
    assert df[config.TARGET_NAME].tolist() == ["Died"]


@pytest.mark.parametrize("status", [None, "UNKNOWN", "Alive"])
def test_long_followup_survives_whatever_the_status(status):
    df = derive_one_year_survival(_followup([30.0], [status]))
    assert df[config.TARGET_NAME].tolist() == ["Survived"]
