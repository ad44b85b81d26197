import numpy as np
import pandas as pd
import pytest

# Patients mutated per gene in the default 40-patient cohort (cutoff = 4)
GENE_COUNTS = {"TP53": 15, "EGFR": 12, "KRAS": 8, "ALK": 2}


def make_cohort(n_patients: int = 40, seed: int = 0) -> dict[str, pd.DataFrame]:
    """
    Build a small synthetic NSCLC cohort as the four raw input tables.

    Even-indexed patients survive past a year, with higher albumin and
    earlier stage. The last patient is alive with short follow-up and the
    second to last has unknown survival, so both drop out when labelling.
    """
    rng = np.random.default_rng(seed)
    ids = [f"P{i:03d}" for i in range(1, n_patients + 1)]
    survived = np.arange(n_patients) % 2 == 0

    clinical = pd.DataFrame({
        "patient_id": ids,
        "age": rng.integers(45, 85, n_patients),
        "sex": rng.choice(["Male", "Female"], n_patients),
        "stage": np.where(survived, "Stage IB", "Stage IV"),
        "histology": rng.choice(["Adenocarcinoma", "Squamous cell carcinoma"], n_patients),
        "site": rng.choice(["Right Upper Lobe", "Left Upper Lobe", "Left Lower Lobe"], n_patients),
        "tumor_size": rng.uniform(1, 8, n_patients).round(1),
        "t_stage": rng.choice(["T1", "T2", "T3", "T4"], n_patients),
        "n_stage": rng.choice(["N0", "N1", "N2"], n_patients),
        "m_stage": np.where(survived, "M0", "M1"),
        "met_brain": (~survived & (rng.random(n_patients) < 0.5)).astype(int),
        "met_bone": (~survived & (rng.random(n_patients) < 0.5)).astype(int),
        "met_liver": (~survived & (rng.random(n_patients) < 0.3)).astype(int),
        "tumors_primary": np.ones(n_patients, dtype=int),
        "tumors_nodal": rng.integers(0, 4, n_patients),
    })
    clinical = clinical.astype({"tumor_size": object, "histology": object})
    clinical.loc[1, "stage"] = "Satge IV"
    clinical.loc[2, "site"] = "Rigth Upper Lobe"
    clinical.loc[3, "histology"] = "UNK"
    clinical.loc[5, "tumor_size"] = "NULL"
    # duplicated registry row
    clinical = pd.concat([clinical, clinical.iloc[[0]]], ignore_index=True)

    months = np.where(
        survived, rng.uniform(13, 60, n_patients), rng.uniform(1, 12, n_patients)
    ).round(1)
    vital = np.where(survived, rng.choice(["Alive", "Dead"], n_patients), "Dead")
    onc = pd.DataFrame({
        "patient_id": ids,
        "survival_months": months.astype(object),
        "vital_status": vital,
    })
    onc.loc[n_patients - 1, ["survival_months", "vital_status"]] = [8.0, "Alive"]
    onc.loc[n_patients - 2, "survival_months"] = "UNK"

    records = []
    for gene, k in GENE_COUNTS.items():
        for pid in rng.choice(ids, k, replace=False):
            records.append({"patient_id": pid, "gene": gene})
    records.append(dict(records[0]))
    records.append({"patient_id": "P999", "gene": "EGFR"})
    genomics = pd.DataFrame(records)

    albumin_gdl = np.where(
        survived, rng.normal(4.2, 0.25, n_patients), rng.normal(2.9, 0.25, n_patients)
    )
    labs = []
    for i, pid in enumerate(ids):
        if i == 4:
            continue  # no albumin drawn
        day = int(rng.integers(-20, 20))
        if i % 3 == 0:
            labs.append([pid, "Albumin", round(albumin_gdl[i] * 10, 3), "ug/ul", day])
        else:
            labs.append([pid, "ALBUMIN", round(albumin_gdl[i] * 10000, 1), "ng/ul", day])
        # later specimen that must lose to the one nearer diagnosis
        labs.append([pid, "albumin", 1.0, "ng/ul", 200])
        labs.append([pid, "Hemoglobin", 13.0, "g/dl", day])
    labs.append([ids[0], "albumin", 5.0, "mmol/l", 0])
    labs = pd.DataFrame(
        labs, columns=["patient_id", "test_name", "value", "unit", "days_to_specimen"]
    )

    return {"clinical": clinical, "genomics": genomics, "labs": labs, "onc": onc}


def write_cohort(tables: dict[str, pd.DataFrame], directory) -> None:
    for name, df in tables.items():
        df.to_csv(directory / f"{name}.csv", index=False)


@pytest.fixture
def cohort() -> dict[str, pd.DataFrame]:
    return make_cohort()


@pytest.fixture
def cohort_dir(tmp_path, cohort):
    """
    Path to a directory holding clinical.csv, genomics.csv, labs.csv and onc.csv.
    """
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    write_cohort(cohort, data_dir)
    return data_dir
