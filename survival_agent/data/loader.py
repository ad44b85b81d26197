"""Loading and cleaning of the clinical, genomic, lab and follow-up tables."""

from pathlib import Path

import numpy as np
import pandas as pd

from survival_agent import config
from survival_agent.data.labs import albumin_by_patient
from survival_agent.utils import get_logger

log = get_logger(__name__)


def read_table(path, required_columns: list[str], name: str) -> pd.DataFrame:
    """Read a CSV table and verify it has the expected columns."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"{name} table not found: {path}")

    log.info("Loading %s table from: %s", name, path)
    header = pd.read_csv(path, nrows=0).columns
    # identifiers stay text whatever the header's case, so "001" keeps its zeros
    id_columns = {c: str for c in header if c.strip().lower() == config.PATIENT_ID}
    df = pd.read_csv(path, dtype=id_columns, skipinitialspace=True)
    df.columns = df.columns.str.strip().str.lower()

    missing = [c for c in required_columns if c not in df.columns]
    if missing:
        raise ValueError(f"{name} table {path} is missing columns: {missing}")

    df[config.PATIENT_ID] = df[config.PATIENT_ID].str.strip()
    log.info("Loaded %d rows x %d columns", len(df), len(df.columns))
    return df


def replace_sentinels(df: pd.DataFrame,
                      sentinels: list[str] | None = None) -> pd.DataFrame:
    """Turn missing-data sentinel strings into NaN across every text column."""
    if sentinels is None:
        sentinels = config.MISSING_SENTINELS
    df = df.copy()
    for col in df.columns:
        if pd.api.types.is_string_dtype(df[col].dtype):
            stripped = df[col].where(df[col].isna(), df[col].astype(str).str.strip())
            df[col] = stripped.replace(sentinels, np.nan)
    return df


def fix_typos(df: pd.DataFrame) -> pd.DataFrame:
    """Correct known categorical label typos by exact substitution."""
    df = df.copy()
    for col, mapping in (("stage", config.STAGE_TYPOS), ("site", config.SITE_TYPOS)):
        if col not in df.columns:
            continue
        n_fixed = int(df[col].isin(list(mapping)).sum())
        if n_fixed:
            log.info("Corrected %d mistyped '%s' labels", n_fixed, col)
        df[col] = df[col].replace(mapping)
    return df


def dedupe_patients(df: pd.DataFrame, name: str) -> tuple[pd.DataFrame, int]:
    """Keep the first row per patient identifier."""
    df = df[df[config.PATIENT_ID].notna()]
    dups = int(df.duplicated(subset=config.PATIENT_ID).sum())
    if dups:
        log.warning("%s table has %d duplicate patient rows, keeping first", name, dups)
        df = df.drop_duplicates(subset=config.PATIENT_ID, keep="first")
    return df.reset_index(drop=True), dups


def mutation_matrix(genomics: pd.DataFrame, patients: pd.Series) -> pd.DataFrame:
    """
    Pivot long-format mutation records into one 0/1 column per gene.

    Every patient in ``patients`` gets a row; those without any mutation
    record are wild type (0) for every gene.
    """
    records = genomics[[config.PATIENT_ID, "gene"]].dropna()
    records = records.assign(gene=records["gene"].astype(str).str.strip())
    records = records.drop_duplicates()
    if records.empty:
        log.warning("No mutation records, every patient is wild type")
        return pd.DataFrame(index=pd.Index(patients.values, name=config.PATIENT_ID))

    matrix = pd.crosstab(records[config.PATIENT_ID], records["gene"])
    matrix = (matrix > 0).astype(int)
    matrix = matrix.reindex(patients.values, fill_value=0)
    matrix.index.name = config.PATIENT_ID
    matrix.columns.name = None
    return matrix


def coerce_numeric(df: pd.DataFrame, columns: list[str]) -> pd.DataFrame:
    """Parse numeric columns, failing loudly on values that are not numbers."""
    df = df.copy()
    for col in columns:
        parsed = pd.to_numeric(df[col], errors="coerce")
        bad = parsed.isna() & df[col].notna()
        if bad.any():
            examples = df.loc[bad, col].astype(str).unique()[:5].tolist()
            raise ValueError(f"Column '{col}' has non-numeric values: {examples}")
        df[col] = parsed.astype(np.float64)
    return df


class ClinicalDataLoader:
    """Reads the four input tables and merges them into one record per patient."""

    def __init__(self, data_dir=config.DEFAULT_DATA_DIR, clinical_path=None,
                 genomics_path=None, labs_path=None, onc_path=None):
        data_dir = Path(data_dir)
        self.clinical_path = Path(clinical_path or data_dir / config.CLINICAL_FILE)
        self.genomics_path = Path(genomics_path or data_dir / config.GENOMICS_FILE)
        self.labs_path = Path(labs_path or data_dir / config.LABS_FILE)
        self.onc_path = Path(onc_path or data_dir / config.ONC_FILE)

    def load(self) -> dict:
        """
        Load, clean and join all tables.

        Returns a dict with keys:
            - df: merged pd.DataFrame, one row per clinical patient
            - gene_columns: names of the mutation flag columns
            - metadata: counts describing the load
        """
        clinical = read_table(self.clinical_path, config.CLINICAL_COLUMNS, "clinical")
        genomics = read_table(self.genomics_path, config.GENOMICS_COLUMNS, "genomics")
        labs = read_table(self.labs_path, config.LABS_COLUMNS, "labs")
        onc = read_table(self.onc_path, config.ONC_COLUMNS, "onc")

        clinical = fix_typos(replace_sentinels(clinical))
        onc = replace_sentinels(onc)
        labs = replace_sentinels(labs)
        genomics = replace_sentinels(genomics)

        clinical, clinical_dups = dedupe_patients(clinical, "clinical")
        onc, _ = dedupe_patients(onc, "onc")

        patients = clinical[config.PATIENT_ID]
        genes = mutation_matrix(genomics, patients)
        albumin = albumin_by_patient(labs)

        df = clinical.merge(onc, on=config.PATIENT_ID, how="left",
                            suffixes=("", "_onc"))
        df = df.merge(genes, left_on=config.PATIENT_ID, right_index=True, how="left")
        df["albumin"] = df[config.PATIENT_ID].map(albumin)

        numeric = config.NUMERIC_CLINICAL_COLUMNS + [
            c for c in df.columns
            if c.startswith((config.METASTASIS_PREFIX, config.TUMOR_COUNT_PREFIX))
        ]
        df = coerce_numeric(df, numeric)

        if len(df) != patients.nunique():
            raise ValueError(
                f"Join produced {len(df)} rows for {patients.nunique()} patients"
            )

        gene_columns = list(genes.columns)
        metadata = {
            "n_patients": len(df),
            "n_genes_tracked": len(gene_columns),
            "n_mutation_records": len(genomics),
            "duplicates_dropped": clinical_dups,
            "n_with_albumin": int(df["albumin"].notna().sum()),
            "n_with_followup": int(df["survival_months"].notna().sum()),
        }

        log.info(
            "Merged %d patients with %d tracked genes (%d with albumin)",
            metadata["n_patients"], metadata["n_genes_tracked"],
            metadata["n_with_albumin"],
        )

        return {
            "df": df,
            "gene_columns": gene_columns,
            "metadata": metadata,
        }
