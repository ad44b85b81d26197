"""Configuration constants for the survival analysis agent."""

from pathlib import Path

# ---------------------------------------------------------------------------
# Input files
# ---------------------------------------------------------------------------
DEFAULT_DATA_DIR = Path("data")
DEFAULT_OUTPUT_DIR = Path("survival_agent_output")

CLINICAL_FILE = "clinical.csv"
GENOMICS_FILE = "genomics.csv"
LABS_FILE = "labs.csv"
ONC_FILE = "onc.csv"

PATIENT_ID = "patient_id"

CLINICAL_COLUMNS = [
    PATIENT_ID, "age", "sex", "stage", "histology", "site",
    "tumor_size", "t_stage", "n_stage", "m_stage",
]
GENOMICS_COLUMNS = [PATIENT_ID, "gene"]
LABS_COLUMNS = [PATIENT_ID, "test_name", "value", "unit", "days_to_specimen"]
ONC_COLUMNS = [PATIENT_ID, "survival_months", "vital_status"]

# Optional clinical column families summed into derived totals
METASTASIS_PREFIX = "met_"
TUMOR_COUNT_PREFIX = "tumors_"

NUMERIC_CLINICAL_COLUMNS = ["age", "tumor_size", "survival_months"]
CATEGORICAL_FEATURES = [
    "sex", "stage", "histology", "site", "t_stage", "n_stage", "m_stage",
]

# ---------------------------------------------------------------------------
# Cleaning
# ---------------------------------------------------------------------------
MISSING_SENTINELS = ["UNK", "NULL"]

# Exact-string substitutions for labels known to be mistyped in the registry
STAGE_TYPOS = {
    "Satge IV": "Stage IV",
    "Stage IIIa": "Stage IIIA",
    "Stage IIIb": "Stage IIIB",
    "Stage 1A": "Stage IA",
    "Stage 1B": "Stage IB",
}
SITE_TYPOS = {
    "Rigth Upper Lobe": "Right Upper Lobe",
    "Rigth Lower Lobe": "Right Lower Lobe",
    "Left Uper Lobe": "Left Upper Lobe",
    "Midle Lobe": "Middle Lobe",
}

DEAD_STATUSES = {"dead", "deceased", "died", "expired"}

# ---------------------------------------------------------------------------
# Labs
# ---------------------------------------------------------------------------
ALBUMIN_TEST_NAME = "albumin"
ALBUMIN_UNIT = "ng/ul"

# Multiplier taking a value in the given unit to ng/ul
ALBUMIN_UNIT_FACTORS = {
    "ng/ul": 1.0,
    "ug/ul": 1000.0,
    "mg/ml": 1000.0,
    "g/l": 1000.0,
    "g/dl": 10000.0,
}

# ---------------------------------------------------------------------------
# Labels and feature reduction
# ---------------------------------------------------------------------------
SURVIVAL_THRESHOLD_MONTHS = 12
GENE_CUTOFF_FRACTION = 0.10

TARGET_NAME = "one_year_survival"
SURVIVED = "Survived"
DIED = "Died"
CLASS_LABELS = [DIED, SURVIVED]
POSITIVE_LABEL = SURVIVED

FIXED_FEATURES = [
    "age", "sex", "stage", "histology", "site", "tumor_size",
    "t_stage", "n_stage", "m_stage", "albumin",
    "total_metastases", "total_tumors",
]

# ---------------------------------------------------------------------------
# Modelling
# ---------------------------------------------------------------------------
RANDOM_STATE = 42
N_ESTIMATORS = 500
MAX_FEATURES = "sqrt"
IMPUTE_ITERATIONS = 5
IMPUTE_N_ESTIMATORS = 300
TOP_N_FEATURES = 10
