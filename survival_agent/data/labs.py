"""Lab measurement normalization and per-patient selection."""

import numpy as np
import pandas as pd

from survival_agent import config
from survival_agent.utils import get_logger

log = get_logger(__name__)


def _canonical_unit(unit) -> str:
    if pd.isna(unit):
        return ""
    return "".join(str(unit).split()).lower()


def normalize_units(labs: pd.DataFrame,
                    factors: dict[str, float] | None = None,
                    target_unit: str = config.ALBUMIN_UNIT) -> pd.DataFrame:
    """
    Convert every lab value to ``target_unit``.

    Rows whose unit is not in ``factors`` cannot be compared with the rest
    and are dropped. The returned frame has ``unit`` set to ``target_unit``.
    """
    if factors is None:
        factors = config.ALBUMIN_UNIT_FACTORS
    lookup = {_canonical_unit(u): f for u, f in factors.items()}

    labs = labs.copy()
    units = labs["unit"].map(_canonical_unit)
    factor = units.map(lookup)

    unknown = factor.isna()
    if unknown.any():
        log.warning(
            "Dropping %d lab rows with unrecognised units: %s",
            int(unknown.sum()), sorted(set(labs.loc[unknown, "unit"].astype(str))),
        )

    labs["value"] = pd.to_numeric(labs["value"], errors="coerce") * factor
    labs["unit"] = target_unit
    labs = labs[~unknown & labs["value"].notna()]
    return labs.reset_index(drop=True)


def select_nearest_to_diagnosis(labs: pd.DataFrame) -> pd.DataFrame:
    """
    Keep one measurement per patient: the specimen drawn closest to diagnosis.

    Ties on absolute distance go to the earlier specimen.
    """
    labs = labs.copy()
    labs["days_to_specimen"] = pd.to_numeric(labs["days_to_specimen"], errors="coerce")
    labs = labs[labs["days_to_specimen"].notna()]
    labs["_distance"] = labs["days_to_specimen"].abs()
    labs = labs.sort_values(
        [config.PATIENT_ID, "_distance", "days_to_specimen"], kind="mergesort",
    )
    nearest = labs.drop_duplicates(subset=config.PATIENT_ID, keep="first")
    return nearest.drop(columns="_distance").reset_index(drop=True)


def albumin_by_patient(labs: pd.DataFrame,
                       test_name: str = config.ALBUMIN_TEST_NAME) -> pd.Series:
    """Return the normalized albumin value nearest diagnosis, indexed by patient."""
    names = labs["test_name"].astype(str).str.strip().str.lower()
    albumin = labs[names == test_name.lower()]
    log.info("Found %d %s measurements for %d patients",
             len(albumin), test_name, albumin[config.PATIENT_ID].nunique())

    albumin = select_nearest_to_diagnosis(normalize_units(albumin))
    series = albumin.set_index(config.PATIENT_ID)["value"].astype(np.float64)
    series.name = "albumin"
    return series
