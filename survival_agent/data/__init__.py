from survival_agent.data.loader import ClinicalDataLoader
from survival_agent.data.features import FeatureReducer
from survival_agent.data.imputer import ProximityImputer

__all__ = ["ClinicalDataLoader", "FeatureReducer", "ProximityImputer"]
