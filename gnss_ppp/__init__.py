"""Dynamic-dimension Kalman filter for precise point positioning."""

from gnss_ppp.config import ConfigurationError, PppConfig, ScenarioConfig, StochasticModels
from gnss_ppp.filter import NotComputedError, SolverError
from gnss_ppp.models import EpochInput, EpochResult, EpochStatus, SatObservation
from gnss_ppp.runtime import PppEstimator, StationRun, process_stations

__all__ = [
    "ConfigurationError",
    "EpochInput",
    "EpochResult",
    "EpochStatus",
    "NotComputedError",
    "PppConfig",
    "PppEstimator",
    "SatObservation",
    "ScenarioConfig",
    "SolverError",
    "StationRun",
    "StochasticModels",
    "process_stations",
    "filter",
    "meas",
    "sat",
    "utils",
]
