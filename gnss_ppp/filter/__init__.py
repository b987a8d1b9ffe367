"""Dynamic-dimension Kalman filter building blocks."""

from gnss_ppp.filter.convergence import ConvergenceTracker, NotComputedError
from gnss_ppp.filter.kalman import KalmanStep, SolverError, kalman_step
from gnss_ppp.filter.measurement import MeasurementModel, assemble_measurements
from gnss_ppp.filter.state_index import (
    CovarianceLedger,
    IndexUpdate,
    StateIndex,
    StateKey,
    StateKind,
    fixed_keys,
)
from gnss_ppp.filter.stochastic import (
    ConstantModel,
    PhaseAmbiguityModel,
    RandomWalkModel,
    StochasticModel,
    WhiteNoiseModel,
    transition_terms,
)
from gnss_ppp.filter.transition import build_transition

__all__ = [
    "ConstantModel",
    "ConvergenceTracker",
    "CovarianceLedger",
    "IndexUpdate",
    "KalmanStep",
    "MeasurementModel",
    "NotComputedError",
    "PhaseAmbiguityModel",
    "RandomWalkModel",
    "SolverError",
    "StateIndex",
    "StateKey",
    "StateKind",
    "StochasticModel",
    "WhiteNoiseModel",
    "assemble_measurements",
    "build_transition",
    "fixed_keys",
    "kalman_step",
    "transition_terms",
]
