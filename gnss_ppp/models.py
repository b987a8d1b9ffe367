"""Core data models for the PPP estimator."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping

import numpy as np

GPS = "G"
GLONASS = "R"
GALILEO = "E"
BEIDOU = "C"

# Reference system first, then secondary systems in ISB order.
SYSTEM_ORDER: tuple[str, ...] = (GPS, GLONASS, GALILEO, BEIDOU)


def sv_system(sv_id: str) -> str:
    """Return the one-letter system code of a satellite identifier (``"G05"`` -> ``"G"``)."""

    if not sv_id:
        raise ValueError("Empty satellite identifier.")
    return sv_id[0].upper()


def sv_sort_key(sv_id: str) -> tuple[int, str, int, str]:
    """Ordering key: system order, then PRN number."""

    system = sv_system(sv_id)
    rank = SYSTEM_ORDER.index(system) if system in SYSTEM_ORDER else len(SYSTEM_ORDER)
    digits = "".join(ch for ch in sv_id[1:] if ch.isdigit())
    prn = int(digits) if digits else -1
    return rank, system, prn, sv_id


@dataclass(frozen=True)
class SatObservation:
    """Prefit data for one usable satellite at one epoch.

    ``coefficients`` holds the design-matrix partials of both residuals with
    respect to the fixed state components, keyed by component name
    (``"wet_tropo"``, ``"dx"``/``"dy"``/``"dz"`` or ``"dlat"``/``"dlon"``/``"dh"``,
    ``"rx_clock"``). The receiver-clock partial defaults to 1.0 when absent.
    Ambiguity and inter-system-bias partials are implied.
    """

    sv_id: str
    prefit_code_m: float | None
    prefit_phase_m: float | None
    coefficients: Mapping[str, float] = field(default_factory=dict)
    weight: float | None = None
    cycle_slip: bool = False
    elev_deg: float | None = None

    def __post_init__(self) -> None:
        sv_system(self.sv_id)
        if self.prefit_code_m is None and self.prefit_phase_m is None:
            raise ValueError(f"{self.sv_id}: observation carries neither code nor phase.")
        for label, value in (("prefit_code_m", self.prefit_code_m), ("prefit_phase_m", self.prefit_phase_m)):
            if value is not None and not math.isfinite(value):
                raise ValueError(f"{self.sv_id}: {label} is not finite.")
        if self.weight is not None and (not math.isfinite(self.weight) or self.weight < 0.0):
            raise ValueError(f"{self.sv_id}: weight must be finite and non-negative.")
        for name, value in self.coefficients.items():
            if not math.isfinite(value):
                raise ValueError(f"{self.sv_id}: coefficient {name!r} is not finite.")

    @property
    def system(self) -> str:
        return sv_system(self.sv_id)

    @property
    def has_code(self) -> bool:
        return self.prefit_code_m is not None

    @property
    def has_phase(self) -> bool:
        return self.prefit_phase_m is not None


@dataclass(frozen=True)
class EpochInput:
    """Everything the filter consumes for one epoch."""

    t_s: float
    observations: tuple[SatObservation, ...]
    within_tolerance: bool | None = None  # Caller-side convergence flag; None uses the offset criterion.

    def __post_init__(self) -> None:
        if not math.isfinite(self.t_s):
            raise ValueError("Epoch time must be finite.")
        object.__setattr__(self, "observations", tuple(self.observations))
        seen: set[str] = set()
        for obs in self.observations:
            if obs.sv_id in seen:
                raise ValueError(f"Duplicate observation for {obs.sv_id} at t={self.t_s}.")
            seen.add(obs.sv_id)


@dataclass(frozen=True)
class SvState:
    """Satellite position at a given epoch."""

    sv_id: str
    t: float
    pos_ecef_m: np.ndarray


class EpochStatus(Enum):
    OK = "ok"
    OBSERVABILITY_FAILURE = "observability_failure"
    NUMERICAL_FAILURE = "numerical_failure"


@dataclass(frozen=True)
class EpochResult:
    """Outcome of one epoch attempt."""

    t_s: float
    status: EpochStatus
    reason: str
    state: dict[str, float]
    variances: dict[str, float]
    postfit_code_m: dict[str, float] = field(default_factory=dict)
    postfit_phase_m: dict[str, float] = field(default_factory=dict)
    sv_used: list[str] = field(default_factory=list)
    converged: bool | None = None
    nis: float | None = None

    @property
    def ok(self) -> bool:
        return self.status is EpochStatus.OK

    @property
    def num_sats(self) -> int:
        return len(self.sv_used)

    @property
    def dimension(self) -> int:
        return len(self.state)
