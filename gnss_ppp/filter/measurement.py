"""Stacked code/phase measurement model for one epoch."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np

from gnss_ppp.filter.state_index import StateKey, StateKind
from gnss_ppp.models import SatObservation

CODE = "code"
PHASE = "phase"
DEFAULT_CLOCK_PARTIAL = 1.0


@dataclass(frozen=True)
class MeasurementModel:
    """Prefit residuals ``z``, design matrix ``h`` and per-row weights."""

    z: np.ndarray
    h: np.ndarray
    weights: np.ndarray
    rows: tuple[tuple[str, str], ...]

    @property
    def weight_matrix(self) -> np.ndarray:
        return np.diag(self.weights)

    def __len__(self) -> int:
        return len(self.rows)


def _design_row(obs: SatObservation, keys: Sequence[StateKey], observable: str) -> np.ndarray:
    row = np.zeros(len(keys), dtype=float)
    for idx, key in enumerate(keys):
        if key.kind is StateKind.AMBIGUITY:
            if observable == PHASE and key.ident == obs.sv_id:
                row[idx] = 1.0
        elif key.kind is StateKind.ISB:
            if key.ident == obs.system:
                row[idx] = 1.0
        elif key.kind is StateKind.RX_CLOCK:
            row[idx] = float(obs.coefficients.get(key.name, DEFAULT_CLOCK_PARTIAL))
        else:
            row[idx] = float(obs.coefficients.get(key.name, 0.0))
    return row


def assemble_measurements(
    observations: Sequence[SatObservation],
    keys: Sequence[StateKey],
    phase_weight_factor: float = 10000.0,
) -> MeasurementModel:
    """Stack code rows then phase rows per satellite, columns ordered as ``keys``.

    Without an explicit weight the code row gets 1.0; the phase row always gets
    the code weight times ``phase_weight_factor``.
    """

    z: list[float] = []
    rows: list[np.ndarray] = []
    weights: list[float] = []
    labels: list[tuple[str, str]] = []
    for obs in observations:
        code_weight = 1.0 if obs.weight is None else float(obs.weight)
        if obs.has_code:
            z.append(float(obs.prefit_code_m))
            rows.append(_design_row(obs, keys, CODE))
            weights.append(code_weight)
            labels.append((obs.sv_id, CODE))
        if obs.has_phase:
            z.append(float(obs.prefit_phase_m))
            rows.append(_design_row(obs, keys, PHASE))
            weights.append(code_weight * phase_weight_factor)
            labels.append((obs.sv_id, PHASE))
    h = np.vstack(rows) if rows else np.zeros((0, len(keys)), dtype=float)
    return MeasurementModel(
        z=np.array(z, dtype=float),
        h=h,
        weights=np.array(weights, dtype=float),
        rows=tuple(labels),
    )
