"""Epoch-by-epoch PPP estimator.

One :class:`PppEstimator` owns the filter state of one receiver's time
series. Feed it epochs in non-decreasing time order; do not share an
instance between stations.
"""

from __future__ import annotations

import logging
from typing import Sequence

import numpy as np

from gnss_ppp.config import ConfigurationError, PppConfig
from gnss_ppp.filter.convergence import ConvergenceTracker
from gnss_ppp.filter.kalman import SolverError, kalman_step
from gnss_ppp.filter.measurement import CODE, assemble_measurements
from gnss_ppp.filter.state_index import (
    CovarianceLedger,
    IndexUpdate,
    StateIndex,
    StateKey,
    StateKind,
    fixed_keys,
)
from gnss_ppp.filter.stochastic import PhaseAmbiguityModel, StochasticModel
from gnss_ppp.filter.transition import build_transition
from gnss_ppp.models import EpochInput, EpochResult, EpochStatus, SatObservation

logger = logging.getLogger(__name__)


class PppEstimator:
    """Float-ambiguity PPP Kalman filter with a dynamic state vector."""

    def __init__(self, config: PppConfig | None = None, *, station: str = "") -> None:
        self.config = config or PppConfig()
        self.station = station
        self._fixed = fixed_keys(self.config.use_neu)
        self._index = StateIndex(self._fixed, self.config.isb_systems)
        self._ledger = CovarianceLedger()
        self._convergence = ConvergenceTracker(self.config.convergence_window)
        self._models = self._resolve_models()
        self._last_attempt_t_s: float | None = None
        self._last_solved_t_s: float | None = None
        self.last_phi: np.ndarray | None = None
        self.last_q: np.ndarray | None = None
        self.last_prior_covariance: np.ndarray | None = None
        self._initialize_fixed_block()

    # ------------------------------------------------------------------ setup

    def _resolve_models(self) -> dict[StateKind, StochasticModel]:
        cfg = self.config
        coord_kinds = [key.kind for key in self._fixed if key.is_coordinate]
        models: dict[StateKind, StochasticModel] = dict(zip(coord_kinds, cfg.coordinate_models()))
        models[StateKind.WET_TROPO] = cfg.models.troposphere
        models[StateKind.RX_CLOCK] = cfg.models.receiver_clock
        models[StateKind.AMBIGUITY] = cfg.models.phase_ambiguity
        return models

    def _initialize_fixed_block(self) -> None:
        cfg = self.config
        for key in self._fixed:
            if key.is_coordinate:
                variance = cfg.coord_variance_m2
            elif key.kind is StateKind.WET_TROPO:
                variance = cfg.tropo_variance_m2
            else:
                variance = cfg.clock_variance_m2
            self._ledger.insert(key, 0.0, variance)

    def model_for(self, key: StateKey) -> StochasticModel:
        if key.kind is StateKind.ISB:
            return self.config.isb_model(key.ident)
        return self._models[key.kind]

    def _initial_value(self, key: StateKey) -> tuple[float, float]:
        if key.kind is StateKind.AMBIGUITY:
            model = self._models[StateKind.AMBIGUITY]
            if not isinstance(model, PhaseAmbiguityModel):
                raise ConfigurationError("Phase ambiguities must use a PhaseAmbiguityModel.")
            return 0.0, model.reset_variance
        if key.kind is StateKind.ISB:
            return 0.0, self.config.isb_variance_m2
        raise KeyError(f"{key.name} is a fixed component and is never created mid-run.")

    # --------------------------------------------------------------- queries

    @property
    def state_keys(self) -> tuple[StateKey, ...]:
        return self._ledger.keys

    @property
    def state_names(self) -> list[str]:
        return [key.name for key in self._ledger.keys]

    @property
    def state(self) -> np.ndarray:
        return self._ledger.x

    @property
    def covariance(self) -> np.ndarray:
        return self._ledger.P

    @property
    def dimension(self) -> int:
        return len(self._ledger)

    def get_solution(self, name: str) -> float:
        return self._ledger.value(StateKey.parse(name))

    def get_variance(self, name: str) -> float:
        return self._ledger.variance(StateKey.parse(name))

    def get_covariance(self, first: str, second: str) -> float:
        return self._ledger.covariance(StateKey.parse(first), StateKey.parse(second))

    def get_converged(self) -> bool:
        return self._convergence.converged()

    def get_ttfc(self) -> list[float]:
        return self._convergence.ttfc

    def fixed_block_covariance(self) -> np.ndarray:
        idx = [self._ledger.index_of(key) for key in self._fixed]
        return self._ledger.P[np.ix_(idx, idx)]

    def solution_dict(self) -> dict[str, float]:
        return {key.name: float(value) for key, value in zip(self._ledger.keys, self._ledger.x)}

    def variance_dict(self) -> dict[str, float]:
        return {key.name: float(var) for key, var in zip(self._ledger.keys, np.diag(self._ledger.P))}

    # ------------------------------------------------------------ processing

    def reset(self) -> None:
        """Drop every ambiguity/ISB, restore the fixed-block prior and open a new convergence episode."""

        self._ledger.clear()
        self._initialize_fixed_block()
        self._convergence.restart()
        self._last_solved_t_s = None
        logger.info("%sfilter reset", self._prefix())

    def process(self, epoch: EpochInput) -> EpochResult:
        """Run one predict/update cycle; failures leave the committed state untouched."""

        t_s = float(epoch.t_s)
        if self._last_attempt_t_s is not None and t_s < self._last_attempt_t_s:
            raise ValueError(
                f"Epochs must be in non-decreasing time order: got t={t_s} after t={self._last_attempt_t_s}."
            )
        self._last_attempt_t_s = t_s
        self._maybe_reset_after_gap(t_s)
        self._convergence.mark_start(t_s)

        usable = self._usable(epoch.observations)
        if len(usable) < self.config.min_satellites:
            return self._failure(
                t_s,
                EpochStatus.OBSERVABILITY_FAILURE,
                f"{len(usable)} usable satellites, {self.config.min_satellites} required",
                usable,
            )

        update = self._index.plan(usable, self._ledger)
        x0, p0 = self._ledger.rearranged(update, {key: self._initial_value(key) for key in update.created})
        phi, q = build_transition(
            update.keys,
            self.model_for,
            lambda key: self._ledger.elapsed(key, t_s),
            update.reset_ambiguities,
        )
        meas = assemble_measurements(usable, update.keys, self.config.phase_weight_factor)
        try:
            step = kalman_step(x0, p0, phi, q, meas, self.config.solver_tolerance)
        except SolverError as exc:
            return self._failure(t_s, EpochStatus.NUMERICAL_FAILURE, str(exc), usable)

        self._ledger.commit(update.keys, step.x, step.p, t_s)
        self._last_solved_t_s = t_s
        self.last_phi = phi
        self.last_q = q
        self.last_prior_covariance = step.p_prior
        self._log_dimension_change(update)

        within = epoch.within_tolerance
        if within is None:
            within = self._within_tolerance()
        converged = self._convergence.push(t_s, within)

        postfit_code: dict[str, float] = {}
        postfit_phase: dict[str, float] = {}
        for (sv_id, observable), value in zip(meas.rows, step.postfit):
            target = postfit_code if observable == CODE else postfit_phase
            target[sv_id] = float(value)
        return EpochResult(
            t_s=t_s,
            status=EpochStatus.OK,
            reason="ok",
            state=self.solution_dict(),
            variances=self.variance_dict(),
            postfit_code_m=postfit_code,
            postfit_phase_m=postfit_phase,
            sv_used=[obs.sv_id for obs in usable],
            converged=converged,
            nis=step.nis,
        )

    def run(self, epochs: Sequence[EpochInput]) -> list[EpochResult]:
        return [self.process(epoch) for epoch in epochs]

    # --------------------------------------------------------------- helpers

    def _usable(self, observations: Sequence[SatObservation]) -> list[SatObservation]:
        enabled = set(self.config.enabled_systems)
        usable = [obs for obs in observations if obs.system in enabled]
        if len(usable) != len(observations):
            skipped = sorted(obs.sv_id for obs in observations if obs.system not in enabled)
            logger.debug("%signoring satellites of disabled systems: %s", self._prefix(), skipped)
        return usable

    def _within_tolerance(self) -> bool:
        tol = self.config.convergence_tolerance_m
        coords = [self._ledger.value(key) for key in self._fixed if key.is_coordinate]
        return all(abs(value) <= tol for value in coords)

    def _maybe_reset_after_gap(self, t_s: float) -> None:
        gap = self.config.reset_gap_s
        if gap is None or self._last_solved_t_s is None:
            return
        if t_s - self._last_solved_t_s > gap:
            logger.info(
                "%sdata gap of %.1f s exceeds %.1f s, reinitialising",
                self._prefix(),
                t_s - self._last_solved_t_s,
                gap,
            )
            self.reset()

    def _failure(
        self,
        t_s: float,
        status: EpochStatus,
        reason: str,
        usable: Sequence[SatObservation],
    ) -> EpochResult:
        logger.warning("%sepoch t=%.3f skipped (%s): %s", self._prefix(), t_s, status.value, reason)
        return EpochResult(
            t_s=t_s,
            status=status,
            reason=reason,
            state=self.solution_dict(),
            variances=self.variance_dict(),
            sv_used=[obs.sv_id for obs in usable],
            converged=None,
        )

    def _log_dimension_change(self, update: IndexUpdate) -> None:
        if update.slipped:
            logger.debug(
                "%sambiguity reset on cycle slip: %s",
                self._prefix(),
                ", ".join(key.ident for key in update.slipped),
            )

    def _prefix(self) -> str:
        return f"[{self.station}] " if self.station else ""
