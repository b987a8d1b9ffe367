"""Synthetic prefit residual source for PPP scenarios.

Prefit residuals are generated directly from the linearised observation
model around the station's reference coordinates:

    code  = m_w * T + a . d + clk + isb + e_code
    phase = m_w * T + a . d + clk + isb + amb + e_phase

where ``a`` is the coordinate partial (minus the line of sight, optionally
rotated into north/east/up). Phase arcs restart (with a fresh ambiguity) when
a satellite rises, comes back from an outage or has a scheduled slip.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

from gnss_ppp.config import ScenarioConfig
from gnss_ppp.meas.weights import code_sigma_m, elevation_weight, wet_mapping
from gnss_ppp.models import GPS, EpochInput, SatObservation, sv_sort_key, sv_system
from gnss_ppp.sat.simple_gnss import SimpleGnssConfig, SimpleGnssConstellation
from gnss_ppp.sat.visibility import visible_sv_states
from gnss_ppp.utils.angles import line_of_sight_unit
from gnss_ppp.utils.wgs84 import ecef_to_neu_matrix, lla_to_ecef

AMBIGUITY_SPAN_M = 50.0
CLOCK_SIGMA_M = 100.0
TROPO_WALK_SIGMA_M_PER_SQRT_S = 1.0e-4


@dataclass
class SyntheticPppSource:
    """Generate :class:`EpochInput` values for one synthetic station."""

    config: ScenarioConfig = field(default_factory=ScenarioConfig)
    use_neu: bool = False
    noise: bool = True

    last_truth: dict[str, float] = field(init=False, default_factory=dict)
    _rng: np.random.Generator = field(init=False)
    _constellation: SimpleGnssConstellation = field(init=False)
    _receiver_ecef_m: np.ndarray = field(init=False)
    _rotation: np.ndarray | None = field(init=False, default=None)
    _ambiguities: dict[str, float] = field(init=False, default_factory=dict)
    _tracked: set[str] = field(init=False, default_factory=set)
    _pending_slips: list[tuple[str, float]] = field(init=False, default_factory=list)
    _wet_zenith_m: float = field(init=False, default=0.0)
    _last_t: float | None = field(init=False, default=None)

    def __post_init__(self) -> None:
        cfg = self.config
        self._rng = np.random.default_rng(cfg.rng_seed)
        self._constellation = SimpleGnssConstellation(
            SimpleGnssConfig(systems=tuple(cfg.systems), sats_per_system=cfg.sats_per_system, seed=cfg.rng_seed)
        )
        self._receiver_ecef_m = lla_to_ecef(cfg.rx_lat_deg, cfg.rx_lon_deg, cfg.rx_alt_m)
        if self.use_neu:
            self._rotation = ecef_to_neu_matrix(cfg.rx_lat_deg, cfg.rx_lon_deg)
        self._pending_slips = sorted(cfg.slip_events, key=lambda event: event[1])
        self._wet_zenith_m = cfg.true_wet_zenith_m

    @property
    def receiver_ecef_m(self) -> np.ndarray:
        return self._receiver_ecef_m.copy()

    def epoch_times(self) -> np.ndarray:
        cfg = self.config
        return np.arange(0.0, cfg.duration + 0.5 * cfg.dt, cfg.dt)

    def epochs(self) -> list[EpochInput]:
        return [self.get_epoch(float(t)) for t in self.epoch_times()]

    def truth_offsets(self) -> dict[str, float]:
        offset = np.asarray(self.config.true_offset_m, dtype=float)
        if self._rotation is None:
            return {"dx": float(offset[0]), "dy": float(offset[1]), "dz": float(offset[2])}
        neu = self._rotation @ offset
        return {"dlat": float(neu[0]), "dlon": float(neu[1]), "dh": float(neu[2])}

    def get_epoch(self, t: float) -> EpochInput:
        """Return the usable observations at ``t``; calls must be time-ordered."""

        cfg = self.config
        t = float(t)
        if self._last_t is not None and t < self._last_t:
            raise ValueError(f"Synthetic source stepped backwards in time: {t} < {self._last_t}.")
        if self._last_t is not None and self.noise:
            self._wet_zenith_m += self._rng.normal(0.0, TROPO_WALK_SIGMA_M_PER_SQRT_S * np.sqrt(t - self._last_t))
        self._last_t = t

        slipped_now = self._due_slips(t)
        clock_m = float(self._rng.normal(0.0, CLOCK_SIGMA_M)) if self.noise else 0.0
        offset_ecef = np.asarray(cfg.true_offset_m, dtype=float)
        visible = visible_sv_states(
            self._receiver_ecef_m,
            self._constellation.get_sv_states(t),
            elevation_mask_deg=cfg.elev_mask_deg,
        )

        observations: list[SatObservation] = []
        tracked_now: set[str] = set()
        for state, elev_deg, _ in sorted(visible, key=lambda item: sv_sort_key(item[0].sv_id)):
            sv_id = state.sv_id
            if self._in_outage(sv_id, t):
                continue
            tracked_now.add(sv_id)
            slip = sv_id in slipped_now and sv_id in self._tracked
            if sv_id not in self._tracked or slip:
                self._ambiguities[sv_id] = float(self._rng.uniform(-AMBIGUITY_SPAN_M, AMBIGUITY_SPAN_M))

            los = line_of_sight_unit(self._receiver_ecef_m, state.pos_ecef_m)
            partial_ecef = -los
            mapping = wet_mapping(elev_deg)
            coefficients = {"wet_tropo": mapping, "rx_clock": 1.0}
            if self._rotation is None:
                coefficients.update(dx=partial_ecef[0], dy=partial_ecef[1], dz=partial_ecef[2])
            else:
                partial_neu = self._rotation @ partial_ecef
                coefficients.update(dlat=partial_neu[0], dlon=partial_neu[1], dh=partial_neu[2])
            coefficients = {name: float(value) for name, value in coefficients.items()}

            system = sv_system(sv_id)
            isb_m = 0.0 if system == GPS else float(cfg.true_isb_m.get(system, 0.0))
            common_m = mapping * self._wet_zenith_m + float(partial_ecef @ offset_ecef) + clock_m + isb_m
            sigma_code = code_sigma_m(elev_deg, base_sigma_m=cfg.code_sigma_m)
            sigma_phase = sigma_code * cfg.phase_sigma_m / cfg.code_sigma_m
            code_noise = float(self._rng.normal(0.0, sigma_code)) if self.noise else 0.0
            phase_noise = float(self._rng.normal(0.0, sigma_phase)) if self.noise else 0.0
            observations.append(
                SatObservation(
                    sv_id=sv_id,
                    prefit_code_m=common_m + code_noise,
                    prefit_phase_m=common_m + self._ambiguities[sv_id] + phase_noise,
                    coefficients=coefficients,
                    weight=elevation_weight(elev_deg, base_sigma_m=cfg.code_sigma_m),
                    cycle_slip=slip,
                    elev_deg=float(elev_deg),
                )
            )

        for sv_id in self._tracked - tracked_now:
            self._ambiguities.pop(sv_id, None)
        self._tracked = tracked_now
        self.last_truth = {
            "wet_tropo": float(self._wet_zenith_m),
            "rx_clock": clock_m,
            **self.truth_offsets(),
            **{f"amb_{sv_id}": value for sv_id, value in self._ambiguities.items()},
        }
        return EpochInput(t_s=t, observations=tuple(observations))

    def _due_slips(self, t: float) -> set[str]:
        due = {sv_id for sv_id, t_slip in self._pending_slips if t_slip <= t}
        self._pending_slips = [(sv_id, t_slip) for sv_id, t_slip in self._pending_slips if t_slip > t]
        return due

    def _in_outage(self, sv_id: str, t: float) -> bool:
        return any(sv == sv_id and start <= t < end for sv, start, end in self.config.outages)
