"""Configuration objects for PPP estimation and synthetic scenarios."""

from __future__ import annotations

import math
from dataclasses import dataclass, field

from gnss_ppp.filter.stochastic import (
    ConstantModel,
    PhaseAmbiguityModel,
    RandomWalkModel,
    StochasticModel,
    WhiteNoiseModel,
)
from gnss_ppp.models import BEIDOU, GALILEO, GLONASS, GPS


class ConfigurationError(ValueError):
    """Raised at construction time for inconsistent estimator settings."""


@dataclass(frozen=True)
class StochasticModels:
    """Per-category stochastic model overrides.

    ``None`` coordinate/ISB entries fall back to the defaults chosen by
    :class:`PppConfig` (constant or kinematic white noise coordinates,
    small-density random walk ISBs).
    """

    coord_x: StochasticModel | None = None
    coord_y: StochasticModel | None = None
    coord_z: StochasticModel | None = None
    troposphere: StochasticModel = field(default_factory=lambda: RandomWalkModel(q_prime=3.0e-8))
    receiver_clock: StochasticModel = field(default_factory=lambda: WhiteNoiseModel(sigma_m=3.0e5))
    isb_glonass: StochasticModel | None = None
    isb_galileo: StochasticModel | None = None
    isb_beidou: StochasticModel | None = None
    phase_ambiguity: StochasticModel = field(default_factory=PhaseAmbiguityModel)

    @classmethod
    def for_all_coordinates(cls, model: StochasticModel, **overrides: StochasticModel) -> StochasticModels:
        """Same model on every coordinate axis.

        Models carry no per-component history, so sharing one instance across
        axes is safe for every model kind.
        """

        return cls(coord_x=model, coord_y=model, coord_z=model, **overrides)

    def isb_override(self, system: str) -> StochasticModel | None:
        return {
            GLONASS: self.isb_glonass,
            GALILEO: self.isb_galileo,
            BEIDOU: self.isb_beidou,
        }.get(system)


DEFAULT_ISB_MODEL = RandomWalkModel(q_prime=1.0e-8)


@dataclass(frozen=True)
class PppConfig:
    """Fixed per-station estimator configuration."""

    use_neu: bool = False
    use_glonass: bool = False
    use_galileo: bool = False
    use_beidou: bool = False
    phase_weight_factor: float = 10000.0
    convergence_window: int = 5
    convergence_tolerance_m: float = 0.1
    min_satellites: int = 4
    solver_tolerance: float = 1.0e-6
    reset_gap_s: float | None = None
    coord_variance_m2: float = 1.0
    tropo_variance_m2: float = 0.25
    clock_variance_m2: float = 9.0e10
    isb_variance_m2: float = 9.0e10
    kinematic: bool = False
    kinematic_sigma_m: tuple[float, float, float] = (100.0, 100.0, 100.0)
    models: StochasticModels = field(default_factory=StochasticModels)

    def __post_init__(self) -> None:
        self.validate()

    @property
    def isb_systems(self) -> tuple[str, ...]:
        """Enabled secondary systems, in ISB order."""

        flags = ((GLONASS, self.use_glonass), (GALILEO, self.use_galileo), (BEIDOU, self.use_beidou))
        return tuple(system for system, enabled in flags if enabled)

    @property
    def enabled_systems(self) -> tuple[str, ...]:
        return (GPS, *self.isb_systems)

    def coordinate_models(self) -> tuple[StochasticModel, StochasticModel, StochasticModel]:
        overrides = (self.models.coord_x, self.models.coord_y, self.models.coord_z)
        resolved = []
        for override, sigma in zip(overrides, self.kinematic_sigma_m):
            if override is not None:
                resolved.append(override)
            elif self.kinematic:
                resolved.append(WhiteNoiseModel(sigma_m=sigma))
            else:
                resolved.append(ConstantModel())
        return resolved[0], resolved[1], resolved[2]

    def isb_model(self, system: str) -> StochasticModel:
        return self.models.isb_override(system) or DEFAULT_ISB_MODEL

    def validate(self) -> None:
        if self.convergence_window < 1:
            raise ConfigurationError("convergence_window must be >= 1.")
        if self.min_satellites < 1:
            raise ConfigurationError("min_satellites must be >= 1.")
        for name in (
            "phase_weight_factor",
            "convergence_tolerance_m",
            "solver_tolerance",
            "coord_variance_m2",
            "tropo_variance_m2",
            "clock_variance_m2",
            "isb_variance_m2",
        ):
            value = getattr(self, name)
            if not math.isfinite(value) or value <= 0.0:
                raise ConfigurationError(f"{name} must be positive and finite, got {value!r}.")
        if self.reset_gap_s is not None and not self.reset_gap_s > 0.0:
            raise ConfigurationError("reset_gap_s must be positive when set.")
        if len(self.kinematic_sigma_m) != 3 or any(s <= 0.0 for s in self.kinematic_sigma_m):
            raise ConfigurationError("kinematic_sigma_m needs three positive sigmas.")

        for system in (GLONASS, GALILEO, BEIDOU):
            if self.models.isb_override(system) is not None and system not in self.isb_systems:
                raise ConfigurationError(f"ISB model given for system {system!r}, which is not enabled.")

        if not isinstance(self.models.phase_ambiguity, PhaseAmbiguityModel):
            raise ConfigurationError("Phase ambiguities must use a PhaseAmbiguityModel.")
        others = {
            "coord_x": self.models.coord_x,
            "coord_y": self.models.coord_y,
            "coord_z": self.models.coord_z,
            "troposphere": self.models.troposphere,
            "receiver_clock": self.models.receiver_clock,
            "isb_glonass": self.models.isb_glonass,
            "isb_galileo": self.models.isb_galileo,
            "isb_beidou": self.models.isb_beidou,
        }
        for name, model in others.items():
            if isinstance(model, PhaseAmbiguityModel):
                raise ConfigurationError(f"{name} cannot use a PhaseAmbiguityModel.")
            if model is not None and not isinstance(model, StochasticModel):
                raise ConfigurationError(f"{name} must be a StochasticModel, got {type(model).__name__}.")


@dataclass(frozen=True)
class ScenarioConfig:
    """Synthetic single-station scenario defaults."""

    rng_seed: int = 42
    dt: float = 30.0
    duration: float = 3600.0
    rx_lat_deg: float = 36.597383
    rx_lon_deg: float = -121.874300
    rx_alt_m: float = 14.0
    elev_mask_deg: float = 10.0
    systems: tuple[str, ...] = (GPS,)
    sats_per_system: int = 24
    code_sigma_m: float = 0.3
    phase_sigma_m: float = 0.003
    true_offset_m: tuple[float, float, float] = (0.0, 0.0, 0.0)
    true_wet_zenith_m: float = 0.08
    true_isb_m: dict[str, float] = field(default_factory=lambda: {GLONASS: 12.0, GALILEO: -4.0, BEIDOU: 7.5})
    slip_events: tuple[tuple[str, float], ...] = ()
    outages: tuple[tuple[str, float, float], ...] = ()
