"""Simplified multi-constellation model with circular orbits."""

from __future__ import annotations

from dataclasses import dataclass
from math import ceil
from typing import Sequence

import numpy as np

from gnss_ppp.models import BEIDOU, GALILEO, GLONASS, GPS, SvState

MU_EARTH = 3.986004418e14
OMEGA_EARTH = 7.2921159e-5


@dataclass(frozen=True)
class OrbitShell:
    """Nominal circular-orbit geometry of one constellation."""

    num_planes: int
    radius_m: float
    inclination_deg: float


# MEO shells; BeiDou is modelled by its MEO satellites only.
ORBIT_SHELLS: dict[str, OrbitShell] = {
    GPS: OrbitShell(num_planes=6, radius_m=26_560_000.0, inclination_deg=55.0),
    GLONASS: OrbitShell(num_planes=3, radius_m=25_510_000.0, inclination_deg=64.8),
    GALILEO: OrbitShell(num_planes=3, radius_m=29_600_000.0, inclination_deg=56.0),
    BEIDOU: OrbitShell(num_planes=3, radius_m=27_900_000.0, inclination_deg=55.0),
}


@dataclass(frozen=True)
class SimpleGnssConfig:
    """Configuration for the simplified constellation."""

    systems: tuple[str, ...] = (GPS,)
    sats_per_system: int = 24
    seed: int | None = 0


def _rot_z(angle_rad: float) -> np.ndarray:
    cos_a = np.cos(angle_rad)
    sin_a = np.sin(angle_rad)
    return np.array(
        [
            [cos_a, -sin_a, 0.0],
            [sin_a, cos_a, 0.0],
            [0.0, 0.0, 1.0],
        ],
        dtype=float,
    )


def _rot_x(angle_rad: float) -> np.ndarray:
    cos_a = np.cos(angle_rad)
    sin_a = np.sin(angle_rad)
    return np.array(
        [
            [1.0, 0.0, 0.0],
            [0.0, cos_a, -sin_a],
            [0.0, sin_a, cos_a],
        ],
        dtype=float,
    )


class _Shell:
    """Satellites of one system laid out evenly over their orbital planes."""

    def __init__(self, system: str, num_sats: int, rng: np.random.Generator) -> None:
        shell = ORBIT_SHELLS[system]
        self.system = system
        self.num_sats = num_sats
        self.num_planes = max(1, min(shell.num_planes, num_sats))
        self.radius_m = shell.radius_m
        self.mean_motion = float(np.sqrt(MU_EARTH / self.radius_m**3))
        self.inclination = _rot_x(np.deg2rad(shell.inclination_deg))

        plane_raan = np.linspace(0.0, 2.0 * np.pi, self.num_planes, endpoint=False)
        plane_offsets = rng.uniform(0.0, 2.0 * np.pi, size=self.num_planes)
        sats_per_plane = ceil(num_sats / self.num_planes)
        self.raan = np.array([plane_raan[i % self.num_planes] for i in range(num_sats)], dtype=float)
        self.mean_anom = np.array(
            [
                (2.0 * np.pi * (i // self.num_planes) / sats_per_plane) + plane_offsets[i % self.num_planes]
                for i in range(num_sats)
            ],
            dtype=float,
        )

    def positions(self, t: float) -> list[SvState]:
        rot_earth = _rot_z(OMEGA_EARTH * t)
        states: list[SvState] = []
        for idx in range(self.num_sats):
            theta = self.mean_motion * t + self.mean_anom[idx]
            r_orb = np.array([self.radius_m * np.cos(theta), self.radius_m * np.sin(theta), 0.0], dtype=float)
            r_ecef = rot_earth @ _rot_z(self.raan[idx]) @ self.inclination @ r_orb
            states.append(SvState(sv_id=f"{self.system}{idx + 1:02d}", t=t, pos_ecef_m=r_ecef))
        return states


class SimpleGnssConstellation:
    """Deterministic GPS/GLONASS/Galileo/BeiDou-like constellation."""

    def __init__(self, config: SimpleGnssConfig | None = None) -> None:
        self.config = config or SimpleGnssConfig()
        unknown = [system for system in self.config.systems if system not in ORBIT_SHELLS]
        if unknown:
            raise ValueError(f"Unsupported satellite systems: {unknown}")
        if self.config.sats_per_system < 1:
            raise ValueError("sats_per_system must be >= 1.")
        rng = np.random.default_rng(self.config.seed)
        self._shells = [_Shell(system, self.config.sats_per_system, rng) for system in self.config.systems]

    @property
    def systems(self) -> Sequence[str]:
        return self.config.systems

    def get_sv_states(self, t: float) -> list[SvState]:
        """Return satellite states at the requested epoch."""

        states: list[SvState] = []
        for shell in self._shells:
            states.extend(shell.positions(float(t)))
        return states
