from __future__ import annotations

"""Pytest configuration.

This file is imported during *collection*, so it's the right place to set
process-wide environment variables needed for stable imports.
"""

import os
import tempfile

# Force a non-interactive backend in test environments.
os.environ.setdefault("MPLBACKEND", "Agg")

# Isolate matplotlib cache to avoid flaky font-cache locking (stale locks in
# ~/.cache/matplotlib can break collection).
os.environ.setdefault("MPLCONFIGDIR", tempfile.mkdtemp(prefix="mplconfig-"))

from typing import Callable, Mapping, Sequence  # noqa: E402

import numpy as np  # noqa: E402
import pytest  # noqa: E402

from gnss_ppp.models import EpochInput, SatObservation  # noqa: E402

# (sv_id, elevation deg, azimuth deg) of a well-spread six-satellite sky.
SKY: tuple[tuple[str, float, float], ...] = (
    ("G02", 80.0, 0.0),
    ("G05", 50.0, 60.0),
    ("G09", 45.0, 130.0),
    ("G13", 30.0, 200.0),
    ("G17", 25.0, 260.0),
    ("G21", 20.0, 320.0),
)


def sky_coefficients(elev_deg: float, az_deg: float, *, use_neu: bool = False) -> dict[str, float]:
    el = np.deg2rad(elev_deg)
    az = np.deg2rad(az_deg)
    east, north, up = np.cos(el) * np.sin(az), np.cos(el) * np.cos(az), np.sin(el)
    coeffs = {"wet_tropo": float(1.0 / np.sin(el)), "rx_clock": 1.0}
    if use_neu:
        coeffs.update(dlat=float(-north), dlon=float(-east), dh=float(-up))
    else:
        coeffs.update(dx=float(-east), dy=float(-north), dz=float(-up))
    return coeffs


def build_observations(
    sky: Sequence[tuple[str, float, float]] = SKY,
    *,
    code: float = 0.0,
    phase: float = 0.0,
    weight: float | None = 1.0,
    slips: Sequence[str] = (),
    residuals: Mapping[str, tuple[float, float]] | None = None,
    use_neu: bool = False,
) -> list[SatObservation]:
    observations = []
    for sv_id, elev_deg, az_deg in sky:
        code_m, phase_m = (residuals or {}).get(sv_id, (code, phase))
        observations.append(
            SatObservation(
                sv_id=sv_id,
                prefit_code_m=code_m,
                prefit_phase_m=phase_m,
                coefficients=sky_coefficients(elev_deg, az_deg, use_neu=use_neu),
                weight=weight,
                cycle_slip=sv_id in slips,
                elev_deg=elev_deg,
            )
        )
    return observations


@pytest.fixture
def sky() -> tuple[tuple[str, float, float], ...]:
    return SKY


@pytest.fixture
def make_epoch() -> Callable[..., EpochInput]:
    """Factory for epochs over the default sky (keyword arguments as in ``build_observations``)."""

    def _make(t_s: float, within_tolerance: bool | None = None, **kwargs) -> EpochInput:
        return EpochInput(t_s=t_s, observations=build_observations(**kwargs), within_tolerance=within_tolerance)

    return _make
