"""Elevation-dependent measurement noise and weights."""

from __future__ import annotations

import numpy as np


def code_sigma_m(
    elev_deg: float,
    base_sigma_m: float = 0.3,
    elevation_weight: float = 1.0,
) -> float:
    """Return the code sigma at ``elev_deg``; ``base_sigma_m`` applies at zenith."""

    elev_deg = float(elev_deg)
    elev_factor = max(np.sin(np.deg2rad(max(elev_deg, 0.1))), 0.1)
    return float(base_sigma_m * elev_factor ** (-elevation_weight))


def elevation_weight(elev_deg: float, base_sigma_m: float = 0.3, elevation_weight: float = 1.0) -> float:
    """Code weight ``1 / sigma**2`` (1/m^2) for a satellite at ``elev_deg``."""

    sigma = code_sigma_m(elev_deg, base_sigma_m=base_sigma_m, elevation_weight=elevation_weight)
    return float(1.0 / sigma**2)


def wet_mapping(elev_deg: float) -> float:
    """Simple 1/sin(elevation) wet troposphere mapping function."""

    return float(1.0 / np.sin(np.deg2rad(max(float(elev_deg), 0.1))))
