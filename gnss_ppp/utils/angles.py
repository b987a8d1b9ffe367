"""Receiver-to-satellite geometry helpers."""

from __future__ import annotations

import numpy as np

from gnss_ppp.utils.wgs84 import ecef_to_lla, enu_from_ecef_delta


def line_of_sight_unit(pos_rx: np.ndarray, pos_sv: np.ndarray) -> np.ndarray:
    """Unit vector from receiver to satellite in ECEF."""

    los = np.asarray(pos_sv, dtype=float) - np.asarray(pos_rx, dtype=float)
    rho = float(np.linalg.norm(los))
    if rho <= 0.0:
        raise ValueError("Receiver and satellite positions coincide.")
    return los / rho


def elev_az_from_rx_sv(pos_rx: np.ndarray, pos_sv: np.ndarray) -> tuple[float, float]:
    """Compute elevation and azimuth (deg) from receiver to satellite using ENU."""

    lat_deg, lon_deg, _ = ecef_to_lla(*pos_rx)
    east, north, up = enu_from_ecef_delta(np.asarray(pos_sv) - np.asarray(pos_rx), lat_deg, lon_deg)
    elev = float(np.rad2deg(np.arctan2(up, np.hypot(east, north))))
    az = float(np.rad2deg(np.arctan2(east, north))) % 360.0
    return elev, az
