"""Satellite visibility filtering utilities."""

from __future__ import annotations

import numpy as np

from gnss_ppp.models import SvState
from gnss_ppp.utils.angles import elev_az_from_rx_sv


def visible_sv_states(
    receiver_ecef_m: np.ndarray,
    sv_states: list[SvState],
    elevation_mask_deg: float = 10.0,
) -> list[tuple[SvState, float, float]]:
    """Filter satellite states by elevation mask, keeping ``(state, elev_deg, az_deg)``."""

    visible: list[tuple[SvState, float, float]] = []
    for state in sv_states:
        elev_deg, az_deg = elev_az_from_rx_sv(receiver_ecef_m, state.pos_ecef_m)
        if elev_deg >= elevation_mask_deg:
            visible.append((state, elev_deg, az_deg))
    return visible
