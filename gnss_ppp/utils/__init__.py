"""Utilities for PPP processing and synthetic scenarios.

NOTE: Keep this package lightweight.
Avoid importing matplotlib at import time.
"""

from gnss_ppp.utils.angles import elev_az_from_rx_sv, line_of_sight_unit
from gnss_ppp.utils.logging import get_logger
from gnss_ppp.utils.wgs84 import (
    ecef_to_enu_matrix,
    ecef_to_lla,
    ecef_to_neu_matrix,
    enu_from_ecef_delta,
    lla_to_ecef,
)

__all__ = [
    "ecef_to_enu_matrix",
    "ecef_to_lla",
    "ecef_to_neu_matrix",
    "elev_az_from_rx_sv",
    "enu_from_ecef_delta",
    "get_logger",
    "line_of_sight_unit",
    "lla_to_ecef",
]
