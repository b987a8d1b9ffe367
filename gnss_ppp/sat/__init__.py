"""Satellite models."""

from gnss_ppp.sat.simple_gnss import ORBIT_SHELLS, SimpleGnssConfig, SimpleGnssConstellation
from gnss_ppp.sat.visibility import visible_sv_states

__all__ = [
    "ORBIT_SHELLS",
    "SimpleGnssConfig",
    "SimpleGnssConstellation",
    "visible_sv_states",
]
