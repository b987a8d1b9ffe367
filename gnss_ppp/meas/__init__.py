"""Measurement models."""

from gnss_ppp.meas.synthetic import SyntheticPppSource
from gnss_ppp.meas.weights import code_sigma_m, elevation_weight, wet_mapping

__all__ = [
    "SyntheticPppSource",
    "code_sigma_m",
    "elevation_weight",
    "wet_mapping",
]
