"""Estimator runtime: per-station filter and batch processing."""

from gnss_ppp.runtime.estimator import PppEstimator
from gnss_ppp.runtime.stations import StationRun, process_stations, run_station

__all__ = ["PppEstimator", "StationRun", "process_stations", "run_station"]
