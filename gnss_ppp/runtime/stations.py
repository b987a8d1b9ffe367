"""Multi-station batch processing.

Each station gets its own :class:`PppEstimator`; stations share nothing, so
they are dispatched to a process pool one task per station.
"""

from __future__ import annotations

import logging
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass, field
from typing import Mapping, Sequence

import numpy as np

from gnss_ppp.config import PppConfig
from gnss_ppp.models import EpochInput, EpochResult
from gnss_ppp.runtime.estimator import PppEstimator

logger = logging.getLogger(__name__)


@dataclass
class StationRun:
    """Per-station outcome of a batch run."""

    station: str
    results: list[EpochResult] = field(default_factory=list)
    ttfc: list[float] = field(default_factory=list)

    @property
    def skipped(self) -> int:
        return sum(1 for result in self.results if not result.ok)

    @property
    def solved(self) -> int:
        return len(self.results) - self.skipped

    @property
    def converged(self) -> bool | None:
        for result in reversed(self.results):
            if result.ok:
                return result.converged
        return None

    def summary(self) -> dict[str, object]:
        return {
            "station": self.station,
            "epochs": len(self.results),
            "solved": self.solved,
            "skipped": self.skipped,
            "converged": self.converged,
            "ttfc_s": list(self.ttfc),
            "ttfc_mean_s": float(np.mean(self.ttfc)) if self.ttfc else float("nan"),
        }


def run_station(station: str, epochs: Sequence[EpochInput], config: PppConfig | None = None) -> StationRun:
    estimator = PppEstimator(config, station=station)
    results = estimator.run(epochs)
    run = StationRun(station=station, results=results, ttfc=estimator.get_ttfc())
    logger.info(
        "[%s] processed %d epochs (%d skipped), TTFC %s",
        station,
        len(results),
        run.skipped,
        run.ttfc,
    )
    return run


def process_stations(
    epochs_by_station: Mapping[str, Sequence[EpochInput]],
    config: PppConfig | Mapping[str, PppConfig] | None = None,
    *,
    max_workers: int | None = None,
) -> dict[str, StationRun]:
    """Run every station independently and return the runs keyed by station.

    ``config`` is either one configuration for all stations or a mapping with
    one entry per station. ``max_workers=1`` processes in the calling process.
    """

    configs = _configs_by_station(epochs_by_station, config)
    stations = list(epochs_by_station)
    if max_workers == 1 or len(stations) <= 1:
        return {
            station: run_station(station, list(epochs_by_station[station]), configs[station])
            for station in stations
        }

    with ProcessPoolExecutor(max_workers=max_workers) as pool:
        futures = {
            station: pool.submit(run_station, station, list(epochs_by_station[station]), configs[station])
            for station in stations
        }
        return {station: futures[station].result() for station in stations}


def _configs_by_station(
    epochs_by_station: Mapping[str, Sequence[EpochInput]],
    config: PppConfig | Mapping[str, PppConfig] | None,
) -> dict[str, PppConfig]:
    if config is None or isinstance(config, PppConfig):
        shared = config or PppConfig()
        return {station: shared for station in epochs_by_station}
    missing = [station for station in epochs_by_station if station not in config]
    if missing:
        raise KeyError(f"No configuration for stations: {missing}")
    return {station: config[station] for station in epochs_by_station}
