"""Persistence helpers for PPP epoch results."""

from __future__ import annotations

from dataclasses import asdict
from pathlib import Path
from typing import Sequence

import numpy as np

from gnss_ppp.models import EpochResult

EPOCH_CSV_COLUMNS = [
    "t_s",
    "status",
    "reason",
    "num_sats",
    "dimension",
    "converged",
    "nis",
    "wet_tropo",
    "coord_0",
    "coord_1",
    "coord_2",
    "rx_clock",
    "sigma_coord_0",
    "sigma_coord_1",
    "sigma_coord_2",
    "postfit_code_rms_m",
    "postfit_phase_rms_m",
]
_CSV_HEADER = ",".join(EPOCH_CSV_COLUMNS) + "\n"
_COORD_NAMES = (("dx", "dy", "dz"), ("dlat", "dlon", "dh"))


def save_epochs_csv(path: str | Path, epochs: Sequence[EpochResult]) -> None:
    """Save one summary line per epoch to a CSV file.

    Coordinate columns hold dx/dy/dz or dlat/dlon/dh, whichever the run used.
    """

    target = Path(path)
    target.write_text(_CSV_HEADER)
    with target.open("a", encoding="utf-8") as handle:
        for epoch in epochs:
            handle.write(_epoch_to_csv_line(epoch))


def save_epochs_npz(path: str | Path, epochs: Sequence[EpochResult]) -> None:
    """Save full epoch results to a compressed NPZ file."""

    payload = []
    for epoch in epochs:
        record = asdict(epoch)
        record["status"] = epoch.status.value
        payload.append(record)
    np.savez_compressed(path, epochs=np.array(payload, dtype=object))


def load_epochs_npz(path: str | Path) -> list[dict]:
    """Load epoch records written by :func:`save_epochs_npz`."""

    data = np.load(path, allow_pickle=True)
    epochs = data["epochs"].tolist()
    return list(epochs)


def save_ttfc(path: str | Path, ttfc: Sequence[float]) -> Path:
    """Write one time-to-first-convergence value (seconds) per line."""

    target = Path(path)
    target.write_text("".join(f"{float(value):.3f}\n" for value in ttfc), encoding="utf-8")
    return target


def load_ttfc(path: str | Path) -> list[float]:
    lines = Path(path).read_text(encoding="utf-8").splitlines()
    return [float(line) for line in lines if line.strip()]


def coordinate_names(state: dict[str, float]) -> tuple[str, str, str]:
    for names in _COORD_NAMES:
        if names[0] in state:
            return names
    return _COORD_NAMES[0]


def _epoch_to_csv_line(epoch: EpochResult) -> str:
    coords = coordinate_names(epoch.state)
    row = [
        epoch.t_s,
        epoch.status.value,
        _quote(epoch.reason),
        epoch.num_sats,
        epoch.dimension,
        _format_value(epoch.converged),
        _format_value(epoch.nis),
        _format_value(epoch.state.get("wet_tropo")),
        *(_format_value(epoch.state.get(name)) for name in coords),
        _format_value(epoch.state.get("rx_clock")),
        *(_format_value(_sqrt(epoch.variances.get(name))) for name in coords),
        _format_value(_rms(epoch.postfit_code_m.values())),
        _format_value(_rms(epoch.postfit_phase_m.values())),
    ]
    return ",".join(str(value) for value in row) + "\n"


def _rms(values) -> float | None:
    arr = np.array(list(values), dtype=float)
    if arr.size == 0:
        return None
    return float(np.sqrt(np.mean(arr**2)))


def _sqrt(value: float | None) -> float | None:
    if value is None:
        return None
    return float(np.sqrt(max(value, 0.0)))


def _quote(text: str) -> str:
    if "," in text or '"' in text:
        return '"' + text.replace('"', '""') + '"'
    return text


def _format_value(value: float | int | bool | None) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "1" if value else "0"
    return str(value)
