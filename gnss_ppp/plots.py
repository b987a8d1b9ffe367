"""Plotting utilities for PPP run outputs."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Sequence

import matplotlib
import numpy as np

from gnss_ppp.logger import coordinate_names
from gnss_ppp.models import EpochResult

matplotlib.use("Agg", force=True)
import matplotlib.pyplot as plt  # noqa: E402


def save_run_plots(
    epochs: Sequence[EpochResult],
    *,
    out_dir: str | Path = "out",
    run_name: str | None = None,
    truth: dict[str, float] | None = None,
) -> Path:
    """Save standard run plots to an output directory.

    ``truth`` optionally maps coordinate names to reference offsets drawn as
    dashed lines.
    """

    output_dir = _prepare_output_dir(out_dir, run_name)
    times = np.array([epoch.t_s for epoch in epochs], dtype=float)
    names = coordinate_names(epochs[0].state) if epochs else ("dx", "dy", "dz")
    coords = np.array([[_value(epoch, name) for name in names] for epoch in epochs], dtype=float).reshape(-1, 3)
    sigmas = np.array([[_sigma(epoch, name) for name in names] for epoch in epochs], dtype=float).reshape(-1, 3)
    tropo = np.array([_value(epoch, "wet_tropo") for epoch in epochs], dtype=float)
    sv_used = np.array([epoch.num_sats for epoch in epochs], dtype=float)
    dimension = np.array([epoch.dimension for epoch in epochs], dtype=float)
    converged = np.array([_converged_value(epoch) for epoch in epochs], dtype=float)

    _plot_coordinates(times, coords, sigmas, names, truth or {}, output_dir / "coordinate_offsets.png")
    _plot_troposphere(times, tropo, output_dir / "wet_troposphere.png")
    _plot_sv_used(times, sv_used, dimension, output_dir / "satellites_used.png")
    _plot_convergence(times, converged, output_dir / "convergence.png")
    return output_dir


def _prepare_output_dir(out_dir: str | Path, run_name: str | None) -> Path:
    root = Path(out_dir)
    label = run_name or datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    output_dir = root / label
    output_dir.mkdir(parents=True, exist_ok=True)
    return output_dir


def _value(epoch: EpochResult, name: str) -> float:
    if not epoch.ok:
        return float("nan")
    return float(epoch.state.get(name, float("nan")))


def _sigma(epoch: EpochResult, name: str) -> float:
    if not epoch.ok:
        return float("nan")
    return float(np.sqrt(max(epoch.variances.get(name, float("nan")), 0.0)))


def _converged_value(epoch: EpochResult) -> float:
    if epoch.converged is None:
        return float("nan")
    return 1.0 if epoch.converged else 0.0


def _plot_coordinates(
    times: np.ndarray,
    coords: np.ndarray,
    sigmas: np.ndarray,
    names: Sequence[str],
    truth: dict[str, float],
    path: Path,
) -> None:
    fig, ax = plt.subplots(figsize=(9, 4))
    colors = ["tab:blue", "tab:orange", "tab:green"]
    for idx, name in enumerate(names):
        ax.plot(times, coords[:, idx], marker="o", markersize=2, label=name, color=colors[idx])
        ax.fill_between(
            times,
            coords[:, idx] - sigmas[:, idx],
            coords[:, idx] + sigmas[:, idx],
            color=colors[idx],
            alpha=0.15,
        )
        if name in truth:
            ax.axhline(truth[name], linestyle="--", linewidth=1.0, color=colors[idx])
    ax.set_title("Coordinate Offsets vs Time")
    ax.set_xlabel("Time (s)")
    ax.set_ylabel("Offset (m)")
    ax.grid(True, alpha=0.3)
    ax.legend(loc="best")
    fig.tight_layout()
    fig.savefig(path, dpi=150)
    plt.close(fig)


def _plot_troposphere(times: np.ndarray, tropo: np.ndarray, path: Path) -> None:
    fig, ax = plt.subplots(figsize=(9, 4))
    ax.plot(times, tropo, marker="o", markersize=2, color="tab:purple")
    ax.set_title("Wet Zenith Delay vs Time")
    ax.set_xlabel("Time (s)")
    ax.set_ylabel("Wet zenith delay (m)")
    ax.grid(True, alpha=0.3)
    fig.tight_layout()
    fig.savefig(path, dpi=150)
    plt.close(fig)


def _plot_sv_used(times: np.ndarray, sv_used: np.ndarray, dimension: np.ndarray, path: Path) -> None:
    fig, ax = plt.subplots(figsize=(9, 4))
    ax.step(times, sv_used, where="post", color="tab:purple", label="Satellites used")
    ax.step(times, dimension, where="post", color="tab:gray", label="State dimension")
    ax.set_title("Satellites Used & State Dimension vs Time")
    ax.set_xlabel("Time (s)")
    ax.set_ylabel("Count")
    ax.grid(True, alpha=0.3)
    ax.legend(loc="best")
    fig.tight_layout()
    fig.savefig(path, dpi=150)
    plt.close(fig)


def _plot_convergence(times: np.ndarray, converged: np.ndarray, path: Path) -> None:
    fig, ax = plt.subplots(figsize=(9, 4))
    ax.step(times, converged, where="post", color="tab:blue")
    ax.set_title("Convergence vs Time")
    ax.set_xlabel("Time (s)")
    ax.set_ylabel("Converged")
    ax.set_yticks([0.0, 1.0])
    ax.set_yticklabels(["no", "yes"])
    ax.grid(True, alpha=0.3)
    fig.tight_layout()
    fig.savefig(path, dpi=150)
    plt.close(fig)
