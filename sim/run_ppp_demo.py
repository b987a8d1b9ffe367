"""Run a synthetic single-station PPP demo."""

from __future__ import annotations

import argparse
import logging
from datetime import datetime, timezone
from pathlib import Path

from gnss_ppp.config import PppConfig, ScenarioConfig
from gnss_ppp.logger import save_epochs_csv, save_epochs_npz, save_ttfc
from gnss_ppp.meas.synthetic import SyntheticPppSource
from gnss_ppp.models import BEIDOU, GALILEO, GLONASS, GPS
from gnss_ppp.runtime.estimator import PppEstimator
from gnss_ppp.utils.logging import get_logger

SYSTEM_FLAGS = {GLONASS: "use_glonass", GALILEO: "use_galileo", BEIDOU: "use_beidou"}


def ppp_config_for(scenario: ScenarioConfig, **overrides: object) -> PppConfig:
    """Estimator configuration enabling every secondary system the scenario simulates."""

    flags = {flag: system in scenario.systems for system, flag in SYSTEM_FLAGS.items()}
    flags.update(overrides)
    return PppConfig(**flags)


def run_ppp_demo(
    scenario: ScenarioConfig,
    run_dir: Path,
    save_figs: bool = True,
    *,
    ppp_cfg: PppConfig | None = None,
    name: str = "station",
) -> Path:
    """Process the scenario and write logs into ``run_dir``; returns the CSV path."""

    cfg = ppp_cfg or ppp_config_for(scenario)
    source = SyntheticPppSource(scenario, use_neu=cfg.use_neu)
    estimator = PppEstimator(cfg, station=name)
    results = [estimator.process(source.get_epoch(float(t))) for t in source.epoch_times()]

    run_dir.mkdir(parents=True, exist_ok=True)
    if save_figs:
        from gnss_ppp.plots import save_run_plots

        output_dir = save_run_plots(
            results,
            out_dir=run_dir.parent,
            run_name=run_dir.name,
            truth=source.truth_offsets(),
        )
    else:
        output_dir = run_dir
    save_epochs_npz(output_dir / "epoch_logs.npz", results)
    save_epochs_csv(output_dir / "epoch_logs.csv", results)
    save_ttfc(output_dir / f"{name}.ttfc", estimator.get_ttfc())
    return output_dir / "epoch_logs.csv"


def add_scenario_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--duration-s", type=float, default=3600.0, help="Duration in seconds.")
    parser.add_argument("--dt-s", type=float, default=30.0, help="Epoch interval in seconds.")
    parser.add_argument("--rng-seed", type=int, default=42, help="Random seed for simulation.")
    parser.add_argument(
        "--systems",
        type=str,
        default=GPS,
        help="Simulated systems as letters, e.g. GRE (default: G).",
    )
    parser.add_argument("--neu", action="store_true", help="Estimate north/east/up offsets.")
    parser.add_argument("--kinematic", action="store_true", help="White-noise coordinates.")
    parser.add_argument(
        "--slip",
        action="append",
        default=[],
        help="Cycle slip in SV@t form, e.g. G05@600 (repeatable).",
    )
    parser.add_argument(
        "--reset-gap-s",
        type=float,
        default=None,
        help="Reinitialise the filter after a data gap longer than this.",
    )


def scenario_from_args(args: argparse.Namespace, *, rng_seed: int | None = None) -> ScenarioConfig:
    systems = tuple(dict.fromkeys(ch.upper() for ch in args.systems if not ch.isspace()))
    if GPS not in systems:
        raise SystemExit("GPS (G) must be part of --systems; it is the reference system.")
    return ScenarioConfig(
        rng_seed=int(args.rng_seed if rng_seed is None else rng_seed),
        dt=float(args.dt_s),
        duration=float(args.duration_s),
        systems=systems,
        slip_events=tuple(_parse_slip(text) for text in args.slip),
    )


def config_from_args(args: argparse.Namespace, scenario: ScenarioConfig) -> PppConfig:
    return ppp_config_for(
        scenario,
        use_neu=bool(args.neu),
        kinematic=bool(args.kinematic),
        reset_gap_s=args.reset_gap_s,
    )


def _parse_slip(text: str) -> tuple[str, float]:
    sv_id, sep, t_text = text.partition("@")
    if not sep or not sv_id:
        raise SystemExit(f"Invalid --slip value {text!r}; expected SV@t.")
    try:
        return sv_id.strip().upper(), float(t_text)
    except ValueError:
        raise SystemExit(f"Invalid --slip time in {text!r}.") from None


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Run the synthetic PPP demo.")
    add_scenario_arguments(parser)
    parser.add_argument("--out-dir", type=str, default="out", help="Output directory root.")
    parser.add_argument("--run-name", type=str, default=None, help="Run name for outputs.")
    parser.add_argument("--no-plots", action="store_true", help="Disable saving run plots.")
    parser.add_argument("--verbose", action="store_true", help="Log filter dimension changes.")
    args = parser.parse_args(argv)

    get_logger(level=logging.DEBUG if args.verbose else logging.INFO)
    scenario = scenario_from_args(args)
    run_name = args.run_name or datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    run_dir = Path(args.out_dir) / run_name
    epoch_log_path = run_ppp_demo(
        scenario,
        run_dir,
        save_figs=not args.no_plots,
        ppp_cfg=config_from_args(args, scenario),
        name=run_name,
    )
    print(f"Saved epoch logs to {epoch_log_path}")


if __name__ == "__main__":
    main()
