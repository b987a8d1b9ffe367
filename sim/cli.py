"""Unified CLI entrypoint.

Two run modes:
  1) demo      single synthetic station (CSV/NPZ logs, TTFC file, plots)
  2) stations  several synthetic stations processed in parallel (TTFC summary)
"""

from __future__ import annotations

import argparse
import json
import logging
from datetime import datetime, timezone
from pathlib import Path

from gnss_ppp.logger import save_ttfc
from gnss_ppp.meas.synthetic import SyntheticPppSource
from gnss_ppp.runtime.stations import process_stations
from gnss_ppp.utils.logging import get_logger
from sim.run_ppp_demo import add_scenario_arguments, config_from_args, run_ppp_demo, scenario_from_args


def _cmd_demo(args: argparse.Namespace) -> None:
    scenario = scenario_from_args(args)
    run_name = args.run_name or datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    run_dir = Path(args.run_root) / run_name
    epoch_log_path = run_ppp_demo(
        scenario,
        run_dir,
        save_figs=not args.no_plots,
        ppp_cfg=config_from_args(args, scenario),
        name=run_name,
    )
    print(f"Saved epoch logs to {epoch_log_path}")


def _cmd_stations(args: argparse.Namespace) -> None:
    if args.n <= 0:
        raise SystemExit("--n must be > 0")
    epochs_by_station = {}
    config = None
    for idx in range(int(args.n)):
        scenario = scenario_from_args(args, rng_seed=int(args.rng_seed) + idx)
        config = config or config_from_args(args, scenario)
        source = SyntheticPppSource(scenario, use_neu=config.use_neu)
        epochs_by_station[f"STA{idx + 1:02d}"] = source.epochs()

    runs = process_stations(epochs_by_station, config, max_workers=args.workers)

    run_dir = Path(args.run_root) / datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S_stations")
    run_dir.mkdir(parents=True, exist_ok=True)
    summary = []
    for station, run in runs.items():
        save_ttfc(run_dir / f"{station}.ttfc", run.ttfc)
        summary.append(run.summary())
    (run_dir / "stations_summary.json").write_text(json.dumps(summary, indent=2), encoding="utf-8")
    print(json.dumps({"run_dir": str(run_dir), "stations": summary}, indent=2))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="gnss-ppp", description="PPP filter demo runner")
    parser.add_argument("--verbose", action="store_true", help="Log filter dimension changes.")
    sub = parser.add_subparsers(dest="cmd", required=True)

    demo = sub.add_parser("demo", help="Process one synthetic station")
    add_scenario_arguments(demo)
    demo.add_argument("--run-root", type=str, default="runs", help="Root folder for run outputs")
    demo.add_argument("--run-name", type=str, default=None, help="Run name for outputs")
    demo.add_argument("--no-plots", action="store_true", help="Skip saving plot PNGs")
    demo.set_defaults(func=_cmd_demo)

    stations = sub.add_parser("stations", help="Process several synthetic stations in parallel")
    add_scenario_arguments(stations)
    stations.add_argument("--n", type=int, default=4, help="Number of stations")
    stations.add_argument("--workers", type=int, default=None, help="Worker processes (1 runs inline)")
    stations.add_argument("--run-root", type=str, default="runs", help="Root folder for run outputs")
    stations.set_defaults(func=_cmd_stations)

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    get_logger(level=logging.DEBUG if args.verbose else logging.INFO)
    args.func(args)


if __name__ == "__main__":
    main()
