import json
from pathlib import Path

import pytest

from gnss_ppp.logger import load_epochs_npz, load_ttfc
from sim.cli import build_parser, main
from sim.run_ppp_demo import scenario_from_args


def test_demo_writes_logs(tmp_path: Path) -> None:
    main(
        [
            "demo",
            "--duration-s",
            "300",
            "--systems",
            "GE",
            "--slip",
            "G05@150",
            "--run-root",
            str(tmp_path),
            "--run-name",
            "demo",
            "--no-plots",
        ]
    )

    run_dir = tmp_path / "demo"
    assert (run_dir / "epoch_logs.csv").exists()
    epochs = load_epochs_npz(run_dir / "epoch_logs.npz")
    assert len(epochs) == 11
    assert any(name == "isb_E" for name in epochs[-1]["state"])
    assert isinstance(load_ttfc(run_dir / "demo.ttfc"), list)


def test_stations_prints_summary(tmp_path: Path, capsys) -> None:
    main(
        [
            "stations",
            "--n",
            "2",
            "--workers",
            "1",
            "--duration-s",
            "120",
            "--run-root",
            str(tmp_path),
        ]
    )

    report = json.loads(capsys.readouterr().out)
    assert [row["station"] for row in report["stations"]] == ["STA01", "STA02"]
    run_dir = Path(report["run_dir"])
    assert (run_dir / "STA01.ttfc").exists()
    assert (run_dir / "stations_summary.json").exists()


def test_systems_must_include_gps() -> None:
    args = build_parser().parse_args(["demo", "--systems", "E"])

    with pytest.raises(SystemExit):
        scenario_from_args(args)


def test_slip_argument_parsing() -> None:
    args = build_parser().parse_args(["demo", "--slip", "g07@60", "--slip", "E11@90.5", "--systems", "GE"])

    scenario = scenario_from_args(args)

    assert scenario.slip_events == (("G07", 60.0), ("E11", 90.5))
    assert scenario.systems == ("G", "E")
