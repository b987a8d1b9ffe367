from pathlib import Path

from gnss_ppp.logger import (
    EPOCH_CSV_COLUMNS,
    load_epochs_npz,
    load_ttfc,
    save_epochs_csv,
    save_epochs_npz,
    save_ttfc,
)
from gnss_ppp.models import EpochResult, EpochStatus
from gnss_ppp.plots import save_run_plots


def _results() -> list[EpochResult]:
    state = {"wet_tropo": 0.1, "dx": 0.2, "dy": -0.1, "dz": 0.05, "rx_clock": 12.0, "amb_G05": 3.0}
    variances = {name: 0.25 for name in state}
    return [
        EpochResult(
            t_s=0.0,
            status=EpochStatus.OK,
            reason="ok",
            state=state,
            variances=variances,
            postfit_code_m={"G05": 0.3, "G07": -0.4},
            postfit_phase_m={"G05": 0.001},
            sv_used=["G05", "G07"],
            converged=False,
            nis=1.5,
        ),
        EpochResult(
            t_s=30.0,
            status=EpochStatus.OBSERVABILITY_FAILURE,
            reason="2 usable satellites, 4 required",
            state=state,
            variances=variances,
            sv_used=["G05", "G07"],
        ),
    ]


def test_save_epochs_csv(tmp_path: Path) -> None:
    path = tmp_path / "epoch_logs.csv"

    save_epochs_csv(path, _results())

    lines = path.read_text(encoding="utf-8").splitlines()
    assert lines[0].split(",") == EPOCH_CSV_COLUMNS
    assert len(lines) == 3
    assert lines[1].startswith("0.0,ok,ok,2,6,0,1.5,0.1,0.2,-0.1,0.05,12.0,0.5,0.5,0.5,")
    assert '"2 usable satellites, 4 required"' in lines[2]


def test_npz_round_trip(tmp_path: Path) -> None:
    path = tmp_path / "epoch_logs.npz"

    save_epochs_npz(path, _results())
    epochs = load_epochs_npz(path)

    assert [epoch["status"] for epoch in epochs] == ["ok", "observability_failure"]
    assert epochs[0]["state"]["amb_G05"] == 3.0
    assert epochs[0]["postfit_code_m"] == {"G05": 0.3, "G07": -0.4}


def test_ttfc_file(tmp_path: Path) -> None:
    path = save_ttfc(tmp_path / "ALGO.ttfc", [120.0, 930.5])

    assert path.read_text(encoding="utf-8") == "120.000\n930.500\n"
    assert load_ttfc(path) == [120.0, 930.5]
    assert load_ttfc(save_ttfc(tmp_path / "empty.ttfc", [])) == []


def test_save_run_plots(tmp_path: Path) -> None:
    output_dir = save_run_plots(_results(), out_dir=tmp_path, run_name="plots", truth={"dx": 0.2})

    assert output_dir == tmp_path / "plots"
    for name in ("coordinate_offsets.png", "wet_troposphere.png", "satellites_used.png", "convergence.png"):
        assert (output_dir / name).exists()
