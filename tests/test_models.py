import pytest

from gnss_ppp.models import EpochInput, SatObservation, sv_sort_key, sv_system


def test_satellite_order_is_system_then_prn() -> None:
    ids = ["E02", "G12", "C01", "R24", "G03"]

    assert sorted(ids, key=sv_sort_key) == ["G03", "G12", "R24", "E02", "C01"]
    assert sv_system("e05") == "E"


def test_observation_needs_code_or_phase() -> None:
    with pytest.raises(ValueError):
        SatObservation("G01", None, None)


def test_observation_rejects_non_finite_values() -> None:
    with pytest.raises(ValueError):
        SatObservation("G01", float("nan"), 0.0)
    with pytest.raises(ValueError):
        SatObservation("G01", 0.0, 0.0, coefficients={"dx": float("inf")})
    with pytest.raises(ValueError):
        SatObservation("G01", 0.0, 0.0, weight=-1.0)


def test_observation_flags() -> None:
    obs = SatObservation("R07", 1.0, None)

    assert obs.system == "R"
    assert obs.has_code
    assert not obs.has_phase


def test_epoch_rejects_duplicate_satellites() -> None:
    obs = SatObservation("G01", 0.0, 0.0)

    with pytest.raises(ValueError):
        EpochInput(t_s=0.0, observations=[obs, obs])
    with pytest.raises(ValueError):
        EpochInput(t_s=float("nan"), observations=[])
