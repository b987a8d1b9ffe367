import numpy as np
import pytest

from gnss_ppp.utils.angles import elev_az_from_rx_sv, line_of_sight_unit
from gnss_ppp.utils.wgs84 import ecef_to_lla, ecef_to_neu_matrix, lla_to_ecef


def test_lla_ecef_roundtrip() -> None:
    ecef = lla_to_ecef(37.4275, -122.1697, 30.0)
    lat_rt, lon_rt, alt_rt = ecef_to_lla(*ecef)

    assert np.isclose(lat_rt, 37.4275, atol=1e-6)
    assert np.isclose(lon_rt, -122.1697, atol=1e-6)
    assert np.isclose(alt_rt, 30.0, atol=1e-3)


def test_elevation_overhead() -> None:
    pos_rx = lla_to_ecef(0.0, 0.0, 0.0)
    pos_sv = lla_to_ecef(0.0, 0.0, 20_200_000.0)

    elev_deg, az_deg = elev_az_from_rx_sv(pos_rx, pos_sv)

    assert elev_deg > 89.9
    assert 0.0 <= az_deg <= 360.0


def test_neu_rotation_maps_up_axis() -> None:
    lat_deg, lon_deg = 45.0, 10.0
    pos_rx = lla_to_ecef(lat_deg, lon_deg, 0.0)
    pos_up = lla_to_ecef(lat_deg, lon_deg, 1000.0)

    neu = ecef_to_neu_matrix(lat_deg, lon_deg) @ line_of_sight_unit(pos_rx, pos_up)

    assert neu == pytest.approx([0.0, 0.0, 1.0], abs=1e-9)
    rot = ecef_to_neu_matrix(lat_deg, lon_deg)
    assert np.allclose(rot @ rot.T, np.eye(3))


def test_line_of_sight_rejects_coincident_points() -> None:
    with pytest.raises(ValueError):
        line_of_sight_unit(np.zeros(3), np.zeros(3))
