import numpy as np
import pytest

from gnss_ppp.filter.kalman import SolverError, kalman_step, predict, update
from gnss_ppp.filter.measurement import MeasurementModel


def _meas(z, h, w) -> MeasurementModel:
    z = np.asarray(z, dtype=float)
    return MeasurementModel(
        z=z,
        h=np.asarray(h, dtype=float),
        weights=np.asarray(w, dtype=float),
        rows=tuple((f"S{i}", "code") for i in range(z.size)),
    )


def test_scalar_update_matches_closed_form() -> None:
    x, p, innovation, nis = update(np.array([0.0]), np.array([[4.0]]), _meas([2.0], [[1.0]], [1.0]))

    # gain = 4 / (4 + 1)
    assert x[0] == pytest.approx(1.6)
    assert p[0, 0] == pytest.approx(0.8)
    assert innovation[0] == pytest.approx(2.0)
    assert nis == pytest.approx(4.0 / 5.0)


def test_predict_applies_phi_and_q() -> None:
    x, p = predict(
        np.array([1.0, 2.0]),
        np.array([[1.0, 0.5], [0.5, 2.0]]),
        np.diag([1.0, 0.0]),
        np.diag([0.1, 9.0]),
    )

    assert x.tolist() == [1.0, 0.0]
    np.testing.assert_allclose(p, [[1.1, 0.0], [0.0, 9.0]])


def test_update_keeps_covariance_symmetric() -> None:
    rng = np.random.default_rng(0)
    a = rng.normal(size=(4, 4))
    p0 = a @ a.T + np.eye(4)
    h = rng.normal(size=(6, 4))

    _, p, _, _ = update(np.zeros(4), p0, _meas(rng.normal(size=6), h, np.full(6, 2.0)))

    assert np.array_equal(p, p.T)
    assert np.all(np.linalg.eigvalsh(p) > 0.0)
    assert np.trace(p) < np.trace(p0)


@pytest.mark.parametrize("weights", [[1.0, 0.0], [1.0, -2.0], [1.0, float("nan")]])
def test_invalid_weights_raise_solver_error(weights) -> None:
    with pytest.raises(SolverError):
        update(np.zeros(2), np.eye(2), _meas([0.0, 0.0], np.eye(2), weights))


def test_non_positive_definite_innovation_raises() -> None:
    p_prior = np.array([[-10.0]])

    with pytest.raises(SolverError):
        update(np.zeros(1), p_prior, _meas([1.0], [[1.0]], [1.0]))


def test_solver_error_is_a_linalg_error() -> None:
    assert issubclass(SolverError, np.linalg.LinAlgError)


def test_kalman_step_does_not_mutate_inputs() -> None:
    x = np.array([1.0, -1.0])
    p = np.diag([2.0, 3.0])
    x_copy, p_copy = x.copy(), p.copy()

    step = kalman_step(x, p, np.eye(2), np.zeros((2, 2)), _meas([0.5, 0.5], np.eye(2), [1.0, 1.0]))

    assert np.array_equal(x, x_copy)
    assert np.array_equal(p, p_copy)
    assert step.postfit.shape == (2,)
    assert np.array_equal(step.p_prior, p)


def test_fresh_ambiguity_next_to_precise_phase() -> None:
    # Code and phase on one range term; the phase row also carries a new ambiguity.
    p_prior = np.diag([1.0, 4.0e14])
    meas = _meas([1.0, 5.0], [[1.0, 0.0], [1.0, 1.0]], [100.0, 1.0e6])

    x, p, _, nis = update(np.zeros(2), p_prior, meas)

    assert x[0] == pytest.approx(100.0 / 101.0, rel=1e-9)
    assert x[1] == pytest.approx(5.0 - 100.0 / 101.0, rel=1e-9)
    assert p[0, 0] == pytest.approx(1.0 / 101.0, rel=1e-9)
    assert p[1, 1] == pytest.approx(1.0 / 101.0 + 1.0e-6, rel=1e-9)
    assert nis == pytest.approx(100.0 / 101.0, rel=1e-6)


def test_singular_prior_raises() -> None:
    with pytest.raises(SolverError):
        update(np.zeros(2), np.ones((2, 2)), _meas([1.0], [[1.0, 0.0]], [1.0]))
