import numpy as np
import pytest

from gnss_ppp.filter.state_index import StateKey, StateKind, fixed_keys
from gnss_ppp.filter.stochastic import (
    ConstantModel,
    PhaseAmbiguityModel,
    RandomWalkModel,
    WhiteNoiseModel,
)
from gnss_ppp.filter.transition import build_transition


def _model_for(key: StateKey):
    if key.kind is StateKind.WET_TROPO:
        return RandomWalkModel(q_prime=3.0e-8)
    if key.kind is StateKind.RX_CLOCK:
        return WhiteNoiseModel(sigma_m=3.0e5)
    if key.kind is StateKind.AMBIGUITY:
        return PhaseAmbiguityModel()
    return ConstantModel()


def test_transition_is_diagonal_and_aligned_to_keys() -> None:
    keys = (*fixed_keys(), StateKey.ambiguity("G05"), StateKey.ambiguity("G07"))

    phi, q = build_transition(
        keys,
        _model_for,
        lambda key: 30.0,
        reset={StateKey.ambiguity("G07")},
    )

    assert phi.shape == q.shape == (7, 7)
    assert np.array_equal(phi, np.diag(np.diag(phi)))
    assert np.array_equal(q, np.diag(np.diag(q)))
    assert np.diag(phi).tolist() == [1.0, 1.0, 1.0, 1.0, 0.0, 1.0, 0.0]
    assert q[0, 0] == pytest.approx(9.0e-7)
    assert q[4, 4] == pytest.approx(9.0e10)
    assert q[5, 5] == 0.0
    assert q[6, 6] == pytest.approx(4.0e14)


def test_elapsed_time_is_taken_per_component() -> None:
    tropo = StateKey(StateKind.WET_TROPO)
    isb = StateKey.isb("E")
    dts = {tropo: 30.0, isb: 300.0}

    _, q = build_transition((tropo, isb), lambda key: RandomWalkModel(q_prime=1.0e-8), dts.__getitem__)

    assert q[0, 0] == pytest.approx(3.0e-7)
    assert q[1, 1] == pytest.approx(3.0e-6)


def test_empty_key_list() -> None:
    phi, q = build_transition((), _model_for, lambda key: 1.0)

    assert phi.shape == (0, 0)
    assert q.shape == (0, 0)
