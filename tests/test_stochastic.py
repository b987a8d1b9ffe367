import pytest

from gnss_ppp.filter.stochastic import (
    ConstantModel,
    PhaseAmbiguityModel,
    RandomWalkModel,
    WhiteNoiseModel,
    transition_terms,
)


def test_constant_model_never_adds_noise() -> None:
    model = ConstantModel()

    assert model.terms(0.0) == (1.0, 0.0)
    assert model.terms(3600.0) == (1.0, 0.0)
    assert model.terms(30.0, reset=True) == (1.0, 0.0)


def test_white_noise_forgets_previous_value() -> None:
    model = WhiteNoiseModel(sigma_m=100.0)

    phi, q = model.terms(30.0)

    assert phi == 0.0
    assert q == pytest.approx(1.0e4)


def test_random_walk_scales_with_elapsed_time() -> None:
    model = RandomWalkModel(q_prime=3.0e-8)

    assert model.terms(0.0) == (1.0, 0.0)
    phi, q = model.terms(30.0)
    assert phi == 1.0
    assert q == pytest.approx(9.0e-7)
    assert model.terms(60.0)[1] == pytest.approx(2.0 * q)


def test_phase_ambiguity_constant_until_reset() -> None:
    model = PhaseAmbiguityModel()

    assert model.terms(30.0) == (1.0, 0.0)
    assert model.terms(30.0, reset=True) == (0.0, 4.0e14)
    assert model.reset_variance == pytest.approx(4.0e14)


def test_shared_model_instance_has_no_per_component_history() -> None:
    model = RandomWalkModel(q_prime=1.0e-6)

    first = transition_terms(model, 10.0)
    transition_terms(model, 500.0)
    again = transition_terms(model, 10.0)

    assert first == again


@pytest.mark.parametrize("dt_s", [-1.0, float("nan"), float("inf")])
def test_invalid_interval_rejected(dt_s: float) -> None:
    with pytest.raises(ValueError):
        RandomWalkModel().terms(dt_s)


def test_negative_parameters_rejected() -> None:
    with pytest.raises(ValueError):
        WhiteNoiseModel(sigma_m=-1.0)
    with pytest.raises(ValueError):
        RandomWalkModel(q_prime=-1.0e-8)
    with pytest.raises(ValueError):
        PhaseAmbiguityModel(sigma_m=float("nan"))
