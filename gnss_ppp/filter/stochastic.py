"""First-order scalar stochastic models for PPP state components.

Every model maps an epoch interval to a pair ``(phi, q)``: the diagonal
transition coefficient and the process-noise variance of one component.
Models are immutable values. The elapsed time a random walk needs is
supplied by the caller per component, so a single model instance can be
shared between components without one component's history leaking into
another's noise.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass


class StochasticModel(ABC):
    """Base class for scalar Markov models."""

    @abstractmethod
    def terms(self, dt_s: float, reset: bool = False) -> tuple[float, float]:
        """Return ``(phi, q)`` for an interval of ``dt_s`` seconds."""


def _check_dt(dt_s: float) -> float:
    dt_s = float(dt_s)
    if not math.isfinite(dt_s) or dt_s < 0.0:
        raise ValueError(f"dt_s must be finite and non-negative, got {dt_s!r}.")
    return dt_s


def _check_non_negative(name: str, value: float) -> None:
    if not math.isfinite(value) or value < 0.0:
        raise ValueError(f"{name} must be finite and non-negative, got {value!r}.")


@dataclass(frozen=True)
class ConstantModel(StochasticModel):
    """Component never changes: phi = 1, q = 0."""

    def terms(self, dt_s: float, reset: bool = False) -> tuple[float, float]:
        _check_dt(dt_s)
        return 1.0, 0.0


@dataclass(frozen=True)
class WhiteNoiseModel(StochasticModel):
    """Component is re-drawn every epoch with standard deviation ``sigma_m``."""

    sigma_m: float = 3.0e5

    def __post_init__(self) -> None:
        _check_non_negative("sigma_m", self.sigma_m)

    def terms(self, dt_s: float, reset: bool = False) -> tuple[float, float]:
        _check_dt(dt_s)
        return 0.0, self.sigma_m * self.sigma_m


@dataclass(frozen=True)
class RandomWalkModel(StochasticModel):
    """Random walk with process spectral density ``q_prime`` (m^2/s)."""

    q_prime: float = 3.0e-8

    def __post_init__(self) -> None:
        _check_non_negative("q_prime", self.q_prime)

    def terms(self, dt_s: float, reset: bool = False) -> tuple[float, float]:
        return 1.0, self.q_prime * _check_dt(dt_s)


@dataclass(frozen=True)
class PhaseAmbiguityModel(StochasticModel):
    """Constant along an arc, re-initialised as white noise when the arc restarts."""

    sigma_m: float = 2.0e7

    def __post_init__(self) -> None:
        _check_non_negative("sigma_m", self.sigma_m)

    @property
    def reset_variance(self) -> float:
        return self.sigma_m * self.sigma_m

    def terms(self, dt_s: float, reset: bool = False) -> tuple[float, float]:
        _check_dt(dt_s)
        if reset:
            return 0.0, self.reset_variance
        return 1.0, 0.0


def transition_terms(model: StochasticModel, dt_s: float, reset: bool = False) -> tuple[float, float]:
    """Pure mapping ``(model, dt, reset) -> (phi, q)``."""

    return model.terms(dt_s, reset)
