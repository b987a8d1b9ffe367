"""Kalman predict/update for the PPP state.

The functions here never mutate their inputs. A failed update raises
:class:`SolverError` and the caller keeps whatever state it had.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from scipy.linalg import LinAlgError, cho_factor, cho_solve

from gnss_ppp.filter.measurement import MeasurementModel


class SolverError(LinAlgError):
    """The measurement update could not be solved."""


@dataclass(frozen=True)
class KalmanStep:
    x_prior: np.ndarray
    p_prior: np.ndarray
    x: np.ndarray
    p: np.ndarray
    innovation: np.ndarray
    postfit: np.ndarray
    nis: float


def predict(x: np.ndarray, p: np.ndarray, phi: np.ndarray, q: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    x_prior = phi @ x
    p_prior = phi @ p @ phi.T + q
    return x_prior, _symmetric(p_prior)


def update(
    x_prior: np.ndarray,
    p_prior: np.ndarray,
    meas: MeasurementModel,
    tolerance: float = 1e-6,
) -> tuple[np.ndarray, np.ndarray, np.ndarray, float]:
    """Measurement update in information form.

    Solves ``P = (P_prior^-1 + H^T W H)^-1`` and
    ``x = x_prior + P H^T W (z - H x_prior)`` with Cholesky factorizations
    of diagonally scaled matrices.

    Returns ``(x, P, innovation, nis)``.
    """

    weights = meas.weights
    if weights.size == 0:
        raise SolverError("No measurements to update with.")
    if not np.all(np.isfinite(weights)) or np.any(weights <= 0.0):
        raise SolverError("Weight matrix is singular or not finite.")
    h = meas.h
    innovation = meas.z - h @ x_prior
    hw = h.T * weights
    info_prior = _spd_inverse(p_prior, tolerance, "prior covariance")
    normal = _symmetric(info_prior + hw @ h)
    factor, scale = _scaled_cholesky(normal, "normal matrix")
    p = _spd_inverse(normal, tolerance, "normal matrix", (factor, scale))
    correction = scale * cho_solve(factor, scale * (hw @ innovation), check_finite=False)
    x = x_prior + correction
    if not (np.all(np.isfinite(x)) and np.all(np.isfinite(p))):
        raise SolverError("Update produced non-finite state or covariance.")
    # nu^T S^-1 nu as the minimised least-squares cost
    postfit = meas.z - h @ x
    nis = float(postfit @ (weights * postfit) + correction @ info_prior @ correction)
    return x, p, innovation, nis


def kalman_step(
    x: np.ndarray,
    p: np.ndarray,
    phi: np.ndarray,
    q: np.ndarray,
    meas: MeasurementModel,
    tolerance: float = 1e-6,
) -> KalmanStep:
    x_prior, p_prior = predict(x, p, phi, q)
    x_post, p_post, innovation, nis = update(x_prior, p_prior, meas, tolerance)
    return KalmanStep(
        x_prior=x_prior,
        p_prior=p_prior,
        x=x_post,
        p=p_post,
        innovation=innovation,
        postfit=meas.z - meas.h @ x_post,
        nis=nis,
    )


def _symmetric(matrix: np.ndarray) -> np.ndarray:
    return 0.5 * (matrix + matrix.T)


def _scaled_cholesky(matrix: np.ndarray, label: str) -> tuple[tuple[np.ndarray, bool], np.ndarray]:
    """Cholesky factor of ``D M D`` with ``D = diag(M)^-1/2``; returns ``(factor, diag(D))``."""

    diag = np.diag(matrix)
    if not np.all(np.isfinite(matrix)) or np.any(diag <= 0.0):
        raise SolverError(f"The {label} is not positive definite.")
    scale = 1.0 / np.sqrt(diag)
    scaled = _symmetric(matrix * np.outer(scale, scale))
    try:
        factor = cho_factor(scaled, check_finite=False)
    except (LinAlgError, ValueError) as exc:
        raise SolverError(f"The {label} is not positive definite: {exc}") from exc
    return factor, scale


def _spd_inverse(
    matrix: np.ndarray,
    tolerance: float,
    label: str,
    factored: tuple[tuple[np.ndarray, bool], np.ndarray] | None = None,
) -> np.ndarray:
    factor, scale = factored if factored is not None else _scaled_cholesky(matrix, label)
    scaled = _symmetric(matrix * np.outer(scale, scale))
    identity = np.eye(matrix.shape[0])
    inverse = cho_solve(factor, identity, check_finite=False)
    # Normwise backward error of the solve.
    bound = max(float(np.max(np.abs(scaled))) * float(np.max(np.abs(inverse))), np.finfo(float).tiny)
    residual = float(np.max(np.abs(scaled @ inverse - identity))) / bound
    if not np.isfinite(residual) or residual > tolerance:
        raise SolverError(f"Solve residual {residual:.3e} for the {label} exceeds tolerance {tolerance:.1e}.")
    return _symmetric(inverse * np.outer(scale, scale))
