"""Transition and process-noise matrices for one epoch step."""

from __future__ import annotations

from typing import Callable, Collection, Sequence

import numpy as np

from gnss_ppp.filter.state_index import StateKey
from gnss_ppp.filter.stochastic import StochasticModel, transition_terms


def build_transition(
    keys: Sequence[StateKey],
    model_for: Callable[[StateKey], StochasticModel],
    dt_for: Callable[[StateKey], float],
    reset: Collection[StateKey] = (),
) -> tuple[np.ndarray, np.ndarray]:
    """Return diagonal ``(phi, q)`` matrices aligned to ``keys``.

    ``dt_for`` gives the elapsed time since each component's previous update,
    so components carried across a data gap accumulate noise for the whole gap.
    """

    n = len(keys)
    phi = np.zeros((n, n), dtype=float)
    q = np.zeros((n, n), dtype=float)
    for idx, key in enumerate(keys):
        phi[idx, idx], q[idx, idx] = transition_terms(model_for(key), dt_for(key), key in reset)
    return phi, q
