"""Rolling convergence window and time-to-first-convergence bookkeeping."""

from __future__ import annotations

import logging
from collections import deque

logger = logging.getLogger(__name__)


class NotComputedError(RuntimeError):
    """Raised when convergence is queried before any epoch was solved."""


class ConvergenceTracker:
    """Declares convergence once ``window`` consecutive epochs are within tolerance.

    One instance spans a whole processing run. :meth:`restart` opens a new
    convergence episode (after a filter reset) but keeps the TTFC history.
    """

    def __init__(self, window: int) -> None:
        if window < 1:
            raise ValueError("Convergence window must be at least 1.")
        self.window = int(window)
        self._buffer: deque[bool] = deque(maxlen=self.window)
        self._ttfc: list[float] = []
        self._start_t_s: float | None = None
        self._converged: bool | None = None
        self._episode_recorded = False

    @property
    def start_t_s(self) -> float | None:
        return self._start_t_s

    @property
    def ttfc(self) -> list[float]:
        return list(self._ttfc)

    @property
    def flags(self) -> tuple[bool, ...]:
        return tuple(self._buffer)

    def mark_start(self, t_s: float) -> None:
        """Record the first epoch of the current episode (no-op once set)."""

        if self._start_t_s is None:
            self._start_t_s = float(t_s)

    def push(self, t_s: float, within_tolerance: bool) -> bool:
        self.mark_start(t_s)
        self._buffer.append(bool(within_tolerance))
        was_converged = bool(self._converged)
        self._converged = len(self._buffer) == self.window and all(self._buffer)
        if self._converged and not was_converged and not self._episode_recorded:
            elapsed = float(t_s) - self._start_t_s
            self._ttfc.append(elapsed)
            self._episode_recorded = True
            logger.info("converged at t=%.3f s, TTFC %.3f s", float(t_s), elapsed)
        return self._converged

    def converged(self) -> bool:
        if self._converged is None:
            raise NotComputedError("No epoch has been solved yet.")
        return self._converged

    def restart(self) -> None:
        self._buffer.clear()
        self._start_t_s = None
        self._converged = None
        self._episode_recorded = False
