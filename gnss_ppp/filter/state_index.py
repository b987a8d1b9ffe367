"""Active state bookkeeping and covariance ledger.

The filter state is an ordered list of :class:`StateKey` values with a state
vector and covariance matrix aligned to that order:

* the fixed block (wet troposphere, three coordinate offsets, receiver clock),
* one float ambiguity per satellite contributing phase, in satellite order,
* one inter-system bias per secondary system, in system order.

Components that leave the active set are removed by deleting their rows and
columns. Entries of the surviving components are copied, never recomputed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Sequence

import numpy as np

from gnss_ppp.models import GPS, SYSTEM_ORDER, SatObservation, sv_sort_key

logger = logging.getLogger(__name__)


class StateKind(Enum):
    WET_TROPO = "wet_tropo"
    DX = "dx"
    DY = "dy"
    DZ = "dz"
    DLAT = "dlat"
    DLON = "dlon"
    DH = "dh"
    RX_CLOCK = "rx_clock"
    AMBIGUITY = "amb"
    ISB = "isb"


COORDINATE_KINDS_ECEF = (StateKind.DX, StateKind.DY, StateKind.DZ)
COORDINATE_KINDS_NEU = (StateKind.DLAT, StateKind.DLON, StateKind.DH)
_PER_ENTITY_KINDS = (StateKind.AMBIGUITY, StateKind.ISB)


@dataclass(frozen=True)
class StateKey:
    """Stable identity of one state component."""

    kind: StateKind
    ident: str = ""

    @classmethod
    def ambiguity(cls, sv_id: str) -> StateKey:
        return cls(StateKind.AMBIGUITY, sv_id)

    @classmethod
    def isb(cls, system: str) -> StateKey:
        return cls(StateKind.ISB, system)

    @classmethod
    def parse(cls, name: str) -> StateKey:
        """Inverse of :attr:`name` (``"amb_G05"``, ``"isb_R"``, ``"dx"``)."""

        kind_value, sep, ident = name.partition("_")
        for kind in _PER_ENTITY_KINDS:
            if sep and kind_value == kind.value and ident:
                return cls(kind, ident)
        try:
            return cls(StateKind(name))
        except ValueError:
            raise KeyError(f"Unknown state component {name!r}.") from None

    @property
    def name(self) -> str:
        if self.ident:
            return f"{self.kind.value}_{self.ident}"
        return self.kind.value

    @property
    def is_coordinate(self) -> bool:
        return self.kind in COORDINATE_KINDS_ECEF or self.kind in COORDINATE_KINDS_NEU

    def __str__(self) -> str:
        return self.name


def fixed_keys(use_neu: bool = False) -> tuple[StateKey, ...]:
    coords = COORDINATE_KINDS_NEU if use_neu else COORDINATE_KINDS_ECEF
    return (
        StateKey(StateKind.WET_TROPO),
        *(StateKey(kind) for kind in coords),
        StateKey(StateKind.RX_CLOCK),
    )


@dataclass(frozen=True)
class IndexUpdate:
    """Active set for one epoch and how it differs from the committed ledger."""

    keys: tuple[StateKey, ...]
    created: tuple[StateKey, ...]
    slipped: tuple[StateKey, ...]
    dropped: tuple[StateKey, ...]

    @property
    def reset_ambiguities(self) -> frozenset[StateKey]:
        """Ambiguities whose arc (re)starts this epoch."""

        return frozenset(key for key in self.created if key.kind is StateKind.AMBIGUITY)


class CovarianceLedger:
    """Committed state vector and covariance keyed by component identity."""

    def __init__(self) -> None:
        self._keys: list[StateKey] = []
        self._x = np.zeros(0, dtype=float)
        self._p = np.zeros((0, 0), dtype=float)
        self._last_update_t: dict[StateKey, float] = {}

    def __len__(self) -> int:
        return len(self._keys)

    def __contains__(self, key: object) -> bool:
        return key in self._keys

    @property
    def keys(self) -> tuple[StateKey, ...]:
        return tuple(self._keys)

    @property
    def x(self) -> np.ndarray:
        return self._x.copy()

    @property
    def P(self) -> np.ndarray:
        return self._p.copy()

    def index_of(self, key: StateKey) -> int:
        try:
            return self._keys.index(key)
        except ValueError:
            raise KeyError(f"State component {key.name!r} is not active.") from None

    def value(self, key: StateKey) -> float:
        return float(self._x[self.index_of(key)])

    def variance(self, key: StateKey) -> float:
        idx = self.index_of(key)
        return float(self._p[idx, idx])

    def covariance(self, first: StateKey, second: StateKey) -> float:
        return float(self._p[self.index_of(first), self.index_of(second)])

    def insert(self, key: StateKey, value: float, variance: float) -> None:
        """Append an independent component (zero covariance with everything else)."""

        if key in self._keys:
            raise ValueError(f"State component {key.name!r} already exists.")
        self._keys, self._x, self._p = _appended(self._keys, self._x, self._p, [(key, value, variance)])
        self._last_update_t.pop(key, None)

    def elapsed(self, key: StateKey, t_s: float) -> float:
        """Seconds since ``key`` was last committed; 0 for components never committed."""

        last = self._last_update_t.get(key)
        if last is None:
            return 0.0
        return max(float(t_s) - last, 0.0)

    def rearranged(
        self,
        update: IndexUpdate,
        initial: dict[StateKey, tuple[float, float]],
    ) -> tuple[np.ndarray, np.ndarray]:
        """Return ``(x, P)`` aligned to ``update.keys`` without mutating the ledger.

        Dropped and slipped components are deleted structurally, then created
        components are appended with ``initial[key] = (value, variance)`` and
        no correlation, and finally everything is permuted into active order.
        """

        keys, x, p = _deleted(self._keys, self._x, self._p, [*update.dropped, *update.slipped])
        fresh = [(key, *initial[key]) for key in update.created]
        keys, x, p = _appended(keys, x, p, fresh)
        order = [keys.index(key) for key in update.keys]
        return x[order], p[np.ix_(order, order)]

    def commit(self, keys: Sequence[StateKey], x: np.ndarray, p: np.ndarray, t_s: float) -> None:
        """Replace the ledger contents after a successful epoch."""

        x = np.asarray(x, dtype=float)
        p = np.asarray(p, dtype=float)
        if x.shape != (len(keys),) or p.shape != (len(keys), len(keys)):
            raise ValueError("State and covariance dimensions do not match the key list.")
        self._keys = list(keys)
        self._x = x.copy()
        self._p = p.copy()
        self._last_update_t = {key: float(t_s) for key in self._keys}

    def clear(self) -> None:
        self._keys = []
        self._x = np.zeros(0, dtype=float)
        self._p = np.zeros((0, 0), dtype=float)
        self._last_update_t = {}


def _deleted(
    keys: Sequence[StateKey],
    x: np.ndarray,
    p: np.ndarray,
    doomed: Sequence[StateKey],
) -> tuple[list[StateKey], np.ndarray, np.ndarray]:
    idx = sorted({keys.index(key) for key in doomed if key in keys})
    if not idx:
        return list(keys), x.copy(), p.copy()
    removed = set(idx)
    kept = [key for i, key in enumerate(keys) if i not in removed]
    x_new = np.delete(x, idx)
    p_new = np.delete(np.delete(p, idx, axis=0), idx, axis=1)
    return kept, x_new, p_new


def _appended(
    keys: Sequence[StateKey],
    x: np.ndarray,
    p: np.ndarray,
    fresh: Sequence[tuple[StateKey, float, float]],
) -> tuple[list[StateKey], np.ndarray, np.ndarray]:
    if not fresh:
        return list(keys), x.copy(), p.copy()
    n_old = len(keys)
    n_new = n_old + len(fresh)
    x_new = np.zeros(n_new, dtype=float)
    p_new = np.zeros((n_new, n_new), dtype=float)
    x_new[:n_old] = x
    p_new[:n_old, :n_old] = p
    for offset, (_, value, variance) in enumerate(fresh):
        x_new[n_old + offset] = value
        p_new[n_old + offset, n_old + offset] = variance
    return [*keys, *(key for key, _, _ in fresh)], x_new, p_new


class StateIndex:
    """Decides which components are active at each epoch."""

    def __init__(self, fixed: Sequence[StateKey], isb_systems: Sequence[str] = ()) -> None:
        self.fixed = tuple(fixed)
        self.isb_systems = tuple(system for system in SYSTEM_ORDER if system in set(isb_systems))
        if GPS in self.isb_systems:
            raise ValueError("GPS is the reference system and carries no inter-system bias.")

    def plan(self, observations: Sequence[SatObservation], ledger: CovarianceLedger) -> IndexUpdate:
        """Work out this epoch's active keys from the usable satellites and slip flags."""

        phase_sats = sorted((obs.sv_id for obs in observations if obs.has_phase), key=sv_sort_key)
        slipped_sats = {obs.sv_id for obs in observations if obs.has_phase and obs.cycle_slip}
        systems_seen = {obs.system for obs in observations}

        ambiguities = [StateKey.ambiguity(sv_id) for sv_id in phase_sats]
        isbs = [
            StateKey.isb(system)
            for system in self.isb_systems
            if StateKey.isb(system) in ledger or system in systems_seen
        ]
        keys = (*self.fixed, *ambiguities, *isbs)

        slipped = tuple(key for key in ambiguities if key.ident in slipped_sats and key in ledger)
        created = tuple(key for key in (*ambiguities, *isbs) if key not in ledger or key in slipped)
        active = set(keys)
        dropped = tuple(key for key in ledger.keys if key not in active)

        if created or dropped:
            logger.debug(
                "state index: dim %d -> %d, created=%s, slipped=%s, dropped=%s",
                len(ledger),
                len(keys),
                [key.name for key in created],
                [key.name for key in slipped],
                [key.name for key in dropped],
            )
        return IndexUpdate(keys=keys, created=created, slipped=slipped, dropped=dropped)
