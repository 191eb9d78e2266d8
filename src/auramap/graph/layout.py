"""Force-directed 3D layout over a similarity graph.

Positions and velocities live in parallel (n, 3) arrays indexed through an
id -> index map. Rebuilds copy surviving rows by id, so a node never jumps
when the filter or threshold changes.
"""

import logging
from collections.abc import Iterable, Sequence

import numpy as np

from auramap.graph.config import LayoutConfig
from auramap.graph.models import Edge

logger = logging.getLogger(__name__)


class LayoutEngine:
    """
    Physics simulation producing 3D node positions.

    Each tick, in order:
    1. Central gravity: v += -p * gravity
    2. Pairwise repulsion ~ repulsion / d^2, clamped at max_force, equal and opposite
    3. Springs along edges: (d - rest_length) * spring, applied to both ends
    4. Integration: v *= damping, p += v

    Non-finite force rows are dropped before integration so a NaN can never
    enter position state.
    """

    def __init__(self, config: LayoutConfig | None = None) -> None:
        self.config = config or LayoutConfig()
        self._rng = np.random.default_rng(self.config.seed)

        self.ids: list[str] = []
        self.index: dict[str, int] = {}
        self.positions = np.zeros((0, 3))
        self.velocities = np.zeros((0, 3))

        self._edge_a = np.zeros(0, dtype=int)
        self._edge_b = np.zeros(0, dtype=int)
        self._rest = np.zeros(0)

        # Last known state of ids currently filtered out
        self._parked: dict[str, tuple[np.ndarray, np.ndarray]] = {}
        self.ticks = 0

    def __len__(self) -> int:
        return len(self.ids)

    @property
    def edge_count(self) -> int:
        return len(self._rest)

    def edge_arrays(self) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Endpoint index arrays and rest lengths of the current edges."""
        return self._edge_a, self._edge_b, self._rest

    def position_of(self, node_id: str) -> np.ndarray | None:
        """Copy of a node's position, or None when it is not on the map."""
        i = self.index.get(node_id)
        if i is None:
            return None
        return self.positions[i].copy()

    def sync(self, ids: Sequence[str], edges: Sequence[Edge] = ()) -> None:
        """Adopt a new arena order and edge list.

        Surviving ids keep position and velocity. Ids seen before but
        filtered out since get their parked state back. Only ids never seen
        spawn at a random point in the spawn cube with zero velocity.
        """
        n = len(ids)
        positions = np.empty((n, 3))
        velocities = np.zeros((n, 3))
        fresh = 0

        for old_id, i in self.index.items():
            self._parked[old_id] = (self.positions[i].copy(), self.velocities[i].copy())

        for i, node_id in enumerate(ids):
            parked = self._parked.pop(node_id, None)
            if parked is not None:
                positions[i], velocities[i] = parked
            else:
                extent = self.config.spawn_extent
                positions[i] = self._rng.uniform(-extent, extent, size=3)
                fresh += 1

        self.ids = list(ids)
        self.index = {node_id: i for i, node_id in enumerate(self.ids)}
        self.positions = positions
        self.velocities = velocities
        self.set_edges(edges)

        logger.debug(f"Layout sync: {n} nodes ({fresh} new), {self.edge_count} edges")

    def forget(self, keep: Iterable[str]) -> int:
        """Drop parked state for ids outside keep. Returns how many were dropped."""
        keep = set(keep)
        stale = [node_id for node_id in self._parked if node_id not in keep]
        for node_id in stale:
            del self._parked[node_id]
        if stale:
            logger.debug(f"Layout forgot {len(stale)} parked nodes")
        return len(stale)

    @property
    def parked_ids(self) -> set[str]:
        return set(self._parked)

    def set_edges(self, edges: Sequence[Edge]) -> None:
        """Replace the spring set. Edges must index the current arena."""
        n = len(self.ids)
        valid = [e for e in edges if e.a != e.b and 0 <= e.a < n and 0 <= e.b < n]
        if len(valid) != len(edges):
            logger.warning(f"Dropped {len(edges) - len(valid)} edges outside the arena")
        self._edge_a = np.array([e.a for e in valid], dtype=int)
        self._edge_b = np.array([e.b for e in valid], dtype=int)
        self._rest = np.array([e.rest_length for e in valid], dtype=float)

    def set_state(self, node_id: str, position: Sequence[float], velocity: Sequence[float] = (0.0, 0.0, 0.0)) -> None:
        """Place a node explicitly."""
        i = self.index[node_id]
        self.positions[i] = np.asarray(position, dtype=float)
        self.velocities[i] = np.asarray(velocity, dtype=float)

    def kinetic_energy(self) -> float:
        """Total sum of squared speeds."""
        return float(np.sum(self.velocities * self.velocities))

    def _repulsion(self) -> np.ndarray:
        cfg = self.config
        pos = self.positions
        delta = pos[:, None, :] - pos[None, :, :]  # i - j
        dist2 = np.einsum("ijk,ijk->ij", delta, delta)
        np.fill_diagonal(dist2, np.inf)

        with np.errstate(divide="ignore", invalid="ignore"):
            dist = np.sqrt(dist2)
            magnitude = np.minimum(cfg.repulsion / dist2, cfg.max_force)
            # Coincident pairs have no direction; skip them
            scale = np.where(dist > 0.0, magnitude / dist, 0.0)
        scale[~np.isfinite(scale)] = 0.0
        # scale is symmetric and delta antisymmetric, so pair forces cancel
        return np.einsum("ij,ijk->ik", scale, delta)

    def _springs(self) -> np.ndarray:
        force = np.zeros_like(self.positions)
        if not len(self._rest):
            return force
        a, b = self._edge_a, self._edge_b
        delta = self.positions[b] - self.positions[a]
        dist = np.linalg.norm(delta, axis=1)
        with np.errstate(divide="ignore", invalid="ignore"):
            pull = np.where(dist > 0.0, (dist - self._rest) * self.config.spring / dist, 0.0)
        pull[~np.isfinite(pull)] = 0.0
        f = delta * pull[:, None]
        np.add.at(force, a, f)
        np.add.at(force, b, -f)
        return force

    def tick(self) -> None:
        """Advance the simulation one fixed step."""
        if not self.ids:
            return
        cfg = self.config

        self.velocities += -self.positions * cfg.gravity

        force = self._repulsion() + self._springs()
        bad = ~np.isfinite(force).all(axis=1)
        if bad.any():
            logger.debug(f"Skipped non-finite force on {int(bad.sum())} nodes")
            force[bad] = 0.0
        self.velocities += force

        self.velocities *= cfg.damping
        speed = np.linalg.norm(self.velocities, axis=1)
        fast = speed > cfg.max_speed
        if fast.any():
            self.velocities[fast] *= (cfg.max_speed / speed[fast])[:, None]

        self.positions += self.velocities
        self.ticks += 1

    def run(self, ticks: int) -> float:
        """Advance several ticks. Returns the final kinetic energy."""
        for _ in range(ticks):
            self.tick()
        return self.kinetic_energy()

    def clear(self) -> None:
        """Release all arrays."""
        self.ids = []
        self.index = {}
        self.positions = np.zeros((0, 3))
        self.velocities = np.zeros((0, 3))
        self._parked.clear()
        self.set_edges(())
