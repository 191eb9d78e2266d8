"""Layout metrics for monitoring the simulation."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from auramap.graph.layout import LayoutEngine

logger = logging.getLogger(__name__)


@dataclass
class LayoutMetrics:
    """Structural and energetic snapshot of a layout."""

    node_count: int = 0
    edge_count: int = 0
    isolated_nodes: int = 0  # Nodes with no edges
    avg_degree: float = 0.0
    max_degree: int = 0

    kinetic_energy: float = 0.0  # Sum of |v|^2
    mean_strain: float = 0.0  # Mean |d - rest| / rest over edges
    bounding_radius: float = 0.0  # Farthest node from the origin
    ticks: int = 0

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return asdict(self)


def compute_layout_metrics(engine: LayoutEngine) -> LayoutMetrics:
    """Compute metrics for the engine's current state."""
    metrics = LayoutMetrics(ticks=engine.ticks)
    n = len(engine)
    if n == 0:
        return metrics

    a, b, rest = engine.edge_arrays()
    degree = np.bincount(np.concatenate([a, b]), minlength=n) if len(rest) else np.zeros(n, dtype=int)

    metrics.node_count = n
    metrics.edge_count = len(rest)
    metrics.isolated_nodes = int(np.sum(degree == 0))
    metrics.avg_degree = float(degree.mean())
    metrics.max_degree = int(degree.max())
    metrics.kinetic_energy = engine.kinetic_energy()
    metrics.bounding_radius = float(np.linalg.norm(engine.positions, axis=1).max())

    if len(rest):
        dist = np.linalg.norm(engine.positions[b] - engine.positions[a], axis=1)
        metrics.mean_strain = float(np.mean(np.abs(dist - rest) / rest))

    return metrics
