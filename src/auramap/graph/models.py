"""Data models for the similarity graph."""

from dataclasses import dataclass, field

from auramap.models import MemoryNode, NodeKind


@dataclass(frozen=True)
class Edge:
    """A similarity edge between two node indices of one build.

    Derived, never persisted. ``a < b`` always holds so each unordered
    pair appears at most once.
    """

    a: int
    b: int
    similarity: float  # In (threshold, 1]
    rest_length: float  # Decreasing in similarity


@dataclass
class GraphParameters:
    """User-controlled inputs of a rebuild."""

    threshold: float
    kinds: frozenset[NodeKind] | None = None  # None means every kind


@dataclass
class GraphBuildResult:
    """Output of one similarity graph build.

    ``nodes`` is the arena order: edge endpoints and layout arrays are
    indexed by position in this list.
    """

    nodes: list[MemoryNode]
    edges: list[Edge]
    parameters: GraphParameters

    # Ids of nodes kept for display but excluded from edge math
    isolated_ids: list[str] = field(default_factory=list)
    # Ids dropped because they exceeded the node cap
    capped_ids: list[str] = field(default_factory=list)

    @property
    def ids(self) -> list[str]:
        return [n.id for n in self.nodes]

