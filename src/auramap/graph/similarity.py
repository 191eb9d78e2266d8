"""Similarity graph construction from node embeddings.

Edges come from pairwise cosine similarity over at most ``node_cap`` nodes
that pass the kind filter, in input order. Nodes beyond the cap are left out
of the map entirely; nodes with a missing or malformed embedding stay on the
map as isolated points.
"""

import logging
from collections.abc import Iterable, Sequence

import numpy as np

from auramap.graph.config import SimilarityConfig
from auramap.graph.models import Edge, GraphBuildResult, GraphParameters
from auramap.models import MemoryNode, NodeKind

logger = logging.getLogger(__name__)

# Width of the band around the threshold re-checked with cosine_similarity
BOUNDARY_TOLERANCE = 1e-9


def cosine_similarity(vec1: Sequence[float], vec2: Sequence[float]) -> float:
    """Compute cosine similarity between two vectors.

    Returns 0.0 when either norm is zero, when dimensions differ, or when the
    result is not finite.
    """
    a = np.asarray(vec1, dtype=float)
    b = np.asarray(vec2, dtype=float)
    if a.shape != b.shape:
        return 0.0
    norm = float(np.linalg.norm(a) * np.linalg.norm(b))
    if norm == 0.0:
        return 0.0
    sim = float(np.dot(a, b) / norm)
    if not np.isfinite(sim):
        return 0.0
    # Rounding can push identical directions just past 1.0
    return min(1.0, max(-1.0, sim))


def cosine_similarity_matrix(vectors: np.ndarray) -> np.ndarray:
    """Pairwise cosine similarity for an (n, d) matrix.

    Uses the same dot / (|a| * |b|) form as ``cosine_similarity``. Rows with
    zero norm get similarity 0 against everything, including themselves.
    """
    if vectors.size == 0:
        return np.zeros((len(vectors), len(vectors)))
    norms = np.linalg.norm(vectors, axis=1)
    with np.errstate(divide="ignore", invalid="ignore"):
        sims = (vectors @ vectors.T) / np.outer(norms, norms)
    zero = norms == 0.0
    sims[zero, :] = 0.0
    sims[:, zero] = 0.0
    sims = np.nan_to_num(sims, nan=0.0, posinf=0.0, neginf=0.0)
    np.clip(sims, -1.0, 1.0, out=sims)
    return sims


def cosine_similarity_batch(
    query: Sequence[float],
    vectors: Sequence[Sequence[float]],
) -> list[float]:
    """Compute cosine similarity between query and multiple vectors."""
    return [cosine_similarity(query, v) for v in vectors]


def rest_length_for(similarity: float, config: SimilarityConfig) -> float:
    """Spring rest length; more similar pairs rest closer together."""
    return config.rest_length_min + (1.0 - similarity) * config.rest_length_range


def score_relevance(
    nodes: Iterable[MemoryNode],
    query_embedding: Sequence[float] | None,
) -> int:
    """Set each node's relevance to its clamped similarity with a query.

    Passing ``None`` clears relevance on every node. Nodes without a usable
    embedding get ``None``. Returns the number of nodes scored.
    """
    usable: list[MemoryNode] = []
    for node in nodes:
        node.relevance = None
        if query_embedding is None or node.embedding is None:
            continue
        if len(node.embedding) != len(query_embedding):
            continue
        usable.append(node)

    sims = cosine_similarity_batch(query_embedding, [n.embedding for n in usable]) if usable else []
    for node, sim in zip(usable, sims):
        node.relevance = min(1.0, max(0.0, sim))
    return len(usable)


class SimilarityGraphBuilder:
    """
    Builds the similarity edge list for a node batch.

    Algorithm:
    1. Keep nodes whose kind passes the filter, in input order, up to node_cap
    2. Take the first valid embedding's dimension as D; other dimensions are
       treated as malformed and their nodes become isolated points
    3. For every unordered pair with embeddings, compute cosine similarity
    4. Emit an edge when sim > threshold, rest length shrinking with sim

    The build is O(n^2) in the capped node count. Call it on node, filter
    or threshold changes only, never per frame.
    """

    def __init__(self, config: SimilarityConfig | None = None) -> None:
        self.config = config or SimilarityConfig()

    def select(
        self,
        nodes: Sequence[MemoryNode],
        kinds: Iterable[NodeKind] | None = None,
    ) -> tuple[list[MemoryNode], list[str]]:
        """Apply the kind filter, drop duplicate ids, then apply the node cap.

        The first occurrence of an id wins, so duplicates never take a cap slot.

        Returns:
            (kept nodes, ids dropped by the cap)
        """
        allowed = frozenset(kinds) if kinds is not None else None
        seen: set[str] = set()
        passing: list[MemoryNode] = []
        for node in nodes:
            if allowed is not None and node.kind not in allowed:
                continue
            if node.id in seen:
                logger.warning(f"Duplicate node id {node.id} ignored")
                continue
            seen.add(node.id)
            passing.append(node)

        cap = self.config.node_cap
        kept = passing[:cap]
        capped = [n.id for n in passing[cap:]]
        if capped:
            logger.warning(
                f"Node cap {cap} reached: {len(capped)} nodes left off the map"
            )
        return kept, capped

    def build(
        self,
        nodes: Sequence[MemoryNode],
        threshold: float | None = None,
        kinds: Iterable[NodeKind] | None = None,
    ) -> GraphBuildResult:
        """Build the edge set for a node batch.

        Args:
            nodes: Node batch in display priority order
            threshold: Strict similarity threshold, defaults to the config value
            kinds: Allowed node kinds, None for all

        Returns:
            GraphBuildResult whose node order defines edge indices
        """
        tau = self.config.threshold if threshold is None else float(threshold)
        if not 0.0 <= tau <= 1.0:
            raise ValueError(f"Similarity threshold must be within [0, 1], got {tau}")

        parameters = GraphParameters(
            threshold=tau,
            kinds=frozenset(kinds) if kinds is not None else None,
        )

        kept, capped = self.select(nodes, parameters.kinds)
        if not kept:
            return GraphBuildResult(nodes=[], edges=[], parameters=parameters, capped_ids=capped)

        dimension: int | None = None
        embedded: list[int] = []
        isolated: list[str] = []
        for i, node in enumerate(kept):
            if node.embedding is None:
                isolated.append(node.id)
                continue
            if dimension is None:
                dimension = len(node.embedding)
            if len(node.embedding) != dimension:
                logger.warning(
                    f"Node {node.id}: embedding dimension {len(node.embedding)} != {dimension}, "
                    f"shown without edges"
                )
                isolated.append(node.id)
                continue
            embedded.append(i)

        edges: list[Edge] = []
        if len(embedded) > 1:
            matrix = np.array([kept[i].embedding for i in embedded], dtype=float)
            sims = cosine_similarity_matrix(matrix)
            # Matrix products can round apart from the pairwise form in the last
            # bits; pairs that close to the threshold are settled pairwise
            rows, cols = np.nonzero(np.triu(sims > tau - BOUNDARY_TOLERANCE, k=1))
            for r, c in zip(rows.tolist(), cols.tolist()):
                sim = float(sims[r, c])
                if abs(sim - tau) <= BOUNDARY_TOLERANCE:
                    sim = cosine_similarity(matrix[r], matrix[c])
                if not sim > tau:
                    continue
                edges.append(
                    Edge(
                        a=embedded[r],
                        b=embedded[c],
                        similarity=sim,
                        rest_length=rest_length_for(sim, self.config),
                    )
                )

        logger.info(
            f"Similarity graph: {len(kept)} nodes, {len(edges)} edges "
            f"(threshold={tau:.3f}, isolated={len(isolated)}, capped={len(capped)})"
        )

        return GraphBuildResult(
            nodes=kept,
            edges=edges,
            parameters=parameters,
            isolated_ids=isolated,
            capped_ids=capped,
        )
