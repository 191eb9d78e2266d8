"""Similarity graph and force-directed layout for the memory map.

Provides:
- Similarity edge construction from embeddings (capped, O(n^2))
- Force-directed 3D layout with id-stable rebuilds
- Layout metrics
"""

from auramap.graph.config import (
    CameraConfig,
    InteractionConfig,
    LayoutConfig,
    MapConfig,
    SimilarityConfig,
    StyleConfig,
)
from auramap.graph.layout import LayoutEngine
from auramap.graph.metrics import LayoutMetrics, compute_layout_metrics
from auramap.graph.models import Edge, GraphBuildResult, GraphParameters
from auramap.graph.similarity import (
    SimilarityGraphBuilder,
    cosine_similarity,
    cosine_similarity_batch,
    cosine_similarity_matrix,
    score_relevance,
)

__all__ = [
    # Config
    "CameraConfig",
    "InteractionConfig",
    "LayoutConfig",
    "MapConfig",
    "SimilarityConfig",
    "StyleConfig",
    # Models
    "Edge",
    "GraphBuildResult",
    "GraphParameters",
    # Similarity
    "SimilarityGraphBuilder",
    "cosine_similarity",
    "cosine_similarity_batch",
    "cosine_similarity_matrix",
    "score_relevance",
    # Layout
    "LayoutEngine",
    "LayoutMetrics",
    "compute_layout_metrics",
]
