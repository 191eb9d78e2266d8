"""Pytest configuration and fixtures."""

from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

from auramap.graph.config import (
    CameraConfig,
    InteractionConfig,
    LayoutConfig,
    MapConfig,
    SimilarityConfig,
    StyleConfig,
)
from auramap.models import MemoryNode, NodeKind
from auramap.storage.neo4j_client import Neo4jClient


def make_node(
    node_id: str,
    embedding: list[float] | None,
    kind: NodeKind = NodeKind.MEMORY,
    relevance: float | None = None,
) -> MemoryNode:
    """Build a node with a fixed timestamp."""
    return MemoryNode(
        id=node_id,
        kind=kind,
        text=f"text of {node_id}",
        embedding=embedding,
        relevance=relevance,
        created_at=datetime(2024, 1, 1, 12, 0, 0),
    )


@pytest.fixture
def node_factory():
    """Factory for nodes with a fixed timestamp."""
    return make_node


@pytest.fixture
def map_config() -> MapConfig:
    """Deterministic map config: seeded spawn, no auto-rotation, no smoothing."""
    return MapConfig(
        similarity=SimilarityConfig(threshold=0.5, node_cap=250),
        layout=LayoutConfig(seed=7),
        camera=CameraConfig(auto_rotate_speed=0.0, smoothing=1.0),
        interaction=InteractionConfig(),
        style=StyleConfig(),
    )


@pytest.fixture
def sample_nodes() -> list[MemoryNode]:
    """Two identical directions and one orthogonal."""
    return [
        make_node("e1", [1.0, 0.0], NodeKind.MEMORY),
        make_node("e2", [1.0, 0.0], NodeKind.THOUGHT),
        make_node("e3", [0.0, 1.0], NodeKind.DREAM),
    ]


@pytest.fixture
def sample_records() -> list[dict]:
    """Store records as returned by the Neo4j query."""
    return [
        {
            "id": "m-1",
            "group_type": "memory",
            "content": "Gosto de chuva",
            "embedding": [0.1, 0.2, 0.3],
            "created_at": "2024-05-01T10:00:00Z",
        },
        {
            "id": "d-1",
            "group_type": "dream",
            "content": "Um corredor sem fim",
            "embedding": "[0.1, 0.2, 0.31]",
            "created_at": "2024-05-02T03:00:00+00:00",
        },
        {
            "id": "t-1",
            "group_type": "thought",
            "content": "O silêncio é uma forma de morte?",
            "embedding": "not json",
            "created_at": None,
        },
    ]


@pytest.fixture
def mock_db(sample_nodes: list[MemoryNode]) -> MagicMock:
    """Mock Neo4j client serving the sample nodes."""
    db = MagicMock(spec=Neo4jClient)
    db.connect = AsyncMock()
    db.close = AsyncMock()
    db.execute_query = AsyncMock(return_value=[{"n": 1}])
    db.fetch_map_nodes = AsyncMock(return_value=sample_nodes)
    return db
