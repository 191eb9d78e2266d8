"""Memory node model - one record shown on the memory map."""

import json
import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class NodeKind(str, Enum):
    """Kind of record a node was built from."""

    MEMORY = "memory"  # Long-term fact
    DREAM = "dream"  # Dream generated between sessions
    THOUGHT = "thought"  # Inner thought while idle
    INTERACTION = "interaction"  # Conversation turn

    @classmethod
    def parse(cls, value: Any) -> "NodeKind":
        """Parse a kind, falling back to MEMORY for unknown values."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            logger.warning(f"Unknown node kind {value!r}, treating as memory")
            return cls.MEMORY


def parse_datetime(value: Any) -> datetime | None:
    """Parse datetime from various formats (string, Neo4j DateTime, or native datetime)."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        # Postgres/Supabase style "Z" suffix
        if value.endswith("Z"):
            value = value[:-1] + "+00:00"
        return datetime.fromisoformat(value)
    # Neo4j DateTime object - convert to Python datetime
    if hasattr(value, "to_native"):
        return value.to_native()
    return datetime.fromisoformat(str(value))


def parse_embedding(value: Any) -> list[float] | None:
    """Parse an embedding that may arrive as a list or a JSON-encoded string.

    Returns None for anything that is not a non-empty list of finite numbers.
    Never raises.
    """
    if value is None:
        return None
    if isinstance(value, (str, bytes)):
        try:
            value = json.loads(value)
        except (TypeError, ValueError) as e:
            logger.debug(f"Embedding is not valid JSON: {e}")
            return None
    if not isinstance(value, (list, tuple)) or not value:
        return None

    vector: list[float] = []
    for component in value:
        if isinstance(component, bool):
            return None
        try:
            x = float(component)
        except (TypeError, ValueError):
            return None
        if not math.isfinite(x):
            return None
        vector.append(x)
    return vector


@dataclass
class MemoryNode:
    """
    A record displayed on the memory map.

    Only the id, kind, text and embedding drive the simulation. Position and
    velocity are owned by the layout engine, keyed by id, never stored here.
    """

    id: str
    kind: NodeKind
    text: str

    # None when the stored embedding was missing or malformed
    embedding: list[float] | None = None

    # 0-1 relevance to the current focus query, None when unscored
    relevance: float | None = None

    created_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def has_embedding(self) -> bool:
        """True when the node can take part in similarity edges."""
        return self.embedding is not None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON responses."""
        return {
            "id": self.id,
            "kind": self.kind.value,
            "text": self.text,
            "relevance": self.relevance,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "MemoryNode":
        """Create from dictionary (Neo4j record or JSON dump)."""
        raw_embedding = data.get("embedding")
        embedding = parse_embedding(raw_embedding)
        if raw_embedding is not None and embedding is None:
            logger.warning(f"Node {data.get('id')}: malformed embedding, shown without edges")

        relevance = data.get("relevance")
        if relevance is not None:
            relevance = min(1.0, max(0.0, float(relevance)))

        return cls(
            id=str(data["id"]),
            kind=NodeKind.parse(data.get("group_type", data.get("kind", "memory"))),
            text=data.get("content", data.get("text")) or "",
            embedding=embedding,
            relevance=relevance,
            created_at=parse_datetime(data.get("created_at")) or datetime.utcnow(),
        )
