"""Auramap data models."""

from auramap.models.node import MemoryNode, NodeKind, parse_datetime, parse_embedding

__all__ = [
    "MemoryNode",
    "NodeKind",
    "parse_datetime",
    "parse_embedding",
]
