"""Storage layer for Auramap."""

from auramap.storage.neo4j_client import Neo4jClient, records_to_nodes

__all__ = ["Neo4jClient", "records_to_nodes"]
