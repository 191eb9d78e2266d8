"""Neo4j client for reading the memory map node batch."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from neo4j import AsyncDriver, AsyncGraphDatabase, AsyncSession
from neo4j.exceptions import ServiceUnavailable

from auramap.config import settings
from auramap.models import MemoryNode

logger = logging.getLogger(__name__)

# One label per node kind; the kind is derived from the label
MAP_NODES_QUERY = """
MATCH (n)
WHERE (n:Memory OR n:Dream OR n:Thought OR n:Interaction)
  AND ($character_id IS NULL OR n.character_id = $character_id)
RETURN n.id AS id,
       CASE
         WHEN n:Dream THEN 'dream'
         WHEN n:Thought THEN 'thought'
         WHEN n:Interaction THEN 'interaction'
         ELSE 'memory'
       END AS group_type,
       n.content AS content,
       n.embedding AS embedding,
       n.created_at AS created_at
ORDER BY n.created_at DESC
LIMIT $limit
"""


class Neo4jClient:
    """Async Neo4j client for memory map reads."""

    def __init__(
        self,
        uri: str | None = None,
        user: str | None = None,
        password: str | None = None,
        database: str | None = None,
    ) -> None:
        self.uri = uri or settings.neo4j_uri
        self.user = user or settings.neo4j_user
        self.password = password or settings.neo4j_password
        self.database = database or settings.neo4j_database
        self._driver: AsyncDriver | None = None

    @property
    def connected(self) -> bool:
        return self._driver is not None

    async def connect(self) -> None:
        """Establish connection to Neo4j."""
        if self._driver is None:
            self._driver = AsyncGraphDatabase.driver(
                self.uri,
                auth=(self.user, self.password),
            )
            # Verify connectivity
            try:
                await self._driver.verify_connectivity()
                logger.info(f"Connected to Neo4j at {self.uri}")
            except ServiceUnavailable as e:
                logger.error(f"Failed to connect to Neo4j: {e}")
                await self._driver.close()
                self._driver = None
                raise

    async def close(self) -> None:
        """Close the database connection."""
        if self._driver is not None:
            await self._driver.close()
            self._driver = None
            logger.info("Disconnected from Neo4j")

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Get a database session."""
        if self._driver is None:
            await self.connect()
        assert self._driver is not None
        async with self._driver.session(database=self.database) as session:
            yield session

    async def execute_query(self, query: str, **params: Any) -> list[dict[str, Any]]:
        """Execute a raw Cypher query."""
        results: list[dict[str, Any]] = []
        async with self.session() as session:
            result = await session.run(query, **params)
            async for record in result:
                results.append(dict(record))
        return results

    async def fetch_map_nodes(
        self,
        character_id: str | None = None,
        limit: int | None = None,
    ) -> list[MemoryNode]:
        """Fetch the node batch for one map, newest first.

        Records that cannot be parsed at all (no id) are skipped and logged.
        Malformed embeddings are kept; those nodes show without edges.
        """
        records = await self.execute_query(
            MAP_NODES_QUERY,
            character_id=character_id,
            limit=limit or settings.neo4j_fetch_limit,
        )
        return records_to_nodes(records)


def records_to_nodes(records: list[dict[str, Any]]) -> list[MemoryNode]:
    """Convert store records to nodes, skipping unusable ones."""
    nodes: list[MemoryNode] = []
    for record in records:
        try:
            nodes.append(MemoryNode.from_dict(record))
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Skipping unreadable node record {record.get('id')!r}: {e}")
    logger.info(f"Loaded {len(nodes)} map nodes ({len(records) - len(nodes)} skipped)")
    return nodes
