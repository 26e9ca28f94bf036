"""Neo4j client for the metadata catalog graph.

Example:
    >>> from catalog_publisher.graph import GraphClient
    >>> with GraphClient() as client:
    ...     client.initialize_schema()
    ...     print(client.get_stats())
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Self

from neo4j import Driver, GraphDatabase, Session

from catalog_publisher.settings import (
    get_graph_password,
    get_graph_uri,
    get_graph_username,
)

# Suppress noisy Neo4j warnings about unknown property keys
logging.getLogger("neo4j.notifications").setLevel(logging.ERROR)

logger = logging.getLogger(__name__)

# Uniqueness constraints on catalog node identifiers
CONSTRAINTS = (
    "CREATE CONSTRAINT catalog_database_name IF NOT EXISTS "
    "FOR (d:CatalogDatabase) REQUIRE d.name IS UNIQUE",
    "CREATE CONSTRAINT catalog_table_id IF NOT EXISTS "
    "FOR (t:CatalogTable) REQUIRE t.id IS UNIQUE",
    "CREATE CONSTRAINT catalog_partition_id IF NOT EXISTS "
    "FOR (p:CatalogPartition) REQUIRE p.id IS UNIQUE",
)


@dataclass
class GraphClient:
    """Client for Neo4j catalog graph operations.

    Connection settings come from ``[tool.catalog-publisher.graph]`` with
    ``NEO4J_URI`` / ``NEO4J_USERNAME`` / ``NEO4J_PASSWORD`` overrides.

    Attributes:
        uri: Neo4j Bolt URI
        username: Neo4j username (default: neo4j)
        password: Neo4j password
    """

    uri: str = field(default_factory=get_graph_uri)
    username: str = field(default_factory=get_graph_username)
    password: str = field(default_factory=get_graph_password)
    _driver: Driver | None = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        """Initialize the Neo4j driver."""
        self._driver = GraphDatabase.driver(
            self.uri, auth=(self.username, self.password)
        )

    @property
    def closed(self) -> bool:
        return self._driver is None

    def close(self) -> None:
        """Close the Neo4j driver."""
        if self._driver:
            self._driver.close()
            self._driver = None

    def __enter__(self) -> Self:
        """Enter context manager."""
        return self

    def __exit__(self, *_: Any) -> None:
        """Exit context manager."""
        self.close()

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Get a Neo4j session as a context manager."""
        if not self._driver:
            msg = "GraphClient is closed"
            raise RuntimeError(msg)
        sess = self._driver.session()
        try:
            yield sess
        finally:
            sess.close()

    def initialize_schema(self) -> None:
        """Create uniqueness constraints for catalog nodes."""
        with self.session() as sess:
            for stmt in CONSTRAINTS:
                sess.run(stmt)
        logger.debug(f"Ensured {len(CONSTRAINTS)} catalog constraints")

    def get_stats(self) -> dict[str, int]:
        """Get basic node and relationship counts."""
        with self.session() as sess:
            node_record = sess.run("MATCH (n) RETURN count(n) as count").single()
            rel_record = sess.run("MATCH ()-[r]->() RETURN count(r) as count").single()
            return {
                "nodes": node_record["count"] if node_record else 0,
                "relationships": rel_record["count"] if rel_record else 0,
            }

    def query(self, cypher: str, **params: Any) -> list[dict[str, Any]]:
        """Execute a Cypher query and return results as dicts."""
        with self.session() as sess:
            result = sess.run(cypher, **params)
            return [dict(record) for record in result]
