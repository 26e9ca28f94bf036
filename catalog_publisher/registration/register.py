"""Catalog registers: commit catalog specs to a metadata catalog.

A register is invoked from a single thread at a time by the publisher,
so implementations need no locking of their own.

Backends:
    - graph: GraphCatalogRegister, MERGEs databases, tables and partitions
      into the Neo4j catalog graph
    - log: LoggingCatalogRegister, logs and records specs (dry run)
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Self

from catalog_publisher.graph import GraphClient
from catalog_publisher.registration.spec import CatalogSpec

logger = logging.getLogger(__name__)


class CatalogRegister(ABC):
    """Base class for catalog register backends."""

    backend: str = ""

    @abstractmethod
    def register(self, spec: CatalogSpec) -> None:
        """Commit one catalog spec."""

    def close(self) -> None:
        """Release any handle held by the register."""

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *_: Any) -> None:
        self.close()


_REGISTER_TABLE = """
MERGE (d:CatalogDatabase {name: $database})
MERGE (t:CatalogTable {id: $table_id})
SET t.name = $table,
    t.location = $location,
    t.storage_format = $storage_format,
    t.properties = $properties,
    t.registered_at = datetime()
MERGE (t)-[:IN_DATABASE]->(d)
"""

_REGISTER_PARTITION = """
MERGE (d:CatalogDatabase {name: $database})
MERGE (t:CatalogTable {id: $table_id})
ON CREATE SET t.name = $table
MERGE (t)-[:IN_DATABASE]->(d)
MERGE (p:CatalogPartition {id: $partition_id})
SET p.values = $partition_values,
    p.keys = $partition_keys,
    p.location = $location,
    p.storage_format = $storage_format,
    p.registered_at = datetime()
MERGE (p)-[:PARTITION_OF]->(t)
"""


class GraphCatalogRegister(CatalogRegister):
    """Register specs as nodes in the Neo4j catalog graph.

    Tables MERGE on ``database.table``; partitioned specs MERGE a
    ``CatalogPartition`` under their table.  Repeated registration of the
    same spec updates the existing nodes in place.
    """

    backend = "graph"

    def __init__(
        self, client: GraphClient | None = None, initialize_schema: bool = True
    ) -> None:
        self.client = client if client is not None else GraphClient()
        if initialize_schema:
            self.client.initialize_schema()

    def register(self, spec: CatalogSpec) -> None:
        params = {
            "database": spec.database,
            "table": spec.table,
            "table_id": spec.table_id,
            "location": spec.location,
            "storage_format": spec.storage_format,
        }
        if spec.partition:
            self.client.query(
                _REGISTER_PARTITION,
                partition_id=spec.partition_id,
                partition_keys=list(spec.partition),
                partition_values=list(spec.partition.values()),
                **params,
            )
            logger.debug(f"Registered partition {spec.partition_id}")
        else:
            self.client.query(
                _REGISTER_TABLE,
                properties=[f"{k}={v}" for k, v in spec.properties.items()],
                **params,
            )
            logger.debug(f"Registered table {spec.table_id} at {spec.location}")

    def close(self) -> None:
        self.client.close()


class LoggingCatalogRegister(CatalogRegister):
    """Dry-run register that logs each spec and keeps it in ``registered``."""

    backend = "log"

    def __init__(self) -> None:
        self.registered: list[CatalogSpec] = []

    def register(self, spec: CatalogSpec) -> None:
        target = spec.partition_id or spec.table_id
        logger.info(f"[dry-run] register {target} -> {spec.location}")
        self.registered.append(spec)


_REGISTERS: dict[str, type[CatalogRegister]] = {
    GraphCatalogRegister.backend: GraphCatalogRegister,
    LoggingCatalogRegister.backend: LoggingCatalogRegister,
}


def get_register(backend: str = "graph", **options: Any) -> CatalogRegister:
    """Instantiate a catalog register by backend name.

    Raises:
        ValueError: If the backend is unknown.
    """
    try:
        register_cls = _REGISTERS[backend]
    except KeyError:
        raise ValueError(
            f"Unknown catalog backend '{backend}'. "
            f"Valid backends: {', '.join(sorted(_REGISTERS))}"
        ) from None
    return register_cls(**options)
