"""Catalog spec model.

A :class:`CatalogSpec` describes how one catalog entry is registered for a
published path: the table (and optionally the partition) that should point
at the data location.  Specs are produced by a registration policy and
consumed immediately by a catalog register; they are never stored.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class CatalogSpec(BaseModel):
    """Registration descriptor for one catalog table or partition."""

    model_config = ConfigDict(frozen=True)

    path: str = Field(description="Published path this spec was generated from")
    database: str = Field(description="Catalog database name")
    table: str = Field(description="Catalog table name")
    location: str = Field(description="Storage location the entry points at")
    storage_format: str | None = Field(
        default=None, description="Data file format (avro, parquet, ...)"
    )
    partition: dict[str, str] | None = Field(
        default=None, description="Partition key/value pairs, None for tables"
    )
    properties: dict[str, str] = Field(default_factory=dict)

    @property
    def table_id(self) -> str:
        return f"{self.database}.{self.table}"

    @property
    def partition_id(self) -> str | None:
        if not self.partition:
            return None
        values = "/".join(f"{k}={v}" for k, v in self.partition.items())
        return f"{self.table_id}/{values}"
