"""Catalog graph module.

For query-only usage, import just GraphClient:
    from catalog_publisher.graph import GraphClient
"""

from catalog_publisher.graph.client import GraphClient

__all__ = ["GraphClient"]
