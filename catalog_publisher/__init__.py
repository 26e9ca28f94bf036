"""Catalog Publisher - register published data locations with a metadata catalog."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("catalog-publisher")
except PackageNotFoundError:
    __version__ = "0.0.0"
