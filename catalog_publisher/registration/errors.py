"""Exceptions raised by the registration pipeline."""

from __future__ import annotations


class CatalogPublisherError(Exception):
    """Base class for catalog publisher errors."""


class GenerationError(CatalogPublisherError):
    """A registration policy could not produce catalog specs for a path."""

    def __init__(self, message: str, path: str | None = None) -> None:
        super().__init__(message)
        self.path = path


class RegistrationError(CatalogPublisherError):
    """Publishing a batch of task records failed.

    Always chained to the original cause (``__cause__``), which is the
    policy error, the catalog register error, or the cancellation that
    interrupted draining.
    """

    def __init__(self, message: str, path: str | None = None) -> None:
        super().__init__(message)
        self.path = path


class CloseError(CatalogPublisherError):
    """Releasing the worker pool or the catalog handle failed."""
