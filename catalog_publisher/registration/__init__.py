"""Catalog registration pipeline.

Converts the paths recorded by completed tasks into catalog specs on a
worker pool and commits them serially to a catalog register.

Usage:
    from catalog_publisher.registration import (
        RegistrationPublisher,
        get_policy,
        get_register,
    )

    publisher = RegistrationPublisher(get_policy("default"), get_register("log"))
    with publisher:
        publisher.publish_data(records)
"""

from catalog_publisher.registration.errors import (
    CatalogPublisherError,
    CloseError,
    GenerationError,
    RegistrationError,
)
from catalog_publisher.registration.paths import get_unique_paths_to_register
from catalog_publisher.registration.policy import (
    PathBasedRegistrationPolicy,
    RegistrationPolicy,
    get_policy,
)
from catalog_publisher.registration.publisher import RegistrationPublisher
from catalog_publisher.registration.register import (
    CatalogRegister,
    GraphCatalogRegister,
    LoggingCatalogRegister,
    get_register,
)
from catalog_publisher.registration.spec import CatalogSpec

__all__ = [
    "CatalogPublisherError",
    "CatalogRegister",
    "CatalogSpec",
    "CloseError",
    "GenerationError",
    "GraphCatalogRegister",
    "LoggingCatalogRegister",
    "PathBasedRegistrationPolicy",
    "RegistrationError",
    "RegistrationPolicy",
    "RegistrationPublisher",
    "get_policy",
    "get_register",
    "get_unique_paths_to_register",
]
