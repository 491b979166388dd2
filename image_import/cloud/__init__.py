"""The cloud module.

This module provides the interface to the cloud image service, an in-memory
implementation of it, and the lookups used to build a client for a workspace.
"""

from .client import (
    BUCKET_ACCESS,
    CloudImageClient,
    ImageReference,
    ImportJob,
    ImportJobRequest,
    JobReference,
    JobState,
)
from .in_memory import InMemoryImageClient
from .region import get_region
from .service import (
    ClientFactory,
    ResourceInstance,
    ResourceLookup,
    ServiceOptions,
    StaticResourceLookup,
    resolve_service_options,
)

__all__ = [
    "BUCKET_ACCESS",
    "ClientFactory",
    "CloudImageClient",
    "ImageReference",
    "ImportJob",
    "ImportJobRequest",
    "InMemoryImageClient",
    "JobReference",
    "JobState",
    "ResourceInstance",
    "ResourceLookup",
    "ServiceOptions",
    "StaticResourceLookup",
    "get_region",
    "resolve_service_options",
]
