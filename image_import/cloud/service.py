"""Construction of cloud image clients for a workspace.

A client is scoped to a single workspace (service instance). Building one
requires resolving the account that owns the workspace and the region that
hosts it, both of which are remote lookups that may fail.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
import logging

from image_import.exceptions import ImageImportException, ScopeException

from .client import CloudImageClient
from .region import get_region

__all__ = [
    "ClientFactory",
    "ResourceInstance",
    "ResourceLookup",
    "ServiceOptions",
    "StaticResourceLookup",
    "resolve_service_options",
]

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResourceInstance:
    """A provisioned cloud workspace."""

    instance_id: str
    region_id: str
    """The zone hosting the workspace, e.g. `dal12`."""


@dataclass(frozen=True)
class ServiceOptions:
    """Options used to build a client for a workspace."""

    user_account: str
    region: str
    zone: str
    cloud_instance_id: str
    debug: bool = False


ClientFactory = Callable[[ServiceOptions], CloudImageClient]


class ResourceLookup(ABC):
    """Lookup of the account and workspaces used to build a client."""

    @abstractmethod
    async def get_account(self) -> str:
        """Return the account owning the credentials in use."""

    @abstractmethod
    async def get_resource_instance(self, instance_id: str) -> ResourceInstance:
        """Return the workspace with the specified id."""


class StaticResourceLookup(ResourceLookup):
    """ResourceLookup backed by a fixed account and set of workspaces."""

    def __init__(self, account: str, instances: dict[str, str]) -> None:
        """Initialize the lookup with a mapping of workspace id to zone."""
        self._account = account
        self._instances = instances

    async def get_account(self) -> str:
        return self._account

    async def get_resource_instance(self, instance_id: str) -> ResourceInstance:
        if (zone := self._instances.get(instance_id)) is None:
            raise ImageImportException(f"Resource instance {instance_id} not found")
        return ResourceInstance(instance_id=instance_id, region_id=zone)


async def resolve_service_options(
    lookup: ResourceLookup, service_instance_id: str, debug: bool = False
) -> ServiceOptions:
    """Resolve the options needed to build a client for the workspace.

    Raises:
        ScopeException: If the account, workspace or region cannot be resolved.
    """
    try:
        account = await lookup.get_account()
    except ImageImportException as err:
        raise ScopeException(f"failed to get account: {err}") from err

    try:
        instance = await lookup.get_resource_instance(service_instance_id)
    except ImageImportException as err:
        raise ScopeException(f"failed to get resource instance: {err}") from err

    try:
        region = get_region(instance.region_id)
    except ImageImportException as err:
        raise ScopeException(f"failed to get region: {err}") from err

    _LOGGER.debug(
        "Resolved workspace %s in zone %s (region %s)",
        service_instance_id,
        instance.region_id,
        region,
    )
    return ServiceOptions(
        user_account=account,
        region=region,
        zone=instance.region_id,
        cloud_instance_id=service_instance_id,
        debug=debug,
    )
