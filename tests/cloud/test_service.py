"""Tests for building the options of a cloud image client."""

import pytest

from image_import.cloud import (
    ResourceInstance,
    ResourceLookup,
    ServiceOptions,
    StaticResourceLookup,
    resolve_service_options,
)
from image_import.exceptions import CloudException, ScopeException


class FailingAccountLookup(ResourceLookup):
    """Lookup that cannot resolve the account."""

    async def get_account(self) -> str:
        raise CloudException("get_account", "unauthorized")

    async def get_resource_instance(self, instance_id: str) -> ResourceInstance:
        raise AssertionError("Not expected to be called")


async def test_resolve_service_options() -> None:
    """Test resolving the account, zone and region of a workspace."""
    lookup = StaticResourceLookup("account-1", {"instance-1": "lon06"})
    options = await resolve_service_options(lookup, "instance-1", debug=True)
    assert options == ServiceOptions(
        user_account="account-1",
        region="lon",
        zone="lon06",
        cloud_instance_id="instance-1",
        debug=True,
    )


async def test_resolve_account_failure() -> None:
    """Test a failure resolving the account."""
    with pytest.raises(ScopeException, match="failed to get account"):
        await resolve_service_options(FailingAccountLookup(), "instance-1")


async def test_resolve_unknown_instance() -> None:
    """Test a failure resolving the workspace."""
    lookup = StaticResourceLookup("account-1", {})
    with pytest.raises(ScopeException, match="failed to get resource instance"):
        await resolve_service_options(lookup, "instance-1")


async def test_resolve_unknown_zone() -> None:
    """Test a failure resolving the region of the workspace."""
    lookup = StaticResourceLookup("account-1", {"instance-1": "mars01"})
    with pytest.raises(ScopeException, match="failed to get region"):
        await resolve_service_options(lookup, "instance-1")
