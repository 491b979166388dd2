"""Test fixtures for cos-image-import."""

import pytest
import yaml

from image_import.cloud import InMemoryImageClient, StaticResourceLookup
from image_import.events import InMemoryEventRecorder
from image_import.manifest import ManagedImage
from image_import.scope import ImageScopeParams
from image_import.store import InMemoryStore

SERVICE_INSTANCE_ID = "instance-1"
ACCOUNT = "account-1"
ZONE = "dal12"

IMAGE_DOC = f"""
apiVersion: infrastructure.cluster.x-k8s.io/v1beta1
kind: IBMPowerVSImage
metadata:
  name: boot-img
  namespace: default
spec:
  serviceInstanceID: {SERVICE_INSTANCE_ID}
  bucket: b1
  object: o1
  region: us-south
  storageType: tier1
"""


@pytest.fixture(name="image")
def image_fixture() -> ManagedImage:
    """Create a managed image with an empty status."""
    return ManagedImage.parse_doc(yaml.safe_load(IMAGE_DOC))


@pytest.fixture(name="store")
def store_fixture(image: ManagedImage) -> InMemoryStore:
    """Create an in-memory store holding the image."""
    store = InMemoryStore()
    store.add_object(image)
    return store


@pytest.fixture(name="client")
def client_fixture() -> InMemoryImageClient:
    """Create an in-memory cloud image client for the workspace."""
    return InMemoryImageClient(SERVICE_INSTANCE_ID)


@pytest.fixture(name="lookup")
def lookup_fixture() -> StaticResourceLookup:
    """Create a resource lookup that knows about the workspace."""
    return StaticResourceLookup(ACCOUNT, {SERVICE_INSTANCE_ID: ZONE})


@pytest.fixture(name="recorder")
def recorder_fixture() -> InMemoryEventRecorder:
    """Create an event recorder that keeps events in memory."""
    return InMemoryEventRecorder()


@pytest.fixture(name="scope_params")
def scope_params_fixture(
    store: InMemoryStore,
    image: ManagedImage,
    lookup: StaticResourceLookup,
    client: InMemoryImageClient,
    recorder: InMemoryEventRecorder,
) -> ImageScopeParams:
    """Create the parameters for a scope around the image."""
    return ImageScopeParams(
        store=store,
        image=image,
        resource_lookup=lookup,
        client_factory=lambda options: client,
        recorder=recorder,
    )
