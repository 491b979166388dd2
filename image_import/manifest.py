"""Representation of a managed image resource.

A `ManagedImage` pairs the desired state of an image imported from cloud
object storage (the spec) with the state observed by the controller (the
status). Objects are parsed from and rendered to Kubernetes-shaped documents
so they may be stored alongside other cluster resources.
"""

from dataclasses import dataclass, field
from enum import StrEnum
import logging
from typing import Any, ClassVar

from mashumaro import DataClassDictMixin, field_options
from mashumaro.config import BaseConfig

from .exceptions import InputException

__all__ = [
    "NamedResource",
    "ImageState",
    "ImageSpec",
    "ImageStatus",
    "ManagedImage",
    "IMAGE_KIND",
    "IMAGE_FINALIZER",
]

_LOGGER = logging.getLogger(__name__)


# Match a prefix of apiVersion to ensure we have the right type of object.
# We don't check specific versions for forward compatibility on upgrade.
IMAGE_DOMAIN = "infrastructure.cluster.x-k8s.io"
IMAGE_API_VERSION = f"{IMAGE_DOMAIN}/v1beta1"
IMAGE_KIND = "IBMPowerVSImage"
IMAGE_FINALIZER = "ibmpowervsimage.infrastructure.cluster.x-k8s.io"
DEFAULT_NAMESPACE = "default"
DEFAULT_STORAGE_TYPE = "tier1"

REQUIRED_SPEC_FIELDS = ("serviceInstanceID", "bucket", "object", "region")


def _check_version(doc: dict[str, Any], version: str) -> None:
    """Assert that the resource has the specified version."""
    if not (api_version := doc.get("apiVersion")):
        raise InputException(f"Invalid object missing apiVersion: {doc}")
    if not api_version.startswith(version):
        raise InputException(f"Invalid object expected '{version}': {doc}")


@dataclass(frozen=True, order=True)
class NamedResource:
    """Identifier for a stored resource."""

    kind: str
    namespace: str | None
    name: str

    @property
    def namespaced_name(self) -> str:
        if self.namespace:
            return f"{self.namespace}/{self.name}"
        return self.name

    def __str__(self) -> str:
        """Return the kind and namespaced name concatenated as an id."""
        return f"{self.kind}/{self.namespaced_name}"


class ImageState(StrEnum):
    """Observed state of the image in the cloud."""

    UNKNOWN = "unknown"
    IMPORTING = "importing"
    AVAILABLE = "available"
    FAILED = "failed"


@dataclass(frozen=True)
class ImageSpec(DataClassDictMixin):
    """Desired state of an image, immutable once set."""

    service_instance_id: str = field(
        metadata=field_options(alias="serviceInstanceID")
    )
    """The cloud workspace the image is imported into."""

    bucket: str
    """The object storage bucket holding the image file."""

    object_key: str = field(metadata=field_options(alias="object"))
    """The key of the image file within the bucket."""

    region: str
    """The object storage region of the bucket."""

    storage_type: str = field(
        default=DEFAULT_STORAGE_TYPE, metadata=field_options(alias="storageType")
    )
    """The storage tier for the imported image."""

    class Config(BaseConfig):
        serialize_by_alias = True


@dataclass
class ImageStatus(DataClassDictMixin):
    """Observed state of an image, owned by the controller."""

    ready: bool = False
    """True once the image is available in the cloud."""

    image_id: str = field(default="", metadata=field_options(alias="imageID"))
    """The cloud identifier of the image, empty until ready."""

    image_state: ImageState = field(
        default=ImageState.UNKNOWN, metadata=field_options(alias="imageState")
    )
    """The last observed state of the image."""

    job_id: str = field(default="", metadata=field_options(alias="jobID"))
    """The identifier of the last import job, empty when unset."""

    def is_consistent(self) -> bool:
        """Return True if the image id is set exactly when the image is ready."""
        return self.ready == (self.image_id != "")

    class Config(BaseConfig):
        serialize_by_alias = True


@dataclass
class ManagedImage(DataClassDictMixin):
    """An image imported from object storage and tracked by the controller."""

    kind: ClassVar[str] = IMAGE_KIND
    """The kind of the object."""

    name: str
    """The name of the image, also used as the lookup key in the cloud."""

    namespace: str
    """The namespace of the object."""

    spec: ImageSpec
    """The desired state of the image."""

    status: ImageStatus = field(default_factory=ImageStatus)
    """The observed state of the image."""

    finalizers: list[str] = field(default_factory=list)
    """Finalizers that must be removed before the object is deleted."""

    deletion_timestamp: str | None = None
    """Set when deletion of the object has been requested."""

    @classmethod
    def parse_doc(cls, doc: dict[str, Any]) -> "ManagedImage":
        """Parse a ManagedImage from a kubernetes resource object."""
        _check_version(doc, IMAGE_DOMAIN)
        if (kind := doc.get("kind")) != IMAGE_KIND:
            raise InputException(f"Invalid {cls} unexpected kind {kind}: {doc}")
        if not (metadata := doc.get("metadata")):
            raise InputException(f"Invalid {cls} missing metadata: {doc}")
        if not (name := metadata.get("name")):
            raise InputException(f"Invalid {cls} missing metadata.name: {doc}")
        if not (spec := doc.get("spec")):
            raise InputException(f"Invalid {cls} missing spec: {doc}")
        for key in REQUIRED_SPEC_FIELDS:
            if not spec.get(key):
                raise InputException(f"Invalid {cls} missing spec.{key}: {doc}")
        return cls(
            name=name,
            namespace=metadata.get("namespace") or DEFAULT_NAMESPACE,
            spec=ImageSpec.from_dict(spec),
            status=ImageStatus.from_dict(doc.get("status") or {}),
            finalizers=list(metadata.get("finalizers") or ()),
            deletion_timestamp=metadata.get("deletionTimestamp"),
        )

    def to_doc(self) -> dict[str, Any]:
        """Render the object as a kubernetes resource object."""
        metadata: dict[str, Any] = {
            "name": self.name,
            "namespace": self.namespace,
        }
        if self.finalizers:
            metadata["finalizers"] = list(self.finalizers)
        if self.deletion_timestamp:
            metadata["deletionTimestamp"] = self.deletion_timestamp
        return {
            "apiVersion": IMAGE_API_VERSION,
            "kind": self.kind,
            "metadata": metadata,
            "spec": self.spec.to_dict(),
            "status": self.status.to_dict(),
        }

    @property
    def resource_id(self) -> NamedResource:
        """Identifier for the object in a store."""
        return NamedResource(self.kind, self.namespace, self.name)

    @property
    def namespaced_name(self) -> str:
        """Return the namespace and name concatenated as an id."""
        return f"{self.namespace}/{self.name}"

    @property
    def deletion_requested(self) -> bool:
        """Return True if the object is being deleted."""
        return self.deletion_timestamp is not None

    def has_finalizer(self, finalizer: str) -> bool:
        """Return True if the finalizer is present on the object."""
        return finalizer in self.finalizers

    def add_finalizer(self, finalizer: str) -> None:
        """Add the finalizer to the object if not already present."""
        if finalizer not in self.finalizers:
            _LOGGER.debug("Adding finalizer %s to %s", finalizer, self.namespaced_name)
            self.finalizers.append(finalizer)

    def remove_finalizer(self, finalizer: str) -> None:
        """Remove the finalizer from the object if present."""
        if finalizer in self.finalizers:
            _LOGGER.debug(
                "Removing finalizer %s from %s", finalizer, self.namespaced_name
            )
            self.finalizers.remove(finalizer)

    class Config(BaseConfig):
        omit_none = True
