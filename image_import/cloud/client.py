"""Interface to the cloud image service.

The cloud image service materializes bootable images from files in object
storage using asynchronous import jobs. This module defines the narrow set of
operations the controller relies on so that any backend implementing them is
substitutable.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import StrEnum

from mashumaro import DataClassDictMixin, field_options
from mashumaro.config import BaseConfig

__all__ = [
    "BUCKET_ACCESS",
    "CloudImageClient",
    "ImageReference",
    "ImportJob",
    "ImportJobRequest",
    "JobReference",
    "JobState",
]


BUCKET_ACCESS = "public"
"""Access policy of the bucket holding the image file."""


class JobState(StrEnum):
    """State of an import job in the cloud."""

    QUEUED = "queued"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        """Return True if the job will not change state again."""
        return self in (JobState.COMPLETED, JobState.FAILED)


@dataclass(frozen=True)
class ImageReference:
    """An image known to the cloud image service."""

    image_id: str
    name: str
    state: str | None = None


@dataclass(frozen=True)
class JobReference:
    """Reference to a newly submitted import job."""

    job_id: str


@dataclass(frozen=True)
class ImportJob:
    """An asynchronous import job running in the cloud."""

    job_id: str
    state: JobState
    message: str | None = None


@dataclass(frozen=True, kw_only=True)
class ImportJobRequest(DataClassDictMixin):
    """Request body for importing an image from object storage."""

    image_name: str = field(metadata=field_options(alias="imageName"))
    bucket_name: str = field(metadata=field_options(alias="bucketName"))
    region: str
    image_filename: str = field(metadata=field_options(alias="imageFilename"))
    storage_type: str = field(metadata=field_options(alias="storageType"))
    bucket_access: str = field(
        default=BUCKET_ACCESS, metadata=field_options(alias="bucketAccess")
    )

    class Config(BaseConfig):
        serialize_by_alias = True


class CloudImageClient(ABC):
    """Client for the cloud image service scoped to a single workspace.

    Implementations raise `CloudException` when a remote call fails and
    `CloudObjectNotFoundError` when a delete targets a missing object.
    """

    @abstractmethod
    async def list_images(self) -> list[ImageReference]:
        """Return all images in the workspace in listing order."""

    @abstractmethod
    async def create_import_job(self, request: ImportJobRequest) -> JobReference:
        """Submit a new job importing an image from object storage."""

    @abstractmethod
    async def get_import_job(self, service_instance_id: str) -> ImportJob | None:
        """Return the most recent import job of the workspace, if any."""

    @abstractmethod
    async def delete_image(self, image_id: str) -> None:
        """Delete the image with the specified id."""

    @abstractmethod
    async def delete_job(self, job_id: str) -> None:
        """Delete the import job with the specified id."""
