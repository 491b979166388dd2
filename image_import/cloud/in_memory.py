"""Module for an in memory cloud image service."""

from collections import Counter
from dataclasses import dataclass, replace
import itertools
import logging

from image_import.exceptions import CloudException, CloudObjectNotFoundError

from .client import (
    CloudImageClient,
    ImageReference,
    ImportJob,
    ImportJobRequest,
    JobReference,
    JobState,
)

_LOGGER = logging.getLogger(__name__)

IMAGE_STATE_ACTIVE = "active"


@dataclass
class _JobRecord:
    job: ImportJob
    request: ImportJobRequest


class InMemoryImageClient(CloudImageClient):
    """In-memory implementation of the CloudImageClient interface.

    Holds the images and import jobs of a single workspace. Jobs do not make
    progress on their own; callers drive them with `start_job`, `complete_job`
    and `fail_job`. Every call is recorded so callers can assert on the side
    effects issued against the service.
    """

    def __init__(self, cloud_instance_id: str) -> None:
        """Initialize the InMemoryImageClient."""
        self._cloud_instance_id = cloud_instance_id
        self._images: list[ImageReference] = []
        self._jobs: dict[str, _JobRecord] = {}
        self._ids = itertools.count(1)
        self._failures: dict[str, str] = {}
        self.calls: Counter[str] = Counter()
        self.requests: list[ImportJobRequest] = []

    @property
    def cloud_instance_id(self) -> str:
        """The workspace served by this client."""
        return self._cloud_instance_id

    @property
    def images(self) -> list[ImageReference]:
        """The images currently in the workspace."""
        return list(self._images)

    def inject_failure(self, operation: str, message: str) -> None:
        """Make every following call to the operation fail with the message."""
        self._failures[operation] = message

    def clear_failures(self) -> None:
        """Remove all injected failures."""
        self._failures.clear()

    def add_image(self, name: str, image_id: str | None = None) -> ImageReference:
        """Add an image to the workspace as if created out of band."""
        image = ImageReference(
            image_id=image_id or f"image-{next(self._ids)}",
            name=name,
            state=IMAGE_STATE_ACTIVE,
        )
        self._images.append(image)
        return image

    def get_job(self, job_id: str) -> ImportJob:
        """Return the job with the specified id."""
        if (record := self._jobs.get(job_id)) is None:
            raise ValueError(f"Unknown import job {job_id}")
        return record.job

    def start_job(self, job_id: str) -> None:
        """Move a queued job to in progress."""
        self._set_state(job_id, JobState.IN_PROGRESS)

    def complete_job(self, job_id: str) -> ImageReference:
        """Complete the job, materializing the image it imports."""
        self._set_state(job_id, JobState.COMPLETED)
        return self.add_image(self._jobs[job_id].request.image_name)

    def fail_job(self, job_id: str, message: str = "import failed") -> None:
        """Mark the job as failed without materializing an image."""
        self._set_state(job_id, JobState.FAILED, message)

    def _set_state(
        self, job_id: str, state: JobState, message: str | None = None
    ) -> None:
        record = self._jobs.get(job_id)
        if record is None:
            raise ValueError(f"Unknown import job {job_id}")
        _LOGGER.debug("Import job %s moved to %s", job_id, state)
        record.job = replace(record.job, state=state, message=message)

    def _call(self, operation: str) -> None:
        self.calls[operation] += 1
        if (message := self._failures.get(operation)) is not None:
            raise CloudException(operation, message)

    async def list_images(self) -> list[ImageReference]:
        """Return all images in the workspace in listing order."""
        self._call("list_images")
        return list(self._images)

    async def create_import_job(self, request: ImportJobRequest) -> JobReference:
        """Submit a new job importing an image from object storage."""
        self._call("create_import_job")
        job_id = f"job-{next(self._ids)}"
        self._jobs[job_id] = _JobRecord(
            job=ImportJob(job_id=job_id, state=JobState.QUEUED), request=request
        )
        self.requests.append(request)
        _LOGGER.debug("Created import job %s for %s", job_id, request.image_name)
        return JobReference(job_id=job_id)

    async def get_import_job(self, service_instance_id: str) -> ImportJob | None:
        """Return the most recent import job of the workspace, if any."""
        self._call("get_import_job")
        if service_instance_id != self._cloud_instance_id or not self._jobs:
            return None
        return next(reversed(self._jobs.values())).job

    async def delete_image(self, image_id: str) -> None:
        """Delete the image with the specified id."""
        self._call("delete_image")
        for image in self._images:
            if image.image_id == image_id:
                self._images.remove(image)
                return
        raise CloudObjectNotFoundError("delete_image", f"image {image_id} not found")

    async def delete_job(self, job_id: str) -> None:
        """Delete the import job with the specified id."""
        self._call("delete_job")
        if self._jobs.pop(job_id, None) is None:
            raise CloudObjectNotFoundError("delete_job", f"job {job_id} not found")
