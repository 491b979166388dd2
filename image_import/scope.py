"""Scope around a single managed image for one reconciliation pass.

A scope pairs a managed image with the client for its cloud workspace and the
store it is persisted in. The scope works on an in-memory copy of the image:
accessors mutate the copy freely and `close` writes it back to the store in a
single step. Use `image_scope` so that the write happens on every exit path.

The remote operations are written to be safely repeated. `ensure_image` never
submits a second import job for an image that already exists, or while the
previous job is still running, which is what allows an abandoned pass to be
re-run from scratch.
"""

from collections.abc import AsyncGenerator
import contextlib
import copy
from dataclasses import dataclass
import logging

from .cloud import (
    BUCKET_ACCESS,
    ClientFactory,
    CloudImageClient,
    ImageReference,
    ImportJob,
    ImportJobRequest,
    JobReference,
    ResourceLookup,
    resolve_service_options,
)
from .events import EventRecorder, LoggingEventRecorder
from .exceptions import CloudException, CloudObjectNotFoundError, ScopeException
from .manifest import ImageState, ManagedImage
from .store import Store

__all__ = [
    "ImageScopeParams",
    "ImageScope",
    "ImageFound",
    "ImportPending",
    "ImportCreated",
    "EnsureResult",
    "new_image_scope",
    "image_scope",
]

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImageFound:
    """The image already exists in the cloud."""

    image: ImageReference


@dataclass(frozen=True)
class ImportPending:
    """A previous import job is still running."""

    job: ImportJob


@dataclass(frozen=True)
class ImportCreated:
    """A new import job was submitted."""

    job: JobReference


EnsureResult = ImageFound | ImportPending | ImportCreated


@dataclass
class ImageScopeParams:
    """Input parameters used to create a new ImageScope."""

    store: Store | None
    image: ManagedImage | None
    resource_lookup: ResourceLookup
    client_factory: ClientFactory
    recorder: EventRecorder | None = None
    logger: logging.Logger | None = None
    debug: bool = False


class ImageScope:
    """Scope defined around a managed image."""

    def __init__(
        self,
        store: Store,
        image: ManagedImage,
        client: CloudImageClient,
        recorder: EventRecorder,
        logger: logging.Logger,
    ) -> None:
        """Initialize the scope, prefer `new_image_scope` to build one."""
        self._store = store
        self._client = client
        self._recorder = recorder
        self._closed = False
        self.image = image
        self.logger = logger

    @property
    def client(self) -> CloudImageClient:
        """The client for the workspace of the image."""
        return self._client

    @property
    def closed(self) -> bool:
        """True once the image has been persisted."""
        return self._closed

    async def _find_image(self, name: str) -> ImageReference | None:
        """Return the first image in listing order with the specified name."""
        images = await self._client.list_images()
        matches = [img for img in images if img.name == name]
        if not matches:
            return None
        if len(matches) > 1:
            self.logger.warning(
                "Found %d images named %s, using the first listed (%s)",
                len(matches),
                name,
                matches[0].image_id,
            )
        return matches[0]

    async def ensure_image(self) -> EnsureResult:
        """Ensure the image exists in the cloud or is being imported.

        Returns `ImageFound` when an image with the same name exists,
        `ImportPending` when the last import job is still running, and
        `ImportCreated` when a new import job was submitted. The caller is
        expected to record the job id of a new job in the status.
        """
        spec = self.image.spec
        name = self.image.name
        resource_id = self.image.resource_id

        try:
            existing = await self._find_image(name)
        except CloudException as err:
            self._recorder.warn(
                resource_id,
                "FailedRetrieveImage",
                f"Failed to retrieve image {name!r} - {err}",
            )
            raise
        if existing is not None:
            self.logger.info("Image %s already exists", name)
            self._recorder.success(
                resource_id, "SuccessfulRetrieveImage", f"Retrieved image {name!r}"
            )
            return ImageFound(existing)

        if (last_job := await self.get_import_job()) is not None:
            if not last_job.state.is_terminal:
                self.logger.info(
                    "Previous import job %s not yet finished - %s",
                    last_job.job_id,
                    last_job.state,
                )
                return ImportPending(last_job)

        request = ImportJobRequest(
            image_name=name,
            bucket_name=spec.bucket,
            bucket_access=BUCKET_ACCESS,
            region=spec.region,
            image_filename=spec.object_key,
            storage_type=spec.storage_type,
        )
        try:
            job_ref = await self._client.create_import_job(request)
        except CloudException as err:
            self.logger.info("Unable to create new import job request")
            self._recorder.warn(
                resource_id,
                "FailedCreateImageImportJob",
                f"Failed image import job creation - {err}",
            )
            raise
        self.logger.info("New import job request created")
        self._recorder.success(
            resource_id,
            "SuccessfulCreateImageImportJob",
            f"Created image import job {job_ref.job_id!r}",
        )
        return ImportCreated(job_ref)

    async def get_import_job(self) -> ImportJob | None:
        """Return the last import job of the workspace without changing the status."""
        try:
            return await self._client.get_import_job(
                self.image.spec.service_instance_id
            )
        except CloudException as err:
            self._recorder.warn(
                self.image.resource_id,
                "FailedRetrieveImageImportJob",
                f"Failed to retrieve image import job - {err}",
            )
            raise

    async def delete_image(self) -> None:
        """Delete the image tracked in the status.

        The status is left untouched; the caller clears the image id once
        this returns.
        """
        image_id = self.get_image_id()
        try:
            await self._client.delete_image(image_id)
        except CloudObjectNotFoundError:
            self.logger.info("Image %s already deleted", image_id)
        except CloudException as err:
            self._recorder.warn(
                self.image.resource_id,
                "FailedDeleteImage",
                f"Failed image deletion - {err}",
            )
            raise
        self._recorder.success(
            self.image.resource_id,
            "SuccessfulDeleteImage",
            f"Deleted image {image_id!r}",
        )

    async def delete_import_job(self) -> None:
        """Delete the import job tracked in the status.

        The status is left untouched; the caller clears the job id once this
        returns.
        """
        job_id = self.get_job_id()
        try:
            await self._client.delete_job(job_id)
        except CloudObjectNotFoundError:
            self.logger.info("Import job %s already deleted", job_id)
        except CloudException as err:
            self._recorder.warn(
                self.image.resource_id,
                "FailedDeleteImageImportJob",
                f"Failed image import job deletion - {err}",
            )
            raise
        self._recorder.success(
            self.image.resource_id,
            "SuccessfulDeleteImageImportJob",
            f"Deleted image import job {job_id!r}",
        )

    def set_ready(self) -> None:
        """Set the status as ready for the image."""
        self.image.status.ready = True

    def set_not_ready(self) -> None:
        """Set the status as not ready for the image."""
        self.image.status.ready = False

    def is_ready(self) -> bool:
        """Return the ready status for the image."""
        return self.image.status.ready

    def set_image_id(self, image_id: str | None) -> None:
        """Set the id for the image, ignoring a missing id."""
        if image_id is not None:
            self.image.status.image_id = image_id

    def get_image_id(self) -> str:
        """Return the id for the image, empty when unset."""
        return self.image.status.image_id

    def set_image_state(self, state: ImageState) -> None:
        """Set the observed state of the image."""
        self.image.status.image_state = state

    def get_image_state(self) -> ImageState:
        """Return the observed state of the image."""
        return self.image.status.image_state

    def set_job_id(self, job_id: str) -> None:
        """Set the id for the import image job."""
        self.image.status.job_id = job_id

    def get_job_id(self) -> str:
        """Return the id for the import image job, empty when unset."""
        return self.image.status.job_id

    async def close(self) -> None:
        """Close the scope, persisting the image spec and status.

        Raises:
            ScopeException: If the scope was already closed or the status is
                inconsistent.
        """
        if self._closed:
            raise ScopeException(
                f"Scope for {self.image.namespaced_name} already closed"
            )
        self._closed = True
        if not self.image.status.is_consistent():
            raise ScopeException(
                f"Refusing to persist {self.image.namespaced_name} with inconsistent "
                f"status (ready={self.image.status.ready}, "
                f"imageID={self.image.status.image_id!r})"
            )
        await self._store.persist(self.image)


async def new_image_scope(params: ImageScopeParams) -> ImageScope:
    """Create a new ImageScope from the supplied parameters.

    Raises:
        ScopeException: If the store or image is missing, or the client for
            the workspace cannot be built.
    """
    if params.store is None:
        raise ScopeException("failed to generate new scope from missing store")
    if params.image is None:
        raise ScopeException("failed to generate new scope from missing image")
    logger = params.logger or _LOGGER

    options = await resolve_service_options(
        params.resource_lookup,
        params.image.spec.service_instance_id,
        debug=params.debug or logger.isEnabledFor(logging.DEBUG),
    )
    try:
        client = params.client_factory(options)
    except Exception as err:
        raise ScopeException(f"failed to create cloud image client: {err}") from err

    return ImageScope(
        store=params.store,
        image=copy.deepcopy(params.image),
        client=client,
        recorder=params.recorder or LoggingEventRecorder(logger),
        logger=logger,
    )


@contextlib.asynccontextmanager
async def image_scope(params: ImageScopeParams) -> AsyncGenerator[ImageScope, None]:
    """Context manager that opens an ImageScope and closes it on exit.

    The image is persisted exactly once when the context exits, including
    when the body raises.
    """
    scope = await new_image_scope(params)
    try:
        yield scope
    finally:
        await scope.close()
