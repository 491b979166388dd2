"""
Image Controller implementation.

This controller reconciles managed images: it imports each image from object
storage into its cloud workspace, follows the import job until the image is
available, and removes the image and its job when the object is deleted.

Key Concepts:
    - ManagedImage: The desired spec and observed status of an image.
    - ImageScope: The image, its cloud client and its store for one pass.
    - Reconciliation pass: One call to `reconcile`, safe to repeat.

Each pass reads the object from the store, decides the next action from the
remote state, mutates the status in memory and persists it once on exit.
Scheduling of passes is left to the caller, guided by the returned
`ReconcileResult`.
"""

from dataclasses import dataclass
import logging

from .cloud import ClientFactory, JobState, ResourceLookup
from .config import ImageControllerConfig
from .events import EventRecorder
from .manifest import IMAGE_FINALIZER, ImageState, NamedResource
from .scope import (
    ImageFound,
    ImageScope,
    ImageScopeParams,
    ImportCreated,
    image_scope,
)
from .store import Store

__all__ = [
    "ImageController",
    "ReconcileResult",
]

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReconcileResult:
    """Outcome of a reconciliation pass."""

    requeue_after: float | None = None
    """Seconds after which the resource should be reconciled again, if any."""

    @property
    def requeue(self) -> bool:
        """Return True if the resource should be reconciled again."""
        return self.requeue_after is not None


class ImageController:
    """Controller for reconciling managed images."""

    def __init__(
        self,
        store: Store,
        resource_lookup: ResourceLookup,
        client_factory: ClientFactory,
        recorder: EventRecorder | None = None,
        config: ImageControllerConfig | None = None,
    ) -> None:
        """
        Initialize the controller.

        Args:
            store: The backing store holding the managed images
            resource_lookup: Lookup of the account and workspaces of images
            client_factory: Builds a cloud image client for a workspace
            recorder: Sink for events about the images
            config: The configuration for the controller
        """
        self._store = store
        self._resource_lookup = resource_lookup
        self._client_factory = client_factory
        self._recorder = recorder
        self._config = config or ImageControllerConfig()

    async def reconcile(self, resource_id: NamedResource) -> ReconcileResult:
        """Run a single reconciliation pass for the managed image.

        Errors from the cloud image service are raised after the status
        accumulated so far has been persisted; the caller is expected to
        retry the pass later.
        """
        if (image := self._store.get_object(resource_id)) is None:
            _LOGGER.info("Image %s not found in store, skipping", resource_id)
            return ReconcileResult()

        _LOGGER.info("Reconciling %s", resource_id)
        params = ImageScopeParams(
            store=self._store,
            image=image,
            resource_lookup=self._resource_lookup,
            client_factory=self._client_factory,
            recorder=self._recorder,
            logger=_LOGGER,
            debug=self._config.debug,
        )
        async with image_scope(params) as scope:
            if scope.image.deletion_requested:
                return await self._reconcile_delete(scope)
            return await self._reconcile_normal(scope)

    async def _reconcile_normal(self, scope: ImageScope) -> ReconcileResult:
        scope.image.add_finalizer(IMAGE_FINALIZER)

        if scope.get_job_id() and scope.get_image_state() == ImageState.IMPORTING:
            job = await scope.get_import_job()
            if (
                job is not None
                and job.job_id == scope.get_job_id()
                and job.state == JobState.FAILED
            ):
                _LOGGER.warning(
                    "Import job %s for %s failed: %s",
                    job.job_id,
                    scope.image.namespaced_name,
                    job.message,
                )
                scope.set_not_ready()
                scope.set_image_state(ImageState.FAILED)
                return ReconcileResult(requeue_after=self._config.failed_retry_interval)

        result = await scope.ensure_image()
        if isinstance(result, ImageFound):
            scope.set_image_id(result.image.image_id)
            scope.set_ready()
            scope.set_image_state(ImageState.AVAILABLE)
            _LOGGER.info(
                "Image %s is available (%s)",
                scope.image.namespaced_name,
                result.image.image_id,
            )
            return ReconcileResult()

        if scope.get_image_id():
            # The image is no longer listed so there is nothing left to delete
            _LOGGER.warning(
                "Image %s (%s) no longer exists, importing it again",
                scope.image.namespaced_name,
                scope.get_image_id(),
            )
            scope.set_image_id("")

        if isinstance(result, ImportCreated):
            scope.set_job_id(result.job.job_id)
        else:
            _LOGGER.debug(
                "Waiting on import job %s (%s) for %s",
                result.job.job_id,
                result.job.state,
                scope.image.namespaced_name,
            )
            if (
                not scope.get_job_id()
                or scope.get_image_state() != ImageState.IMPORTING
            ):
                # Track a job submitted by a pass that never persisted
                scope.set_job_id(result.job.job_id)
        scope.set_not_ready()
        scope.set_image_state(ImageState.IMPORTING)
        return ReconcileResult(requeue_after=self._config.job_poll_interval)

    async def _reconcile_delete(self, scope: ImageScope) -> ReconcileResult:
        _LOGGER.info("Deleting %s", scope.image.namespaced_name)
        if scope.get_image_id():
            await scope.delete_image()
            scope.set_not_ready()
            scope.set_image_id("")

        if scope.get_job_id():
            await scope.delete_import_job()
            scope.set_job_id("")

        scope.image.remove_finalizer(IMAGE_FINALIZER)
        return ReconcileResult()
