"""Store module for holding managed images between reconciliation passes."""

from abc import ABC, abstractmethod
from collections.abc import Callable
from enum import Enum

from image_import.manifest import ManagedImage, NamedResource


class StoreEvent(str, Enum):
    """Enum for store events."""

    OBJECT_ADDED = "object_added"
    OBJECT_PERSISTED = "object_persisted"
    OBJECT_REMOVED = "object_removed"


class Store(ABC):
    """Abstract base class for the backing store of managed images.

    Objects handed out by the store are detached copies: changes made to them
    are only visible to other readers once written back with `persist`.
    """

    @abstractmethod
    def add_object(self, obj: ManagedImage) -> None:
        """Add a managed image to the store."""

    @abstractmethod
    def get_object(self, resource_id: NamedResource) -> ManagedImage | None:
        """Retrieve a copy of a managed image by resource identity."""

    @abstractmethod
    def list_objects(self) -> list[ManagedImage]:
        """List copies of all managed images in the store."""

    @abstractmethod
    async def request_deletion(self, resource_id: NamedResource) -> None:
        """Request deletion of a managed image.

        An object without finalizers is removed immediately, otherwise it is
        marked for deletion and removed once its finalizers are gone.

        Raises:
            ObjectNotFoundError: If the object is not in the store.
        """

    @abstractmethod
    async def persist(self, obj: ManagedImage) -> None:
        """Write the spec and status of a managed image back as a single write.

        An object marked for deletion with no remaining finalizers is removed
        from the store instead.

        Raises:
            ObjectNotFoundError: If the object is not in the store.
        """

    @abstractmethod
    def add_listener(
        self,
        event: StoreEvent,
        callback: Callable[[NamedResource, ManagedImage], None],
    ) -> Callable[[], None]:
        """Register a callback for a specific store event.

        Returns a callable that can be called to remove the listener.
        """
