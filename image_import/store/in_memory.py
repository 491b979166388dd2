"""Module for in memory object store."""

from collections import defaultdict
from collections.abc import Callable
import copy
import datetime
import logging
from typing import DefaultDict

from image_import.exceptions import ObjectNotFoundError
from image_import.manifest import ManagedImage, NamedResource

from .store import Store, StoreEvent

_LOGGER = logging.getLogger(__name__)


class InMemoryStore(Store):
    """In-memory implementation of the Store interface.

    Stores managed images keyed by NamedResource and supports event listeners
    for added, persisted and removed objects.
    """

    def __init__(self) -> None:
        """Initialize the InMemoryStore."""
        self._objects: dict[NamedResource, ManagedImage] = {}
        self._listeners: DefaultDict[
            StoreEvent, list[Callable[[NamedResource, ManagedImage], None]]
        ] = defaultdict(list)

    def add_object(self, obj: ManagedImage) -> None:
        """Add a managed image to the store."""
        resource_id = obj.resource_id
        if resource_id in self._objects:
            _LOGGER.debug("Updating existing object %s in store", resource_id)
        else:
            _LOGGER.debug("Adding object %s to store", resource_id)
        self._objects[resource_id] = copy.deepcopy(obj)
        self._fire_event(StoreEvent.OBJECT_ADDED, resource_id, obj)

    def get_object(self, resource_id: NamedResource) -> ManagedImage | None:
        """Retrieve a copy of a managed image by resource identity."""
        if (obj := self._objects.get(resource_id)) is None:
            return None
        return copy.deepcopy(obj)

    def list_objects(self) -> list[ManagedImage]:
        """List copies of all managed images in the store."""
        return [copy.deepcopy(obj) for obj in self._objects.values()]

    async def request_deletion(self, resource_id: NamedResource) -> None:
        """Request deletion of a managed image."""
        if (obj := self._objects.get(resource_id)) is None:
            raise ObjectNotFoundError(f"Object {resource_id} not found in store")
        if not obj.deletion_requested:
            obj = copy.deepcopy(obj)
            obj.deletion_timestamp = datetime.datetime.now(
                datetime.timezone.utc
            ).isoformat()
        _LOGGER.info("Deletion requested for %s", resource_id)
        await self.persist(obj)

    async def persist(self, obj: ManagedImage) -> None:
        """Write the spec and status of a managed image back as a single write."""
        resource_id = obj.resource_id
        if resource_id not in self._objects:
            raise ObjectNotFoundError(f"Object {resource_id} not found in store")
        if obj.deletion_requested and not obj.finalizers:
            await self._remove(resource_id)
            _LOGGER.info("Removed object %s from store", resource_id)
            del self._objects[resource_id]
            self._fire_event(StoreEvent.OBJECT_REMOVED, resource_id, obj)
            return
        await self._write(obj)
        _LOGGER.debug("Persisted object %s (%s)", resource_id, obj.status)
        self._objects[resource_id] = copy.deepcopy(obj)
        self._fire_event(StoreEvent.OBJECT_PERSISTED, resource_id, obj)

    async def _write(self, obj: ManagedImage) -> None:
        """Write the object to durable storage, if any."""

    async def _remove(self, resource_id: NamedResource) -> None:
        """Remove the object from durable storage, if any."""

    def add_listener(
        self,
        event: StoreEvent,
        callback: Callable[[NamedResource, ManagedImage], None],
    ) -> Callable[[], None]:
        """Register a callback for a specific store event."""
        self._listeners[event].append(callback)

        def remove() -> None:
            if callback in self._listeners[event]:
                self._listeners[event].remove(callback)

        return remove

    def _fire_event(
        self, event: StoreEvent, resource_id: NamedResource, obj: ManagedImage
    ) -> None:
        """Fire an event to all registered listeners."""
        for cb in list(self._listeners[event]):  # Iterate over a copy for safe removal
            try:
                cb(resource_id, copy.deepcopy(obj))
            except Exception:
                _LOGGER.exception("Store listener callback failed for event %s", event)
