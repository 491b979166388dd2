"""Recording of human-observable outcomes for managed resources.

Events are a best-effort notification sink: recording never affects the
outcome of a reconciliation pass and failures to record are only logged.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import StrEnum
import logging

from .manifest import NamedResource

__all__ = [
    "EventType",
    "Event",
    "EventRecorder",
    "LoggingEventRecorder",
    "InMemoryEventRecorder",
]

_LOGGER = logging.getLogger(__name__)


class EventType(StrEnum):
    """Severity of an event."""

    NORMAL = "Normal"
    WARNING = "Warning"


@dataclass(frozen=True)
class Event:
    """An outcome recorded against a resource."""

    resource_id: NamedResource
    event_type: EventType
    reason: str
    message: str

    def __str__(self) -> str:
        return f"{self.event_type} {self.reason} {self.resource_id}: {self.message}"


class EventRecorder(ABC):
    """Sink for events about managed resources."""

    @abstractmethod
    def record(
        self,
        resource_id: NamedResource,
        event_type: EventType,
        reason: str,
        message: str,
    ) -> None:
        """Record an event for the resource."""

    def success(self, resource_id: NamedResource, reason: str, message: str) -> None:
        """Record a successful outcome, ignoring any failure to record it."""
        self._record_safe(resource_id, EventType.NORMAL, reason, message)

    def warn(self, resource_id: NamedResource, reason: str, message: str) -> None:
        """Record a failed outcome, ignoring any failure to record it."""
        self._record_safe(resource_id, EventType.WARNING, reason, message)

    def _record_safe(
        self,
        resource_id: NamedResource,
        event_type: EventType,
        reason: str,
        message: str,
    ) -> None:
        try:
            self.record(resource_id, event_type, reason, message)
        except Exception as err:
            _LOGGER.warning(
                "Failed to record event %s for %s: %s", reason, resource_id, err
            )


class LoggingEventRecorder(EventRecorder):
    """EventRecorder that writes events to the log."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or _LOGGER

    def record(
        self,
        resource_id: NamedResource,
        event_type: EventType,
        reason: str,
        message: str,
    ) -> None:
        level = logging.WARNING if event_type == EventType.WARNING else logging.INFO
        self._logger.log(level, "%s %s: %s", reason, resource_id, message)


class InMemoryEventRecorder(EventRecorder):
    """EventRecorder that keeps all events in memory."""

    def __init__(self) -> None:
        self.events: list[Event] = []

    def record(
        self,
        resource_id: NamedResource,
        event_type: EventType,
        reason: str,
        message: str,
    ) -> None:
        event = Event(resource_id, event_type, reason, message)
        _LOGGER.debug("Recorded event %s", event)
        self.events.append(event)

    def reasons(self) -> list[str]:
        """Return the reason of every recorded event in order."""
        return [event.reason for event in self.events]
