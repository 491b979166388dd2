"""Configuration objects for cos-image-import."""

from dataclasses import dataclass


@dataclass
class ImageControllerConfig:
    """Configuration for the ImageController."""

    job_poll_interval: float = 60.0
    """Seconds to wait before checking on an import job in flight."""

    failed_retry_interval: float = 300.0
    """Seconds to wait before retrying an import after a failed job."""

    debug: bool = False
    """Enable debug output in the cloud image clients."""
