"""Exceptions raised by the queue producer."""

from pathlib import Path


class DirQueueError(Exception):
    """Base exception for all directory queue errors."""

    pass


class QueueSetupError(DirQueueError):
    """Raised when a queue directory cannot be created or inspected."""

    def __init__(self, path: str | Path, reason: str) -> None:
        self.path = str(path)
        self.reason = reason
        super().__init__(f"Cannot set up queue directory {self.path}: {reason}")


class HostnameError(DirQueueError):
    """Raised when the local hostname cannot be resolved."""

    pass


class LinkCollisionError(DirQueueError):
    """Raised when a file could not be linked into place after all retries."""

    def __init__(self, source: str | Path, destination: str | Path, attempts: int) -> None:
        self.source = str(source)
        self.destination = str(destination)
        self.attempts = attempts
        super().__init__(
            f"Failed to link {self.source!r} to {self.destination!r} after {attempts} attempts"
        )


class MetadataValidationError(DirQueueError, ValueError):
    """Raised when a metadata entry cannot be written to a control file."""

    def __init__(self, key: str, reason: str) -> None:
        self.key = key
        self.reason = reason
        super().__init__(f"Invalid metadatum {key!r}: {reason}")
