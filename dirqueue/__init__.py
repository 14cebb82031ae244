"""
Directory Queue Producer

Enqueues binary payloads plus metadata into a shared directory tree using an
atomic hard-link publish protocol, so consumers never see a partial job.
"""

__version__ = "1.0.0"

from dirqueue.errors import (
    DirQueueError,
    HostnameError,
    LinkCollisionError,
    MetadataValidationError,
    QueueSetupError,
)
from dirqueue.queue import DirQueue, open_queue
from dirqueue.types import (
    ControlRecord,
    EnqueuedJob,
    JobEnvironment,
    Options,
    default_options,
)

__all__ = [
    "__version__",
    "DirQueue",
    "open_queue",
    "Options",
    "default_options",
    "JobEnvironment",
    "EnqueuedJob",
    "ControlRecord",
    "DirQueueError",
    "QueueSetupError",
    "HostnameError",
    "LinkCollisionError",
    "MetadataValidationError",
]
