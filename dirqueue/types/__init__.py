"""
Type definitions for the queue producer.
Contains the option, job and control-record types shared across modules.
"""

from dirqueue.types.control import ControlRecord
from dirqueue.types.job import (
    EnqueuedJob,
    Job,
    JobEnvironment,
    Options,
    default_options,
    utc_now,
)

__all__ = [
    # Job types
    "Options",
    "default_options",
    "JobEnvironment",
    "Job",
    "EnqueuedJob",
    "utc_now",
    # Control file types
    "ControlRecord",
]
