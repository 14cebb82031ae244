"""
Control file codec.

Serializes the job envelope into ``KEY: value`` lines. Keys matching ``Q???``
are reserved for the fixed fields; keys may not contain ``:``, NUL or newline,
and values may not contain NUL or newline.
"""

import calendar
import os
import re
from collections.abc import Mapping
from pathlib import Path
from typing import TextIO

from dirqueue.errors import DirQueueError, MetadataValidationError
from dirqueue.types.control import ControlRecord
from dirqueue.types.job import Job

_RESERVED_KEY = re.compile(r"Q...", re.DOTALL)
_KEY_BAD_CHARS = re.compile("[:\x00\n]")
_VALUE_BAD_CHARS = re.compile("[\x00\n]")


def validate_metadatum(key: str, value: str) -> None:
    """
    Check a single metadata entry.

    Raises:
        MetadataValidationError: Naming the offending key.
    """
    if _RESERVED_KEY.fullmatch(key):
        raise MetadataValidationError(key, "keys of the form Q??? are reserved")
    if _KEY_BAD_CHARS.search(key):
        raise MetadataValidationError(key, "key contains ':', NUL or newline")
    if _VALUE_BAD_CHARS.search(value):
        raise MetadataValidationError(key, "value contains NUL or newline")


def validate_metadata(metadata: Mapping[str, str]) -> None:
    """Check every metadata entry before anything is written."""
    for key, value in metadata.items():
        validate_metadatum(key, value)


def build_control_record(job: Job) -> ControlRecord:
    """
    Build the control record for a job whose data file is published.

    Raises:
        MetadataValidationError: If any metadata entry is invalid.
    """
    if job.data_path is None or job.size is None:
        raise DirQueueError("Control record requires a published data file")

    validate_metadata(job.options.metadata)

    ts = job.created_at
    return ControlRecord(
        data_path=Path(os.path.abspath(job.data_path)),
        size=job.size,
        timestamp_seconds=calendar.timegm(ts.utctimetuple()),
        timestamp_microseconds=ts.microsecond,
        hostname=job.hostname,
        metadata=dict(job.options.metadata),
    )


def write_control_record(fh: TextIO, record: ControlRecord, fsync: bool = True) -> None:
    """Write a rendered control record to an open text file and flush it."""
    fh.write(record.render())
    fh.flush()
    if fsync:
        os.fsync(fh.fileno())
