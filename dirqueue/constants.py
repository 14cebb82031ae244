"""
Queue constants.
Centralized location for the on-disk conventions shared with consumers.
"""

from enum import StrEnum


class QueueSubdir(StrEnum):
    """
    Subdirectories under a queue root.

    - TMP: scratch space, never read by consumers
    - DATA: sharded payload files
    - QUEUE: control files, one per ready job
    - ACTIVE: reserved for consumer claims
    """

    TMP = "tmp"
    DATA = "data"
    QUEUE = "queue"
    ACTIVE = "active"


class ControlField(StrEnum):
    """Fixed control-file fields, in the order they are written."""

    DATA_FILENAME = "QDFN"
    DATA_SIZE_BYTES = "QDSB"
    SUBMIT_TIME_SECONDS = "QSTT"
    SUBMIT_TIME_MICROSECONDS = "QSTM"
    SUBMIT_HOSTNAME = "QSHN"


class PublishStage(StrEnum):
    """Stages of the publish protocol that can hit a name collision."""

    DATA = "data"
    CONTROL = "control"


# Priority bounds
MIN_PRIORITY = 0
MAX_PRIORITY = 99
DEFAULT_PRIORITY = 50

# Temp file suffixes in tmp/
TMP_DATA_SUFFIX = ".data"
TMP_CONTROL_SUFFIX = ".ctrl"

# Random salt appended to filenames after a collision
SALT_RANDOM_MAX = 65535

# Shard directory used when a filename has no usable trailing characters
SHARD_FALLBACK = "0"

# Control file line separator between key and value
CONTROL_SEPARATOR = ": "

# Metrics names
METRIC_JOBS_ENQUEUED = "dirqueue_jobs_enqueued_total"
METRIC_ENQUEUE_FAILURES = "dirqueue_enqueue_failures_total"
METRIC_LINK_COLLISIONS = "dirqueue_link_collisions_total"
METRIC_WARNINGS = "dirqueue_warnings_total"
METRIC_ENQUEUE_DURATION = "dirqueue_enqueue_duration_seconds"
METRIC_PAYLOAD_BYTES = "dirqueue_payload_bytes"

# Trace span names
SPAN_ENQUEUE = "enqueue"
SPAN_PUBLISH_DATA = "publish_data"
SPAN_PUBLISH_CONTROL = "publish_control"

# Non-fatal warning kinds
WARNING_TMP_REMOVE = "tmp_remove"
WARNING_QUEUE_TOUCH = "queue_touch"
