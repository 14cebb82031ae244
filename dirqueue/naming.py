"""
Queue filename generation and data-directory sharding.

Filenames sort lexicographically by priority, then by submission time:

    <priority:02d>.<YYYYMMDDHHMMSSffffff>.<encoded id>[.<pid>.<salt>]

Data files are spread over ``data/<c1>/<c2>/`` where ``c1`` and ``c2`` are the
last two characters of the queue filename, which are then dropped from the
data file's own name.
"""

import re
from datetime import datetime
from pathlib import PurePath

from dirqueue.constants import MAX_PRIORITY, MIN_PRIORITY, SHARD_FALLBACK
from dirqueue.encoding import encoded_id

_SHARD_SUFFIX = re.compile(r"^(.*)([A-Za-z0-9+_])([A-Za-z0-9+_])$", re.DOTALL)


def format_timestamp(ts: datetime) -> str:
    """Render a timestamp as 20 digits with microsecond precision."""
    return f"{ts.strftime('%Y%m%d%H%M%S')}{ts.microsecond:06d}"


def clamp_priority(priority: int) -> int:
    """Clamp a priority into the two-digit range."""
    return max(MIN_PRIORITY, min(MAX_PRIORITY, priority))


def queue_filename(
    priority: int,
    ts: datetime,
    hostname: str,
    pid: int,
    salt: int | None = None,
) -> str:
    """
    Build a queue filename.

    Args:
        priority: Job priority, clamped to 0-99.
        ts: Submission time (UTC).
        hostname: Local hostname.
        pid: Producer process id.
        salt: Random value appended after a collision, or None.

    Returns:
        The filename, without any directory component.
    """
    name = f"{clamp_priority(priority):02d}.{format_timestamp(ts)}.{encoded_id(f'{hostname}{pid}')}"
    if salt is not None:
        name += f".{pid}.{salt}"
    return name


def shard(filename: str) -> tuple[str, str, str]:
    """
    Split a queue filename into its shard directories and data filename.

    Returns:
        ``(level1, level2, stripped_name)``. When the filename does not end
        in two safe characters, both levels fall back to ``"0"`` and the name
        is returned unchanged.
    """
    match = _SHARD_SUFFIX.match(filename)
    if match is None:
        return SHARD_FALLBACK, SHARD_FALLBACK, filename
    return match.group(2), match.group(3), match.group(1)


def shard_path(filename: str) -> PurePath:
    """Relative path of a queue filename's data file under ``data/``."""
    level1, level2, stripped = shard(filename)
    return PurePath(level1, level2, stripped)
