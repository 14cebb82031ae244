"""
Atomic publish of finished files into the queue tree.

A file is only ever made visible under its final name by ``link(2)``, which
either creates the new name for the complete inode or fails because the name
is taken. Collisions are retried under fresh salted names with a short,
growing backoff.
"""

import logging
import os
import time
from collections.abc import Callable
from pathlib import Path
from typing import NamedTuple

from dirqueue.constants import WARNING_TMP_REMOVE, PublishStage
from dirqueue.errors import LinkCollisionError
from dirqueue.observability.metrics import MetricsCollector

logger = logging.getLogger(__name__)


class Published(NamedTuple):
    """Outcome of a successful publish."""

    name: str
    path: Path
    source_removed: bool


def attempt_publish(source: Path, destination: Path) -> OSError | None:
    """
    Try once to hard-link ``source`` to ``destination``.

    Returns:
        None on success, otherwise the error that prevented the link.
    """
    try:
        os.link(source, destination)
    except OSError as e:
        return e
    return None


def publish_with_retry(
    source: Path,
    name: str,
    destination_for: Callable[[str], Path],
    rename: Callable[[], str],
    *,
    stage: PublishStage,
    max_attempts: int = 10,
    backoff_microseconds: int = 250,
    metrics: MetricsCollector | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> Published:
    """
    Link ``source`` into place, retrying under new names on failure.

    Args:
        source: Complete file in ``tmp/``.
        name: First candidate queue filename.
        destination_for: Maps a candidate name to its destination path.
        rename: Produces the next (salted) candidate name.
        stage: Which publish stage this is, for logs and metrics.
        max_attempts: Total link attempts before giving up.
        backoff_microseconds: Sleep after attempt *n* is n times this.
        metrics: Collector for collision and warning counts.
        sleep: Sleep function.

    Returns:
        The name that was published, its path, and whether the temp
        source was removed afterwards.

    Raises:
        LinkCollisionError: If every attempt failed.
    """
    attempt = 0
    while True:
        attempt += 1
        destination = destination_for(name)
        error = attempt_publish(source, destination)
        if error is None:
            break

        if metrics is not None:
            metrics.record_link_collision(stage)
        logger.debug(
            "Link attempt failed",
            extra={
                "stage": str(stage),
                "attempt": attempt,
                "destination": str(destination),
                "error": str(error),
            },
        )
        if attempt >= max_attempts:
            raise LinkCollisionError(source, destination, attempt) from error

        name = rename()
        sleep(attempt * backoff_microseconds / 1_000_000)

    # The link keeps the data alive; the temp name is no longer needed
    try:
        source.unlink()
    except OSError as e:
        logger.warning(
            "Failed to remove hardlinked tmp file",
            extra={"path": str(source), "error": str(e)},
        )
        if metrics is not None:
            metrics.record_warning(WARNING_TMP_REMOVE)
        return Published(name, destination, source_removed=False)

    return Published(name, destination, source_removed=True)
