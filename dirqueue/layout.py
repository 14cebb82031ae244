"""
Queue directory layout.

A queue root holds four subdirectories (see ``QueueSubdir``). They are created
on demand; concurrent producers racing to create them is expected.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from dirqueue.constants import QueueSubdir
from dirqueue.errors import QueueSetupError

logger = logging.getLogger(__name__)


def ensure_dir(path: Path, mode: int = 0o777) -> Path:
    """
    Make sure ``path`` exists as a directory.

    An existing directory is success, including one created concurrently by
    another process.

    Raises:
        QueueSetupError: If the path exists as something else or cannot be created.
    """
    try:
        path.mkdir(mode=mode, parents=True, exist_ok=True)
    except FileExistsError as e:
        raise QueueSetupError(path, "exists and is not a directory") from e
    except OSError as e:
        raise QueueSetupError(path, e.strerror or str(e)) from e
    return path


@dataclass(frozen=True)
class QueuePaths:
    """Absolute paths of a queue root and its subdirectories."""

    root: Path
    tmp: Path
    data: Path
    queue: Path
    active: Path

    @classmethod
    def create(cls, root: str | Path, mode: int = 0o777) -> "QueuePaths":
        """
        Resolve and create the queue layout under ``root``.

        Raises:
            QueueSetupError: If any directory cannot be created.
        """
        root_path = ensure_dir(Path(root).absolute(), mode)
        subdirs = {
            subdir.value: ensure_dir(root_path / subdir.value, mode)
            for subdir in QueueSubdir
        }
        logger.debug("Queue layout ready", extra={"root": str(root_path)})
        return cls(root=root_path, **subdirs)
