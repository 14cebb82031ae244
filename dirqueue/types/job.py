"""
Job-related type definitions.
"""

import logging
import os
import random
import socket
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

from dirqueue.constants import DEFAULT_PRIORITY, MAX_PRIORITY, MIN_PRIORITY, SALT_RANDOM_MAX
from dirqueue.errors import HostnameError
from dirqueue.naming import queue_filename

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class Options(BaseModel):
    """
    Per-enqueue options.

    Priorities above 99 are clamped rather than rejected. Metadata entries are
    validated when the control file is written, not here.
    """

    model_config = ConfigDict(frozen=True)

    metadata: dict[str, str] = Field(default_factory=dict)
    priority: int = Field(default=DEFAULT_PRIORITY, ge=MIN_PRIORITY)

    @field_validator("priority")
    @classmethod
    def clamp_priority(cls, value: int) -> int:
        return min(value, MAX_PRIORITY)


def default_options() -> Options:
    """Options with empty metadata and priority 50."""
    return Options()


@dataclass(frozen=True)
class JobEnvironment:
    """
    Process-level inputs to filename generation.
    Injected so tests can pin hostname, pid, time and salt.
    """

    hostname: str
    pid: int
    clock: Callable[[], datetime] = utc_now
    rng: random.Random = field(default_factory=random.Random)

    @classmethod
    def current(cls) -> "JobEnvironment":
        """
        Resolve the environment of the running process.

        Raises:
            HostnameError: If the hostname cannot be determined.
        """
        try:
            hostname = socket.gethostname()
        except OSError as e:
            raise HostnameError(f"Cannot resolve local hostname: {e}") from e
        if not hostname:
            raise HostnameError("Local hostname is empty")
        return cls(hostname=hostname, pid=os.getpid())


class EnqueuedJob(BaseModel):
    """Where a successfully enqueued job was published."""

    queue_filename: str
    queue_path: Path
    data_path: Path
    size: int
    priority: int


@dataclass
class Job:
    """
    Transaction state for a single enqueue call.

    The path fields record every file created so far; they exist only so a
    failed enqueue can remove what it left behind.
    """

    options: Options
    environment: JobEnvironment
    created_at: datetime
    size: int | None = None
    tmp_data_path: Path | None = None
    data_path: Path | None = None
    tmp_control_path: Path | None = None

    @classmethod
    def create(cls, options: Options, environment: JobEnvironment) -> "Job":
        """Start a job stamped with the environment's current UTC time."""
        return cls(
            options=options,
            environment=environment,
            created_at=environment.clock().astimezone(timezone.utc),
        )

    @property
    def hostname(self) -> str:
        return self.environment.hostname

    def filename(self, salted: bool = False) -> str:
        """
        Generate the job's queue filename.

        Args:
            salted: Append ``.<pid>.<random>``; used after a name collision.
        """
        salt = self.environment.rng.randint(0, SALT_RANDOM_MAX) if salted else None
        return queue_filename(
            self.options.priority,
            self.created_at,
            self.environment.hostname,
            self.environment.pid,
            salt=salt,
        )

    def artifacts(self) -> list[Path]:
        """Recorded paths in creation order."""
        paths = [self.tmp_data_path, self.data_path, self.tmp_control_path]
        return [path for path in paths if path is not None]

    def cleanup(self) -> None:
        """Remove every recorded artifact, newest first, ignoring errors."""
        for path in reversed(self.artifacts()):
            try:
                path.unlink(missing_ok=True)
            except OSError as e:
                logger.debug(
                    "Cleanup could not remove file",
                    extra={"path": str(path), "error": str(e)},
                )

    @contextmanager
    def cleanup_on_error(self) -> Iterator["Job"]:
        """Run cleanup if the enclosed block raises, then re-raise."""
        try:
            yield self
        except BaseException:
            self.cleanup()
            raise
