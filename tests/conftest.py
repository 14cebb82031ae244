"""
Pytest configuration and shared fixtures.
"""

import random
from collections.abc import Callable
from pathlib import Path

import pytest
from prometheus_client import CollectorRegistry

from dirqueue.config import Settings
from dirqueue.naming import shard
from dirqueue.observability.metrics import MetricsCollector
from dirqueue.queue import DirQueue
from dirqueue.types.control import ControlRecord
from dirqueue.types.job import JobEnvironment

TEST_DATA_DIR = Path(__file__).parent / "data"

TEST_HOSTNAME = "test.example.com"
TEST_PID = 12345


@pytest.fixture
def test_settings() -> Settings:
    """Create test settings."""
    return Settings(
        log_level="DEBUG",
        log_format="console",
        fsync=False,
        link_backoff_microseconds=0,
    )


@pytest.fixture
def registry() -> CollectorRegistry:
    """Create an isolated Prometheus registry."""
    return CollectorRegistry()


@pytest.fixture
def metrics(registry: CollectorRegistry) -> MetricsCollector:
    """Create a metrics collector bound to the isolated registry."""
    return MetricsCollector(registry=registry)


@pytest.fixture
def environment() -> JobEnvironment:
    """Create a fixed producer environment with a seeded salt generator."""
    return JobEnvironment(hostname=TEST_HOSTNAME, pid=TEST_PID, rng=random.Random(42))


@pytest.fixture
def queue_root(tmp_path: Path) -> Path:
    """Get a queue root path that does not exist yet."""
    return tmp_path / "testqueue"


@pytest.fixture
def dq(
    queue_root: Path,
    test_settings: Settings,
    environment: JobEnvironment,
    metrics: MetricsCollector,
) -> DirQueue:
    """Open a queue in a temporary directory."""
    return DirQueue(
        queue_root,
        settings=test_settings,
        environment=environment,
        metrics=metrics,
    )


@pytest.fixture
def test_file() -> Path:
    """Get the 64-byte fixture payload."""
    return TEST_DATA_DIR / "test1.txt"


def files_under(path: Path) -> list[Path]:
    """List regular files below ``path``, recursively."""
    return sorted(p for p in path.rglob("*") if p.is_file())


@pytest.fixture
def assert_enqueued() -> Callable[..., ControlRecord]:
    """
    Check the queue tree after exactly one successful enqueue.

    Returns the parsed control record.
    """

    def check(
        root: Path,
        size: int,
        priority: int,
        metadata: dict[str, str],
    ) -> ControlRecord:
        data_files = files_under(root / "data")
        assert len(data_files) == 1, "one data file found"
        data_file = data_files[0]
        assert data_file.stat().st_size == size, "data file size"

        control_files = files_under(root / "queue")
        assert len(control_files) == 1, "one control file found"
        control_file = control_files[0]

        # Control filename maps to data filename through the shard split
        level1, level2, stripped = shard(control_file.name)
        assert data_file.relative_to(root / "data") == Path(level1, level2, stripped)

        elements = control_file.name.split(".")
        assert len(elements) in (3, 5), "control file name elements"
        assert elements[0] == f"{priority:02d}", "control file name priority"
        assert len(elements[1]) == 20, "control file name timestamp length"

        text = control_file.read_text(encoding="utf-8")
        assert len(text.splitlines()) == 5 + len(metadata), "control file linecount"

        record = ControlRecord.parse(text)
        assert record.data_path == data_file.absolute()
        assert record.size == size
        assert record.hostname
        assert record.metadata == metadata

        assert files_under(root / "tmp") == [], "no tmp files found"
        return record

    return check
