"""
Unit tests for link-based publishing.
"""

import logging
import os
from pathlib import Path

import pytest
from prometheus_client import CollectorRegistry

from dirqueue.constants import PublishStage
from dirqueue.errors import LinkCollisionError
from dirqueue.observability.metrics import MetricsCollector
from dirqueue.publish import attempt_publish, publish_with_retry


@pytest.fixture
def source(tmp_path: Path) -> Path:
    """Create a finished temp file."""
    (tmp_path / "tmp").mkdir()
    (tmp_path / "queue").mkdir()
    path = tmp_path / "tmp" / "job.ctrl"
    path.write_text("QDSB: 0\n")
    return path


class TestAttemptPublish:
    """Tests for attempt_publish."""

    def test_success(self, source: Path):
        """Test that a free name is linked to the same inode."""
        destination = source.parent.parent / "queue" / "job"

        assert attempt_publish(source, destination) is None
        assert os.path.samefile(source, destination)

    def test_collision(self, source: Path):
        """Test that an existing name is reported and left untouched."""
        destination = source.parent.parent / "queue" / "job"
        destination.write_text("other producer")

        error = attempt_publish(source, destination)

        assert isinstance(error, FileExistsError)
        assert destination.read_text() == "other producer"


class TestPublishWithRetry:
    """Tests for publish_with_retry."""

    def test_first_attempt(self, source: Path):
        """Test publishing without a collision removes the temp file."""
        queue_dir = source.parent.parent / "queue"
        sleeps: list[float] = []

        name, path, removed = publish_with_retry(
            source,
            "job",
            lambda n: queue_dir / n,
            lambda: "never",
            stage=PublishStage.CONTROL,
            sleep=sleeps.append,
        )

        assert (name, path) == ("job", queue_dir / "job")
        assert removed is True
        assert path.read_text() == "QDSB: 0\n"
        assert not source.exists()
        assert sleeps == []

    def test_retries_with_new_name(
        self, source: Path, metrics: MetricsCollector, registry: CollectorRegistry
    ):
        """Test that collisions retry under fresh names with growing backoff."""
        queue_dir = source.parent.parent / "queue"
        (queue_dir / "job").write_text("taken")
        (queue_dir / "job.1").write_text("taken")
        names = iter(["job.1", "job.2"])
        sleeps: list[float] = []

        name, path, removed = publish_with_retry(
            source,
            "job",
            lambda n: queue_dir / n,
            lambda: next(names),
            stage=PublishStage.CONTROL,
            backoff_microseconds=250,
            metrics=metrics,
            sleep=sleeps.append,
        )

        assert name == "job.2"
        assert path == queue_dir / "job.2"
        assert sleeps == [0.00025, 0.0005]
        assert registry.get_sample_value(
            "dirqueue_link_collisions_total", {"stage": "control"}
        ) == 2

    def test_exhaustion(self, source: Path):
        """Test that running out of attempts raises and keeps the temp file."""
        queue_dir = source.parent.parent / "queue"
        (queue_dir / "job").write_text("taken")
        sleeps: list[float] = []

        with pytest.raises(LinkCollisionError) as exc_info:
            publish_with_retry(
                source,
                "job",
                lambda n: queue_dir / n,
                lambda: "job",
                stage=PublishStage.DATA,
                max_attempts=3,
                backoff_microseconds=250,
                sleep=sleeps.append,
            )

        error = exc_info.value
        assert error.attempts == 3
        assert error.source == str(source)
        assert error.destination == str(queue_dir / "job")
        assert isinstance(error.__cause__, FileExistsError)
        assert sleeps == [0.00025, 0.0005]
        assert source.exists()

    def test_temp_removal_failure_is_a_warning(
        self,
        source: Path,
        metrics: MetricsCollector,
        registry: CollectorRegistry,
        monkeypatch: pytest.MonkeyPatch,
        caplog: pytest.LogCaptureFixture,
    ):
        """Test that failing to remove the temp file does not fail the publish."""
        queue_dir = source.parent.parent / "queue"

        def refuse(self: Path, missing_ok: bool = False) -> None:
            raise PermissionError("read-only tmp")

        monkeypatch.setattr(Path, "unlink", refuse)

        with caplog.at_level(logging.WARNING, logger="dirqueue.publish"):
            name, path, removed = publish_with_retry(
                source,
                "job",
                lambda n: queue_dir / n,
                lambda: "never",
                stage=PublishStage.CONTROL,
                metrics=metrics,
            )

        assert path.exists()
        assert removed is False
        assert "Failed to remove hardlinked tmp file" in caplog.text
        assert registry.get_sample_value(
            "dirqueue_warnings_total", {"kind": "tmp_remove"}
        ) == 1
