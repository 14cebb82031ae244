"""
Queue producer.

Enqueuing a job never exposes a partially written file: the payload and its
control record are each written under ``tmp/`` and then hard-linked into
``data/`` and ``queue/``. A control file only appears once the data file it
names is complete.
"""

import io
import logging
import os
import shutil
import time
from pathlib import Path
from typing import BinaryIO

from dirqueue.codec import build_control_record, write_control_record
from dirqueue.config import Settings, get_settings
from dirqueue.constants import (
    SPAN_ENQUEUE,
    SPAN_PUBLISH_CONTROL,
    SPAN_PUBLISH_DATA,
    TMP_CONTROL_SUFFIX,
    TMP_DATA_SUFFIX,
    WARNING_QUEUE_TOUCH,
    PublishStage,
)
from dirqueue.layout import QueuePaths, ensure_dir
from dirqueue.naming import shard
from dirqueue.observability.metrics import MetricsCollector, get_metrics
from dirqueue.observability.tracing import get_tracer, set_span_attributes
from dirqueue.publish import publish_with_retry
from dirqueue.types.job import EnqueuedJob, Job, JobEnvironment, Options, default_options

logger = logging.getLogger(__name__)


class DirQueue:
    """
    Producer handle for a directory queue.

    Safe to share between threads and to use from many processes against the
    same root; all coordination happens through the filesystem.
    """

    def __init__(
        self,
        root: str | Path,
        settings: Settings | None = None,
        environment: JobEnvironment | None = None,
        metrics: MetricsCollector | None = None,
    ):
        """
        Open (and if needed create) the queue at ``root``.

        Args:
            root: Queue root directory.
            settings: Producer settings. Defaults to environment settings.
            environment: Fixed hostname/pid/clock. Resolved per enqueue if omitted.
            metrics: Metrics collector. Defaults to the global one when enabled.

        Raises:
            QueueSetupError: If the queue directories cannot be created.
        """
        self.settings = settings or get_settings()
        self.paths = QueuePaths.create(root, self.settings.dir_mode)
        self._environment = environment
        if metrics is None and self.settings.metrics_enabled:
            metrics = get_metrics()
        self._metrics = metrics

    @property
    def root_dir(self) -> Path:
        return self.paths.root

    @property
    def tmp_dir(self) -> Path:
        return self.paths.tmp

    @property
    def data_dir(self) -> Path:
        return self.paths.data

    @property
    def queue_dir(self) -> Path:
        return self.paths.queue

    @property
    def active_dir(self) -> Path:
        return self.paths.active

    def enqueue_stream(self, stream: BinaryIO, options: Options | None = None) -> EnqueuedJob:
        """
        Enqueue the contents of a binary stream.

        Args:
            stream: Readable binary stream, consumed to EOF.
            options: Metadata and priority. Defaults to ``default_options()``.

        Returns:
            Where the job was published.

        Raises:
            HostnameError: If the local hostname cannot be resolved.
            MetadataValidationError: If a metadata entry is invalid.
            LinkCollisionError: If a file could not be linked into place.
            OSError: If the payload cannot be read or written.
        """
        if options is None:
            options = default_options()
        started = time.perf_counter()

        with get_tracer().start_as_current_span(SPAN_ENQUEUE):
            set_span_attributes(queue=self.paths.root, priority=options.priority)
            try:
                environment = self._environment or JobEnvironment.current()
                job = Job.create(options, environment)
                with job.cleanup_on_error():
                    result = self._publish(job, stream)
            except Exception as e:
                if self._metrics is not None:
                    self._metrics.record_enqueue_failure(type(e).__name__)
                raise

        if self._metrics is not None:
            self._metrics.record_job_enqueued(
                result.priority, result.size, time.perf_counter() - started
            )
        logger.info(
            "Job enqueued",
            extra={
                "queue_file": result.queue_filename,
                "priority": result.priority,
                "size": result.size,
            },
        )
        return result

    def enqueue_file(self, path: str | Path, options: Options | None = None) -> EnqueuedJob:
        """Enqueue the contents of the file at ``path``."""
        with open(path, "rb") as fh:
            return self.enqueue_stream(fh, options)

    def enqueue_bytes(self, data: bytes, options: Options | None = None) -> EnqueuedJob:
        """Enqueue an in-memory payload."""
        return self.enqueue_stream(io.BytesIO(data), options)

    def enqueue_string(
        self,
        text: str,
        options: Options | None = None,
        encoding: str = "utf-8",
    ) -> EnqueuedJob:
        """Enqueue a string payload, encoded with ``encoding``."""
        return self.enqueue_bytes(text.encode(encoding), options)

    def _publish(self, job: Job, stream: BinaryIO) -> EnqueuedJob:
        settings = self.settings
        name = self._write_payload(job, stream)

        with get_tracer().start_as_current_span(SPAN_PUBLISH_DATA):
            set_span_attributes(filename=name, size=job.size)
            published = publish_with_retry(
                job.tmp_data_path,
                name,
                self._data_destination,
                lambda: job.filename(salted=True),
                stage=PublishStage.DATA,
                max_attempts=settings.link_max_attempts,
                backoff_microseconds=settings.link_backoff_microseconds,
                metrics=self._metrics,
            )
        name, job.data_path = published.name, published.path
        if published.source_removed:
            # The temp name may be reused by another job from now on
            job.tmp_data_path = None

        # Write a control file now that we know the actual data filename
        record = build_control_record(job)
        tmp_control_path = self.paths.tmp / f"{name}{TMP_CONTROL_SUFFIX}"
        with open(tmp_control_path, "x", encoding="utf-8", newline="\n") as fh:
            job.tmp_control_path = tmp_control_path
            write_control_record(fh, record, fsync=settings.fsync)

        with get_tracer().start_as_current_span(SPAN_PUBLISH_CONTROL):
            set_span_attributes(filename=name)
            published = publish_with_retry(
                tmp_control_path,
                name,
                lambda candidate: self.paths.queue / candidate,
                lambda: job.filename(salted=True),
                stage=PublishStage.CONTROL,
                max_attempts=settings.link_max_attempts,
                backoff_microseconds=settings.link_backoff_microseconds,
                metrics=self._metrics,
            )
        name, queue_path = published.name, published.path
        if published.source_removed:
            job.tmp_control_path = None

        if settings.touch_queue_dir:
            self._touch_queue_dir()

        return EnqueuedJob(
            queue_filename=name,
            queue_path=queue_path,
            data_path=job.data_path,
            size=job.size,
            priority=job.options.priority,
        )

    def _write_payload(self, job: Job, stream: BinaryIO) -> str:
        """Copy the payload into ``tmp/`` and return the filename it was written under."""
        name = job.filename()
        for attempt in range(1, self.settings.link_max_attempts + 1):
            path = self.paths.tmp / f"{name}{TMP_DATA_SUFFIX}"
            try:
                fh = open(path, "xb")
            except FileExistsError:
                # Another thread of this process holds the same name
                if attempt >= self.settings.link_max_attempts:
                    raise
                name = job.filename(salted=True)
                continue
            break

        with fh:
            job.tmp_data_path = path
            shutil.copyfileobj(stream, fh, self.settings.copy_buffer_size)
            fh.flush()
            if self.settings.fsync:
                os.fsync(fh.fileno())
            job.size = fh.tell()
        return name

    def _data_destination(self, name: str) -> Path:
        level1, level2, stripped = shard(name)
        shard_dir = ensure_dir(self.paths.data / level1 / level2, self.settings.dir_mode)
        return shard_dir / stripped

    def _touch_queue_dir(self) -> None:
        # Some filesystems don't reliably notify watchers of new entries
        try:
            os.utime(self.paths.queue)
        except OSError as e:
            logger.warning(
                "Touch failed on queue directory",
                extra={"path": str(self.paths.queue), "error": str(e)},
            )
            if self._metrics is not None:
                self._metrics.record_warning(WARNING_QUEUE_TOUCH)


def open_queue(root: str | Path, settings: Settings | None = None) -> DirQueue:
    """Open the queue at ``root``, creating its directories if needed."""
    return DirQueue(root, settings=settings)
