"""
Job Manager
===========

Caller-side lifecycle for conversion jobs.

Each job runs as an asyncio task:
    loading     -> source is opened from uploaded bytes
    converting  -> ConversionDriver steps through the source
    completed   -> AsciiVideo kept for retrieval
    error       -> load or decode failure, message kept
    idle        -> job was cancelled (cancellation is not an error)

Finished jobs are kept for retrieval up to a configured count, then
evicted oldest first; DELETE /jobs/{id} forgets one explicitly.

Progress and the latest preview are updated from the driver's
progress callback, so status polls never touch the decoder.
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable, Dict, Optional

from ascii_video.config import ConversionConfig, SourceConfig
from ascii_video.conversion.cancellation import CancellationToken
from ascii_video.conversion.driver import ConversionDriver
from ascii_video.errors import (
    ConversionError,
    JobNotFoundError,
    JobNotReadyError,
    SourceLoadError,
)
from ascii_video.models.frame import AsciiVideo
from ascii_video.models.status import ConversionStatus, JobStatus
from ascii_video.source.base import VideoSource, validate_upload
from ascii_video.source.opencv_source import OpenCVVideoSource


logger = logging.getLogger(__name__)


SourceFactory = Callable[[bytes, str], Awaitable[VideoSource]]


async def load_opencv_source(
    data: bytes,
    filename: str,
    work_dir: Optional[str] = None,
) -> VideoSource:
    """Open uploaded bytes with OpenCV off the event loop."""
    suffix = Path(filename).suffix or ".mp4"
    return await asyncio.to_thread(OpenCVVideoSource.load, data, suffix, work_dir)


@dataclass
class _JobRecord:
    """Mutable per-job bookkeeping."""

    job_id: str
    token: CancellationToken
    status: ConversionStatus = ConversionStatus.LOADING
    progress: float = 0.0
    error: Optional[str] = None
    preview: Optional[str] = None
    result: Optional[AsciiVideo] = None
    task: Optional[asyncio.Task] = None

    def snapshot(self) -> JobStatus:
        return JobStatus(
            job_id=self.job_id,
            status=self.status,
            progress=self.progress,
            error=self.error,
            preview=self.preview,
            frames=len(self.result.frames) if self.result is not None else None,
        )


class JobManager:
    """
    Starts, tracks and cancels conversion jobs.

    Example:
        manager = JobManager(load_opencv_source, settings.conversion, settings.source)

        job_id = await manager.start(data, "clip.mp4", width=80)
        status = await manager.wait(job_id)
        video = manager.result(job_id)
    """

    def __init__(
        self,
        source_factory: SourceFactory,
        conversion: ConversionConfig,
        source: SourceConfig,
        max_finished_jobs: int = 16,
    ) -> None:
        """
        Initialize job manager.

        Args:
            source_factory: Opens uploaded bytes as a VideoSource
            conversion: Default conversion settings
            source: Upload limits
            max_finished_jobs: Finished jobs kept for retrieval; the
                oldest are evicted first
        """
        if max_finished_jobs < 1:
            raise ValueError("max_finished_jobs must be >= 1")

        self._source_factory = source_factory
        self._conversion = conversion
        self._source = source
        self._max_finished_jobs = max_finished_jobs
        self._jobs: Dict[str, _JobRecord] = {}

        logger.info(
            f"JobManager initialized: width={conversion.target_width}, "
            f"frame_skip={conversion.frame_skip}, charset={conversion.character_set!r}, "
            f"max_finished_jobs={max_finished_jobs}"
        )

    @property
    def job_count(self) -> int:
        return len(self._jobs)

    async def start(
        self,
        data: bytes,
        filename: str,
        width: Optional[int] = None,
        character_set: Optional[str] = None,
    ) -> str:
        """
        Validate an upload and start converting it in the background.

        Args:
            data: Encoded video bytes
            filename: Client file name (extension is checked)
            width: Grid width in cells (default from config)
            character_set: Preset name or literal ramp (default from config)

        Returns:
            New job id

        Raises:
            SourceLoadError: Upload rejected before decoding
            InvalidRampError: Empty character set
        """
        validate_upload(
            filename,
            len(data),
            self._source.max_file_size_mb,
            self._source.allowed_extensions,
        )

        target_width = width if width is not None else self._conversion.target_width
        if target_width < 1:
            raise ValueError("width must be >= 1")

        driver = ConversionDriver.from_config(self._conversion, character_set)

        record = _JobRecord(job_id=uuid.uuid4().hex, token=CancellationToken())
        self._jobs[record.job_id] = record
        record.task = asyncio.create_task(
            self._run(record, driver, data, filename, target_width),
            name=f"conversion_{record.job_id}",
        )

        logger.info(
            f"Job {record.job_id} started: file={filename}, "
            f"size={len(data)} bytes, width={target_width}"
        )
        return record.job_id

    async def _run(
        self,
        record: _JobRecord,
        driver: ConversionDriver,
        data: bytes,
        filename: str,
        width: int,
    ) -> None:
        """Job body: load, convert, record the outcome."""
        try:
            await self._load_and_convert(record, driver, data, filename, width)
        finally:
            self._evict_finished()

    async def _load_and_convert(
        self,
        record: _JobRecord,
        driver: ConversionDriver,
        data: bytes,
        filename: str,
        width: int,
    ) -> None:
        try:
            source = await self._source_factory(data, filename)
        except SourceLoadError as e:
            record.status = ConversionStatus.ERROR
            record.error = str(e)
            logger.error(f"Job {record.job_id} load failed: {e}")
            return
        except asyncio.CancelledError:
            record.status = ConversionStatus.IDLE
            raise
        except Exception as e:
            record.status = ConversionStatus.ERROR
            record.error = f"Failed to load video: {e}"
            logger.exception(f"Job {record.job_id} load crashed")
            return

        if record.token.is_cancelled():
            source.close()
            record.status = ConversionStatus.IDLE
            return

        record.status = ConversionStatus.CONVERTING

        def on_progress(percent: float, preview: Optional[str]) -> None:
            record.progress = percent
            if preview is not None:
                record.preview = preview

        try:
            video = await driver.convert(source, width, on_progress, record.token)
        except ConversionError as e:
            record.status = ConversionStatus.ERROR
            record.error = str(e)
            return
        except asyncio.CancelledError:
            record.status = ConversionStatus.IDLE
            raise
        except Exception as e:
            record.status = ConversionStatus.ERROR
            record.error = f"Unexpected error: {e}"
            logger.exception(f"Job {record.job_id} crashed")
            return

        if record.token.is_cancelled() and not video.frames:
            record.status = ConversionStatus.IDLE
            logger.info(f"Job {record.job_id} cancelled")
            return

        record.result = video
        record.status = ConversionStatus.COMPLETED
        logger.info(f"Job {record.job_id} completed: {len(video.frames)} frames")

    def _get(self, job_id: str) -> _JobRecord:
        try:
            return self._jobs[job_id]
        except KeyError:
            raise JobNotFoundError(job_id) from None

    def status(self, job_id: str) -> JobStatus:
        return self._get(job_id).snapshot()

    def cancel(self, job_id: str) -> JobStatus:
        """Request cancellation; honored at the driver's next iteration."""
        record = self._get(job_id)
        if not record.status.is_terminal:
            record.token.cancel()
            logger.info(f"Job {job_id} cancellation requested")
        return record.snapshot()

    def result(self, job_id: str) -> AsciiVideo:
        record = self._get(job_id)
        if record.status != ConversionStatus.COMPLETED or record.result is None:
            raise JobNotReadyError(f"Job {job_id} is {record.status.value}, not completed")
        return record.result

    async def wait(self, job_id: str, timeout: Optional[float] = None) -> JobStatus:
        """Wait until a job reaches a terminal status."""
        record = self._get(job_id)
        if record.task is not None:
            await asyncio.wait_for(asyncio.shield(record.task), timeout=timeout)
        return record.snapshot()

    def remove(self, job_id: str) -> None:
        """Forget a job, cancelling it first if it is still running."""
        record = self._get(job_id)
        record.token.cancel()
        del self._jobs[job_id]
        logger.info(f"Job {job_id} removed")

    def _evict_finished(self) -> None:
        """Drop the oldest finished jobs beyond max_finished_jobs."""
        finished = [
            job_id for job_id, record in self._jobs.items()
            if record.status.is_terminal
        ]
        excess = len(finished) - self._max_finished_jobs
        for job_id in finished[:max(0, excess)]:
            del self._jobs[job_id]
            logger.debug(f"Job {job_id} evicted")

    async def shutdown(self) -> None:
        """Cancel all running jobs and wait for them to stop."""
        tasks = []
        for record in self._jobs.values():
            record.token.cancel()
            if record.task is not None and not record.task.done():
                tasks.append(record.task)

        if tasks:
            logger.info(f"Waiting for {len(tasks)} running jobs to stop")
            await asyncio.gather(*tasks, return_exceptions=True)
