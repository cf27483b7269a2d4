"""
Conversion Driver
=================

Orchestrates one batch conversion job over a VideoSource.

Algorithm:
    1. Derive grid height once from the source aspect ratio
    2. Estimate total steps (progress only, never a loop bound):
           floor(floor(duration * native_rate) / frame_skip)
    3. Seek to 0
    4. While cursor < duration:
        a. Poll the cancellation token; if set, discard all frames
        b. Convert the current raster, append the frame
        c. Every `preview_every`-th frame (0, 10, 20, ...) encode a preview
        d. Report progress = processed / estimate * 100 (not clamped)
        e. Seek forward by frame_skip / native_rate (clamped to duration)
    5. Release the source, return frames + nominal fps + audio

Design Rules:
    - Steps are strictly sequential; the seek is the only suspension point
    - Only one raster is alive at a time
    - fps is always native_rate / frame_skip, never measured
    - Cancellation returns an empty video; it is not an error
    - A decode failure aborts the job with ConversionError, no partial frames
"""

import logging
import math
from typing import Callable, List, Optional

from ascii_video.config import ConversionConfig
from ascii_video.conversion.cancellation import CancellationToken
from ascii_video.conversion.converter import FrameConverter, derive_target_height
from ascii_video.conversion.preview import PreviewEncodeError, PreviewEncoder
from ascii_video.conversion.ramp import CharacterRamp
from ascii_video.errors import ConversionError, FrameDecodeError
from ascii_video.models.frame import AsciiFrame, AsciiVideo
from ascii_video.models.job import ConversionJob, JobState
from ascii_video.source.base import VideoSource


logger = logging.getLogger(__name__)


ProgressCallback = Callable[[float, Optional[str]], None]


def estimate_total_steps(duration: float, native_frame_rate: float, frame_skip: int) -> int:
    """
    Number of steps a job is expected to take, for progress reporting.

    Never less than 1 so progress stays defined for very short sources.
    """
    frame_count = math.floor(duration * native_frame_rate)
    return max(1, frame_count // frame_skip)


class ConversionDriver:
    """
    Runs conversion jobs, one at a time per instance.

    Attributes:
        frame_skip: Native frames advanced per step (>= 1)
        native_frame_rate: Nominal source rate used for stepping and fps
        preview_every: Preview cadence in processed frames

    Example:
        driver = ConversionDriver(CharacterRamp(" .:-=+*#%@"))
        token = CancellationToken()

        video = await driver.convert(
            source,
            target_width=80,
            on_progress=lambda pct, preview: print(f"{pct:.0f}%"),
            cancel_token=token,
        )
    """

    def __init__(
        self,
        ramp: CharacterRamp,
        frame_skip: int = 2,
        native_frame_rate: float = 30.0,
        preview_every: int = 10,
        preview_encoder: Optional[PreviewEncoder] = None,
    ) -> None:
        """
        Initialize conversion driver.

        Args:
            ramp: Character ramp, darkest first
            frame_skip: Stride in native frames; values < 1 become 1
            native_frame_rate: Assumed source rate (frames per second)
            preview_every: Emit a preview every N processed frames
            preview_encoder: Preview encoder (default JPEG q=30)
        """
        if native_frame_rate <= 0:
            raise ValueError("native_frame_rate must be positive")
        if preview_every < 1:
            raise ValueError("preview_every must be >= 1")

        self._job: Optional[ConversionJob] = None
        self._converter = FrameConverter(ramp)
        self.set_frame_skip(frame_skip)
        self.native_frame_rate = native_frame_rate
        self.preview_every = preview_every
        self.preview_encoder = preview_encoder or PreviewEncoder()

    @classmethod
    def from_config(
        cls,
        config: ConversionConfig,
        character_set: Optional[str] = None,
    ) -> "ConversionDriver":
        """Build a driver from the conversion settings."""
        return cls(
            ramp=CharacterRamp.from_config(
                character_set if character_set is not None else config.character_set
            ),
            frame_skip=config.frame_skip,
            native_frame_rate=config.native_frame_rate,
            preview_every=config.preview_every,
            preview_encoder=PreviewEncoder(
                quality=config.preview_quality,
                max_width=config.preview_max_width,
            ),
        )

    @property
    def ramp(self) -> CharacterRamp:
        return self._converter.ramp

    @property
    def fps(self) -> float:
        """Nominal fps of produced videos."""
        return self.native_frame_rate / self.frame_skip

    @property
    def step_seconds(self) -> float:
        return self.frame_skip / self.native_frame_rate

    @property
    def job(self) -> Optional[ConversionJob]:
        """The running job, or None when idle."""
        return self._job

    def set_character_set(self, characters: str) -> None:
        self._ensure_idle()
        self._converter = FrameConverter(CharacterRamp(characters))

    def set_frame_skip(self, frame_skip: int) -> None:
        self._ensure_idle()
        self.frame_skip = max(1, int(frame_skip))

    def _ensure_idle(self) -> None:
        if self._job is not None:
            raise RuntimeError("A conversion job is already running on this driver")

    async def convert(
        self,
        source: VideoSource,
        target_width: int,
        on_progress: Optional[ProgressCallback] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> AsciiVideo:
        """
        Convert a whole source into an AsciiVideo.

        The driver takes ownership of the source and closes it when
        the job ends, whatever the outcome.

        Args:
            source: Loaded video source
            target_width: Grid width in cells (>= 1)
            on_progress: Called with (percent, preview) after every frame;
                preview is a data URL on every `preview_every`-th frame, else None
            cancel_token: Polled once per iteration

        Returns:
            AsciiVideo; frames is empty if the job was cancelled

        Raises:
            ConversionError: A frame could not be decoded
            RuntimeError: The driver is already running a job
        """
        if target_width < 1:
            raise ValueError("target_width must be >= 1")
        self._ensure_idle()

        duration = source.duration
        target_height = derive_target_height(
            target_width, source.native_width, source.native_height
        )
        job = ConversionJob(
            total_steps=estimate_total_steps(duration, self.native_frame_rate, self.frame_skip)
        )
        self._job = job

        logger.info(
            f"Conversion started: source={source.native_width}x{source.native_height}, "
            f"duration={duration:.2f}s, grid={target_width}x{target_height}, "
            f"frame_skip={self.frame_skip}, estimated_steps={job.total_steps}"
        )

        frames: List[AsciiFrame] = []
        try:
            job.transition(JobState.SAMPLING)
            audio = source.audio_handle()

            await source.seek(0.0)
            job.cursor = source.current_time

            while source.current_time < duration:
                if cancel_token is not None and cancel_token.is_cancelled():
                    job.transition(JobState.CANCELLED)
                    logger.info(
                        f"Conversion cancelled after {job.processed_frames} frames, "
                        f"discarding partial result"
                    )
                    return AsciiVideo(frames=(), fps=self.fps)

                raster = source.current_raster()
                frames.append(self._converter.to_ascii(raster, target_width, target_height))

                preview = None
                if job.processed_frames % self.preview_every == 0:
                    preview = self._encode_preview(raster, job)
                del raster

                job.processed_frames += 1
                if on_progress is not None:
                    on_progress(job.progress, preview)

                if job.processed_frames % self.preview_every == 0:
                    logger.debug(
                        f"Converted {job.processed_frames} frames "
                        f"({job.progress:.1f}%, t={job.cursor:.2f}s)"
                    )

                # Target from the step count, not a running sum of step_seconds
                target = min(job.processed_frames * self.step_seconds, duration)
                await source.seek(target)
                job.cursor = source.current_time

            job.transition(JobState.COMPLETED)
            logger.info(
                f"Conversion completed: {len(frames)} frames at {self.fps:g}fps "
                f"in {job.elapsed:.2f}s"
            )
            return AsciiVideo(frames=tuple(frames), fps=self.fps, audio=audio)

        except FrameDecodeError as e:
            job.transition(JobState.FAILED)
            logger.error(f"Conversion failed at t={job.cursor:.3f}s: {e}")
            raise ConversionError(f"Conversion failed: {e}") from e
        except BaseException:
            if not job.state.is_terminal:
                job.transition(JobState.FAILED)
            raise
        finally:
            source.close()
            self._job = None

    def _encode_preview(self, raster, job: ConversionJob) -> Optional[str]:
        try:
            return self.preview_encoder.encode(raster)
        except PreviewEncodeError as e:
            logger.warning(f"Preview skipped at frame {job.processed_frames}: {e}")
            return None
