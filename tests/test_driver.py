"""
Conversion Driver Tests
=======================

Tests for the batch driver against deterministic synthetic sources.
"""

import asyncio

import pytest


def _convert(driver, source, width, **kwargs):
    return asyncio.run(driver.convert(source, width, **kwargs))


class TestDriverCompletion:
    """Tests for uncancelled, successful jobs."""

    def test_two_second_source(self, ramp):
        """Verify 2s at 30fps with skip 2 yields 30 frames at 15fps."""
        from ascii_video.conversion.driver import ConversionDriver
        from ascii_video.source.synthetic import SyntheticVideoSource, horizontal_gradient

        source = SyntheticVideoSource(
            width=64,
            height=48,
            duration=2.0,
            raster_fn=lambda _t: horizontal_gradient(64, 48),
        )
        video = _convert(ConversionDriver(ramp, frame_skip=2), source, 4)

        assert len(video.frames) == 30
        assert video.fps == 15
        for frame in video.frames:
            assert frame.width == 4
            assert frame.height == 1
            assert len(frame.characters) == 4
            assert set(frame.characters) <= {" ", ".", "#"}

    def test_fps_is_nominal(self, ramp):
        """Verify fps = native rate / frame skip regardless of source."""
        from ascii_video.conversion.driver import ConversionDriver
        from ascii_video.source.synthetic import SyntheticVideoSource

        source = SyntheticVideoSource(width=320, height=240, duration=0.5, native_frame_rate=24.0)
        video = _convert(ConversionDriver(ramp, frame_skip=3), source, 10)

        assert video.fps == 10
        assert len(video.frames) == 5

    def test_frames_share_dimensions(self, ramp):
        """Verify every frame of one job has identical width and height."""
        from ascii_video.conversion.driver import ConversionDriver
        from ascii_video.source.synthetic import SyntheticVideoSource

        source = SyntheticVideoSource(width=160, height=90, duration=1.0)
        video = _convert(ConversionDriver(ramp), source, 20)

        assert {(f.width, f.height) for f in video.frames} == {(20, 5)}
        assert all(len(f.characters) == len(f.colors) == 100 for f in video.frames)

    def test_seeks_are_sequential_and_clamped(self, ramp):
        """Verify the cursor starts at 0, steps by skip/rate and ends at duration."""
        from ascii_video.conversion.driver import ConversionDriver
        from ascii_video.source.synthetic import SyntheticVideoSource

        source = SyntheticVideoSource(duration=0.25)
        _convert(ConversionDriver(ramp, frame_skip=2), source, 4)

        assert source.seek_history[0] == 0.0
        assert source.seek_history == sorted(source.seek_history)
        assert source.seek_history[-1] == 0.25
        assert len(source.seek_history) == 5
        assert source.seek_history[1] == pytest.approx(2 / 30)

    def test_source_released_and_audio_passed_through(self, ramp):
        """Verify the source is closed and the audio handle is returned."""
        from ascii_video.conversion.driver import ConversionDriver
        from ascii_video.models.audio import AudioTrack
        from ascii_video.source.synthetic import SyntheticVideoSource

        audio = AudioTrack(mime_type="video/mp4", data=b"media")
        source = SyntheticVideoSource(duration=0.2, audio=audio)
        driver = ConversionDriver(ramp)
        video = _convert(driver, source, 4)

        assert source.closed
        assert video.audio is audio
        assert driver.job is None

    def test_frame_skip_clamped(self, ramp):
        """Verify frame skip values below 1 become 1."""
        from ascii_video.conversion.driver import ConversionDriver

        driver = ConversionDriver(ramp, frame_skip=0)
        assert driver.frame_skip == 1
        assert driver.fps == 30

    def test_idle_driver_accepts_settings(self, ramp):
        """Verify a new driver has no job and can be reconfigured."""
        from ascii_video.conversion.driver import ConversionDriver

        driver = ConversionDriver(ramp, frame_skip=2)
        assert driver.job is None

        driver.set_frame_skip(3)
        driver.set_character_set("ab")
        assert driver.fps == 10
        assert driver.ramp.characters == "ab"


class TestDriverProgress:
    """Tests for progress and preview reporting."""

    def test_progress_and_preview_cadence(self, ramp):
        """Verify previews on frames 0, 10, 20 and progress against the estimate."""
        from ascii_video.conversion.driver import ConversionDriver
        from ascii_video.source.synthetic import SyntheticVideoSource

        calls = []
        source = SyntheticVideoSource(duration=2.0)
        _convert(
            ConversionDriver(ramp),
            source,
            4,
            on_progress=lambda pct, preview: calls.append((pct, preview)),
        )

        assert len(calls) == 30
        with_preview = [i for i, (_, preview) in enumerate(calls) if preview is not None]
        assert with_preview == [0, 10, 20]
        assert calls[0][1].startswith("data:image/jpeg;base64,")
        assert calls[0][0] == pytest.approx(100 / 30)
        assert calls[-1][0] == pytest.approx(100.0)

    def test_progress_not_clamped(self, ramp):
        """Verify progress exceeds 100 when the fixed-rate estimate undershoots."""
        from ascii_video.conversion.driver import ConversionDriver
        from ascii_video.source.synthetic import SyntheticVideoSource

        calls = []
        source = SyntheticVideoSource(duration=0.1)
        _convert(
            ConversionDriver(ramp, frame_skip=2),
            source,
            4,
            on_progress=lambda pct, preview: calls.append(pct),
        )

        # floor(0.1 * 30) // 2 == 1 estimated step, but frames are taken at 0 and 1/15
        assert calls == [100.0, 200.0]

    def test_estimate_total_steps(self):
        """Verify the step estimate formula."""
        from ascii_video.conversion.driver import estimate_total_steps

        assert estimate_total_steps(2.0, 30.0, 2) == 30
        assert estimate_total_steps(10.5, 30.0, 4) == 78
        assert estimate_total_steps(0.01, 30.0, 2) == 1


class TestDriverCancellation:
    """Tests for cooperative cancellation."""

    def test_cancel_before_first_iteration(self, ramp):
        """Verify an already-cancelled token yields no frames and nominal fps."""
        from ascii_video.conversion.cancellation import CancellationToken
        from ascii_video.conversion.driver import ConversionDriver
        from ascii_video.source.synthetic import SyntheticVideoSource

        token = CancellationToken()
        token.cancel()
        source = SyntheticVideoSource(duration=2.0)
        video = _convert(ConversionDriver(ramp), source, 4, cancel_token=token)

        assert video.frames == ()
        assert video.fps == 15
        assert video.audio is None
        assert source.closed

    def test_cancel_on_fifth_poll_discards_partial_work(self, ramp):
        """Verify cancelling on the 5th poll returns 0 frames, not 4."""
        from ascii_video.conversion.cancellation import CancellationToken
        from ascii_video.conversion.driver import ConversionDriver
        from ascii_video.source.synthetic import SyntheticVideoSource

        polls = []

        def predicate():
            polls.append(1)
            return len(polls) >= 5

        progress = []
        video = _convert(
            ConversionDriver(ramp),
            SyntheticVideoSource(duration=2.0),
            4,
            on_progress=lambda pct, preview: progress.append(pct),
            cancel_token=CancellationToken(predicate),
        )

        assert len(video.frames) == 0
        assert len(polls) == 5
        assert len(progress) == 4

    def test_cancel_from_another_task(self, ramp):
        """Verify a token cancelled mid-job stops at the next iteration."""
        from ascii_video.conversion.cancellation import CancellationToken
        from ascii_video.conversion.driver import ConversionDriver
        from ascii_video.source.synthetic import SyntheticVideoSource

        async def run():
            token = CancellationToken()
            source = SyntheticVideoSource(duration=10.0, seek_delay=0.005)
            task = asyncio.create_task(ConversionDriver(ramp).convert(source, 4, cancel_token=token))
            await asyncio.sleep(0.05)
            token.cancel()
            return await task

        video = asyncio.run(run())
        assert video.frames == ()


class TestDriverFailure:
    """Tests for decode failures and misuse."""

    def test_decode_failure_aborts_job(self, ramp):
        """Verify a failed seek raises ConversionError and returns nothing."""
        from ascii_video.conversion.driver import ConversionDriver
        from ascii_video.errors import ConversionError, FrameDecodeError
        from ascii_video.source.synthetic import SyntheticVideoSource

        source = SyntheticVideoSource(duration=2.0, fail_at=1.0)
        with pytest.raises(ConversionError) as exc_info:
            _convert(ConversionDriver(ramp), source, 4)

        assert isinstance(exc_info.value.__cause__, FrameDecodeError)
        assert exc_info.value.__cause__.timestamp >= 1.0
        assert source.closed

    def test_failure_at_start(self, ramp):
        """Verify a failure on the initial seek is a conversion failure."""
        from ascii_video.conversion.driver import ConversionDriver
        from ascii_video.errors import ConversionError
        from ascii_video.source.synthetic import SyntheticVideoSource

        with pytest.raises(ConversionError):
            _convert(ConversionDriver(ramp), SyntheticVideoSource(fail_at=0.0), 4)

    def test_one_job_per_driver(self, ramp):
        """Verify a second concurrent job on the same driver is rejected."""
        from ascii_video.conversion.driver import ConversionDriver
        from ascii_video.source.synthetic import SyntheticVideoSource

        driver = ConversionDriver(ramp)

        async def run():
            task = asyncio.create_task(
                driver.convert(SyntheticVideoSource(duration=0.3, seek_delay=0.005), 4)
            )
            await asyncio.sleep(0)
            with pytest.raises(RuntimeError):
                await driver.convert(SyntheticVideoSource(), 4)
            with pytest.raises(RuntimeError):
                driver.set_frame_skip(3)
            return await task

        video = asyncio.run(run())
        assert len(video.frames) == 5

    def test_invalid_width(self, ramp):
        """Verify a zero grid width is rejected up front."""
        from ascii_video.conversion.driver import ConversionDriver
        from ascii_video.source.synthetic import SyntheticVideoSource

        with pytest.raises(ValueError):
            _convert(ConversionDriver(ramp), SyntheticVideoSource(), 0)

    def test_from_config(self, conversion_config):
        """Verify the driver picks up ramp and stride from settings."""
        from ascii_video.conversion.driver import ConversionDriver

        driver = ConversionDriver.from_config(conversion_config, "standard")
        assert driver.frame_skip == 2
        assert driver.fps == 15
        assert driver.ramp.characters.startswith(" .`^")
