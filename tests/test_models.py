"""
Model and Rendering Tests
=========================

Tests for frame/video models, job state and the render boundary.
"""

import pytest


def _frame(width=2, height=2):
    from ascii_video.models.frame import AsciiFrame

    cells = width * height
    return AsciiFrame(
        width=width,
        height=height,
        characters=tuple("ab<d"[:cells]),
        colors=((255, 0, 0), (255, 0, 0), (0, 0, 255), (10, 20, 30))[:cells],
    )


class TestAsciiFrame:
    """Tests for the AsciiFrame model."""

    def test_cell_count_enforced(self):
        """Verify mismatched grids are rejected."""
        from ascii_video.models.frame import AsciiFrame

        with pytest.raises(ValueError):
            AsciiFrame(width=2, height=2, characters=("a",) * 4, colors=((0, 0, 0),) * 3)

    def test_row_major_access(self):
        """Verify index = y * width + x."""
        frame = _frame()
        assert frame.cell(0, 1) == ("<", (0, 0, 255))
        assert frame.lines() == ["ab", "<d"]

    def test_string_colors_at_boundary(self):
        """Verify colors format as rgb(r, g, b) strings."""
        frame = _frame()
        assert frame.color_at(3) == "rgb(10, 20, 30)"
        assert frame.to_dict() == {
            "width": 2,
            "height": 2,
            "characters": ["a", "b", "<", "d"],
            "colors": [
                "rgb(255, 0, 0)",
                "rgb(255, 0, 0)",
                "rgb(0, 0, 255)",
                "rgb(10, 20, 30)",
            ],
        }


class TestAsciiVideo:
    """Tests for the AsciiVideo model."""

    def test_duration_and_frame_lookup(self):
        """Verify playback time maps to floor(t * fps)."""
        from ascii_video.models.frame import AsciiVideo

        frames = tuple(_frame() for _ in range(30))
        video = AsciiVideo(frames=frames, fps=15.0)

        assert video.duration == 2.0
        assert video.frame_at(0.0) is frames[0]
        assert video.frame_at(1.0) is frames[15]
        assert video.frame_at(2.0) is None
        assert video.frame_at(-0.5) is None

    def test_to_dict(self):
        """Verify the player payload includes fps, frames and audio info."""
        from ascii_video.models.audio import AudioTrack
        from ascii_video.models.frame import AsciiVideo

        video = AsciiVideo(
            frames=(_frame(),),
            fps=15.0,
            audio=AudioTrack(mime_type="video/mp4", data=b"x"),
        )
        payload = video.to_dict()

        assert payload["fps"] == 15.0
        assert len(payload["frames"]) == 1
        assert payload["audio"] == {"mime_type": "video/mp4", "path": None, "in_memory": True}


class TestAudioTrack:
    """Tests for the passthrough audio handle."""

    def test_requires_path_or_data(self):
        """Verify an empty handle is rejected."""
        from ascii_video.models.audio import AudioTrack

        with pytest.raises(ValueError):
            AudioTrack(mime_type="video/mp4")

    def test_read_from_path(self, tmp_path):
        """Verify bytes are read from the referenced file."""
        from ascii_video.models.audio import AudioTrack

        path = tmp_path / "clip.mp4"
        path.write_bytes(b"media")
        assert AudioTrack(mime_type="video/mp4", path=str(path)).read_bytes() == b"media"


class TestConversionJob:
    """Tests for the driver's job state machine."""

    def test_legal_path(self):
        """Verify NOT_STARTED -> SAMPLING -> COMPLETED."""
        from ascii_video.models.job import ConversionJob, JobState

        job = ConversionJob(total_steps=4)
        job.transition(JobState.SAMPLING)
        job.processed_frames = 2
        assert job.progress == 50.0
        job.transition(JobState.COMPLETED)

        assert job.state.is_terminal
        assert job.finished_at is not None

    def test_terminal_states_are_final(self):
        """Verify no transition leaves a terminal state."""
        from ascii_video.models.job import ConversionJob, JobState

        job = ConversionJob(total_steps=1)
        job.transition(JobState.SAMPLING)
        job.transition(JobState.CANCELLED)

        with pytest.raises(ValueError):
            job.transition(JobState.SAMPLING)

    def test_cannot_complete_without_sampling(self):
        """Verify NOT_STARTED -> COMPLETED is illegal."""
        from ascii_video.models.job import ConversionJob, JobState

        with pytest.raises(ValueError):
            ConversionJob(total_steps=1).transition(JobState.COMPLETED)


class TestRendering:
    """Tests for text, ANSI and HTML rendering."""

    def test_text(self):
        """Verify plain text rows."""
        from ascii_video.rendering import render_text

        assert render_text(_frame()) == "ab\n<d"

    def test_ansi(self):
        """Verify truecolor escapes are emitted only on color changes."""
        from ascii_video.rendering import ANSI_RESET, render_ansi

        rows = render_ansi(_frame()).split("\n")

        assert rows[0] == f"\x1b[38;2;255;0;0mab{ANSI_RESET}"
        assert rows[1] == f"\x1b[38;2;0;0;255m<\x1b[38;2;10;20;30md{ANSI_RESET}"

    def test_html(self):
        """Verify one escaped, colored span per cell."""
        from ascii_video.rendering import render_html

        markup = render_html(_frame())

        assert markup.count("<span") == 4
        assert markup.count('class="ascii-row"') == 2
        assert '<span style="color: rgb(0, 0, 255)">&lt;</span>' in markup
