"""
Command Line Interface
======================

Convert a local video file to an ASCII video JSON document.

Usage:
    ascii-video clip.mp4 --width 80 --output clip.json
    ascii-video clip.mp4 --charset standard --print-frame 0
    ascii-video clip.mp4 --charset " .:#" --frame-skip 3

Ctrl-C cancels cooperatively: the current step finishes, partial
work is discarded and the process exits with status 130.
"""

import argparse
import asyncio
import json
import logging
import signal
import sys
from typing import List, Optional

from ascii_video.config import load_config, setup_logging
from ascii_video.conversion.cancellation import CancellationToken
from ascii_video.conversion.driver import ConversionDriver
from ascii_video.errors import AsciiVideoError
from ascii_video.models.frame import AsciiVideo
from ascii_video.rendering import render_ansi
from ascii_video.source.opencv_source import OpenCVVideoSource


logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ascii-video",
        description="Convert a video into colored ASCII frames",
    )
    parser.add_argument("input", help="Path to the video file")
    parser.add_argument("--width", type=int, default=None, help="Grid width in characters")
    parser.add_argument(
        "--charset",
        default=None,
        help="Preset (simple, standard, extended) or literal ramp, darkest first",
    )
    parser.add_argument("--frame-skip", type=int, default=None, help="Native frames per step")
    parser.add_argument("--output", "-o", default=None, help="Write AsciiVideo JSON here")
    parser.add_argument(
        "--print-frame",
        type=int,
        default=None,
        metavar="INDEX",
        help="Print one converted frame with ANSI colors",
    )
    parser.add_argument("--config", default=None, help="Path to config.yaml")
    return parser


async def convert_file(
    path: str,
    driver: ConversionDriver,
    width: int,
    token: CancellationToken,
) -> AsciiVideo:
    """Open a file and run one conversion job on it."""
    source = await asyncio.to_thread(OpenCVVideoSource.open, path)

    last_logged = -10.0

    def on_progress(percent: float, preview: Optional[str]) -> None:
        nonlocal last_logged
        if percent - last_logged >= 10:
            logger.info(f"Converting... {percent:.0f}%")
            last_logged = percent

    return await driver.convert(source, width, on_progress, token)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    settings = load_config(args.config)
    setup_logging(settings)

    conversion = settings.conversion
    if args.frame_skip is not None:
        conversion = conversion.model_copy(update={"frame_skip": max(1, args.frame_skip)})
    width = args.width if args.width is not None else conversion.target_width

    token = CancellationToken()
    previous_handler = signal.signal(signal.SIGINT, lambda signum, frame: token.cancel())

    try:
        driver = ConversionDriver.from_config(conversion, args.charset)
        video = asyncio.run(convert_file(args.input, driver, width, token))
    except (AsciiVideoError, ValueError) as e:
        logger.error(str(e))
        return 1
    finally:
        signal.signal(signal.SIGINT, previous_handler)

    # A Ctrl-C after the driver's last poll leaves a complete video
    if token.is_cancelled() and not video.frames:
        logger.warning("Conversion cancelled, nothing written")
        return 130

    logger.info(f"Converted {len(video.frames)} frames at {video.fps:g}fps")

    if args.output:
        with open(args.output, "w") as f:
            json.dump(video.to_dict(), f)
        logger.info(f"Wrote {args.output}")

    if args.print_frame is not None:
        if not 0 <= args.print_frame < len(video.frames):
            logger.error(f"Frame {args.print_frame} out of range (0..{len(video.frames) - 1})")
            return 1
        print(render_ansi(video.frames[args.print_frame]))

    return 0


if __name__ == "__main__":
    sys.exit(main())
