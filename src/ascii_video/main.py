"""
ASCII Video Service
===================

FastAPI entry point for the video-to-ASCII converter.

Endpoints:
    GET  /                          - Service information
    GET  /health                    - Liveness probe
    GET  /presets                   - Named character ramps
    POST /jobs                      - Start a conversion (raw video bytes as body)
    GET  /jobs/{job_id}             - Job status, progress and latest preview
    POST /jobs/{job_id}/cancel      - Cooperative cancellation
    DELETE /jobs/{job_id}           - Forget a job (cancels it if running)
    GET  /jobs/{job_id}/result      - Converted AsciiVideo
    GET  /jobs/{job_id}/frames/{i}  - One frame rendered as text, ansi or html
    GET  /jobs/{job_id}/audio       - Original media for audio playback
    WS   /ws/jobs/{job_id}          - Status pushed until the job ends
"""

import asyncio
import logging
import os
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Query, Request, WebSocket
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from starlette.websockets import WebSocketDisconnect

from ascii_video.config import SourceConfig, settings
from ascii_video.conversion.ramp import PRESETS
from ascii_video.errors import (
    InvalidRampError,
    JobNotFoundError,
    JobNotReadyError,
    SourceLoadError,
)
from ascii_video.jobs import JobManager, SourceFactory, load_opencv_source
from ascii_video.rendering import render_ansi, render_html, render_text
from ascii_video.source.base import VideoSource
from ascii_video.source.synthetic import SyntheticVideoSource, horizontal_gradient


logger = logging.getLogger(__name__)


# =============================================================================
# Global State
# =============================================================================

_job_manager: Optional[JobManager] = None
_startup_time: float = 0.0


def get_job_manager() -> JobManager:
    if _job_manager is None:
        raise RuntimeError("Job manager not initialized")
    return _job_manager


# =============================================================================
# Source Backend Factory
# =============================================================================

def create_source_factory(config: SourceConfig) -> SourceFactory:
    """
    Create the source factory selected by config.

    Fails fast on an unknown backend.
    """
    backend = config.backend

    if backend == "opencv":
        logger.info("Using OpenCVVideoSource")

        async def opencv_factory(data: bytes, filename: str) -> VideoSource:
            return await load_opencv_source(data, filename, config.work_dir)

        return opencv_factory

    elif backend == "synthetic":
        synthetic = config.synthetic
        logger.info(
            f"Using SyntheticVideoSource: {synthetic.width}x{synthetic.height}, "
            f"duration={synthetic.duration}s"
        )

        async def synthetic_factory(data: bytes, filename: str) -> VideoSource:
            return SyntheticVideoSource(
                width=synthetic.width,
                height=synthetic.height,
                duration=synthetic.duration,
                raster_fn=lambda _t: horizontal_gradient(synthetic.width, synthetic.height),
            )

        return synthetic_factory

    else:
        raise ValueError(f"Unknown source backend: {backend}")


# =============================================================================
# Lifespan Management
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan manager with graceful shutdown."""
    global _job_manager, _startup_time

    _startup_time = time.time()
    logger.info(f"Starting {settings.app.name} {settings.app.version}")

    _job_manager = JobManager(
        source_factory=create_source_factory(settings.source),
        conversion=settings.conversion,
        source=settings.source,
        max_finished_jobs=settings.jobs.max_finished,
    )

    yield

    logger.info("Shutting down gracefully...")
    await _job_manager.shutdown()
    _job_manager = None
    logger.info("Shutdown complete")


# =============================================================================
# FastAPI Application
# =============================================================================

app = FastAPI(
    title="ASCII Video Converter",
    description="Converts videos into colored character-art animations",
    version=settings.app.version,
    lifespan=lifespan,
)


def _not_found(e: JobNotFoundError) -> JSONResponse:
    return JSONResponse({"error": str(e)}, status_code=404)


# =============================================================================
# HTTP Endpoints
# =============================================================================

@app.get("/")
async def root() -> JSONResponse:
    """Service information endpoint."""
    return JSONResponse({
        "service": settings.app.name,
        "version": settings.app.version,
        "status": "running",
        "source_backend": settings.source.backend,
        "defaults": {
            "width": settings.conversion.target_width,
            "frame_skip": settings.conversion.frame_skip,
            "character_set": settings.conversion.character_set,
        },
    })


@app.get("/health")
async def health() -> JSONResponse:
    """Liveness probe. Always 200 while the process runs."""
    return JSONResponse({
        "status": "healthy",
        "uptime_seconds": round(time.time() - _startup_time, 1),
        "jobs": get_job_manager().job_count,
    })


@app.get("/presets")
async def presets() -> JSONResponse:
    return JSONResponse(PRESETS)


@app.post("/jobs")
async def start_job(
    request: Request,
    filename: str = Query(default="upload.mp4"),
    width: Optional[int] = Query(default=None, ge=1, le=400),
    character_set: Optional[str] = Query(default=None),
) -> JSONResponse:
    """Start converting the request body."""
    data = await request.body()

    try:
        job_id = await get_job_manager().start(
            data,
            filename,
            width=width,
            character_set=character_set,
        )
    except SourceLoadError as e:
        return JSONResponse({"error": str(e)}, status_code=400)
    except InvalidRampError as e:
        return JSONResponse({"error": str(e)}, status_code=422)

    return JSONResponse(
        get_job_manager().status(job_id).model_dump(mode="json"),
        status_code=202,
    )


@app.get("/jobs/{job_id}")
async def job_status(job_id: str) -> JSONResponse:
    try:
        status = get_job_manager().status(job_id)
    except JobNotFoundError as e:
        return _not_found(e)
    return JSONResponse(status.model_dump(mode="json"))


@app.post("/jobs/{job_id}/cancel")
async def cancel_job(job_id: str) -> JSONResponse:
    try:
        status = get_job_manager().cancel(job_id)
    except JobNotFoundError as e:
        return _not_found(e)
    return JSONResponse(status.model_dump(mode="json"))


@app.delete("/jobs/{job_id}")
async def delete_job(job_id: str) -> Response:
    """Forget a job and release its result."""
    try:
        get_job_manager().remove(job_id)
    except JobNotFoundError as e:
        return _not_found(e)
    return Response(status_code=204)


@app.get("/jobs/{job_id}/result")
async def job_result(job_id: str) -> JSONResponse:
    try:
        video = get_job_manager().result(job_id)
    except JobNotFoundError as e:
        return _not_found(e)
    except JobNotReadyError as e:
        return JSONResponse({"error": str(e)}, status_code=409)
    return JSONResponse(video.to_dict())


@app.get("/jobs/{job_id}/frames/{index}")
async def job_frame(
    job_id: str,
    index: int,
    format: str = Query(default="text", pattern="^(text|ansi|html)$"),
) -> Response:
    """Render one frame of a completed job."""
    try:
        video = get_job_manager().result(job_id)
    except JobNotFoundError as e:
        return _not_found(e)
    except JobNotReadyError as e:
        return JSONResponse({"error": str(e)}, status_code=409)

    if not 0 <= index < len(video.frames):
        return JSONResponse(
            {"error": f"Frame {index} out of range (0..{len(video.frames) - 1})"},
            status_code=404,
        )

    frame = video.frames[index]
    if format == "html":
        return Response(render_html(frame), media_type="text/html")
    if format == "ansi":
        return PlainTextResponse(render_ansi(frame))
    return PlainTextResponse(render_text(frame))


@app.get("/jobs/{job_id}/audio")
async def job_audio(job_id: str) -> Response:
    """Original media bytes, for playing the audio alongside the frames."""
    try:
        video = get_job_manager().result(job_id)
    except JobNotFoundError as e:
        return _not_found(e)
    except JobNotReadyError as e:
        return JSONResponse({"error": str(e)}, status_code=409)

    if video.audio is None:
        return JSONResponse({"error": "No audio track"}, status_code=404)

    content = await asyncio.to_thread(video.audio.read_bytes)
    return Response(content, media_type=video.audio.mime_type)


# =============================================================================
# WebSocket Endpoints
# =============================================================================

@app.websocket("/ws/jobs/{job_id}")
async def job_status_stream(websocket: WebSocket, job_id: str) -> None:
    """Push job status until it reaches a terminal state."""
    await websocket.accept()
    manager = get_job_manager()

    try:
        while True:
            try:
                status = manager.status(job_id)
            except JobNotFoundError as e:
                await websocket.send_json({"error": str(e)})
                break

            await websocket.send_json(status.model_dump(mode="json"))
            if status.status.is_terminal:
                break
            await asyncio.sleep(settings.server.status_interval_seconds)

    except WebSocketDisconnect:
        logger.info(f"Client disconnected from /ws/jobs/{job_id}")
        return

    await websocket.close()


# =============================================================================
# Main Entry Point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    port = int(os.environ.get("PORT", settings.server.port))

    uvicorn.run(
        "ascii_video.main:app",
        host=settings.server.host,
        port=port,
        reload=False,
    )
