"""
FastAPI service exposing the garment cutout pipeline.
"""
from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI, File, Form, HTTPException, UploadFile
from fastapi.responses import Response

from garment_cutout.config import settings
from garment_cutout.errors import (
    ConfigError,
    CutoutError,
    DecodeError,
    EmptyForegroundError,
    ParameterError,
    RemoteError,
    RemoteTimeoutError,
)
from garment_cutout.models import (
    AdjustmentParameters,
    ProcessedImageAsset,
    ProcessingMode,
    Quality,
    SegmentationParameters,
    parse_parameters,
)
from garment_cutout.services.pipeline import CutoutPipeline

log = structlog.get_logger(__name__)

# Global pipeline instance, owned by the app lifespan
pipeline: Optional[CutoutPipeline] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the pipeline (and its HTTP sessions) on startup and close them on shutdown."""
    global pipeline

    log.info("Starting service initialization...")
    pipeline = CutoutPipeline(settings)
    log.info("Service initialization complete. Ready to process requests.")

    yield

    log.info("Shutting down service...")
    if pipeline:
        await pipeline.close()
    log.info("Service shutdown complete.")


app = FastAPI(
    title="Garment Cutout Service",
    description="Background removal and cropping for clothing photos",
    version="1.0.0",
    lifespan=lifespan,
)


def _to_http_error(e: CutoutError) -> HTTPException:
    if isinstance(e, (DecodeError, ParameterError, ConfigError)):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, EmptyForegroundError):
        return HTTPException(status_code=422, detail=str(e))
    if isinstance(e, RemoteTimeoutError):
        return HTTPException(status_code=504, detail=str(e))
    if isinstance(e, RemoteError):
        return HTTPException(status_code=502, detail=str(e))
    return HTTPException(status_code=500, detail=f"Processing failed: {e}")


def _png_response(asset: ProcessedImageAsset) -> Response:
    return Response(
        content=asset.encoded_bytes,
        media_type="image/png",
        headers={
            "X-Cutout-Method": asset.method,
            "X-Image-Width": str(asset.width),
            "X-Image-Height": str(asset.height),
        },
    )


async def _read_upload(file: UploadFile) -> bytes:
    data = await file.read()
    if len(data) > settings.MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=413, detail="Image too large")
    if not data:
        raise HTTPException(status_code=400, detail="Empty upload")
    return data


def _get_pipeline() -> CutoutPipeline:
    if not pipeline:
        raise HTTPException(status_code=503, detail="Service not initialized")
    return pipeline


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "remote_configured": pipeline.remote.configured if pipeline else False,
    }


@app.post("/remove-background")
async def remove_background(
    file: UploadFile = File(...),
    mode: str = Form(ProcessingMode.AUTO.value),
    threshold: int = Form(30),
    edge_smoothing_radius: int = Form(2),
    quality: str = Form(Quality.HIGH.value),
    protect_subject: bool = Form(False),
    neutral_background: bool = Form(False),
    background_color: str = Form("#000000"),
):
    """
    Cut out a garment photo and return a cropped transparent PNG.

    mode: "local", "api" or "auto" (remote when a key is configured)
    """
    active = _get_pipeline()
    data = await _read_upload(file)
    try:
        processing_mode = ProcessingMode(mode)
        quality_preset = Quality(quality)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    log.info("Received remove-background request", filename=file.filename, mode=processing_mode.value)
    try:
        params = parse_parameters(
            SegmentationParameters,
            threshold=threshold,
            edge_smoothing_radius=edge_smoothing_radius,
            protect_subject=protect_subject,
        )
        asset = await active.process(
            data,
            mode=processing_mode,
            params=params,
            quality=quality_preset,
            neutral_background=neutral_background,
            background_color=background_color,
        )
    except CutoutError as e:
        raise _to_http_error(e) from e
    return _png_response(asset)


@app.post("/auto-crop")
async def auto_crop(file: UploadFile = File(...), padding: Optional[int] = Form(None)):
    active = _get_pipeline()
    data = await _read_upload(file)
    try:
        asset = await active.auto_crop(data, padding)
    except CutoutError as e:
        raise _to_http_error(e) from e
    return _png_response(asset)


@app.post("/adjust")
async def adjust(file: UploadFile = File(...), brightness: int = Form(0), contrast: int = Form(0)):
    active = _get_pipeline()
    data = await _read_upload(file)
    try:
        params = parse_parameters(AdjustmentParameters, brightness=brightness, contrast=contrast)
        asset = await active.adjust_brightness_contrast(data, params)
    except CutoutError as e:
        raise _to_http_error(e) from e
    return _png_response(asset)


@app.get("/")
async def root():
    """Root endpoint with service info."""
    return {
        "service": "Garment Cutout Service",
        "version": "1.0.0",
        "endpoints": {
            "health": "/health",
            "remove_background": "/remove-background",
            "auto_crop": "/auto-crop",
            "adjust": "/adjust",
        },
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        workers=settings.WORKERS,
        log_level=settings.LOG_LEVEL.lower(),
    )
