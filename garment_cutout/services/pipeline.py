# garment_cutout/services/pipeline.py
import asyncio
import uuid
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, TypeVar, Union

import cv2
import numpy as np
import structlog

from garment_cutout.config import Settings, settings
from garment_cutout.core.debug_utils import save_debug_image
from garment_cutout.errors import CutoutError, MissingApiKeyError, ProcessingError
from garment_cutout.models import (
    AdjustmentParameters,
    BackgroundColor,
    ProcessedImageAsset,
    ProcessingMode,
    Quality,
    SegmentationParameters,
    parse_parameters,
)
from garment_cutout.modules.adjuster import process as adjuster_process
from garment_cutout.modules.cropper import process as cropper_process
from garment_cutout.modules.remover.chroma import process as chroma_process
from garment_cutout.modules.remover.remote import RemoteMattingClient
from garment_cutout.services.codec import (
    ImageFetcher,
    ImageSource,
    decode_image,
    guess_mime,
    has_transparency,
    is_url,
    read_source_bytes,
    to_asset,
)

log = structlog.get_logger(__name__)

T = TypeVar("T")
ColorLike = Union[BackgroundColor, str, None]


def _run_stage(stage: str, fn: Callable[..., T], *args) -> T:
    """Run one decode, pixel or encode stage, reporting unexpected failures as ProcessingError."""
    try:
        return fn(*args)
    except CutoutError:
        raise
    except (ValueError, IndexError, MemoryError, OSError, cv2.error) as e:
        raise ProcessingError(f"{stage} failed: {e}") from e


def _coerce_color(color: ColorLike) -> Optional[BackgroundColor]:
    if color is None or isinstance(color, BackgroundColor):
        return color
    return BackgroundColor.from_hex(color)


# --- Synchronous operations: one decode, one or more pixel stages, one encode ---

def remove_background(
    image: ImageSource,
    threshold: int = 30,
    edge_smoothing_radius: int = 2,
    target_color: ColorLike = None,
    protect_subject: bool = False,
    quality: Optional[Quality] = None,
) -> ProcessedImageAsset:
    """Local chroma-distance cutout. Output has the same size as the (possibly downscaled) input."""
    params = parse_parameters(
        SegmentationParameters,
        threshold=threshold,
        edge_smoothing_radius=edge_smoothing_radius,
        target_color=_coerce_color(target_color),
        protect_subject=protect_subject,
    )
    rgba = _run_stage("decode", decode_image, image, quality)
    cut = _run_stage("segmentation", chroma_process.run, rgba, params)
    return _run_stage("encode", to_asset, cut, "local")


def auto_crop(image: ImageSource, padding: Optional[int] = None) -> ProcessedImageAsset:
    """Crop an image to its non-transparent content plus padding."""
    rgba = _run_stage("decode", decode_image, image)
    pad = settings.CROP_PADDING if padding is None else padding
    cropped = _run_stage("crop", cropper_process.run, rgba, pad)
    return _run_stage("encode", to_asset, cropped, "crop", has_transparency(cropped))


def adjust_brightness_contrast(image: ImageSource, brightness: int = 0, contrast: int = 0) -> ProcessedImageAsset:
    params = parse_parameters(AdjustmentParameters, brightness=brightness, contrast=contrast)
    rgba = _run_stage("decode", decode_image, image)
    adjusted = _run_stage("adjust", adjuster_process.run, rgba, params)
    return _run_stage("encode", to_asset, adjusted, "adjust", has_transparency(adjusted))


def _local_cutout(data: bytes, params: SegmentationParameters, quality: Optional[Quality],
                  padding: int, run_id: str) -> np.ndarray:
    rgba = _run_stage("decode", decode_image, data, quality)
    save_debug_image(run_id, "input", "0_original", rgba)
    cut = _run_stage("segmentation", chroma_process.run, rgba, params, run_id)
    cropped = _run_stage("crop", cropper_process.run, cut, padding)
    save_debug_image(run_id, "output", "3_cropped", cropped)
    return cropped


def _crop_remote(data: bytes, padding: int, run_id: str) -> np.ndarray:
    rgba = _run_stage("decode", decode_image, data)
    save_debug_image(run_id, "remote", "1_matted", rgba)
    return _run_stage("crop", cropper_process.run, rgba, padding)


@dataclass
class BatchItemResult:
    success: bool
    asset: Optional[ProcessedImageAsset] = None
    error: Optional[str] = None


class CutoutPipeline:
    """
    Orchestrates background removal for garment photos.

    Pixel scans run in worker threads via asyncio.to_thread; the only awaited network
    I/O is the remote matting call and URL fetching. Each call owns its buffers, so
    concurrent invocations need no locking.
    """

    def __init__(
        self,
        app_settings: Optional[Settings] = None,
        remote_client: Optional[RemoteMattingClient] = None,
        fetcher: Optional[ImageFetcher] = None,
    ):
        self.settings = app_settings or settings
        self.remote = remote_client or RemoteMattingClient.from_settings(self.settings)
        self.fetcher = fetcher or ImageFetcher()
        log.info("Pipeline initialized", remote_configured=self.remote.configured,
                 provider=self.remote.provider)

    def select_mode(self, mode: ProcessingMode) -> ProcessingMode:
        """Resolve AUTO once, up front, from configuration. Returns LOCAL or REMOTE_API."""
        mode = ProcessingMode(mode)
        if mode is ProcessingMode.LOCAL:
            return ProcessingMode.LOCAL
        if mode is ProcessingMode.REMOTE_API:
            return ProcessingMode.REMOTE_API
        if mode is ProcessingMode.AUTO:
            return ProcessingMode.REMOTE_API if self.remote.configured else ProcessingMode.LOCAL
        raise ValueError(f"Unhandled processing mode: {mode!r}")

    async def process(
        self,
        image: ImageSource,
        mode: ProcessingMode = ProcessingMode.AUTO,
        params: Optional[SegmentationParameters] = None,
        quality: Optional[Quality] = Quality.HIGH,
        neutral_background: bool = False,
        background_color: ColorLike = "#000000",
    ) -> ProcessedImageAsset:
        """
        Turn a garment photo into a cropped, transparent PNG asset.

        Pipeline stages:
        1. Load bytes (fetch URLs)
        2. Local: decode, segment, smooth  |  Remote: matting service, decode
        3. Crop to content
        4. Optional neutral background fill
        5. Encode
        """
        run_id = uuid.uuid4().hex[:12]
        params = params or SegmentationParameters()
        resolved = self.select_mode(mode)
        padding = self.settings.CROP_PADDING
        log.info("Starting pipeline", run_id=run_id, requested_mode=ProcessingMode(mode).value,
                 mode=resolved.value)

        try:
            if resolved is ProcessingMode.REMOTE_API and not self.remote.configured:
                raise MissingApiKeyError(self.remote.provider)
            fill = _coerce_color(background_color) if neutral_background else None

            log.info("Stage 1: Loading image...", run_id=run_id)
            data = await self._load_bytes(image)

            if resolved is ProcessingMode.LOCAL:
                log.info("Stage 2: Removing background locally...", run_id=run_id)
                rgba = await asyncio.to_thread(_local_cutout, data, params, quality, padding, run_id)
                method = "local"
            else:
                log.info("Stage 2: Removing background remotely...", run_id=run_id)
                size = "preview" if quality == Quality.PREVIEW else None
                matted = await self.remote.remove_background(data, guess_mime(data), size)
                log.info("Stage 3: Cropping remote output...", run_id=run_id)
                rgba = await asyncio.to_thread(_crop_remote, matted.encoded_bytes, padding, run_id)
                method = "remote"

            if fill is not None:
                log.info("Stage 4: Filling background...", run_id=run_id)
                rgba = await asyncio.to_thread(_run_stage, "fill", adjuster_process.fill_background, rgba, fill)

            asset = await asyncio.to_thread(_run_stage, "encode", to_asset, rgba, method, fill is None)
        except CutoutError:
            log.exception("Pipeline failed", run_id=run_id, mode=resolved.value)
            raise

        log.info("Pipeline complete", run_id=run_id, width=asset.width, height=asset.height, method=method)
        return asset

    async def remove_background(self, image: ImageSource, params: Optional[SegmentationParameters] = None,
                                quality: Optional[Quality] = None) -> ProcessedImageAsset:
        """Local cutout without cropping, off the event loop."""
        params = params or SegmentationParameters()
        data = await self._load_bytes(image)
        return await asyncio.to_thread(
            remove_background,
            data,
            params.threshold,
            params.edge_smoothing_radius,
            params.target_color,
            params.protect_subject,
            quality,
        )

    async def remove_background_remote(self, image: ImageSource) -> ProcessedImageAsset:
        """The matting service's output as-is. Raises ConfigError before any request if unconfigured."""
        if not self.remote.configured:
            raise MissingApiKeyError(self.remote.provider)
        data = await self._load_bytes(image)
        return await self.remote.remove_background(data, guess_mime(data))

    async def auto_crop(self, image: ImageSource, padding: Optional[int] = None) -> ProcessedImageAsset:
        data = await self._load_bytes(image)
        pad = self.settings.CROP_PADDING if padding is None else padding
        return await asyncio.to_thread(auto_crop, data, pad)

    async def adjust_brightness_contrast(self, image: ImageSource, params: Optional[AdjustmentParameters] = None
                                         ) -> ProcessedImageAsset:
        params = params or AdjustmentParameters()
        data = await self._load_bytes(image)
        return await asyncio.to_thread(adjust_brightness_contrast, data, params.brightness, params.contrast)

    async def preview(self, image: ImageSource) -> ProcessedImageAsset:
        """Fast, low-resolution local cutout for instant feedback."""
        return await self.process(image, mode=ProcessingMode.LOCAL, quality=Quality.PREVIEW)

    async def process_batch(self, images: Iterable[ImageSource], **options) -> List[BatchItemResult]:
        """Process images one after another; a failure is recorded and the batch continues."""
        results: List[BatchItemResult] = []
        items = list(images)
        for index, image in enumerate(items, start=1):
            log.info("Batch item", index=index, total=len(items))
            try:
                asset = await self.process(image, **options)
                results.append(BatchItemResult(success=True, asset=asset))
            except CutoutError as e:
                results.append(BatchItemResult(success=False, error=str(e)))
        log.info("Batch complete", total=len(items), failed=sum(1 for r in results if not r.success))
        return results

    async def has_transparent_background(self, image: ImageSource) -> bool:
        data = await self._load_bytes(image)
        rgba = await asyncio.to_thread(_run_stage, "decode", decode_image, data)
        return has_transparency(rgba)

    async def _load_bytes(self, image: ImageSource) -> bytes:
        if is_url(image):
            return await self.fetcher.fetch(image)
        return await asyncio.to_thread(read_source_bytes, image)

    async def close(self):
        await self.remote.close()
        await self.fetcher.close()
