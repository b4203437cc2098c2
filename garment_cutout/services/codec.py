"""
Image codec glue: bytes/paths/URLs in, RGBA pixel buffers out, PNG assets back.
"""
import base64
from io import BytesIO
from pathlib import Path
from typing import Optional, Union

import cv2
import httpx
import numpy as np
import structlog
from PIL import Image, ImageOps, UnidentifiedImageError

from garment_cutout.errors import DecodeError
from garment_cutout.models import ProcessedImageAsset, Quality
from garment_cutout.modules.remover.chroma.config import settings as chroma_settings

log = structlog.get_logger(__name__)

ImageSource = Union[bytes, bytearray, str, Path]


def is_url(source: ImageSource) -> bool:
    return isinstance(source, str) and source.lower().startswith(("http://", "https://"))


def read_source_bytes(source: ImageSource) -> bytes:
    """Return the encoded bytes behind a local source (raw bytes or a file path)."""
    if isinstance(source, (bytes, bytearray)):
        return bytes(source)
    if is_url(source):
        raise DecodeError("URL sources must be fetched with ImageFetcher before decoding")
    path = Path(source)
    try:
        return path.read_bytes()
    except OSError as e:
        raise DecodeError(f"Could not read image file {path}: {e}") from e


def guess_mime(data: bytes) -> str:
    """MIME type from the image header, without decoding pixels."""
    try:
        with Image.open(BytesIO(data)) as image:
            return Image.MIME.get(image.format or "", "application/octet-stream")
    except (UnidentifiedImageError, OSError):
        return "application/octet-stream"


def decode_image(source: ImageSource, quality: Optional[Quality] = None) -> np.ndarray:
    """
    Decode an encoded image into an RGBA uint8 array of shape (H, W, 4).

    Args:
        source: Encoded bytes or a path to an image file
        quality: Optional working-resolution preset; images are only ever downscaled

    Raises:
        DecodeError: If the data is missing, corrupt or in an unsupported format
    """
    data = read_source_bytes(source)
    if not data:
        raise DecodeError("Empty image data")

    try:
        image = Image.open(BytesIO(data))
        # Force Pillow to read the whole stream now so truncated files fail here.
        image.load()
        image = ImageOps.exif_transpose(image)
        rgba = np.array(image.convert("RGBA"), dtype=np.uint8)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        raise DecodeError(f"Could not decode image: {e}") from e

    if rgba.ndim != 3 or rgba.shape[2] != 4 or rgba.shape[0] == 0 or rgba.shape[1] == 0:
        raise DecodeError(f"Unexpected decoded image shape {rgba.shape}")

    if quality is not None:
        rgba = downscale(rgba, chroma_settings.max_side_for(quality))

    log.info("Image decoded", width=rgba.shape[1], height=rgba.shape[0], quality=quality)
    return rgba


def downscale(rgba: np.ndarray, max_side: int) -> np.ndarray:
    """Shrink so the longest side is at most max_side. Never upscales."""
    h, w = rgba.shape[:2]
    scale = min(1.0, float(max_side) / float(max(h, w)))
    if scale >= 1.0:
        return rgba
    new_w = max(1, int(round(w * scale)))
    new_h = max(1, int(round(h * scale)))
    return cv2.resize(rgba, (new_w, new_h), interpolation=cv2.INTER_AREA)


def encode_png(rgba: np.ndarray) -> bytes:
    """Encode an RGBA buffer as a lossless PNG."""
    buf = BytesIO()
    Image.fromarray(np.ascontiguousarray(rgba)).save(buf, format="PNG", optimize=False)
    return buf.getvalue()


def to_data_uri(png_bytes: bytes) -> str:
    return "data:image/png;base64," + base64.b64encode(png_bytes).decode("ascii")


def to_asset(rgba: np.ndarray, method: str, has_transparency: bool = True) -> ProcessedImageAsset:
    png = encode_png(rgba)
    h, w = rgba.shape[:2]
    return ProcessedImageAsset(
        encoded_bytes=png,
        display_ref=to_data_uri(png),
        width=w,
        height=h,
        method=method,
        has_transparency=has_transparency,
    )


def has_transparency(rgba: np.ndarray) -> bool:
    """True when any pixel is less than fully opaque."""
    return bool((rgba[..., 3] < 255).any())


class ImageFetcher:
    """
    Fetches encoded images over HTTP.

    The instance owns its httpx client; whoever creates the fetcher closes it.
    There are no retries: a failed fetch is reported to the caller as a DecodeError.
    """

    def __init__(self, timeout: float = 30.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._client = httpx.AsyncClient(timeout=timeout, follow_redirects=True, transport=transport)

    async def fetch(self, url: str) -> bytes:
        log.info("Fetching image", url=url)
        try:
            response = await self._client.get(url)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            log.warning("HTTP error fetching image", url=url, status_code=e.response.status_code)
            raise DecodeError(f"Image fetch refused with HTTP {e.response.status_code}: {url}") from e
        except httpx.RequestError as e:
            log.warning("Network error fetching image", url=url, error=str(e))
            raise DecodeError(f"Could not fetch image {url}: {e}") from e

        log.info("Image fetched", url=url, size_bytes=len(response.content))
        return response.content

    async def close(self):
        if not self._client.is_closed:
            await self._client.aclose()
            log.info("Image fetcher client closed")
