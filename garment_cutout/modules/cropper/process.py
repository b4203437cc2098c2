# garment_cutout/modules/cropper/process.py

from dataclasses import dataclass

import numpy as np
import structlog

from garment_cutout.errors import EmptyForegroundError

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CropBox:
    """Half-open pixel rectangle [x0, x1) x [y0, y1)."""

    x0: int
    y0: int
    x1: int
    y1: int

    @property
    def width(self) -> int:
        return self.x1 - self.x0

    @property
    def height(self) -> int:
        return self.y1 - self.y0


def find_crop_box(rgba: np.ndarray, padding: int) -> CropBox:
    """
    Padded bounding box around every pixel with alpha > 0, clamped to the image.

    Raises:
        EmptyForegroundError: If no pixel has alpha > 0
    """
    h, w = rgba.shape[:2]
    ys, xs = np.nonzero(rgba[..., 3] > 0)
    if ys.size == 0:
        raise EmptyForegroundError()

    p = max(0, int(padding))
    return CropBox(
        x0=max(0, int(xs.min()) - p),
        y0=max(0, int(ys.min()) - p),
        x1=min(w, int(xs.max()) + p + 1),
        y1=min(h, int(ys.max()) + p + 1),
    )


def run(rgba: np.ndarray, padding: int = 10) -> np.ndarray:
    """
    Crops an RGBA buffer to its non-transparent content plus padding.

    Returns:
        New RGBA buffer no larger than the input
    """
    h, w = rgba.shape[:2]
    box = find_crop_box(rgba, padding)
    cropped = rgba[box.y0 : box.y1, box.x0 : box.x1].copy()
    log.info("Cropper: Cropped to content", input_size=(w, h), output_size=(box.width, box.height),
             box=(box.x0, box.y0, box.x1, box.y1))
    return cropped
