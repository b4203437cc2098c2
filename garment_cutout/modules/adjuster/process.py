# garment_cutout/modules/adjuster/process.py

import numpy as np
import structlog
from PIL import Image

from garment_cutout.models.request import AdjustmentParameters, BackgroundColor

log = structlog.get_logger(__name__)


def contrast_factor(contrast: int) -> float:
    return (259.0 * (contrast + 255)) / (255.0 * (259 - contrast))


def run(rgba: np.ndarray, params: AdjustmentParameters) -> np.ndarray:
    """
    Applies brightness then contrast to the RGB channels. Alpha is untouched.

    Each step saturates to [0, 255] like an 8-bit clamped canvas buffer.
    """
    log.info("Adjuster: Starting process.", brightness=params.brightness, contrast=params.contrast)
    out = rgba.copy()
    rgb = rgba[..., :3].astype(np.float64)

    rgb = np.clip(rgb + params.brightness, 0, 255)
    rgb = contrast_factor(params.contrast) * (rgb - 128.0) + 128.0
    # np.rint rounds half to even, matching Uint8Clamped assignment
    out[..., :3] = np.clip(np.rint(rgb), 0, 255).astype(np.uint8)

    log.info("Adjuster: Process completed.")
    return out


def fill_background(rgba: np.ndarray, color: BackgroundColor) -> np.ndarray:
    """Composite the cut-out over a solid color, producing a fully opaque buffer."""
    foreground = Image.fromarray(np.ascontiguousarray(rgba))
    backdrop = Image.new("RGBA", foreground.size, (*color.as_tuple(), 255))
    composed = Image.alpha_composite(backdrop, foreground)
    log.info("Adjuster: Background filled", color=color.as_tuple())
    return np.array(composed, dtype=np.uint8)
