# garment_cutout/core/debug_utils.py

import numpy as np
import cv2
import structlog
from PIL import Image
from pathlib import Path

from garment_cutout.config import settings

log = structlog.get_logger(__name__)


def save_debug_image(run_id: str, image_key: str, step_name: str, image_data):
    """
    Saves an image to a debug folder if DEBUG_SAVE_IMAGES is enabled.
    Handles PIL Images, RGBA/RGB/BGR NumPy arrays and single-channel alpha mattes.
    """
    if not settings.DEBUG_SAVE_IMAGES:
        return

    try:
        debug_dir = Path(settings.OUTPUT_DIR) / "debug" / str(run_id)
        debug_dir.mkdir(parents=True, exist_ok=True)
        filepath = debug_dir / f"{image_key}_{step_name}.png"

        pil_image = None
        if isinstance(image_data, Image.Image):
            pil_image = image_data
        elif isinstance(image_data, np.ndarray):
            # 3-channel arrays come from OpenCV and are BGR
            if image_data.ndim == 3 and image_data.shape[2] == 3:
                image_data = cv2.cvtColor(image_data, cv2.COLOR_BGR2RGB)
            pil_image = Image.fromarray(np.ascontiguousarray(image_data))

        if pil_image:
            pil_image.save(filepath, "PNG")

    except Exception as e:
        # A failed debug save must not abort the pipeline
        log.warning("Failed to save debug image", step=step_name, error=str(e))


def save_debug_heatmap(run_id: str, image_key: str, step_name: str, alpha: np.ndarray):
    """
    Generates a color heatmap from a uint8 alpha channel and saves it.
    """
    if not settings.DEBUG_SAVE_IMAGES:
        return

    try:
        heatmap = cv2.applyColorMap(alpha.astype(np.uint8), cv2.COLORMAP_JET)
        save_debug_image(run_id, image_key, f"{step_name}_heatmap", heatmap)
    except Exception as e:
        log.warning("Failed to save debug heatmap", step=step_name, error=str(e))
