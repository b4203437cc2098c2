# garment_cutout/modules/remover/chroma/process.py
"""
Local background removal by chroma distance to the sampled backdrop color.

Stages:
  1) Sample the backdrop color from the four corners (unless the caller supplies one)
  2) Segment: transparent / soft ramp / unchanged by distance to that color
  3) Smooth the alpha of partially transparent edge pixels
"""
from typing import Optional

import numpy as np
import structlog

from garment_cutout.core.debug_utils import save_debug_heatmap
from garment_cutout.models.request import SegmentationParameters
from . import utils

log = structlog.get_logger(__name__)


def run(rgba: np.ndarray, params: SegmentationParameters, run_id: Optional[str] = None) -> np.ndarray:
    """
    Removes the background from an RGBA buffer and returns a new buffer.

    Args:
        rgba: Decoded image, uint8 (H, W, 4)
        params: Threshold, smoothing radius and optional backdrop color

    Returns:
        New RGBA buffer with the alpha channel cut out
    """
    h, w = rgba.shape[:2]
    log.info("Chroma: Starting process.", width=w, height=h, threshold=params.threshold)

    # --- STEP 1: BACKGROUND COLOR ---
    background = params.target_color or utils.sample_background_color(rgba)
    log.info("Chroma: Background color", r=background.r, g=background.g, b=background.b,
             sampled=params.target_color is None)

    # --- STEP 2: SEGMENTATION ---
    keep_mask = utils.detect_center_subject(rgba, background) if params.protect_subject else None
    segmented = utils.segment_by_chroma_distance(rgba, background, params.threshold, keep_mask=keep_mask)
    if run_id:
        save_debug_heatmap(run_id, "alpha", "1_segmented", segmented[..., 3])

    # --- STEP 3: EDGE SMOOTHING ---
    if params.edge_smoothing_radius > 0:
        log.info("Chroma: Smoothing edges...", radius=params.edge_smoothing_radius)
        smoothed = utils.smooth_alpha_edges(segmented, params.edge_smoothing_radius)
        if run_id:
            save_debug_heatmap(run_id, "alpha", "2_smoothed", smoothed[..., 3])
    else:
        smoothed = segmented

    transparent = int((smoothed[..., 3] == 0).sum())
    log.info("Chroma: Process completed.", transparent_pixels=transparent, total_pixels=h * w)
    return smoothed
