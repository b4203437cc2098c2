"""
Pixel-level helpers for the local chroma-distance remover.
All functions take an RGBA uint8 array of shape (H, W, 4) and never modify it.
"""
import numpy as np
from scipy import ndimage

from garment_cutout.models.request import BackgroundColor
from .config import settings


def sample_background_color(rgba: np.ndarray) -> BackgroundColor:
    """
    Estimate the backdrop color as the floor-average of the four corner pixels.

    Assumes a roughly uniform backdrop; vignetting or gradients degrade the estimate.
    """
    h, w = rgba.shape[:2]
    corners = rgba[[0, 0, h - 1, h - 1], [0, w - 1, 0, w - 1], :3].astype(np.int64)
    r, g, b = (int(v) for v in corners.sum(axis=0) // 4)
    return BackgroundColor(r=r, g=g, b=b)


def color_distance(rgba: np.ndarray, color: BackgroundColor) -> np.ndarray:
    """Euclidean RGB distance of every pixel to color, as float64 (H, W)."""
    rgb = rgba[..., :3].astype(np.float64)
    ref = np.array(color.as_tuple(), dtype=np.float64)
    return np.sqrt(((rgb - ref) ** 2).sum(axis=-1))


def detect_center_subject(rgba: np.ndarray, background: BackgroundColor) -> np.ndarray:
    """
    Boolean mask of pixels that look like the garment: clearly off the backdrop color,
    close to the image center, and neither near-black nor near-white.
    """
    h, w = rgba.shape[:2]
    far_from_bg = color_distance(rgba, background) > settings.SUBJECT_COLOR_DISTANCE

    ys, xs = np.mgrid[0:h, 0:w]
    center_dist = np.sqrt((xs - w / 2.0) ** 2 + (ys - h / 2.0) ** 2) / np.sqrt(w * w + h * h)
    near_center = center_dist < settings.SUBJECT_CENTER_RADIUS

    brightness = rgba[..., :3].astype(np.float64).mean(axis=-1)
    mid_tone = (brightness > settings.SUBJECT_MIN_BRIGHTNESS) & (brightness < settings.SUBJECT_MAX_BRIGHTNESS)

    return far_from_bg & near_center & mid_tone


def segment_by_chroma_distance(rgba, background, threshold, keep_mask=None):
    """
    Cut out pixels close to the background color.

    diff <  t           -> alpha 0
    t <= diff < 1.5 t   -> alpha floor((diff - t) / (0.5 t) * 255), a linear soft edge
    diff >= 1.5 t       -> alpha unchanged

    The ramp depends only on color distance, so segmenting an already cut-out image again
    reproduces the same alpha.
    Pixels set in keep_mask are left untouched.
    """
    out = rgba.copy()
    t = float(threshold)
    if t <= 0:
        return out

    diff = color_distance(rgba, background)
    alpha = out[..., 3]

    transparent = diff < t
    band = (diff >= t) & (diff < settings.BAND_FACTOR * t)
    if keep_mask is not None:
        transparent &= ~keep_mask
        band &= ~keep_mask

    ramp = np.floor((diff[band] - t) / ((settings.BAND_FACTOR - 1.0) * t) * 255.0)
    ramp = np.clip(ramp, 0, 255).astype(np.uint8)
    alpha[band] = ramp
    alpha[transparent] = 0
    return out


def smooth_alpha_edges(rgba: np.ndarray, radius: int) -> np.ndarray:
    """
    Box-average the alpha of partially transparent pixels.

    Only pixels with 0 < alpha < 255 change, and only those at least `radius` away from
    every image edge. Window means are read from a snapshot of the input alpha, so the
    result does not depend on scan order.
    """
    out = rgba.copy()
    r = int(radius)
    h, w = rgba.shape[:2]
    if r <= 0 or h <= 2 * r or w <= 2 * r:
        return out

    snapshot = rgba[..., 3].astype(np.int64)
    k = 2 * r + 1
    window_sums = ndimage.correlate(snapshot, np.ones((k, k), dtype=np.int64), mode="constant", cval=0)
    means = window_sums // (k * k)

    edge = (snapshot > 0) & (snapshot < 255)
    inner = np.zeros_like(edge)
    inner[r : h - r, r : w - r] = True
    target = edge & inner

    alpha = out[..., 3]
    alpha[target] = means[target].astype(np.uint8)
    return out
