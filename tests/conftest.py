from __future__ import annotations

from io import BytesIO

import numpy as np
import pytest
from PIL import Image

WHITE = (255, 255, 255)
BLUE = (0, 0, 255)


def png_bytes(rgba: np.ndarray) -> bytes:
    buf = BytesIO()
    Image.fromarray(rgba.astype(np.uint8)).save(buf, format="PNG")
    return buf.getvalue()


def decode_png(data: bytes) -> np.ndarray:
    return np.array(Image.open(BytesIO(data)).convert("RGBA"))


def solid(h: int, w: int, rgb=WHITE, alpha: int = 255) -> np.ndarray:
    img = np.zeros((h, w, 4), dtype=np.uint8)
    img[..., :3] = rgb
    img[..., 3] = alpha
    return img


def blue_square_on_white() -> np.ndarray:
    """100x100 white image with a solid blue 50x50 square at [25:75, 25:75]."""
    img = solid(100, 100, WHITE)
    img[25:75, 25:75, :3] = BLUE
    return img


@pytest.fixture
def garment_rgba() -> np.ndarray:
    return blue_square_on_white()


@pytest.fixture
def garment_png() -> bytes:
    return png_bytes(blue_square_on_white())


@pytest.fixture
def blank_png() -> bytes:
    return png_bytes(solid(40, 40, WHITE))
