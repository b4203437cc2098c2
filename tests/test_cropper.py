import numpy as np
import pytest

from garment_cutout.errors import EmptyForegroundError
from garment_cutout.modules.cropper.process import CropBox, find_crop_box, run

from conftest import solid


def _transparent_with_opaque(h, w, ys, xs):
    img = solid(h, w, (255, 255, 255), alpha=0)
    img[ys, xs, 3] = 255
    return img


def test_blue_square_crops_to_padded_box():
    img = _transparent_with_opaque(100, 100, slice(25, 75), slice(25, 75))
    box = find_crop_box(img, padding=10)
    assert box == CropBox(x0=15, y0=15, x1=85, y1=85)
    out = run(img, padding=10)
    assert out.shape == (70, 70, 4)
    assert (out[10:60, 10:60, 3] == 255).all()
    assert (out[:10, :, 3] == 0).all()


def test_fully_opaque_image_keeps_its_size():
    img = solid(37, 53, (10, 20, 30))
    out = run(img, padding=10)
    assert out.shape == img.shape
    assert np.array_equal(out, img)


def test_box_is_clamped_to_image_bounds():
    img = _transparent_with_opaque(100, 80, slice(95, 100), slice(0, 3))
    box = find_crop_box(img, padding=10)
    assert box == CropBox(x0=0, y0=85, x1=13, y1=100)
    out = run(img, padding=10)
    assert out.shape[0] <= 100 and out.shape[1] <= 80


def test_partial_alpha_counts_as_foreground():
    img = solid(20, 20, (0, 0, 0), alpha=0)
    img[10, 10, 3] = 1
    assert find_crop_box(img, padding=0) == CropBox(x0=10, y0=10, x1=11, y1=11)


def test_empty_foreground_raises():
    with pytest.raises(EmptyForegroundError):
        run(solid(10, 10, (0, 0, 0), alpha=0))


def test_crop_returns_independent_buffer():
    img = _transparent_with_opaque(30, 30, slice(10, 20), slice(10, 20))
    out = run(img, padding=2)
    out[..., 3] = 0
    assert img[15, 15, 3] == 255
