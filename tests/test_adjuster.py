import numpy as np
import pytest

from garment_cutout import ParameterError, adjust_brightness_contrast
from garment_cutout.models import AdjustmentParameters, BackgroundColor
from garment_cutout.modules.adjuster.process import contrast_factor, fill_background, run

from conftest import decode_png, png_bytes, solid


def _gradient() -> np.ndarray:
    img = solid(4, 64, (0, 0, 0), alpha=200)
    img[..., 0] = np.arange(0, 256, 4)[None, :]
    img[..., 1] = 128
    img[..., 2] = 37
    return img


def test_zero_adjustment_is_identity():
    img = _gradient()
    assert np.array_equal(run(img, AdjustmentParameters()), img)


def test_brightness_saturates_and_leaves_alpha():
    img = solid(2, 2, (250, 10, 128), alpha=77)
    out = run(img, AdjustmentParameters(brightness=10))
    assert tuple(out[0, 0, :3]) == (255, 20, 138)
    assert out[0, 0, 3] == 77

    darker = run(img, AdjustmentParameters(brightness=-20))
    assert tuple(darker[0, 0, :3]) == (230, 0, 108)


def test_contrast_stretches_around_mid_gray():
    img = solid(1, 3, (0, 0, 0))
    img[0, :, 0] = (128, 200, 100)
    out = run(img, AdjustmentParameters(contrast=50))
    f = contrast_factor(50)
    assert out[0, 0, 0] == 128
    assert out[0, 1, 0] == min(255, round(f * 72 + 128))
    assert out[0, 2, 0] == round(128 - f * 28)


def test_fill_background_makes_opaque():
    img = solid(3, 3, (0, 0, 255), alpha=0)
    img[1, 1, 3] = 255
    out = fill_background(img, BackgroundColor(r=10, g=20, b=30))
    assert (out[..., 3] == 255).all()
    assert tuple(out[0, 0, :3]) == (10, 20, 30)
    assert tuple(out[1, 1, :3]) == (0, 0, 255)


def test_adjust_operation_encodes_png():
    img = _gradient()
    asset = adjust_brightness_contrast(png_bytes(img), brightness=5)
    assert (asset.width, asset.height) == (64, 4)
    assert asset.method == "adjust"
    decoded = decode_png(asset.encoded_bytes)
    assert (decoded[..., 3] == 200).all()


@pytest.mark.parametrize("kwargs", [{"contrast": 259}, {"brightness": -300}])
def test_out_of_range_adjustments_are_rejected(kwargs):
    with pytest.raises(ParameterError):
        adjust_brightness_contrast(png_bytes(solid(2, 2)), **kwargs)
