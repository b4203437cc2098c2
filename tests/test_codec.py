import asyncio
import base64
from io import BytesIO

import httpx
import numpy as np
import pytest
from PIL import Image

from garment_cutout.errors import DecodeError
from garment_cutout.models import Quality
from garment_cutout.services.codec import (
    ImageFetcher,
    decode_image,
    guess_mime,
    has_transparency,
    to_asset,
)

from conftest import decode_png, png_bytes, solid


def test_decode_png_bytes_to_rgba(garment_png):
    rgba = decode_image(garment_png)
    assert rgba.shape == (100, 100, 4)
    assert rgba.dtype == np.uint8
    assert tuple(rgba[50, 50]) == (0, 0, 255, 255)


def test_decode_grayscale_jpeg_is_opaque_rgba():
    buf = BytesIO()
    Image.new("L", (20, 10), 90).save(buf, format="JPEG")
    rgba = decode_image(buf.getvalue())
    assert rgba.shape == (10, 20, 4)
    assert (rgba[..., 3] == 255).all()


def test_decode_from_path(tmp_path, garment_png):
    path = tmp_path / "shirt.png"
    path.write_bytes(garment_png)
    assert decode_image(str(path)).shape == (100, 100, 4)
    assert decode_image(path).shape == (100, 100, 4)


@pytest.mark.parametrize("data", [b"", b"not an image at all", b"\x89PNG\r\n\x1a\n\x00\x00"])
def test_corrupt_data_raises_decode_error(data):
    with pytest.raises(DecodeError):
        decode_image(data)


def test_missing_file_raises_decode_error(tmp_path):
    with pytest.raises(DecodeError):
        decode_image(tmp_path / "nope.png")


def test_quality_preset_only_downscales():
    big = png_bytes(solid(800, 1600))
    assert decode_image(big, Quality.PREVIEW).shape[:2] == (400, 800)
    small = png_bytes(solid(30, 40))
    assert decode_image(small, Quality.PREVIEW).shape[:2] == (30, 40)


def test_to_asset_round_trips_pixels():
    img = solid(5, 7, (1, 2, 3), alpha=0)
    img[2, 3] = (9, 8, 7, 255)
    asset = to_asset(img, method="local")
    assert (asset.width, asset.height) == (7, 5)
    assert asset.display_ref.startswith("data:image/png;base64,")
    assert base64.b64decode(asset.display_ref.split(",", 1)[1]) == asset.encoded_bytes
    assert np.array_equal(decode_png(asset.encoded_bytes), img)


def test_asset_is_immutable():
    asset = to_asset(solid(2, 2), method="local")
    with pytest.raises(Exception):
        asset.width = 10


def test_guess_mime_and_transparency(garment_png):
    assert guess_mime(garment_png) == "image/png"
    assert guess_mime(b"garbage") == "application/octet-stream"
    assert not has_transparency(solid(3, 3))
    assert has_transparency(solid(3, 3, alpha=254))


def test_fetcher_maps_refused_read_to_decode_error():
    transport = httpx.MockTransport(lambda request: httpx.Response(403, text="forbidden"))

    async def scenario():
        fetcher = ImageFetcher(transport=transport)
        try:
            await fetcher.fetch("https://cdn.example.com/shirt.png")
        finally:
            await fetcher.close()

    with pytest.raises(DecodeError):
        asyncio.run(scenario())


def test_fetcher_returns_body(garment_png):
    transport = httpx.MockTransport(lambda request: httpx.Response(200, content=garment_png))

    async def scenario():
        fetcher = ImageFetcher(transport=transport)
        try:
            return await fetcher.fetch("https://cdn.example.com/shirt.png")
        finally:
            await fetcher.close()

    assert asyncio.run(scenario()) == garment_png
