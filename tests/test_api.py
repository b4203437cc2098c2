import pytest
from fastapi.testclient import TestClient

import main

from conftest import decode_png, png_bytes, solid


@pytest.fixture
def client():
    with TestClient(main.app) as test_client:
        yield test_client


def _upload(data: bytes):
    return {"file": ("shirt.png", data, "image/png")}


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert "remote_configured" in response.json()


def test_remove_background_local_returns_cropped_png(client, garment_png):
    response = client.post("/remove-background", files=_upload(garment_png), data={"mode": "local"})
    assert response.status_code == 200
    assert response.headers["content-type"] == "image/png"
    assert response.headers["x-cutout-method"] == "local"
    assert response.headers["x-image-width"] == "70"
    rgba = decode_png(response.content)
    assert rgba.shape == (70, 70, 4)


def test_unknown_mode_is_bad_request(client, garment_png):
    response = client.post("/remove-background", files=_upload(garment_png), data={"mode": "magic"})
    assert response.status_code == 400


def test_invalid_threshold_is_bad_request(client, garment_png):
    response = client.post("/remove-background", files=_upload(garment_png),
                           data={"mode": "local", "threshold": "999"})
    assert response.status_code == 400


def test_corrupt_upload_is_bad_request(client):
    response = client.post("/remove-background", files=_upload(b"definitely not a png"), data={"mode": "local"})
    assert response.status_code == 400


def test_blank_photo_is_unprocessable(client, blank_png):
    response = client.post("/remove-background", files=_upload(blank_png), data={"mode": "local"})
    assert response.status_code == 422


def test_auto_crop_endpoint(client):
    img = solid(50, 50, alpha=0)
    img[20:30, 20:30, 3] = 255
    response = client.post("/auto-crop", files=_upload(png_bytes(img)), data={"padding": "5"})
    assert response.status_code == 200
    assert response.headers["x-image-width"] == "20"


def test_adjust_endpoint_rejects_bad_contrast(client, garment_png):
    response = client.post("/adjust", files=_upload(garment_png), data={"contrast": "300"})
    assert response.status_code == 400
    ok = client.post("/adjust", files=_upload(garment_png), data={"brightness": "10"})
    assert ok.status_code == 200
