from __future__ import annotations

import base64
import io

import numpy as np
import pytest
from fastapi.testclient import TestClient
from PIL import Image

import api_server


@pytest.fixture
def client():
    return TestClient(api_server.app)


def _png_b64(rgb, size=(40, 30)) -> str:
    img = Image.new("RGB", size, tuple(rgb))
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return base64.b64encode(buf.getvalue()).decode("ascii")


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_features_for_uploaded_image(client):
    resp = client.post("/features", json={"image": _png_b64((50, 100, 150)), "name": "scan.png"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["name"] == "scan.png"
    assert body["features"]["meanG"] == "100.00"
    assert body["features"]["stdB"] == "0.00"
    assert body["features"]["contrast"] == "100.00"
    assert "No diagnostic model" in body["notice"]


def test_features_accepts_data_url(client):
    data_url = "data:image/png;base64," + _png_b64((0, 0, 0))
    resp = client.post("/features", json={"image": data_url})
    assert resp.status_code == 200
    assert resp.json()["features"]["meanR"] == "0.00"


def test_features_rejects_bad_base64(client):
    resp = client.post("/features", json={"image": "***not base64***"})
    assert resp.status_code == 400


def test_features_rejects_non_image_bytes(client):
    payload = base64.b64encode(b"plain text, not pixels").decode("ascii")
    resp = client.post("/features", json={"image": payload, "name": "notes.txt"})
    assert resp.status_code == 415


def test_dataset_endpoint_summarizes_upload(client):
    files = [{"name": f"scan_tumor_{i}.png", "image": _png_b64((i, i, i)), "mediaType": "image/png"} for i in range(10)]
    files.append({"name": "scan_normal_01.png", "image": _png_b64((9, 9, 9)), "mediaType": "image/png"})
    files.append({"name": "readme.txt", "mediaType": "text/plain"})
    resp = client.post("/dataset", json={"files": files})
    assert resp.status_code == 200
    stats = resp.json()["statistics"]
    assert stats["totalImages"] == 11
    assert stats["training"] == {"normal": 0, "abnormal": 8, "total": 8}
    assert stats["testing"] == {"normal": 1, "abnormal": 1, "total": 2}
    assert stats["features"] == 11
    assert resp.json()["dataset"]["testing"]["normal"] == ["scan_normal_01.png"]


def test_dataset_endpoint_rejects_only_non_images(client):
    resp = client.post("/dataset", json={"files": [{"name": "readme.txt", "mediaType": "text/plain"}]})
    assert resp.status_code == 415


def test_dataset_endpoint_empty(client):
    resp = client.post("/dataset", json={"files": []})
    assert resp.status_code == 200
    assert resp.json()["statistics"]["totalImages"] == 0


def test_features_rejects_oversized_upload(client, monkeypatch):
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 100)
    resp = client.post("/features", json={"image": _png_b64((1, 2, 3), size=(40, 40)), "name": "huge.png"})
    assert resp.status_code == 415
