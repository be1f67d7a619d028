from __future__ import annotations

import cv2
import numpy as np
import pytest
from PIL import Image

from mri_features.errors import FeatureExtractionError, UnsupportedFileType
from mri_features.features import preprocess


def test_to_rgba_scales_16_bit_down():
    gray16 = np.full((10, 12), 0x8080, dtype=np.uint16)
    rgba = preprocess.to_rgba(gray16)
    assert rgba.dtype == np.uint8
    assert rgba.shape == (10, 12, 4)
    assert (rgba[:, :, :3] == 128).all()
    assert (rgba[:, :, 3] == 255).all()
    assert preprocess.to_uint8(np.array([65535, 0], dtype=np.uint16)).tolist() == [255, 0]


def test_empty_image_raises_feature_error():
    with pytest.raises(FeatureExtractionError):
        preprocess.resize_rgba(np.zeros((0, 0, 3), dtype=np.uint8))


def test_load_rgba_reads_16_bit_png(tmp_path):
    path = tmp_path / "scan16.png"
    assert cv2.imwrite(str(path), np.full((64, 64, 3), 0x8080, dtype=np.uint16))
    rgba = preprocess.load_rgba(path)
    assert rgba.shape == (256, 256, 4)
    assert (rgba[:, :, :3] == 128).all()


def test_decode_rgba_reads_16_bit_gray_png():
    ok, encoded = cv2.imencode(".png", np.full((20, 20), 0x8080, dtype=np.uint16))
    assert ok
    rgba = preprocess.decode_rgba(encoded.tobytes())
    assert (rgba[:, :, :3] == 128).all()


def test_decode_rgba_rejects_oversized_image(monkeypatch):
    ok, encoded = cv2.imencode(".png", np.zeros((40, 40, 3), dtype=np.uint8))
    assert ok
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 100)
    with pytest.raises(UnsupportedFileType):
        preprocess.decode_rgba(encoded.tobytes(), name="huge.png")
