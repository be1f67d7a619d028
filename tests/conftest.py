from __future__ import annotations

from pathlib import Path

import cv2
import numpy as np
import pytest


def solid_rgba(rgb, size=256, alpha=255) -> np.ndarray:
    img = np.empty((size, size, 4), dtype=np.uint8)
    img[:, :, :3] = np.asarray(rgb, dtype=np.uint8)
    img[:, :, 3] = alpha
    return img


def write_png(path: Path, rgb_image: np.ndarray) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    assert cv2.imwrite(str(path), cv2.cvtColor(rgb_image, cv2.COLOR_RGB2BGR))
    return path


@pytest.fixture
def uniform_rgba() -> np.ndarray:
    return solid_rgba((120, 60, 200))


@pytest.fixture
def split_rgba() -> np.ndarray:
    """Left half black, right half white: one vertical edge at x=128."""
    img = solid_rgba((0, 0, 0))
    img[:, 128:, :3] = 255
    return img


@pytest.fixture
def noisy_rgba() -> np.ndarray:
    rng = np.random.default_rng(7)
    img = rng.integers(0, 256, size=(256, 256, 4), dtype=np.uint8)
    img[:, :, 3] = 255
    return img


@pytest.fixture
def mri_folder(tmp_path: Path) -> Path:
    root = tmp_path / "dataset"
    gray = np.full((64, 48, 3), 90, dtype=np.uint8)
    for i in range(5):
        write_png(root / "normal" / f"scan_normal_{i:02d}.png", gray)
    for i in range(10):
        write_png(root / "tumor" / f"scan_tumor_{i:02d}.png", gray)
    write_png(root / "scan_unlabeled.png", gray)
    (root / "notes.txt").write_text("not an image", encoding="utf-8")
    return root
