from __future__ import annotations

import io
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple, Union

import cv2
import numpy as np
from PIL import Image, UnidentifiedImageError

from mri_features.errors import FeatureExtractionError, InvalidDimensions, UnsupportedFileType
from mri_features.samples import PixelBuffer

DEFAULT_SIZE: Tuple[int, int] = (256, 256)


def to_uint8(image: np.ndarray) -> np.ndarray:
    arr = np.asarray(image)
    if arr.dtype == np.uint8:
        return arr
    if arr.dtype == np.uint16:
        # 16-bit scans: 65535 maps to 255
        return np.round(arr.astype(np.float64) / 257.0).astype(np.uint8)
    return np.clip(arr, 0, 255).astype(np.uint8)


def to_rgba(image: np.ndarray) -> np.ndarray:
    """
    Input: gray (H, W), gray (H, W, 1), RGB (H, W, 3) or RGBA (H, W, 4), uint8 or uint16
    Output: RGBA uint8 image
    """
    arr = to_uint8(image)
    if arr.size == 0:
        raise FeatureExtractionError(f"Empty image, shape {arr.shape}")
    if arr.ndim == 3 and arr.shape[2] == 1:
        arr = arr[:, :, 0]
    try:
        if arr.ndim == 2:
            return cv2.cvtColor(arr, cv2.COLOR_GRAY2RGBA)
        if arr.ndim == 3 and arr.shape[2] == 3:
            return cv2.cvtColor(arr, cv2.COLOR_RGB2RGBA)
    except cv2.error as exc:
        raise FeatureExtractionError(f"Could not convert image of shape {arr.shape}: {exc}") from exc
    if arr.ndim == 3 and arr.shape[2] == 4:
        return arr
    raise ValueError(f"Expected gray, RGB or RGBA image, got shape {arr.shape}")


def resize_rgba(image: np.ndarray, size: Tuple[int, int] = DEFAULT_SIZE) -> np.ndarray:
    rgba = to_rgba(image)
    if rgba.shape[1] == size[0] and rgba.shape[0] == size[1]:
        return np.ascontiguousarray(rgba)
    try:
        return cv2.resize(rgba, tuple(size), interpolation=cv2.INTER_LINEAR)
    except cv2.error as exc:
        raise FeatureExtractionError(f"Could not resize image of shape {rgba.shape}: {exc}") from exc


def load_rgba(image_path: Union[str, Path], size: Tuple[int, int] = DEFAULT_SIZE) -> np.ndarray:
    image = cv2.imread(str(image_path), cv2.IMREAD_UNCHANGED)
    if image is None:
        raise IOError(f"Could not read image: {image_path}")
    image = to_uint8(image)
    try:
        if image.ndim == 3 and image.shape[2] == 4:
            image = cv2.cvtColor(image, cv2.COLOR_BGRA2RGBA)
        elif image.ndim == 3 and image.shape[2] == 3:
            image = cv2.cvtColor(image, cv2.COLOR_BGR2RGB)
    except cv2.error as exc:
        raise FeatureExtractionError(f"Could not convert {image_path}: {exc}") from exc
    return resize_rgba(image, size)


def decode_rgba(data: bytes, size: Tuple[int, int] = DEFAULT_SIZE, name: str = "<upload>") -> np.ndarray:
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as exc:
        raise UnsupportedFileType(name, f"could not decode image ({exc})") from exc
    if image.mode.startswith("I"):
        # 16-bit gray decodes as "I" or "I;16*"
        arr = np.clip(np.array(image), 0, 65535).astype(np.uint16)
        return resize_rgba(arr, size)
    if image.mode != "RGBA":
        image = image.convert("RGBA")
    return resize_rgba(np.array(image, dtype=np.uint8), size)


@dataclass(frozen=True)
class Sample:
    rgb_f64: np.ndarray
    gray_f64: np.ndarray

    @property
    def pixel_count(self) -> int:
        return int(self.gray_f64.size)


def buffer_to_sample(pixels: PixelBuffer, width: int, height: int) -> Sample:
    """
    Input: RGBA buffer of exactly width*height*4 values (array or raw bytes)
    Output: Sample with float64 RGB channels and the unweighted gray mean
    """
    if isinstance(pixels, (bytes, bytearray, memoryview)):
        flat = np.frombuffer(pixels, dtype=np.uint8)
    else:
        flat = np.asarray(pixels).reshape(-1)
    if width <= 0 or height <= 0 or flat.size != width * height * 4:
        raise InvalidDimensions(flat.size, width, height)
    rgba = flat.reshape(height, width, 4)
    rgb = rgba[:, :, :3].astype(np.float64)
    gray = rgb.sum(axis=2) / 3.0
    return Sample(rgb_f64=rgb, gray_f64=gray)
