from __future__ import annotations

from typing import Any, Dict, Tuple

import numpy as np

from mri_features.feature_extractor_config import DEFAULT_CONFIG, FEATURE_BLOCKS
from mri_features.features import preprocess
from mri_features.samples import FeatureVector, PixelBuffer

WIDTH = 256
HEIGHT = 256


def extract_features(
    pixels: PixelBuffer,
    width: int = WIDTH,
    height: int = HEIGHT,
    config: Dict[str, Any] | None = None,
) -> FeatureVector:
    """
    Measure one RGBA buffer of exactly width*height*4 values.
    Raises InvalidDimensions when the buffer size does not match.
    """
    cfg = config or DEFAULT_CONFIG
    sample = preprocess.buffer_to_sample(pixels, width, height)
    values = np.concatenate([block.extract(sample, cfg) for block in FEATURE_BLOCKS])
    mean_r, mean_g, mean_b, std_r, std_g, std_b, edge_density = (float(v) for v in values)
    return FeatureVector(
        mean_r=mean_r,
        mean_g=mean_g,
        mean_b=mean_b,
        std_r=std_r,
        std_g=std_g,
        std_b=std_b,
        edge_density=edge_density,
        contrast=(mean_r + mean_g + mean_b) / 3,
        texture_complexity=std_r + std_g + std_b,
    )


def extract_features_from_image(image: np.ndarray, config: Dict[str, Any] | None = None) -> FeatureVector:
    """Resample any decoded image onto the fixed RGBA grid, then measure it."""
    cfg = config or DEFAULT_CONFIG
    width, height = _image_size(cfg)
    rgba = preprocess.resize_rgba(image, (width, height))
    return extract_features(rgba, width, height, config=cfg)


def feature_report(pixels: PixelBuffer, width: int = WIDTH, height: int = HEIGHT,
                   config: Dict[str, Any] | None = None) -> Dict[str, int]:
    cfg = config or DEFAULT_CONFIG
    sample = preprocess.buffer_to_sample(pixels, width, height)
    dims: Dict[str, int] = {block.name: int(block.extract(sample, cfg).size) for block in FEATURE_BLOCKS}
    dims["total"] = int(sum(dims.values()))
    return dims


def _image_size(cfg: Dict[str, Any]) -> Tuple[int, int]:
    width, height = cfg.get("image_size", (WIDTH, HEIGHT))
    return int(width), int(height)
