from __future__ import annotations

from typing import Any, Dict, List

import numpy as np


def channel_means(sample: Any) -> np.ndarray:
    rgb = sample.rgb_f64.reshape(-1, 3)
    return rgb.sum(axis=0) / float(rgb.shape[0])


def channel_stds(sample: Any, means: np.ndarray) -> np.ndarray:
    # Second pass over the pixels, after the means are known.
    rgb = sample.rgb_f64.reshape(-1, 3)
    variance = ((rgb - means) ** 2).sum(axis=0) / float(rgb.shape[0])
    return np.sqrt(variance)


def extract_color_moments(sample: Any, cfg: Dict) -> np.ndarray:
    """[mean_r, mean_g, mean_b, std_r, std_g, std_b]"""
    channels = list(cfg.get("channels", [0, 1, 2]))
    means = channel_means(sample)
    stds = channel_stds(sample, means)
    feats: List[float] = [float(means[int(ch)]) for ch in channels]
    feats.extend(float(stds[int(ch)]) for ch in channels)
    return np.asarray(feats, dtype=np.float64)
