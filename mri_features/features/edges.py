from __future__ import annotations

from typing import Any, Dict

import numpy as np

EDGE_THRESHOLD = 30.0


def edge_mask(gray: np.ndarray, threshold: float = EDGE_THRESHOLD) -> np.ndarray:
    """
    Boolean mask over pixels (1..H-1, 1..W-1). A pixel is an edge when its gray
    value differs from its left or top neighbour by more than `threshold`.
    """
    current = gray[1:, 1:]
    left = gray[1:, :-1]
    top = gray[:-1, 1:]
    return (np.abs(current - left) > threshold) | (np.abs(current - top) > threshold)


def extract_edge_density(sample: Any, cfg: Dict) -> np.ndarray:
    edges = edge_mask(sample.gray_f64)
    # Normalised by the full pixel count, first row/column included.
    return np.asarray([int(edges.sum()) / float(sample.pixel_count)], dtype=np.float64)
