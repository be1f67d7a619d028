from __future__ import annotations

import logging
import mimetypes
from concurrent.futures import ThreadPoolExecutor, as_completed
from itertools import islice
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

import cv2
import numpy as np
from sklearn.preprocessing import StandardScaler

from mri_features.dataset_split import categorize, compute_statistics, is_image
from mri_features.errors import FeatureExtractionError, UnsupportedFileType
from mri_features.feature_extractor_config import DEFAULT_CONFIG
from mri_features.feature_extractor_core import extract_features
from mri_features.features.preprocess import load_rgba, resize_rgba
from mri_features.samples import (
    DatasetPartition,
    DatasetStatistics,
    DatasetSummary,
    FeatureRecord,
    ImageSample,
)
from mri_features.utils import save_json

logger = logging.getLogger(__name__)

SUMMARY_FILENAME = "brain_tumor_dataset_summary.json"


def load_samples(root: Union[str, Path]) -> List[ImageSample]:
    """
    Every file under `root` (recursive, sorted) as an undecoded ImageSample.
    Non-image files are kept so that filtering can report them.
    """
    root = Path(root)
    if not root.is_dir():
        raise NotADirectoryError(root)
    paths = [p for p in root.rglob("*") if p.is_file()]
    paths.sort(key=lambda p: p.as_posix().lower())
    return [
        ImageSample(name=p.name, path=p, media_type=mimetypes.guess_type(p.name)[0])
        for p in paths
    ]


def filter_image_samples(samples: Iterable[ImageSample]) -> List[ImageSample]:
    items = list(samples)
    kept = [s for s in items if is_image(s)]
    for s in items:
        if not is_image(s):
            logger.warning("Skipping %s: not an image (%s)", s.name, s.media_type or "unknown type")
    if items and not kept:
        raise UnsupportedFileType(items[0].name, "No valid image files found in dataset")
    return kept


def sample_pixels(sample: ImageSample, config: Dict[str, Any] | None = None) -> np.ndarray:
    cfg = config or DEFAULT_CONFIG
    size = tuple(cfg.get("image_size", (256, 256)))
    if isinstance(sample.pixels, np.ndarray):
        # Flat buffers are measured as-is; image-shaped arrays are resampled first.
        return resize_rgba(sample.pixels, size) if sample.pixels.ndim >= 2 else sample.pixels
    if sample.pixels is not None:
        return np.frombuffer(sample.pixels, dtype=np.uint8)
    if sample.path is None:
        raise IOError(f"Sample {sample.name} has neither pixels nor a path")
    return load_rgba(sample.path, size)


def process_sample(sample: ImageSample, config: Dict[str, Any] | None = None) -> FeatureRecord:
    cfg = config or DEFAULT_CONFIG
    width, height = cfg.get("image_size", (256, 256))
    vector = extract_features(sample_pixels(sample, cfg), int(width), int(height), config=cfg)
    return FeatureRecord(name=sample.name, category=sample.category, vector=vector)


def extract_partition_features(
    partition: DatasetPartition,
    config: Dict[str, Any] | None = None,
) -> List[FeatureRecord]:
    """
    Measure the first `max_features` samples of the partition in parallel.
    Samples that fail to load or measure are logged and left out.
    """
    cfg = config or DEFAULT_CONFIG
    limit = int(cfg.get("max_features", 50))
    max_workers = int(cfg.get("max_workers", 8))
    selected = list(islice(partition.samples(), max(limit, 0)))
    if not selected:
        return []

    results: Dict[int, FeatureRecord] = {}
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        fut = {executor.submit(process_sample, s, cfg): i for i, s in enumerate(selected)}
        for future in as_completed(fut):
            idx = fut[future]
            try:
                results[idx] = future.result()
            except (IOError, FeatureExtractionError, ValueError, cv2.error) as exc:
                logger.error("Error processing %s: %s", selected[idx].name, exc)
    logger.info("Extracted features from %d of %d samples", len(results), len(selected))
    return [results[i] for i in sorted(results)]


def process_dataset(samples: Iterable[ImageSample], config: Dict[str, Any] | None = None) -> DatasetSummary:
    cfg = config or DEFAULT_CONFIG
    images = filter_image_samples(samples)
    logger.info("Processing dataset files: %d", len(images))
    partition = categorize(images)
    records = extract_partition_features(partition, cfg)
    statistics = compute_statistics(partition, records)
    return DatasetSummary(statistics=statistics, features=tuple(records), partition=partition)


def export_dataset_summary(summary: DatasetSummary, path: Union[str, Path] = SUMMARY_FILENAME) -> Path:
    path = Path(path)
    save_json(path, summary.to_dict())
    return path


def build_feature_matrix(
    records: Sequence[FeatureRecord],
    output_path: Optional[Union[str, Path]] = None,
) -> Tuple[np.ndarray, np.ndarray]:
    if records:
        X = np.stack([r.vector.as_array() for r in records]).astype(np.float32)
    else:
        X = np.zeros((0, 9), dtype=np.float32)
    y = np.asarray([r.category.value for r in records])
    if output_path is not None:
        np.savez(str(output_path), X=X, y=y)
    return X, y


def scale_features(X_train: np.ndarray, X_val: np.ndarray | None = None):
    """Standardize features; returns the fitted scaler last."""
    scaler = StandardScaler()
    X_train_scaled = scaler.fit_transform(X_train)
    if X_val is None:
        return X_train_scaled, scaler
    return X_train_scaled, scaler.transform(X_val), scaler


def print_partition_distribution(statistics: DatasetStatistics, title: str = "Dataset Distribution") -> None:
    print(f"\n{'='*60}")
    print(title)
    print(f"{'='*60}")
    print(f"\n{'bucket':12s} {'normal':>8s} {'abnormal':>9s} {'total':>7s}")
    for name in ("training", "validation", "testing"):
        counts = getattr(statistics, name)
        print(f"{name:12s} {counts.normal:8d} {counts.abnormal:9d} {counts.total:7d}")
    print(f"\nTotal images: {statistics.total_images}")
    print(f"Feature vectors: {statistics.features} "
          f"(normal {statistics.feature_categories.normal}, abnormal {statistics.feature_categories.abnormal})")
