from __future__ import annotations

import logging
from dataclasses import replace
from pathlib import PurePath
from typing import Dict, Iterable, List, Sequence, Tuple

from mri_features.errors import UnsupportedFileType
from mri_features.samples import (
    Bucket,
    BucketCounts,
    Category,
    CategoryGroups,
    DatasetPartition,
    DatasetStatistics,
    FeatureRecord,
    ImageSample,
)

logger = logging.getLogger(__name__)

# Checked in this order; the normal keywords win.
NORMAL_KEYWORDS: Tuple[str, ...] = ("normal", "healthy", "no_tumor")
ABNORMAL_KEYWORDS: Tuple[str, ...] = ("tumor", "abnormal", "cancer")

IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".bmp", ".tiff", ".tif", ".webp"}
DICOM_EXTENSION = ".dcm"


def is_image(sample: ImageSample) -> bool:
    suffix = PurePath(sample.name).suffix.lower()
    if suffix == DICOM_EXTENSION:
        return True
    if sample.media_type:
        return sample.media_type.lower().startswith("image/")
    return suffix in IMAGE_EXTENSIONS


def ensure_image(sample: ImageSample) -> ImageSample:
    if not is_image(sample):
        raise UnsupportedFileType(sample.name, f"media type {sample.media_type or 'unknown'}")
    return sample


def categorize_name(name: str) -> Category:
    lowered = name.lower()
    if any(k in lowered for k in NORMAL_KEYWORDS):
        return Category.NORMAL
    if any(k in lowered for k in ABNORMAL_KEYWORDS):
        return Category.ABNORMAL
    # Unlabelled names are treated as abnormal.
    logger.debug("No category keyword in %r, defaulting to %s", name, Category.ABNORMAL.value)
    return Category.ABNORMAL


def split_counts(n: int) -> Tuple[int, int, int]:
    """(train, val, test) = (floor(0.8n), floor(0.1n), remainder)."""
    if n < 0:
        raise ValueError(f"Cannot split a negative count: {n}")
    train = (n * 8) // 10
    val = n // 10
    return train, val, n - train - val


def categorize(samples: Iterable[ImageSample]) -> DatasetPartition:
    """
    Assign every sample a category from its name, then slice each category
    80/10/10 into training/validation/testing in input order.
    Raises UnsupportedFileType if any input is not an image.
    """
    items = [ensure_image(s) for s in samples]
    for s in items:
        if s.category is not None or s.bucket is not None:
            raise ValueError(f"Sample '{s.name}' is already categorized")

    by_category: Dict[Category, List[ImageSample]] = {Category.NORMAL: [], Category.ABNORMAL: []}
    for s in items:
        by_category[categorize_name(s.name)].append(s)

    cells: Dict[Tuple[Bucket, Category], Tuple[ImageSample, ...]] = {}
    for category, group in by_category.items():
        for bucket, chunk in zip(Bucket, _slice_buckets(group)):
            cells[(bucket, category)] = tuple(replace(s, category=category, bucket=bucket) for s in chunk)

    return DatasetPartition(
        **{
            bucket.value.lower(): CategoryGroups(
                normal=cells[(bucket, Category.NORMAL)],
                abnormal=cells[(bucket, Category.ABNORMAL)],
            )
            for bucket in Bucket
        }
    )


def compute_statistics(
    partition: DatasetPartition,
    features: Sequence[FeatureRecord] = (),
) -> DatasetStatistics:
    counts = {
        bucket: BucketCounts(
            normal=len(partition.group(bucket).normal),
            abnormal=len(partition.group(bucket).abnormal),
        )
        for bucket in Bucket
    }
    return DatasetStatistics(
        training=counts[Bucket.TRAINING],
        validation=counts[Bucket.VALIDATION],
        testing=counts[Bucket.TESTING],
        features=len(features),
        feature_categories=BucketCounts(
            normal=sum(1 for r in features if r.category is Category.NORMAL),
            abnormal=sum(1 for r in features if r.category is Category.ABNORMAL),
        ),
    )


def _slice_buckets(group: List[ImageSample]) -> Tuple[List[ImageSample], List[ImageSample], List[ImageSample]]:
    train, val, _ = split_counts(len(group))
    return group[:train], group[train:train + val], group[train + val:]
