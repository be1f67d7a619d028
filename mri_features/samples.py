from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from pathlib import Path
from typing import Dict, Iterator, Optional, Tuple, Union

import numpy as np

PixelBuffer = Union[np.ndarray, bytes, bytearray, memoryview]


class Category(str, Enum):
    NORMAL = "Normal"
    ABNORMAL = "Abnormal"


class Bucket(str, Enum):
    TRAINING = "Training"
    VALIDATION = "Validation"
    TESTING = "Testing"


@dataclass(frozen=True)
class ImageSample:
    """
    One named input image. `pixels` holds an already decoded RGBA buffer;
    when it is None the pixels are read from `path` on demand.
    `category` and `bucket` are stamped once by the dataset splitter.
    """
    name: str
    pixels: Optional[PixelBuffer] = field(default=None, repr=False, compare=False)
    path: Optional[Path] = None
    media_type: Optional[str] = None
    category: Optional[Category] = None
    bucket: Optional[Bucket] = None

    @property
    def is_categorized(self) -> bool:
        return self.category is not None and self.bucket is not None


def to_fixed(value: float, digits: int) -> str:
    # Rounds the exact binary value half away from zero, like Number.prototype.toFixed.
    quantum = Decimal(1).scaleb(-digits)
    return str(Decimal(float(value)).quantize(quantum, rounding=ROUND_HALF_UP))


# report key, attribute, decimals
REPORT_FIELDS: Tuple[Tuple[str, str, int], ...] = (
    ("meanR", "mean_r", 2),
    ("meanG", "mean_g", 2),
    ("meanB", "mean_b", 2),
    ("stdR", "std_r", 2),
    ("stdG", "std_g", 2),
    ("stdB", "std_b", 2),
    ("edgeDensity", "edge_density", 4),
    ("contrast", "contrast", 2),
    ("textureComplexity", "texture_complexity", 2),
)


@dataclass(frozen=True)
class FeatureVector:
    mean_r: float
    mean_g: float
    mean_b: float
    std_r: float
    std_g: float
    std_b: float
    edge_density: float
    contrast: float
    texture_complexity: float

    def formatted(self) -> Dict[str, str]:
        """Report dictionary: 2 decimals everywhere except 4 for edgeDensity."""
        return {key: to_fixed(getattr(self, attr), digits) for key, attr, digits in REPORT_FIELDS}

    def as_array(self) -> np.ndarray:
        return np.asarray([getattr(self, attr) for _, attr, _ in REPORT_FIELDS], dtype=np.float32)


@dataclass(frozen=True)
class FeatureRecord:
    name: str
    category: Category
    vector: FeatureVector

    def to_dict(self) -> Dict[str, object]:
        return {"fileName": self.name, "features": self.vector.formatted(), "category": self.category.value}


@dataclass(frozen=True)
class CategoryGroups:
    normal: Tuple[ImageSample, ...] = ()
    abnormal: Tuple[ImageSample, ...] = ()

    def __len__(self) -> int:
        return len(self.normal) + len(self.abnormal)

    def __iter__(self) -> Iterator[ImageSample]:
        yield from self.normal
        yield from self.abnormal


@dataclass(frozen=True)
class DatasetPartition:
    training: CategoryGroups = CategoryGroups()
    validation: CategoryGroups = CategoryGroups()
    testing: CategoryGroups = CategoryGroups()

    def group(self, bucket: Bucket) -> CategoryGroups:
        if bucket is Bucket.TRAINING:
            return self.training
        if bucket is Bucket.VALIDATION:
            return self.validation
        return self.testing

    def samples(self) -> Iterator[ImageSample]:
        for bucket in Bucket:
            yield from self.group(bucket)

    def __len__(self) -> int:
        return len(self.training) + len(self.validation) + len(self.testing)

    def names(self) -> Dict[str, Dict[str, list]]:
        return {
            bucket.value.lower(): {
                "normal": [s.name for s in self.group(bucket).normal],
                "abnormal": [s.name for s in self.group(bucket).abnormal],
            }
            for bucket in Bucket
        }


@dataclass(frozen=True)
class BucketCounts:
    normal: int = 0
    abnormal: int = 0

    @property
    def total(self) -> int:
        return self.normal + self.abnormal

    def to_dict(self) -> Dict[str, int]:
        return {"normal": self.normal, "abnormal": self.abnormal, "total": self.total}


@dataclass(frozen=True)
class DatasetStatistics:
    training: BucketCounts = BucketCounts()
    validation: BucketCounts = BucketCounts()
    testing: BucketCounts = BucketCounts()
    features: int = 0
    feature_categories: BucketCounts = BucketCounts()

    @property
    def total_images(self) -> int:
        return self.training.total + self.validation.total + self.testing.total

    def to_dict(self) -> Dict[str, object]:
        return {
            "totalImages": self.total_images,
            "training": self.training.to_dict(),
            "validation": self.validation.to_dict(),
            "testing": self.testing.to_dict(),
            "features": self.features,
            "categories": {
                "normal": self.feature_categories.normal,
                "abnormal": self.feature_categories.abnormal,
            },
        }


@dataclass(frozen=True)
class DatasetSummary:
    statistics: DatasetStatistics
    features: Tuple[FeatureRecord, ...]
    partition: DatasetPartition

    def to_dict(self, preview: int = 10) -> Dict[str, object]:
        return {
            "statistics": self.statistics.to_dict(),
            "features": [r.to_dict() for r in self.features[:preview]],
            "dataset": self.partition.names(),
        }
