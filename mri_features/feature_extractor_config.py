from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List

import numpy as np

from mri_features.features import color, edges


@dataclass(frozen=True)
class ConfiguredBlock:
    name: str
    extractor: Callable[[Any, Dict[str, Any]], np.ndarray]
    config_key: str
    size: int

    def extract(self, sample: Any, config: Dict[str, Any]) -> np.ndarray:
        block_cfg = dict(config.get("blocks", {}).get(self.config_key, {}))
        vec = np.asarray(self.extractor(sample, block_cfg), dtype=np.float64)
        if vec.shape != (self.size,):
            raise ValueError(f"Feature block '{self.name}' returned shape {vec.shape}, expected ({self.size},)")
        return vec


DEFAULT_CONFIG: Dict[str, Any] = {
    "image_size": (256, 256),
    "max_workers": 8,
    # Dataset runs only measure the first N samples of a partition.
    "max_features": 50,
    "blocks": {
        "moments_rgb": {"channels": [0, 1, 2]},
        "edge_density": {},
    },
}


# Order matches FeatureVector: 3 means, 3 stds, edge density.
FEATURE_BLOCKS: List[ConfiguredBlock] = [
    ConfiguredBlock(name="color_moments_rgb", extractor=color.extract_color_moments, config_key="moments_rgb", size=6),
    ConfiguredBlock(name="edge_density", extractor=edges.extract_edge_density, config_key="edge_density", size=1),
]


def merged_config(config: Dict[str, Any] | None = None, **overrides: Any) -> Dict[str, Any]:
    """Copy of DEFAULT_CONFIG with `config` and keyword overrides applied on top."""
    cfg = dict(DEFAULT_CONFIG)
    cfg.update(config or {})
    cfg.update({k: v for k, v in overrides.items() if v is not None})
    return cfg
