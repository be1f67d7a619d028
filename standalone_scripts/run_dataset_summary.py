"""
Summarize an MRI image folder: filename-based normal/abnormal categories,
an 80/10/10 split and pixel statistics for the first samples.

Usage (from repo root):
  python standalone_scripts/run_dataset_summary.py ../dataset --out summary.json
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from mri_features import dataset_processing as dp
from mri_features.errors import UnsupportedFileType
from mri_features.feature_extractor_config import merged_config


def main(argv=None) -> int:
    ap = argparse.ArgumentParser()
    ap.add_argument("dataset_dir", help="Folder with MRI images (searched recursively)")
    ap.add_argument("--out", default=dp.SUMMARY_FILENAME, help="Where to write the JSON summary")
    ap.add_argument("--features-out", default=None, help="Optional .npz path for the feature matrix")
    ap.add_argument("--max-features", type=int, default=None)
    ap.add_argument("--workers", type=int, default=None)
    ap.add_argument("-v", "--verbose", action="store_true")
    args = ap.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)-25s - %(levelname)-8s - %(message)s",
        datefmt="%H:%M:%S",
    )

    dataset_dir = Path(args.dataset_dir)
    if not dataset_dir.is_dir():
        print(f"Dataset folder not found: {dataset_dir}")
        return 2

    cfg = merged_config(max_features=args.max_features, max_workers=args.workers)
    try:
        summary = dp.process_dataset(dp.load_samples(dataset_dir), config=cfg)
    except UnsupportedFileType as exc:
        print(str(exc))
        return 1

    dp.print_partition_distribution(summary.statistics, f"Dataset: {dataset_dir}")
    out = dp.export_dataset_summary(summary, args.out)
    print(f"Saved: {out}")
    if args.features_out:
        X, _ = dp.build_feature_matrix(summary.features, args.features_out)
        print(f"Saved: {args.features_out} ({X.shape[0]} x {X.shape[1]})")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
