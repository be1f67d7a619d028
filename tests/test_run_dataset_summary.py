from __future__ import annotations

import runpy
from pathlib import Path

import numpy as np
import pytest

from mri_features.utils import load_json

SCRIPT = Path(__file__).resolve().parents[1] / "standalone_scripts" / "run_dataset_summary.py"


@pytest.fixture
def cli_main():
    return runpy.run_path(str(SCRIPT), run_name="run_dataset_summary")["main"]


def test_cli_writes_summary_and_matrix(cli_main, mri_folder, tmp_path, capsys):
    out = tmp_path / "summary.json"
    npz = tmp_path / "features.npz"
    code = cli_main([str(mri_folder), "--out", str(out), "--features-out", str(npz), "--max-features", "6"])
    assert code == 0
    doc = load_json(out)
    assert doc["statistics"]["totalImages"] == 16
    assert doc["statistics"]["features"] == 6
    assert np.load(npz)["X"].shape == (6, 9)
    assert "Total images: 16" in capsys.readouterr().out


def test_cli_missing_folder(cli_main, tmp_path):
    assert cli_main([str(tmp_path / "nope")]) == 2


def test_cli_folder_without_images(cli_main, tmp_path):
    (tmp_path / "a.txt").write_text("x", encoding="utf-8")
    assert cli_main([str(tmp_path), "--out", str(tmp_path / "s.json")]) == 1
