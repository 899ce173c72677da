import json
import sys
from pathlib import Path

import numpy as np
import pytest

SRC = Path(__file__).resolve().parents[1] / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from walk_sim import utils


def test_save_and_load_walk_result(tmp_path):
    grid = np.array([[1, 2], [0, 0]], dtype=np.int8)
    path = np.array([[0, 0], [0, 1]])
    out = tmp_path / "runs" / "walk.npz"
    utils.save_walk_result(out, utils.WalkResult(grid=grid, path=path, meta={"size": 2}))

    loaded = utils.load_walk_result(out)
    np.testing.assert_array_equal(loaded.grid, grid)
    np.testing.assert_array_equal(loaded.path, path)
    assert loaded.meta == {"size": 2}


def test_save_refuses_overwrite_when_asked(tmp_path):
    out = tmp_path / "walk.npz"
    result = utils.WalkResult(grid=np.zeros((2, 2), dtype=np.int8))
    utils.save_walk_result(out, result)
    with pytest.raises(FileExistsError):
        utils.save_walk_result(out, result, overwrite=False)


def test_load_params_json_and_toml(tmp_path):
    js = tmp_path / "walk.json"
    js.write_text(json.dumps({"size": 8, "avoid": True}))
    assert utils.load_params(js) == {"size": 8, "avoid": True}

    toml = tmp_path / "walk.toml"
    toml.write_text("size = 8\nrun_length = 3\n")
    assert utils.load_params(toml) == {"size": 8, "run_length": 3}


def test_load_params_rejects_unknown_format(tmp_path):
    bad = tmp_path / "walk.yaml"
    bad.write_text("size: 8\n")
    with pytest.raises(ValueError):
        utils.load_params(bad)


def test_ensure_meta():
    result = utils.WalkResult()
    result.ensure_meta()["steps"] = 4
    assert result.meta == {"steps": 4}
