# src/walk_sim/utils.py
from __future__ import annotations

import json
import os
import time
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import numpy as np


@dataclass
class WalkResult:
    """Common container for walk outputs."""

    grid: Optional[np.ndarray] = None
    path: Optional[np.ndarray] = None
    meta: Optional[Dict[str, Any]] = None

    def ensure_meta(self) -> Dict[str, Any]:
        if self.meta is None:
            self.meta = {}
        return self.meta


def now_str() -> str:
    return time.strftime("%Y%m%d-%H%M%S")


def save_walk_result(
    path: str | os.PathLike[str], result: WalkResult, *, overwrite: bool = True
) -> None:
    """Serialize a WalkResult to a compressed .npz file."""
    out_dir = Path(path).parent
    out_dir.mkdir(parents=True, exist_ok=True)
    out: Dict[str, Any] = {}
    if result.grid is not None:
        out["grid"] = np.asarray(result.grid, dtype=np.int8)
    if result.path is not None:
        out["path"] = np.asarray(result.path, dtype=np.int32).reshape(-1, 2)
    out["meta"] = dict(result.meta or {})

    if not overwrite and Path(path).exists():
        raise FileExistsError(f"{path} already exists")
    np.savez_compressed(path, **out)


def load_walk_result(path: str | os.PathLike[str]) -> WalkResult:
    """Load a walk .npz into a WalkResult."""
    data = np.load(path, allow_pickle=True)
    grid = data["grid"].astype(np.int8) if "grid" in data else None
    walk_path = data["path"].astype(np.int32) if "path" in data else None
    meta: Dict[str, Any] = {}
    if "meta" in data:
        meta_raw = data["meta"]
        try:
            meta = meta_raw.item()
        except ValueError:
            meta = {}
    return WalkResult(grid=grid, path=walk_path, meta=meta)


def load_params(path: str | os.PathLike[str]) -> Dict[str, Any]:
    """
    Load walk parameters from JSON or TOML.
    """
    path = str(path)
    with open(path, "rb") as fh:
        data = fh.read()
    suffix = Path(path).suffix.lower()
    if suffix in {".json", ""}:
        return json.loads(data.decode("utf-8"))
    if suffix in {".toml", ".tml"}:
        return tomllib.loads(data.decode("utf-8"))
    raise ValueError(f"Unsupported parameter file format: {suffix}")
