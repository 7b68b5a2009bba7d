"""
Artifact persistence

Every artifact is written next to its final path as `<name>.tmp` and then
moved over it; the temp file is removed if the write fails.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Callable, Dict

import joblib
import pandas as pd


def _write_atomically(path: Path, write: Callable[[Path], None]) -> Path:
    """Run `write(tmp)` then replace `path` with tmp; returns `path`"""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(path.name + ".tmp")
    try:
        write(tmp)
        os.replace(tmp, path)
    finally:
        if tmp.exists():
            tmp.unlink()
    return path


def atomic_write_parquet(df: pd.DataFrame, path: Path) -> Path:
    return _write_atomically(path, lambda tmp: df.to_parquet(tmp, index=False))


def atomic_write_json(payload: Dict[str, Any], path: Path) -> Path:
    def _dump(tmp: Path) -> None:
        tmp.write_text(json.dumps(payload, indent=2, default=str), encoding="utf-8")

    return _write_atomically(path, _dump)


def atomic_dump_joblib(obj: Any, path: Path) -> Path:
    """Winning model handles, keyed by series unique_id"""
    return _write_atomically(path, lambda tmp: joblib.dump(obj, tmp))


def load_joblib(path: Path) -> Any:
    if not path.exists():
        raise FileNotFoundError(f"No saved models at {path}. Run the pipeline first.")
    return joblib.load(path)
