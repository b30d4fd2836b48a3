"""
Run folders for generated disc assets.

    runs/
      <stamp>_<slug>/
        textures/      PNG maps
        artifacts/     disc.glb, slices.json
        manifest.json
        metrics.json
        summary.md
      latest -> <stamp>_<slug>
"""

from __future__ import annotations

import json
import os
import re
import shutil
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List

LATEST_NAME = "latest"
LATEST_MARKER = "latest_run.txt"


@dataclass
class RunPaths:
    run_id: str
    run_dir: Path
    textures_dir: Path
    artifacts_dir: Path
    manifest_path: Path
    metrics_path: Path
    summary_path: Path

    def texture_path(self, key: str) -> Path:
        return self.textures_dir / f"{key}.png"

    def artifact_path(self, filename: str) -> Path:
        return self.artifacts_dir / filename


def slugify(value: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", value.strip().lower()).strip("-")
    return slug or "run"


def create_run_id(name: str) -> str:
    # Microseconds keep back-to-back regenerations apart
    stamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S_%f")
    return f"{stamp}_{slugify(name)}"


def prepare_run_dir(runs_root: str, name: str) -> RunPaths:
    run_id = create_run_id(name)
    run_dir = Path(runs_root) / run_id
    paths = RunPaths(
        run_id=run_id,
        run_dir=run_dir,
        textures_dir=run_dir / "textures",
        artifacts_dir=run_dir / "artifacts",
        manifest_path=run_dir / "manifest.json",
        metrics_path=run_dir / "metrics.json",
        summary_path=run_dir / "summary.md",
    )
    for directory in (paths.textures_dir, paths.artifacts_dir):
        directory.mkdir(parents=True, exist_ok=True)
    return paths


def list_runs(runs_root: str) -> List[Path]:
    """Run folders under *runs_root*, oldest first."""
    root = Path(runs_root)
    if not root.is_dir():
        return []
    return sorted(
        p for p in root.iterdir()
        if p.is_dir() and not p.is_symlink() and p.name != LATEST_NAME
    )


def write_json(path: Path, payload: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    # Fortunes carry Cyrillic text
    path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")


def write_text(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def read_json(path: Path) -> Dict[str, Any]:
    return json.loads(Path(path).read_text(encoding="utf-8"))


def update_latest_pointer(runs_root: str, run_dir: Path) -> None:
    """Point ``<runs_root>/latest`` at *run_dir*.

    Uses a relative symlink; where symlinks are unavailable, ``latest`` is a
    directory holding a marker file with the run folder's name.
    """
    latest = Path(runs_root) / LATEST_NAME
    if latest.is_symlink() or latest.is_file():
        latest.unlink()
    elif latest.is_dir():
        shutil.rmtree(latest)

    try:
        latest.symlink_to(os.path.relpath(run_dir, latest.parent))
    except OSError:
        latest.mkdir(parents=True, exist_ok=True)
        (latest / LATEST_MARKER).write_text(Path(run_dir).name, encoding="utf-8")
