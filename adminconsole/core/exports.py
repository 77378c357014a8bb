from __future__ import annotations

import os
from pathlib import Path


def _base_root() -> Path:
    env_root = os.getenv("EXPORTS_ROOT")
    if env_root:
        return Path(env_root).expanduser().resolve()
    return Path(__file__).resolve().parents[2] / "exports"


def ensure_exports_root(department: str | None = None) -> Path:
    """Ensure the export folder (optionally per department) exists and return it."""

    root = _base_root()
    if department:
        root = root / Path(department).name
    root.mkdir(parents=True, exist_ok=True)
    return root
