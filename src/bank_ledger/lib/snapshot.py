"""Snapshot file I/O — the backend's persisted JSON copy of accounts and transactions."""

from __future__ import annotations

import json
import os
from pathlib import Path


class SnapshotError(ValueError):
    """The snapshot exists but is not a readable JSON object."""


def load_snapshot(path: Path) -> dict:
    """Read the snapshot.

    Raises:
        FileNotFoundError: no file at path
        SnapshotError: unreadable, not JSON, or not a JSON object
    """
    if not path.exists():
        raise FileNotFoundError(f"Snapshot not found: {path}")
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise SnapshotError(f"Snapshot {path} could not be read: {e}") from e
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise SnapshotError(f"Snapshot {path} is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise SnapshotError(f"Snapshot {path} must hold a JSON object")
    return data


def write_snapshot(path: Path, data: dict) -> None:
    """Replace the snapshot atomically (write .tmp, then rename over it)."""
    tmp = path.with_name(path.name + ".tmp")
    tmp.write_text(json.dumps(data, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
    os.replace(tmp, path)
