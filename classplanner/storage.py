"""
Local cache of the last fetched period snapshot.

This module manages the file:

    data/snapshot.json   (or CLASSPLANNER_SNAPSHOT_PATH)

The backend stays the source of truth. The cache only lets the CLI compute
candidates and validate proposals without re-downloading the period, and is
refreshed by `classplanner fetch` and after every successful write.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

from classplanner.config import get_settings
from classplanner.model import Snapshot


logger = logging.getLogger(__name__)


def _default_snapshot_path() -> Path:
    """
    Return the configured snapshot path.

    Using a function instead of a constant makes testing easier,
    because tests can override the path.
    """
    return get_settings().resolved_snapshot_path()


def load_snapshot(path: str | Path | None = None) -> Snapshot:
    """
    Load the cached snapshot.

    Returns an empty snapshot if the file does not exist or is invalid,
    so every command can still run (and simply find no candidates).
    """
    snapshot_path = Path(path) if path is not None else _default_snapshot_path()

    # First run: nothing fetched yet
    if not snapshot_path.exists():
        return Snapshot()

    try:
        data = json.loads(snapshot_path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError("snapshot root must be an object")
        return Snapshot.from_dict(data)
    except (OSError, UnicodeDecodeError, ValueError, KeyError, TypeError) as exc:
        logger.warning("Ignoring unreadable snapshot %s: %s", snapshot_path, exc)
        return Snapshot()


def save_snapshot(snapshot: Snapshot, path: str | Path | None = None, period_id: Optional[int] = None) -> Path:
    """
    Write the snapshot as JSON. Creates parent directories if needed.
    """
    snapshot_path = Path(path) if path is not None else _default_snapshot_path()
    snapshot_path.parent.mkdir(parents=True, exist_ok=True)

    payload = snapshot.to_dict()
    if period_id is not None:
        payload["period_id"] = period_id

    snapshot_path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
    logger.debug("Saved snapshot to %s", snapshot_path)
    return snapshot_path


def cached_period_id(path: str | Path | None = None) -> Optional[int]:
    """
    Period the cached snapshot was fetched for, if recorded.
    """
    snapshot_path = Path(path) if path is not None else _default_snapshot_path()
    try:
        data = json.loads(snapshot_path.read_text(encoding="utf-8"))
        value = data.get("period_id")
        return int(value) if value is not None else None
    except (OSError, UnicodeDecodeError, ValueError, AttributeError, TypeError):
        return None
