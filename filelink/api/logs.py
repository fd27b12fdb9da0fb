from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

from fastapi import APIRouter, Query

from filelink.logging.ndjson import log_dir, log_files

router = APIRouter()

# Per file, only the end is read.
_TAIL_BYTES = 512 * 1024


def _tail_lines(path: Path) -> list[str]:
    try:
        size = path.stat().st_size
        with open(path, "rb") as f:
            f.seek(max(0, size - _TAIL_BYTES))
            buf = f.read()
    except OSError:
        return []
    lines = buf.decode("utf-8", errors="ignore").splitlines()
    if size > _TAIL_BYTES and lines:
        # First line is probably cut in half.
        lines = lines[1:]
    return [ln for ln in lines if ln.strip()]


def _matches(line: str, event: Optional[str], level: Optional[str]) -> bool:
    if event is None and level is None:
        return True
    try:
        rec = json.loads(line)
    except ValueError:
        return False
    if event is not None and not str(rec.get("event", "")).startswith(event):
        return False
    return level is None or rec.get("level") == level


@router.get("/api/logs/tail")
def get_logs_tail(
    lines: int = Query(200, ge=1, le=2000),
    event: Optional[str] = Query(None, description="Event name prefix, e.g. file.replace"),
    level: Optional[str] = None,
) -> dict[str, Any]:
    """
    The newest ``lines`` records, oldest first, optionally filtered.
    """
    picked: list[str] = []
    for p in log_files():
        chunk = [ln for ln in _tail_lines(p) if _matches(ln, event, level)]
        picked = chunk[-(lines - len(picked)):] + picked
        if len(picked) >= lines:
            break
    return {"dir": str(log_dir()), "lines": picked, "count": len(picked)}
