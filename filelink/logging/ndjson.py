from __future__ import annotations

import json
import os
import threading
import time
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Optional

_lock = threading.Lock()

LOG_PREFIX = "filelink"


def _project_dir() -> Path:
    # filelink/logging/ndjson.py -> project root
    return Path(__file__).resolve().parents[2]


def log_dir() -> Path:
    p = os.environ.get("FILELINK_LOG_DIR")
    if p:
        return Path(p)
    return _project_dir() / "data" / "logs"


def _today_prefix(ts: Optional[float] = None) -> str:
    dt = datetime.fromtimestamp(ts or time.time())
    return dt.strftime(f"{LOG_PREFIX}-%Y-%m-%d")


def _max_bytes() -> int:
    try:
        return int(os.environ.get("FILELINK_LOG_MAX_BYTES", str(50 * 1024 * 1024)))
    except ValueError:
        return 50 * 1024 * 1024


def _retention_days() -> int:
    try:
        return int(os.environ.get("FILELINK_LOG_RETENTION_DAYS", "7"))
    except ValueError:
        return 7


def _max_value_len() -> int:
    try:
        return max(32, int(os.environ.get("FILELINK_LOG_MAX_VALUE", "1024")))
    except ValueError:
        return 1024


def _clip(text: str, limit: int) -> str:
    # Paths matter at both ends, so keep the head and the tail.
    if len(text) <= limit:
        return text
    keep = (limit - 5) // 2
    return f"{text[:keep]}[...]{text[-keep:]}"


def _record_value(v: Any, limit: int) -> Any:
    if v is None or isinstance(v, (bool, int, float)):
        return v
    if isinstance(v, (list, tuple)):
        return [_record_value(x, limit) for x in v]
    if isinstance(v, dict):
        return {str(k): _record_value(vv, limit) for k, vv in v.items()}
    return _clip(str(v), limit)


def _pick_log_file(*, ts: Optional[float] = None) -> Path:
    d = log_dir()
    d.mkdir(parents=True, exist_ok=True)
    prefix = _today_prefix(ts)
    base = d / f"{prefix}.ndjson"
    max_b = _max_bytes()

    if not base.exists():
        return base
    try:
        if base.stat().st_size < max_b:
            return base
    except OSError:
        return base

    # Size exceeded; pick next suffix.
    for i in range(1, 1000):
        p = d / f"{prefix}.{i}.ndjson"
        if not p.exists():
            return p
        try:
            if p.stat().st_size < max_b:
                return p
        except OSError:
            return p
    return base


def _prune_old_files() -> None:
    d = log_dir()
    if not d.exists():
        return
    cutoff = datetime.now() - timedelta(days=_retention_days())
    for p in d.glob(f"{LOG_PREFIX}-*.ndjson"):
        try:
            mtime = datetime.fromtimestamp(p.stat().st_mtime)
            if mtime < cutoff:
                p.unlink(missing_ok=True)
        except OSError:
            continue


def log_files() -> list[Path]:
    """
    Log files newest first.
    """
    d = log_dir()
    if not d.exists():
        return []
    return sorted(d.glob(f"{LOG_PREFIX}-*.ndjson"), key=lambda p: (p.stat().st_mtime, p.name), reverse=True)


def init_logging() -> None:
    """
    Best-effort init: ensure log dir exists and prune old files.
    """
    with _lock:
        log_dir().mkdir(parents=True, exist_ok=True)
        _prune_old_files()


def log_event(
    *,
    level: str,
    event: str,
    data: Optional[dict[str, Any]] = None,
    requestId: Optional[str] = None,
) -> None:
    """
    Append a single structured NDJSON record.
    Callers pass paths, sizes and error text, never file content.
    """
    ts_ms = int(time.time() * 1000)
    rec: dict[str, Any] = {
        "ts": ts_ms,
        "level": level,
        "event": event,
    }
    if requestId:
        rec["requestId"] = requestId
    if data:
        rec["data"] = _record_value(data, _max_value_len())

    line = json.dumps(rec, ensure_ascii=False)
    with _lock:
        try:
            _prune_old_files()
            p = _pick_log_file()
            with open(p, "a", encoding="utf-8") as f:
                f.write(line + "\n")
        except OSError:
            # Best-effort: never fail a call due to logging.
            pass
