from __future__ import annotations

import json
import os
import time
from pathlib import Path

from filelink.logging.ndjson import init_logging, log_dir, log_event, log_files


def test_log_event_appends_json_lines():
    log_event(level="info", event="test.one", data={"path": "/tmp/a", "bytes": 3})
    log_event(level="warning", event="test.two", requestId="r-1")

    files = log_files()
    assert len(files) == 1
    assert files[0].name.startswith("filelink-")
    records = [json.loads(line) for line in files[0].read_text(encoding="utf-8").splitlines()]
    assert [r["event"] for r in records] == ["test.one", "test.two"]
    assert records[0]["data"] == {"path": "/tmp/a", "bytes": 3}
    assert records[1]["requestId"] == "r-1"
    assert "data" not in records[1]


def test_long_values_keep_head_and_tail(monkeypatch):
    monkeypatch.setenv("FILELINK_LOG_MAX_VALUE", "64")
    long_path = "/srv/" + "deep/" * 100 + "report.en.pdf"

    log_event(level="info", event="test.long", data={"path": Path(long_path), "bytes": 3, "paths": [long_path]})

    rec = json.loads(log_files()[0].read_text(encoding="utf-8").splitlines()[-1])
    clipped = rec["data"]["path"]
    assert len(clipped) <= 64
    assert clipped.startswith("/srv/deep/")
    assert clipped.endswith("report.en.pdf")
    assert "[...]" in clipped
    assert rec["data"]["paths"] == [clipped]
    assert rec["data"]["bytes"] == 3


def test_rotation_by_size(monkeypatch):
    monkeypatch.setenv("FILELINK_LOG_MAX_BYTES", "10")

    log_event(level="info", event="test.a")
    log_event(level="info", event="test.b")

    assert len(log_files()) == 2


def test_old_files_are_pruned():
    init_logging()
    old = log_dir() / "filelink-2000-01-01.ndjson"
    old.write_text("{}\n", encoding="utf-8")
    stale = time.time() - 30 * 86400
    os.utime(old, (stale, stale))

    init_logging()

    assert not old.exists()
