from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

from filelink.call import Body, Call
from filelink.client import FileClient
from filelink.logging.ndjson import log_files
from filelink.reference import FileReference


def ref(path: Path, *, directory: bool = False) -> str:
    uri = str(FileReference.from_path(path))
    if directory and not uri.endswith("/"):
        uri += "/"
    return uri


def run(client: FileClient, method: str, path: Path, body: Optional[Body] = None, *, directory: bool = False) -> Call:
    call = Call(method, ref(path, directory=directory), input=body)
    client.handle(call)
    return call


def logged_events() -> list[dict[str, Any]]:
    records: list[dict[str, Any]] = []
    for p in reversed(log_files()):
        for line in p.read_text(encoding="utf-8").splitlines():
            if line.strip():
                records.append(json.loads(line))
    return records
