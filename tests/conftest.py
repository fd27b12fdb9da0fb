from __future__ import annotations

from pathlib import Path

import pytest

from filelink.client import FileClient


@pytest.fixture(autouse=True)
def _isolate_env(tmp_path_factory, monkeypatch):
    """Keep logs and config lookups inside a temporary directory."""
    base = tmp_path_factory.mktemp("filelink-env")
    monkeypatch.setenv("FILELINK_LOG_DIR", str(base / "logs"))
    monkeypatch.setenv("FILELINK_MOUNTS_CONFIG", str(base / "missing-mounts.json"))
    for name in (
        "FILELINK_ROOT",
        "FILELINK_ROOT_NAME",
        "FILELINK_ROOT_READ_ONLY",
        "FILELINK_TIME_TO_LIVE",
        "FILELINK_DEFAULT_MEDIA_TYPE",
        "FILELINK_DEFAULT_LANGUAGE",
        "FILELINK_DEFAULT_ENCODING",
        "FILELINK_COMMON_EXTENSIONS",
        "FILELINK_TEMP_DIR",
        "FILELINK_EXTENSIONS",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def temp_area(tmp_path: Path) -> Path:
    p = tmp_path / "_tmp"
    p.mkdir()
    return p


@pytest.fixture
def client(temp_area: Path) -> FileClient:
    return FileClient(True, temp_dir=temp_area)


@pytest.fixture
def root(tmp_path: Path) -> Path:
    p = tmp_path / "root"
    p.mkdir()
    return p
