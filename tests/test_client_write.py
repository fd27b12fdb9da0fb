from __future__ import annotations

import errno
import io
import tempfile
from pathlib import Path

import pytest

from filelink.call import Call
from filelink.client import FileClient, ReplaceKind, ReplaceOutcome
from filelink.status import FailureReason
from tests.utils import logged_events, run


def test_post_is_always_rejected(client: FileClient, root: Path):
    target = root / "new.txt"

    call = run(client, "POST", target, b"data")

    assert call.status.code == 405
    assert not target.exists()
    assert list(root.iterdir()) == []


def test_unknown_verbs_are_rejected(client: FileClient, root: Path):
    target = root / "a.txt"
    target.write_text("a")

    for method in ("PATCH", "OPTIONS", "MKCOL", "other"):
        assert run(client, method, target, b"x").status.code == 405
    assert target.read_text() == "a"


def test_put_on_directory_is_rejected_without_mutation(client: FileClient, root: Path):
    (root / "keep.txt").write_text("k")

    call = run(client, "PUT", root, b"content")

    assert call.status.code == 500
    assert call.status.reason is FailureReason.REPLACE_OF_DIRECTORY_REJECTED
    assert root.is_dir()
    assert [p.name for p in root.iterdir()] == ["keep.txt"]


def test_replace_existing_file(client: FileClient, root: Path, temp_area: Path):
    target = root / "doc.txt"
    target.write_bytes(b"old content that is longer")

    call = run(client, "PUT", target, b"new")

    assert call.status.code == 200
    assert target.read_bytes() == b"new"
    assert list(temp_area.iterdir()) == []


def test_replace_with_stream_body(client: FileClient, root: Path):
    target = root / "doc.bin"
    target.write_bytes(b"old")
    payload = bytes(range(256)) * 1000

    call = run(client, "PUT", target, io.BytesIO(payload))

    assert call.status.code == 200
    assert target.read_bytes() == payload


def test_replace_with_empty_body_is_no_content(client: FileClient, root: Path):
    target = root / "doc.txt"
    target.write_bytes(b"old")

    assert run(client, "PUT", target, b"").status.code == 204
    assert target.read_bytes() == b""

    target.write_bytes(b"old")
    assert run(client, "PUT", target, None).status.code == 204
    assert target.read_bytes() == b""


def test_replace_aborts_when_temp_file_cannot_be_created(client: FileClient, root: Path, monkeypatch):
    target = root / "doc.txt"
    target.write_bytes(b"old")

    def no_temp(*args, **kwargs):
        raise OSError(28, "No space left on device")

    monkeypatch.setattr("filelink.client.tempfile.mkstemp", no_temp)

    call = run(client, "PUT", target, b"new")

    assert call.status.code == 500
    assert call.status.reason is FailureReason.TEMP_FILE_CREATION_FAILED
    assert target.read_bytes() == b"old"


def test_replace_aborts_when_delete_is_refused(client: FileClient, root: Path, temp_area: Path, monkeypatch):
    target = root / "doc.txt"
    target.write_bytes(b"old")

    def refuse(path, *args, **kwargs):
        raise PermissionError(13, "Permission denied", str(path))

    monkeypatch.setattr("filelink.client.os.unlink", refuse)

    outcome = client.replace_file(target, b"new")

    assert outcome.kind is ReplaceKind.ABORTED
    assert outcome.reason is FailureReason.DELETE_BEFORE_REPLACE_FAILED
    assert target.read_bytes() == b"old"
    # The upload stays behind next to the untouched original.
    assert outcome.temp_path is not None
    assert outcome.temp_path.parent == temp_area
    assert outcome.temp_path.read_bytes() == b"new"
    assert outcome.to_status().code == 500


def test_replace_reports_data_loss_when_move_fails(client: FileClient, root: Path, monkeypatch):
    target = root / "doc.txt"
    target.write_bytes(b"old")

    def broken_move(src, dst, *args, **kwargs):
        raise OSError(errno.ENOSPC, "No space left on device")

    monkeypatch.setattr("filelink.client.shutil.move", broken_move)

    call = run(client, "PUT", target, b"new")

    assert call.status.code == 500
    assert call.status.reason is FailureReason.RENAME_AFTER_DELETE_FAILED
    assert not target.exists()
    records = [r for r in logged_events() if r["event"] == "file.replace.data_loss"]
    assert records
    temp_path = Path(records[-1]["data"]["tempPath"])
    assert temp_path.read_bytes() == b"new"


def test_replace_across_devices_copies_the_temp_file(client: FileClient, root: Path, monkeypatch):
    target = root / "doc.txt"
    target.write_bytes(b"old")

    def cross_device_rename(src, dst, *args, **kwargs):
        raise OSError(errno.EXDEV, "Invalid cross-device link")

    monkeypatch.setattr("filelink.client.os.rename", cross_device_rename)

    call = run(client, "PUT", target, b"new")

    assert call.status.code == 200
    assert target.read_bytes() == b"new"
    assert not any(e["event"] == "file.replace.data_loss" for e in logged_events())


def test_replace_outcome_statuses(client: FileClient, root: Path):
    target = root / "doc.txt"
    target.write_bytes(b"old")

    assert client.replace_file(target, b"x").to_status().code == 200
    assert client.replace_file(target, b"").kind is ReplaceKind.EMPTY_BODY


def test_failed_outcome_without_reason_is_rejected():
    with pytest.raises(ValueError, match="no failure reason"):
        ReplaceOutcome(ReplaceKind.DATA_LOSS).to_status()


def test_put_directory_intent_creates_ancestors(client: FileClient, root: Path):
    target = root / "a" / "b" / "c"

    call = run(client, "PUT", target, directory=True)

    assert call.status.code == 204
    assert target.is_dir()


def test_put_directory_intent_failure(client: FileClient, root: Path):
    blocker = root / "file"
    blocker.write_text("x")

    call = run(client, "PUT", blocker / "sub", directory=True)

    assert call.status.code == 500
    assert call.status.reason is FailureReason.DIRECTORY_CREATION_FAILED


def test_put_creates_new_file_with_body(client: FileClient, root: Path):
    target = root / "new.txt"

    call = run(client, "PUT", target, b"hello")

    assert call.status.code == 200
    assert target.read_bytes() == b"hello"


def test_put_creates_empty_file_without_body(client: FileClient, root: Path):
    target = root / "empty.txt"

    call = run(client, "PUT", target)

    assert call.status.code == 204
    assert target.exists()
    assert target.read_bytes() == b""


def test_put_creates_missing_parents_for_new_file(client: FileClient, root: Path):
    target = root / "x" / "y" / "new.txt"

    call = run(client, "PUT", target, b"deep")

    assert call.status.code == 200
    assert target.read_bytes() == b"deep"


def test_put_new_file_reports_ancestor_failure(client: FileClient, root: Path):
    blocker = root / "file"
    blocker.write_text("x")

    call = run(client, "PUT", blocker / "sub" / "new.txt", b"data")

    assert call.status.code == 500
    assert call.status.reason is FailureReason.ANCESTOR_CREATION_FAILED
    assert blocker.read_text() == "x"
    assert any(r["event"] == "file.create.ancestors_failed" for r in logged_events())


def test_put_new_file_still_attempted_after_ancestor_failure(client: FileClient, root: Path, monkeypatch):
    target = root / "late" / "new.txt"
    real_mkdir = Path.mkdir

    def racing_mkdir(self, *args, **kwargs):
        # Another writer creates the directory, but our call reports failure.
        real_mkdir(self, *args, **kwargs)
        raise PermissionError(13, "Permission denied", str(self))

    monkeypatch.setattr(Path, "mkdir", racing_mkdir)

    call = run(client, "PUT", target, b"data")

    assert call.status.code == 200
    assert target.read_bytes() == b"data"


def test_put_new_file_creation_failure(client: FileClient, root: Path, monkeypatch):
    target = root / "new.txt"
    real_open = open

    def failing_open(file, mode="r", *args, **kwargs):
        if "x" in mode:
            raise PermissionError(13, "Permission denied", str(file))
        return real_open(file, mode, *args, **kwargs)

    monkeypatch.setattr("builtins.open", failing_open)

    call = run(client, "PUT", target, b"data")

    assert call.status.code == 500
    assert call.status.reason is FailureReason.NEW_FILE_CREATION_FAILED
    assert not target.exists()


def test_put_non_file_reference_is_not_found(client: FileClient):
    call = Call("PUT", "ftp://example.com/a.txt", input=b"x")
    client.handle(call)

    assert call.status.code == 404


def test_temp_files_use_system_temp_area_by_default(root: Path, monkeypatch, tmp_path: Path):
    seen: dict[str, object] = {}
    real_mkstemp = tempfile.mkstemp

    def spy(*args, **kwargs):
        seen.update(kwargs)
        kwargs["dir"] = str(tmp_path)
        return real_mkstemp(*args, **kwargs)

    monkeypatch.setattr("filelink.client.tempfile.mkstemp", spy)
    client = FileClient(True)
    target = root / "doc.txt"
    target.write_bytes(b"old")

    assert run(client, "PUT", target, b"new").status.code == 200
    assert seen["dir"] is None
    assert seen["prefix"] == "filelink-upload"
    assert target.read_bytes() == b"new"
