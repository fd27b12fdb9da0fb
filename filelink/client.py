"""
Connector to the local file system.

``FileClient.handle`` takes a :class:`~filelink.call.Call` whose reference is a
``file://`` URI, performs the file-level work for its verb and leaves exactly
one terminal status on the call:

* GET / HEAD: file content with extension-derived metadata, or a
  ``text/uri-list`` of a directory's children.
* POST: always 405. Only full replacement through PUT is supported.
* PUT: replace an existing file (temp file, delete, rename), create a
  directory when the reference ends with ``/``, or create a new file.
* DELETE: remove a file or an empty directory.

Filesystem errors never escape ``handle``; they are logged and turned into a
500 status whose ``reason`` says which step failed. Nothing is retried.
"""

from __future__ import annotations

import os
import shutil
import tempfile
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, BinaryIO, Optional

from filelink.call import Body, Call, Verb
from filelink.logging.ndjson import log_event
from filelink.metadata import (
    ENGLISH_US,
    IDENTITY,
    TEXT_PLAIN,
    Encoding,
    Language,
    MediaType,
    Metadata,
    MetadataMapping,
    apply_extensions,
)
from filelink.reference import FileReference, FileReferenceError
from filelink.representation import FileRepresentation, ReferenceList
from filelink.status import (
    CLIENT_ERROR_METHOD_NOT_ALLOWED,
    CLIENT_ERROR_NOT_FOUND,
    SUCCESS_NO_CONTENT,
    SUCCESS_OK,
    FailureReason,
    Status,
)

if TYPE_CHECKING:
    from filelink.client_call import FileClientCall


DEFAULT_TIME_TO_LIVE = 600
TEMP_PREFIX = "filelink-upload"
TEMP_SUFFIX = ".bin"
_CHUNK_SIZE = 64 * 1024


class ReplaceKind(str, Enum):
    SUCCESS = "success"
    EMPTY_BODY = "empty-body"
    ABORTED = "aborted"
    DATA_LOSS = "data-loss"


@dataclass(frozen=True)
class ReplaceOutcome:
    """
    Result of replacing an existing file.

    ABORTED means the original file is still in place. DATA_LOSS means the
    original was deleted but the new content could not be moved onto it: the
    target is now absent and ``temp_path`` holds the uploaded bytes.
    """

    kind: ReplaceKind
    reason: Optional[FailureReason] = None
    description: Optional[str] = None
    temp_path: Optional[Path] = None

    def to_status(self) -> Status:
        match self.kind:
            case ReplaceKind.SUCCESS:
                return SUCCESS_OK
            case ReplaceKind.EMPTY_BODY:
                return SUCCESS_NO_CONTENT
            case ReplaceKind.ABORTED | ReplaceKind.DATA_LOSS if self.reason is not None:
                return Status.server_error(self.reason, self.description or "")
        raise ValueError(f"{self.kind.value} outcome has no failure reason")


def write_body(body: Optional[Body], out: BinaryIO) -> int:
    """
    Copy a call's input into ``out`` and return the number of bytes written.
    """
    if body is None:
        return 0
    if isinstance(body, (bytes, bytearray, memoryview)):
        out.write(body)
        return len(body)
    written = 0
    for chunk in iter(lambda: body.read(_CHUNK_SIZE), b""):
        out.write(chunk)
        written += len(chunk)
    return written


class FileClient:
    def __init__(
        self,
        common_extensions: bool = False,
        *,
        default_media_type: MediaType = TEXT_PLAIN,
        default_encoding: Encoding = IDENTITY,
        default_language: Language = ENGLISH_US,
        time_to_live: int = DEFAULT_TIME_TO_LIVE,
        temp_dir: Optional[Path] = None,
    ) -> None:
        self.metadata_mappings = MetadataMapping(common_extensions=common_extensions)
        self.default_media_type = default_media_type
        self.default_encoding = default_encoding
        self.default_language = default_language
        self.time_to_live = time_to_live
        # None -> the system temp area.
        self.temp_dir = temp_dir

    # -- extension registry -------------------------------------------------

    def add_extension(self, extension: str, metadata: Metadata) -> None:
        self.metadata_mappings.add_extension(extension, metadata)

    def add_common_extensions(self) -> None:
        self.metadata_mappings.add_common_extensions()

    def get_metadata(self, extension: str) -> Optional[Metadata]:
        return self.metadata_mappings.resolve(extension)

    # -- calls ----------------------------------------------------------------

    def create_call(self, method: str, resource_uri: str, *, input: Optional[Body] = None) -> "FileClientCall":
        from filelink.client_call import FileClientCall

        return FileClientCall(self, method, resource_uri, input=input)

    def handle(self, call: Call) -> None:
        ref = FileReference(call.resource_ref)
        path = ref.file

        match call.verb:
            case Verb.GET | Verb.HEAD:
                status = self._handle_read(call, path)
            case Verb.POST:
                status = CLIENT_ERROR_METHOD_NOT_ALLOWED
            case Verb.PUT:
                status = self._handle_put(call, ref, path)
            case Verb.DELETE:
                status = self._handle_delete(path)
            case _:
                status = CLIENT_ERROR_METHOD_NOT_ALLOWED

        call.status = status
        log_event(
            level="info" if status.code < 500 else "error",
            event="file.call",
            data={
                "method": call.method,
                "path": str(path) if path is not None else call.resource_ref,
                "status": status.code,
                "reason": status.reason.value if status.reason else None,
            },
        )

    # -- reads ------------------------------------------------------------------

    def _handle_read(self, call: Call, path: Optional[Path]) -> Status:
        if path is None or not path.exists():
            return CLIENT_ERROR_NOT_FOUND

        if path.is_dir():
            listing = self._list_directory(call.resource_ref, path)
            if listing is None:
                return Status.server_error(FailureReason.LISTING_FAILED, "Unable to list the directory")
            call.output = listing
            return SUCCESS_OK

        try:
            call.output = self.file_representation(path)
        except OSError as e:
            # Vanished between exists() and stat().
            log_event(level="warning", event="file.read.stat_failed", data={"path": str(path), "error": str(e)})
            return CLIENT_ERROR_NOT_FOUND
        return SUCCESS_OK

    def file_representation(self, path: Path) -> FileRepresentation:
        output = FileRepresentation(path, self.default_media_type, self.time_to_live)
        output.metadata.encoding = self.default_encoding
        output.metadata.language = self.default_language
        apply_extensions(path.name, output.metadata, self.metadata_mappings)
        return output

    def _list_directory(self, identifier: str, path: Path) -> Optional[ReferenceList]:
        try:
            children = sorted(path.iterdir(), key=lambda c: c.name)
        except OSError as e:
            log_event(level="warning", event="file.list.failed", data={"path": str(path), "error": str(e)})
            return None

        listing = ReferenceList(identifier=identifier)
        for child in children:
            try:
                listing.add(str(FileReference.from_path(child)))
            except FileReferenceError as e:
                log_event(
                    level="warning",
                    event="file.list.skip",
                    data={"path": str(path), "entry": repr(child.name), "error": str(e)},
                )
        return listing

    # -- writes -----------------------------------------------------------------

    def _handle_put(self, call: Call, ref: FileReference, path: Optional[Path]) -> Status:
        if path is None:
            return CLIENT_ERROR_NOT_FOUND

        if path.exists():
            if path.is_dir():
                return Status.server_error(
                    FailureReason.REPLACE_OF_DIRECTORY_REJECTED,
                    "Can't put a new representation of a directory",
                )
            return self.replace_file(path, call.input).to_status()

        if ref.directory_intent:
            return self._create_directory(path)
        return self._create_file(path, call.input)

    def replace_file(self, target: Path, body: Optional[Body]) -> ReplaceOutcome:
        """
        Replace ``target`` with ``body``: write a temp file, delete the target,
        move the temp file onto it.

        The move renames in place when the temp area shares the target's
        filesystem and copies across devices otherwise. If the move fails the target
        stays absent; this is reported as DATA_LOSS and not rolled back.
        """
        try:
            fd, tmp_name = tempfile.mkstemp(prefix=TEMP_PREFIX, suffix=TEMP_SUFFIX, dir=self.temp_dir)
        except OSError as e:
            log_event(level="warning", event="file.replace.temp_failed", data={"path": str(target), "error": str(e)})
            return ReplaceOutcome(
                ReplaceKind.ABORTED,
                FailureReason.TEMP_FILE_CREATION_FAILED,
                "Unable to create a temporary file",
            )

        tmp = Path(tmp_name)
        try:
            with os.fdopen(fd, "wb") as f:
                written = write_body(body, f)
        except OSError as e:
            log_event(
                level="warning",
                event="file.replace.temp_failed",
                data={"path": str(target), "tempPath": str(tmp), "error": str(e)},
            )
            _discard_temp(tmp)
            return ReplaceOutcome(
                ReplaceKind.ABORTED,
                FailureReason.TEMP_FILE_CREATION_FAILED,
                "Unable to write the temporary file",
            )

        try:
            os.unlink(target)
        except OSError as e:
            # Original and temp file are both left on disk.
            log_event(
                level="warning",
                event="file.replace.delete_failed",
                data={"path": str(target), "tempPath": str(tmp), "error": str(e)},
            )
            return ReplaceOutcome(
                ReplaceKind.ABORTED,
                FailureReason.DELETE_BEFORE_REPLACE_FAILED,
                "Unable to delete the existing file",
                temp_path=tmp,
            )

        try:
            shutil.move(tmp, target)
        except OSError as e:
            log_event(
                level="error",
                event="file.replace.data_loss",
                data={"path": str(target), "tempPath": str(tmp), "bytes": written, "error": str(e)},
            )
            return ReplaceOutcome(
                ReplaceKind.DATA_LOSS,
                FailureReason.RENAME_AFTER_DELETE_FAILED,
                "Unable to move the temporary file to replace the existing file",
                temp_path=tmp,
            )

        return ReplaceOutcome(ReplaceKind.SUCCESS if written else ReplaceKind.EMPTY_BODY)

    def _create_directory(self, path: Path) -> Status:
        try:
            path.mkdir(parents=True)
        except OSError as e:
            log_event(level="warning", event="file.mkdir.failed", data={"path": str(path), "error": str(e)})
            return Status.server_error(FailureReason.DIRECTORY_CREATION_FAILED, "Unable to create the new directory")
        return SUCCESS_NO_CONTENT

    def _create_file(self, path: Path, body: Optional[Body]) -> Status:
        ancestors_failed = False
        parent = path.parent
        if not parent.exists():
            try:
                parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                # Creation of the file is still attempted below.
                ancestors_failed = True
                log_event(
                    level="warning",
                    event="file.create.ancestors_failed",
                    data={"path": str(path), "parent": str(parent), "error": str(e)},
                )

        try:
            with open(path, "xb") as f:
                written = write_body(body, f)
        except OSError as e:
            log_event(
                level="warning",
                event="file.create.failed",
                data={"path": str(path), "ancestorsFailed": ancestors_failed, "error": str(e)},
            )
            if ancestors_failed:
                return Status.server_error(
                    FailureReason.ANCESTOR_CREATION_FAILED,
                    "Unable to create the parent directory",
                )
            return Status.server_error(FailureReason.NEW_FILE_CREATION_FAILED, "Unable to create the new file")

        return SUCCESS_OK if written else SUCCESS_NO_CONTENT

    def _handle_delete(self, path: Optional[Path]) -> Status:
        if path is None:
            return CLIENT_ERROR_NOT_FOUND

        is_dir = path.is_dir() and not path.is_symlink()
        try:
            if is_dir:
                path.rmdir()
            else:
                path.unlink()
        except OSError as e:
            log_event(level="warning", event="file.delete.failed", data={"path": str(path), "error": str(e)})
            if not is_dir:
                return Status.server_error(FailureReason.DELETE_OF_FILE_FAILED, "Couldn't delete the file")
            if _is_empty_directory(path):
                return Status.server_error(
                    FailureReason.DELETE_OF_EMPTY_DIRECTORY_FAILED,
                    "Couldn't delete the empty directory",
                )
            return Status.server_error(
                FailureReason.DELETE_OF_NONEMPTY_DIRECTORY_FAILED,
                "Couldn't delete the non-empty directory",
            )
        return SUCCESS_NO_CONTENT


def _is_empty_directory(path: Path) -> bool:
    # An unreadable directory counts as non-empty.
    try:
        with os.scandir(path) as it:
            return next(it, None) is None
    except OSError:
        return False


def _discard_temp(tmp: Path) -> None:
    try:
        tmp.unlink(missing_ok=True)
    except OSError as e:
        log_event(level="warning", event="file.replace.temp_cleanup_failed", data={"tempPath": str(tmp), "error": str(e)})
