from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class FailureReason(str, Enum):
    TEMP_FILE_CREATION_FAILED = "temp-file-creation-failed"
    DELETE_BEFORE_REPLACE_FAILED = "delete-failed-before-replace"
    RENAME_AFTER_DELETE_FAILED = "rename-failed-after-delete"
    DIRECTORY_CREATION_FAILED = "directory-creation-failed"
    ANCESTOR_CREATION_FAILED = "ancestor-creation-failed"
    NEW_FILE_CREATION_FAILED = "new-file-creation-failed"
    REPLACE_OF_DIRECTORY_REJECTED = "replace-of-directory-rejected"
    DELETE_OF_FILE_FAILED = "delete-of-file-failed"
    DELETE_OF_NONEMPTY_DIRECTORY_FAILED = "delete-of-nonempty-directory-failed"
    DELETE_OF_EMPTY_DIRECTORY_FAILED = "delete-of-empty-directory-failed"
    LISTING_FAILED = "listing-failed"


@dataclass(frozen=True)
class Status:
    code: int
    name: str
    description: Optional[str] = None
    reason: Optional[FailureReason] = None

    @property
    def is_success(self) -> bool:
        return 200 <= self.code < 300

    @property
    def is_client_error(self) -> bool:
        return 400 <= self.code < 500

    @property
    def is_server_error(self) -> bool:
        return 500 <= self.code < 600

    @classmethod
    def server_error(cls, reason: FailureReason, description: str) -> "Status":
        return cls(SERVER_ERROR_INTERNAL.code, SERVER_ERROR_INTERNAL.name, description, reason)


SUCCESS_OK = Status(200, "OK")
SUCCESS_NO_CONTENT = Status(204, "No Content")
CLIENT_ERROR_NOT_FOUND = Status(404, "Not Found")
CLIENT_ERROR_METHOD_NOT_ALLOWED = Status(405, "Method Not Allowed")
SERVER_ERROR_INTERNAL = Status(500, "Internal Server Error")
