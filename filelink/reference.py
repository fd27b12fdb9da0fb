from __future__ import annotations

import os
from pathlib import Path
from typing import Optional
from urllib.parse import quote, unquote, urlsplit


class FileReferenceError(RuntimeError, ValueError):
    pass


class FileReference:
    """
    A ``file://`` resource reference.

    ``file`` is only set for the file scheme; any other scheme leaves it as None
    so read paths simply report the resource as missing.
    """

    def __init__(self, uri: str) -> None:
        self.uri = uri
        parts = urlsplit(uri)
        self.scheme = parts.scheme.lower()
        self.host = parts.netloc
        self.path = unquote(parts.path)

    @classmethod
    def from_path(cls, path: Path | str) -> "FileReference":
        p = Path(path)
        if not p.is_absolute():
            p = p.absolute()
        raw = p.as_posix()
        try:
            if p.is_dir() and not raw.endswith("/"):
                raw += "/"
            encoded = quote(raw, safe="/:")
        except (OSError, UnicodeEncodeError) as e:
            raise FileReferenceError(f"Cannot build a reference for {os.fsdecode(p)!r}: {e}") from e
        if not encoded.startswith("/"):
            # Windows drive paths: C:/x -> /C:/x
            encoded = "/" + encoded
        return cls("file://" + encoded)

    @property
    def is_file_scheme(self) -> bool:
        return self.scheme == "file"

    @property
    def file(self) -> Optional[Path]:
        if not self.is_file_scheme or not self.path:
            return None
        return Path(self.path)

    @property
    def directory_intent(self) -> bool:
        return self.path.endswith("/")

    def __str__(self) -> str:
        return self.uri

    def __repr__(self) -> str:
        return f"FileReference({self.uri!r})"
