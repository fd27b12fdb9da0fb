from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import BinaryIO, Iterator, Optional, Union

from filelink.metadata import TEXT_URI_LIST, CharacterSet, Encoding, Language, MediaType


@dataclass
class RepresentationMetadata:
    media_type: Optional[MediaType] = None
    character_set: Optional[CharacterSet] = None
    encoding: Optional[Encoding] = None
    language: Optional[Language] = None
    modification_date: Optional[datetime] = None
    expiration_date: Optional[datetime] = None


class FileRepresentation:
    """
    Content of a regular file plus its metadata.

    Size and modification date are read from the file when the representation
    is built. The expiration date is ``now + time_to_live`` and is only a hint
    for downstream caches.
    """

    def __init__(self, path: Path, media_type: Optional[MediaType], time_to_live: int = 0) -> None:
        self.path = path
        st = path.stat()
        self.size: int = st.st_size
        self.metadata = RepresentationMetadata(
            media_type=media_type,
            modification_date=datetime.fromtimestamp(st.st_mtime, tz=timezone.utc),
        )
        self.time_to_live = time_to_live
        if time_to_live > 0:
            self.metadata.expiration_date = datetime.now(timezone.utc) + timedelta(seconds=time_to_live)

    @contextmanager
    def open(self) -> Iterator[BinaryIO]:
        with open(self.path, "rb") as f:
            yield f

    def read_bytes(self) -> bytes:
        with self.open() as f:
            return f.read()


@dataclass
class ReferenceList:
    """
    Ordered child references of a directory, rendered as ``text/uri-list``.
    """

    identifier: Optional[str] = None
    references: list[str] = field(default_factory=list)

    def add(self, reference: str) -> None:
        self.references.append(reference)

    def __len__(self) -> int:
        return len(self.references)

    def text(self) -> str:
        return "".join(f"{ref}\r\n" for ref in self.references)

    @property
    def metadata(self) -> RepresentationMetadata:
        return RepresentationMetadata(media_type=TEXT_URI_LIST)


Representation = Union[FileRepresentation, ReferenceList]
