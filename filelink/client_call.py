from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, BinaryIO, Optional

from filelink.call import Body, Call
from filelink.logging.ndjson import log_event
from filelink.reference import FileReference
from filelink.representation import Representation

if TYPE_CHECKING:
    from filelink.client import FileClient


class FileClientCall:
    """
    A single call bound to one local file.

    Construction fails with ``ValueError`` unless the resource URI uses the
    ``file`` scheme. The streams it hands out are plain file objects; use them
    in a ``with`` block so they are closed on every path.
    """

    def __init__(
        self,
        file_client: FileClient,
        method: str,
        resource_uri: str,
        *,
        input: Optional[Body] = None,
    ) -> None:
        ref = FileReference(resource_uri)
        if not ref.is_file_scheme or ref.file is None:
            raise ValueError("Only FILE resource URIs are allowed here")

        self.file_client = file_client
        self.reference = ref
        self.file: Path = ref.file
        self.call = Call(method, resource_uri, input=input)

    @property
    def method(self) -> str:
        return self.call.method

    def request_stream(self) -> Optional[BinaryIO]:
        try:
            return open(self.file, "wb")
        except OSError as e:
            log_event(level="warning", event="file.call.request_stream_failed", data={"path": str(self.file), "error": str(e)})
            return None

    def response_stream(self) -> Optional[BinaryIO]:
        try:
            return open(self.file, "rb")
        except OSError:
            return None

    def response_output(self) -> Optional[Representation]:
        """
        The call's output, or a fresh file representation carrying the file's
        current size and modification date.
        """
        if self.call.output is not None:
            return self.call.output
        if not self.file.is_file():
            return None
        try:
            return self.file_client.file_representation(self.file)
        except OSError:
            return None

    def handle(self) -> Call:
        self.file_client.handle(self.call)
        return self.call

    @property
    def response_status_code(self) -> Optional[int]:
        return self.call.status.code if self.call.status else None

    @property
    def response_reason_phrase(self) -> Optional[str]:
        status = self.call.status
        if status is None:
            return None
        return status.description or status.name
