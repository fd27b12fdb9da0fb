from __future__ import annotations

from enum import Enum
from typing import BinaryIO, Optional, Union

from filelink.representation import Representation
from filelink.status import Status


class Verb(str, Enum):
    GET = "GET"
    HEAD = "HEAD"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    OTHER = "OTHER"

    @classmethod
    def parse(cls, method: str) -> "Verb":
        token = method.strip().upper()
        if token == cls.OTHER.value:
            return cls.OTHER
        try:
            return cls(token)
        except ValueError:
            return cls.OTHER


Body = Union[bytes, BinaryIO]


class Call:
    """
    One request against the file connector.

    The status is terminal: it can be assigned once, and a second assignment
    raises ``RuntimeError``.
    """

    def __init__(
        self,
        method: str,
        resource_ref: str,
        *,
        input: Optional[Body] = None,
        input_size: Optional[int] = None,
    ) -> None:
        self.method = method
        self.verb = Verb.parse(method)
        self.resource_ref = resource_ref
        self.input = input
        self.input_size = input_size
        self.output: Optional[Representation] = None
        self._status: Optional[Status] = None

    @property
    def status(self) -> Optional[Status]:
        return self._status

    @status.setter
    def status(self, status: Status) -> None:
        if self._status is not None:
            raise RuntimeError(f"Call status already set to {self._status.code}")
        self._status = status

    def __repr__(self) -> str:
        code = self._status.code if self._status else None
        return f"Call({self.method!r}, {self.resource_ref!r}, status={code})"
