from __future__ import annotations

import pytest

from filelink.call import Call, Verb
from filelink.status import (
    CLIENT_ERROR_NOT_FOUND,
    SUCCESS_NO_CONTENT,
    SUCCESS_OK,
    FailureReason,
    Status,
)


@pytest.mark.parametrize(
    "token, verb",
    [
        ("GET", Verb.GET),
        ("get", Verb.GET),
        (" head ", Verb.HEAD),
        ("POST", Verb.POST),
        ("PUT", Verb.PUT),
        ("DELETE", Verb.DELETE),
        ("PATCH", Verb.OTHER),
        ("", Verb.OTHER),
    ],
)
def test_verb_parse(token, verb):
    assert Verb.parse(token) is verb


def test_status_is_terminal():
    call = Call("GET", "file:///tmp/x")
    assert call.status is None

    call.status = SUCCESS_OK

    with pytest.raises(RuntimeError):
        call.status = CLIENT_ERROR_NOT_FOUND
    assert call.status is SUCCESS_OK


def test_status_families():
    assert SUCCESS_NO_CONTENT.is_success
    assert CLIENT_ERROR_NOT_FOUND.is_client_error
    err = Status.server_error(FailureReason.LISTING_FAILED, "Unable to list the directory")
    assert err.is_server_error
    assert err.code == 500
    assert err.reason is FailureReason.LISTING_FAILED
    assert err.description == "Unable to list the directory"
