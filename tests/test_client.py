"""
Tests for NotesApiClient's mapping of HTTP outcomes to sync results.
"""

import pytest
import requests

from core import errors
from notes.client import NotesApiClient
from notes.grid import Rect, Size
from notes.sync import Ack, SyncFailure


class FakeResponse:
    def __init__(self, status_code, body=None):
        self.status_code = status_code
        self._body = body

    def json(self):
        if self._body is None:
            raise ValueError("no JSON body")
        return self._body


class FakeSession:
    def __init__(self, response=None, exc=None):
        self.response = response
        self.exc = exc
        self.requests = []

    def request(self, method, url, json=None, headers=None, timeout=None):
        self.requests.append({"method": method, "url": url, "json": json, "headers": headers, "timeout": timeout})
        if self.exc is not None:
            raise self.exc
        return self.response


def _client(response=None, exc=None, token="tok"):
    session = FakeSession(response, exc)
    return NotesApiClient("http://board.test/", access_token=token, session=session), session


class TestRequests:
    """Tests for what the client sends"""

    def test_patch_sends_grid_and_bearer(self):
        client, session = _client(FakeResponse(200, {"detail": "Note updated."}))
        client.patch_note("42", grid=Rect(1, 2, 3, 4))
        sent = session.requests[0]
        assert sent["method"] == "PATCH"
        assert sent["url"] == "http://board.test/api/notes/42/"
        assert sent["json"] == {"grid": {"x": 1, "y": 2, "w": 3, "h": 4}}
        assert sent["headers"] == {"Authorization": "Bearer tok"}

    def test_create_sends_size(self):
        client, session = _client(FakeResponse(201, {"id": "7"}))
        client.create_note("hi", ("a",), Size(8, 5))
        assert session.requests[0]["json"] == {"content": "hi", "tags": ["a"], "grid": {"w": 8, "h": 5}}

    def test_no_token_no_header(self):
        client, session = _client(FakeResponse(200, {"notes": [], "tags": []}), token=None)
        client.list_notes()
        assert session.requests[0]["headers"] == {}

    def test_login_stores_access_token(self):
        client, session = _client(FakeResponse(200, {"access": "new-access", "refresh": "r"}), token=None)
        assert isinstance(client.login("alice", "pw"), Ack)
        assert client.access_token == "new-access"


class TestResults:
    """Tests for mapping responses to Ack or SyncFailure"""

    def test_success_is_ack(self):
        client, _ = _client(FakeResponse(201, {"id": "7"}))
        assert client.create_note("hi", ["a"]) == Ack({"id": "7"})

    def test_401_is_unauthenticated(self):
        client, _ = _client(FakeResponse(401, {"detail": "expired", "code": "token_not_valid"}))
        result = client.delete_note("1")
        assert result.code == errors.UNAUTHENTICATED
        assert result.status == 401

    def test_server_code_is_kept(self):
        client, _ = _client(FakeResponse(409, {"detail": "The note is busy, please retry.", "code": "CONFLICT"}))
        result = client.patch_note("1", content="x")
        assert result == SyncFailure(errors.CONFLICT, "The note is busy, please retry.", 409)
        assert result.retryable

    def test_non_json_error_is_persistence_failure(self):
        client, _ = _client(FakeResponse(502))
        result = client.list_notes()
        assert result.code == errors.PERSISTENCE_FAILURE
        assert result.status == 502

    @pytest.mark.parametrize("exc", [requests.ConnectionError("down"), requests.Timeout("slow")])
    def test_network_error_is_transient(self, exc):
        client, _ = _client(exc=exc)
        result = client.list_notes()
        assert result.code == errors.TRANSIENT
        assert result.retryable
