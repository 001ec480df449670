"""
Shared test fixtures for pytest
"""

import json
from urllib.parse import urlsplit

import pytest
from rest_framework.test import APIClient

from notes.client import NotesApiClient

from .fakes import FakeMeasurer


@pytest.fixture
def measurer():
    """Deterministic stand-in for the Pillow measurer"""
    return FakeMeasurer()


@pytest.fixture
def user(django_user_model):
    return django_user_model.objects.create_user(username="alice", email="alice@example.com", password="s3cret-pass!")


@pytest.fixture
def other_user(django_user_model):
    return django_user_model.objects.create_user(username="bob", email="bob@example.com", password="s3cret-pass!")


@pytest.fixture
def anon_client():
    return APIClient()


@pytest.fixture
def api_client(user):
    """APIClient authenticated as `user`"""
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture
def server_measurement_off(settings):
    """Server sizing falls back to the default footprint"""
    settings.NOTES_SERVER_MEASUREMENT = False
    return settings


class ApiClientSession:
    """Adapts DRF's APIClient to the slice of requests.Session that NotesApiClient uses."""

    def __init__(self, client):
        self.client = client

    def request(self, method, url, json=None, headers=None, timeout=None):
        body = "" if json is None else _encode(json)
        return self.client.generic(method, urlsplit(url).path, body, content_type="application/json")


def _encode(payload):
    return json.dumps(payload)


@pytest.fixture
def http_transport(api_client):
    """NotesApiClient talking to the test server through APIClient"""
    return NotesApiClient("http://testserver", session=ApiClientSession(api_client))
