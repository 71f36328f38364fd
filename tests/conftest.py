"""
Shared fixtures for the ISV Auth SDK test suite
"""

import pytest
import requests
from requests.adapters import BaseAdapter
from requests.structures import CaseInsensitiveDict

from isv_auth_sdk.signing import SigningCredential


class RecordingAdapter(BaseAdapter):
    """Transport adapter that records prepared requests instead of sending them."""

    def __init__(self, status_code=200, content=b'{"ok": true}', location=None):
        super().__init__()
        self.status_code = status_code
        self.content = content
        self.location = location
        self.requests = []

    def send(self, request, **kwargs):
        self.requests.append(request)

        response = requests.Response()
        response.status_code = self.status_code
        response.headers = CaseInsensitiveDict({'Content-Type': 'application/json'})
        if self.location:
            response.headers['Location'] = self.location
        response._content = self.content
        response._content_consumed = True
        response.url = request.url
        response.request = request
        return response

    def close(self):
        pass


@pytest.fixture
def credential():
    """Test signing credential."""
    return SigningCredential("AK1", "SK1")


@pytest.fixture
def recording_adapter():
    """Adapter capturing outgoing requests."""
    return RecordingAdapter()


@pytest.fixture
def redirecting_adapter():
    """Adapter answering every request with a 302 to another path."""
    return RecordingAdapter(status_code=302, content=b"", location="https://api.example.com/v1/other")
