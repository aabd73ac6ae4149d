import json

import pytest
import requests


class FakeResponse:
    def __init__(self, status_code=200, text="", payload=None):
        self.status_code = status_code
        self.text = json.dumps(payload) if payload is not None else text

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error", response=self)


class FakeSession:
    """Serves canned responses by URL; unknown URLs are 404s."""

    def __init__(self, routes):
        self.routes = routes
        self.calls = []

    def get(self, url, timeout=None):
        self.calls.append(url)
        route = self.routes.get(url)
        if isinstance(route, Exception):
            raise route
        return route if route is not None else FakeResponse(status_code=404)


@pytest.fixture
def fake_session():
    return FakeSession


@pytest.fixture
def response():
    return FakeResponse
