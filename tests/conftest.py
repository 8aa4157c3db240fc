"""
Pytest configuration and fixtures for testing

The portfolio backend is replaced by an httpx MockTransport serving canned
responses; every request it receives is recorded for assertions.
"""
import json

import httpx
import pytest
from fastapi.testclient import TestClient

from config.settings import Settings
from main import create_app
from services.api_client import ApiClient
from services.content_service import ContentService
from services.upload_service import UploadWorkflow
from utils.session_manager import MemoryTokenStorage, SessionStore

API_URL = "http://backend.test"
ADMIN_TOKEN = "valid-token"


class FakeBackend:
    """Route table of (method, path) -> response, plus a log of received requests"""

    def __init__(self):
        self.routes = {}
        self.requests = []
        self.down = False

    def add(self, method, path, status=200, json=None, headers=None, content=None, handler=None):
        self.routes[(method.upper(), path)] = (status, json, headers, content, handler)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.down:
            raise httpx.ConnectError("Connection refused", request=request)

        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"error": "Not found"})

        status, body, headers, content, handler = route
        if handler is not None:
            return handler(request)
        if content is not None:
            return httpx.Response(status, content=content, headers=headers)
        return httpx.Response(status, json=body if body is not None else {}, headers=headers)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def calls(self, method, path=None):
        return [
            r for r in self.requests
            if r.method == method and (path is None or r.url.path == path)
        ]

    def json_of(self, request: httpx.Request) -> dict:
        return json.loads(request.content or b"{}")


@pytest.fixture
def backend():
    fake = FakeBackend()
    fake.add("GET", "/api/v1/auth/verify", json={"username": "admin"})
    return fake


@pytest.fixture
def settings(tmp_path):
    return Settings(
        api_url=API_URL,
        session_file=tmp_path / "session.json",
        log_dir=tmp_path / "logs",
        site_owner="Test Owner",
        contact_email="owner@example.com",
        contact_discord="owner#0001",
    )


@pytest.fixture
def admin_storage():
    return MemoryTokenStorage(token=ADMIN_TOKEN)


@pytest.fixture
def anon_storage():
    return MemoryTokenStorage()


@pytest.fixture
def admin_client(settings, backend, admin_storage):
    """TestClient with startup run, a verified admin token and the browser session cookie"""
    backend.add("POST", "/api/v1/auth/login", json={"token": ADMIN_TOKEN, "message": "Login successful"})
    app = create_app(settings, transport=backend.transport, token_storage=admin_storage)
    with TestClient(app) as client:
        response = client.post("/admin/login", json={"username": "admin", "password": "secret"})
        assert response.status_code == 200
        yield client


@pytest.fixture
def anon_client(settings, backend, anon_storage):
    app = create_app(settings, transport=backend.transport, token_storage=anon_storage)
    with TestClient(app) as client:
        yield client


@pytest.fixture
async def api(backend):
    client = ApiClient(API_URL, transport=backend.transport)
    yield client
    await client.aclose()


@pytest.fixture
async def session(api, admin_storage):
    store = SessionStore(api, admin_storage)
    await store.initialize()
    return store


@pytest.fixture
def uploads(api, session):
    return UploadWorkflow(api, session, f"{API_URL}/uploads/")


@pytest.fixture
def content(api, session):
    return ContentService(api, session)
