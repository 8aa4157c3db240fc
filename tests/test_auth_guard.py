"""
Tests for the admin route guard and the login/logout endpoints
"""
from fastapi.testclient import TestClient

from main import create_app


def test_admin_route_while_session_is_loading(settings, backend, admin_storage):
    # Without the context manager startup never runs, so the session stays loading
    client = TestClient(create_app(settings, transport=backend.transport, token_storage=admin_storage))

    response = client.get("/admin/projects", follow_redirects=False)

    assert response.status_code == 503
    body = response.json()
    assert body["ok"] is False
    assert body["message"] == "Checking authentication..."


def test_anonymous_admin_request_redirects_to_login(anon_client):
    response = anon_client.get("/admin/projects", follow_redirects=False)

    assert response.status_code == 303
    assert response.headers["location"] == "/admin/login"
    assert "redirect_after_login" in response.headers["set-cookie"]
    assert "HttpOnly" in response.headers["set-cookie"]


def test_login_returns_to_the_requested_page(anon_client, backend, anon_storage):
    backend.add("POST", "/api/v1/auth/login", json={"token": "fresh-token", "message": "Login successful"})
    anon_client.get("/admin/projects", follow_redirects=False)

    response = anon_client.post("/admin/login", json={"username": "admin", "password": "secret"})

    assert response.status_code == 200
    body = response.json()
    assert body["ok"] is True
    assert body["data"]["redirect"] == "/admin/projects"
    assert anon_storage.token == "fresh-token"


def test_login_without_stashed_target_goes_to_dashboard(anon_client, backend):
    backend.add("POST", "/api/v1/auth/login", json={"token": "fresh-token"})

    response = anon_client.post("/admin/login", json={"username": "admin", "password": "secret"})

    assert response.json()["data"]["redirect"] == "/admin"


def test_login_ignores_offsite_redirect_cookie(anon_client, backend):
    backend.add("POST", "/api/v1/auth/login", json={"token": "fresh-token"})
    anon_client.cookies.set("redirect_after_login", "//evil.example.com")

    response = anon_client.post("/admin/login", json={"username": "admin", "password": "secret"})

    assert response.json()["data"]["redirect"] == "/admin"


def test_failed_login(anon_client, backend, anon_storage):
    backend.add("POST", "/api/v1/auth/login", status=401, json={"error": "Invalid credentials"})

    response = anon_client.post("/admin/login", json={"username": "admin", "password": "nope"})

    assert response.status_code == 401
    body = response.json()
    assert body["error"] == "login_failed"
    assert body["message"] == "Invalid credentials"
    assert anon_storage.token is None


def test_login_request_validation(anon_client):
    response = anon_client.post("/admin/login", json={"username": "admin"})

    assert response.status_code == 400
    assert response.json()["error"] == "validation_error"


def test_authenticated_admin_passes_guard(admin_client):
    response = admin_client.get("/admin/me")

    assert response.status_code == 200
    assert response.json()["data"]["username"] == "admin"
    assert admin_client.cookies.get("admin_session")


def test_login_sets_httponly_session_cookie(anon_client, backend):
    backend.add("POST", "/api/v1/auth/login", json={"token": "fresh-token"})

    response = anon_client.post("/admin/login", json={"username": "admin", "password": "secret"})

    cookie = [c for c in response.headers.get_list("set-cookie") if c.startswith("admin_session=")]
    assert len(cookie) == 1
    assert "HttpOnly" in cookie[0]
    assert anon_client.get("/admin/me").status_code == 200


def test_other_browser_is_not_let_in_by_admin_login(admin_client, backend):
    stranger = TestClient(admin_client.app)

    me = stranger.get("/admin/me", follow_redirects=False)
    delete = stranger.delete("/admin/projects/p1", follow_redirects=False)
    logout = stranger.post("/admin/logout", follow_redirects=False)

    assert me.status_code == 303
    assert me.headers["location"] == "/admin/login"
    assert delete.status_code == 303
    assert logout.status_code == 303
    assert backend.calls("DELETE") == []
    assert backend.calls("POST", "/api/v1/auth/logout") == []
    assert admin_client.get("/admin/me").status_code == 200


def test_forged_session_cookie_is_rejected(admin_client):
    admin_client.cookies.clear()
    admin_client.cookies.set("admin_session", "not-the-issued-value")

    response = admin_client.get("/admin/me", follow_redirects=False)

    assert response.status_code == 303


def test_restart_needs_a_fresh_browser_login(settings, backend, admin_storage):
    # The stored backend token is still valid, but no browser holds a session yet
    with TestClient(create_app(settings, transport=backend.transport, token_storage=admin_storage)) as client:
        assert client.get("/admin/me", follow_redirects=False).status_code == 303
        assert client.get("/admin/login").json()["data"]["authenticated"] is False


def test_logout_works_when_backend_is_down(admin_client, backend, admin_storage):
    backend.down = True

    response = admin_client.post("/admin/logout")

    assert response.status_code == 200
    assert admin_storage.token is None
    assert admin_client.get("/admin/me", follow_redirects=False).status_code == 303
    assert response.headers["set-cookie"].startswith("admin_session=")
    assert "Max-Age=0" in response.headers["set-cookie"]


def test_expired_token_on_admin_call_logs_out(admin_client, backend, admin_storage):
    backend.add("DELETE", "/api/v1/projects/3", status=401, json={"error": "Token expired"})

    response = admin_client.delete("/admin/projects/3")

    assert response.status_code == 401
    assert response.json()["error"] == "auth_expired"
    assert admin_storage.token is None
    assert admin_client.get("/admin/projects", follow_redirects=False).status_code == 303


def test_security_headers(anon_client):
    response = anon_client.get("/contacts")

    assert response.headers["X-Frame-Options"] == "DENY"
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert "http://backend.test" in response.headers["Content-Security-Policy"]
