"""
Authentication routes and dependencies
"""

import logging
from typing import Optional

from fastapi import APIRouter, Cookie, Depends, Request
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import BaseModel

from backend.utils.responses import success_response, error_response
from dependencies import get_session_store
from utils.session_manager import SessionState, SessionStore
from utils.shared_utils import log_endpoint_event

logger = logging.getLogger(__name__)

LOGIN_PATH = "/admin/login"
DEFAULT_AFTER_LOGIN = "/admin"
REDIRECT_COOKIE = "redirect_after_login"
SESSION_COOKIE = "admin_session"

# Create auth router
auth_router = APIRouter(prefix="/admin", tags=["auth"])


# Request models
class LoginRequest(BaseModel):
    username: str
    password: str


class SessionLoading(Exception):
    """The stored token is still being verified"""


class LoginRequired(Exception):
    """No authenticated session; carries the path to return to after login"""

    def __init__(self, next_path: str):
        super().__init__(next_path)
        self.next_path = next_path


def _safe_redirect_target(target: Optional[str]) -> str:
    # Only same-site admin paths are honoured
    target = (target or "").strip('"')
    if target and target.startswith("/admin") and not target.startswith("//") and target != LOGIN_PATH:
        return target
    return DEFAULT_AFTER_LOGIN


def _state_dict(state: SessionState, authenticated: bool) -> dict:
    return {
        "authenticated": authenticated,
        "loading": state.loading,
        "username": state.username if authenticated else None,
    }


@auth_router.get("/login")
async def login_page(
    session: SessionStore = Depends(get_session_store),
    admin_session: Optional[str] = Cookie(None),
):
    """Current session state; an authenticated admin is pointed back to the dashboard"""
    state = session.get_state()
    authenticated = state.authenticated and session.owns_browser_session(admin_session)
    data = _state_dict(state, authenticated)
    if authenticated:
        data["redirect"] = DEFAULT_AFTER_LOGIN
    return success_response(data=data, message="Login")


@auth_router.post("/login")
async def login(
    request: LoginRequest,
    session: SessionStore = Depends(get_session_store),
    redirect_after_login: Optional[str] = Cookie(None),
):
    """Log in against the backend and return the stashed post-login target"""
    result = await session.login(request.username, request.password)
    if not result.success:
        log_endpoint_event("/admin/login", request.username, "error", {"error": result.error})
        return error_response("login_failed", 401, result.error)

    target = _safe_redirect_target(redirect_after_login)
    log_endpoint_event("/admin/login", request.username, "success", {"redirect": target})
    response = success_response(
        data={"username": request.username, "redirect": target},
        message=result.message or "Login successful",
    )
    response.set_cookie(
        key=SESSION_COOKIE,
        value=session.open_browser_session(),
        httponly=True,
        samesite="Lax",
    )
    response.delete_cookie(REDIRECT_COOKIE)
    return response


# Dependency for protected routes
async def require_admin(
    request: Request,
    session: SessionStore = Depends(get_session_store),
    admin_session: Optional[str] = Cookie(None),
) -> SessionState:
    """
    Gate admin routes on the session state and the browser's session cookie.

    While the startup verification is running nothing is decided; once it has
    settled a request without the cookie issued at login is sent to the login
    page and the requested path is remembered for after login.
    """
    state = session.get_state()
    if state.loading:
        raise SessionLoading()
    if not state.authenticated or not session.owns_browser_session(admin_session):
        path = request.url.path
        if request.url.query:
            path = f"{path}?{request.url.query}"
        raise LoginRequired(path)
    return state


@auth_router.post("/logout")
async def logout(
    state: SessionState = Depends(require_admin),
    session: SessionStore = Depends(get_session_store),
):
    """Logout never fails; local state is cleared even if the backend is down"""
    await session.logout()
    log_endpoint_event("/admin/logout", state.username, "success", {})
    response = success_response(data={"redirect": LOGIN_PATH}, message="Logged out successfully")
    response.delete_cookie(SESSION_COOKIE)
    return response


@auth_router.get("/me")
async def me(state: SessionState = Depends(require_admin)):
    return success_response(data=_state_dict(state, True), message="Authenticated")


async def session_loading_handler(request: Request, exc: SessionLoading) -> JSONResponse:
    return error_response("session_loading", 503, "Checking authentication...")


async def login_required_handler(request: Request, exc: LoginRequired) -> RedirectResponse:
    logger.info(f"Unauthenticated request to {exc.next_path}, redirecting to login")
    response = RedirectResponse(LOGIN_PATH, status_code=303)
    response.set_cookie(
        key=REDIRECT_COOKIE,
        value=exc.next_path,
        httponly=True,
        samesite="Lax",
        max_age=600,
    )
    return response
