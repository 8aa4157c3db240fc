"""
Session Manager - owns the single admin session (bearer token + auth state)
"""

import hashlib
import hmac
import json
import logging
import secrets
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import aiofiles
import httpx

from config.settings import TOKEN_KEY
from services.api_client import ApiClient, ApiError

logger = logging.getLogger(__name__)


class AuthExpiredError(ApiError):
    """Raised by authenticated calls when there is no token or the backend answers 401"""

    def __init__(self, message: str = "Authentication expired"):
        super().__init__(message, 401)


@dataclass(frozen=True)
class SessionState:
    authenticated: bool = False
    loading: bool = True
    user: Optional[Dict[str, Any]] = None

    @property
    def username(self) -> Optional[str]:
        return self.user.get("username") if self.user else None


@dataclass
class LoginResult:
    success: bool
    error: Optional[str] = None
    message: Optional[str] = None


class TokenStorage:
    """Persistent client storage holding one string token under a fixed key"""

    async def get(self) -> Optional[str]:
        raise NotImplementedError

    async def set(self, token: Optional[str]) -> None:
        raise NotImplementedError


@dataclass
class MemoryTokenStorage(TokenStorage):
    token: Optional[str] = None
    writes: List[Optional[str]] = field(default_factory=list)

    async def get(self) -> Optional[str]:
        return self.token

    async def set(self, token: Optional[str]) -> None:
        self.token = token
        self.writes.append(token)


class FileTokenStorage(TokenStorage):
    """Token persisted as JSON on disk so it survives a restart"""

    def __init__(self, path: Path, key: str = TOKEN_KEY):
        self.path = Path(path)
        self.key = key

    async def get(self) -> Optional[str]:
        if not self.path.exists():
            return None
        try:
            async with aiofiles.open(self.path, "r") as f:
                data = json.loads(await f.read() or "{}")
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read session file {self.path}: {e}")
            return None
        token = data.get(self.key) if isinstance(data, dict) else None
        return token or None

    async def set(self, token: Optional[str]) -> None:
        if token is None:
            try:
                if self.path.exists():
                    self.path.unlink()
            except OSError as e:
                logger.warning(f"Could not remove session file {self.path}: {e}")
            return

        self.path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = self.path.with_suffix(".json.tmp")
        async with aiofiles.open(temp_path, "w") as f:
            await f.write(json.dumps({self.key: token}))
        # Atomic rename
        temp_path.replace(self.path)


Listener = Callable[[SessionState], None]


class SessionStore:
    """
    Session store with a narrow interface: get_state, login, logout, subscribe.

    State machine:
        unknown (loading) --initialize--> authenticated | anonymous
        authenticated --logout / any 401--> anonymous
        anonymous --login--> authenticated
    """

    def __init__(self, api: ApiClient, storage: TokenStorage):
        self.api = api
        self.storage = storage
        self._state = SessionState()
        self._listeners: List[Listener] = []
        # sha256 of the cookie handed to the browser that logged in
        self._browser_session_hash: Optional[str] = None

    def get_state(self) -> SessionState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a callable that removes it"""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set_state(self, **changes) -> None:
        self._state = replace(self._state, **changes)
        for listener in list(self._listeners):
            try:
                listener(self._state)
            except Exception as e:
                logger.error(f"Session listener failed: {e}", exc_info=True)

    async def _clear(self) -> None:
        await self.storage.set(None)
        self._browser_session_hash = None
        self._set_state(authenticated=False, user=None)

    async def get_token(self) -> Optional[str]:
        return await self.storage.get()

    def open_browser_session(self) -> str:
        """
        Bind the session to one browser.

        Returns an opaque value for the caller to set as a cookie; only its
        hash is kept, and a new login replaces the previous browser.
        """
        value = secrets.token_urlsafe(32)
        self._browser_session_hash = hashlib.sha256(value.encode()).hexdigest()
        return value

    def owns_browser_session(self, value: Optional[str]) -> bool:
        if not value or self._browser_session_hash is None:
            return False
        digest = hashlib.sha256(value.encode()).hexdigest()
        return hmac.compare_digest(digest, self._browser_session_hash)

    async def initialize(self) -> SessionState:
        """Verify a stored token once at startup; loading is True only during this pass"""
        self._set_state(loading=True)
        token = await self.storage.get()
        if token:
            await self.verify_token(token)
        else:
            self._set_state(authenticated=False, user=None)
        self._set_state(loading=False)
        logger.info(f"Session initialized: authenticated={self._state.authenticated}")
        return self._state

    async def verify_token(self, token: str) -> bool:
        """Hydrate the session from the backend; any failure clears it (fail closed)"""
        try:
            response = await self.api.send(
                "GET",
                "/api/v1/auth/verify",
                headers={"Authorization": f"Bearer {token}"},
            )
            if response.is_success:
                data = response.json()
                self._set_state(authenticated=True, user={"username": data.get("username")})
                return True
            logger.info(f"Token verification rejected with status {response.status_code}")
        except (ApiError, ValueError) as e:
            logger.error(f"Token verification failed: {e}")

        await self._clear()
        return False

    async def login(self, username: str, password: str) -> LoginResult:
        """Post credentials; state only changes on success"""
        try:
            response = await self.api.send(
                "POST",
                "/api/v1/auth/login",
                json={"username": username, "password": password},
            )
            data = response.json()
        except (ApiError, ValueError) as e:
            logger.error(f"Login error: {e}")
            return LoginResult(success=False, error="Network error occurred")

        if not isinstance(data, dict):
            data = {}

        token = data.get("token")
        if response.is_success and token:
            await self.storage.set(token)
            self._set_state(authenticated=True, user={"username": username})
            logger.info(f"Admin '{username}' logged in")
            return LoginResult(success=True, message=data.get("message"))

        return LoginResult(success=False, error=data.get("error") or "Login failed")

    async def logout(self) -> None:
        """Best-effort backend logout; local state is always cleared"""
        try:
            token = await self.storage.get()
            if token:
                await self.api.send(
                    "POST",
                    "/api/v1/auth/logout",
                    headers={"Authorization": f"Bearer {token}"},
                )
        except Exception as e:
            logger.error(f"Logout error: {e}")
        finally:
            await self._clear()
            logger.info("Admin session cleared")

    async def authenticated_fetch(self, method: str, endpoint: str, **options) -> httpx.Response:
        """
        Issue a request with the bearer token injected.

        Raises:
            AuthExpiredError: if no token is stored, or the backend answers 401
                (the session is logged out before raising)
            ApiError: on network failure
        """
        token = await self.storage.get()
        if not token:
            raise AuthExpiredError("No authentication token available")

        request_options = dict(options)
        headers = dict(request_options.pop("headers", None) or {})
        headers["Authorization"] = f"Bearer {token}"

        response = await self.api.send(method, endpoint, headers=headers, **request_options)

        if response.status_code == 401:
            logger.warning(f"{method} {endpoint} returned 401, forcing logout")
            await self.logout()
            raise AuthExpiredError()

        return response

    async def authenticated_json(self, method: str, endpoint: str, **options) -> Dict[str, Any]:
        """authenticated_fetch + the API client's JSON decoding"""
        response = await self.authenticated_fetch(method, endpoint, **options)
        return self.api.decode(response)
