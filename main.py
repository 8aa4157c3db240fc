"""
Portfolio site client - FastAPI front end for the portfolio REST backend
Public pages, admin session and content management, analytics
"""

import logging
import traceback
from typing import Optional

import httpx
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from auth import (
    LoginRequired,
    SessionLoading,
    auth_router,
    login_required_handler,
    session_loading_handler,
)
from backend.utils.responses import error_response
from config.settings import IS_PRODUCTION, Settings, settings as default_settings
from jobs.form_drafts import DraftRegistry
from routers.analytics_router import analytics_router
from routers.blog_router import blog_router
from routers.media_router import media_router
from routers.projects_router import router as projects_router
from routers.public_router import public_router
from routers.skills_router import skills_router
from services.admin_service import AdminService
from services.analytics_service import AnalyticsService
from services.api_client import ApiClient
from services.content_service import ContentService
from services.upload_service import UploadWorkflow
from utils.session_manager import FileTokenStorage, SessionStore, TokenStorage

logger = logging.getLogger(__name__)


def setup_logging(settings: Settings) -> None:
    """Write ALL events to <log_dir>/app.log and stderr"""
    settings.log_dir.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(settings.log_dir / "app.log"),
            logging.StreamHandler()
        ]
    )


# Uncaught exception middleware - logs all unhandled exceptions and returns 500
class UncaughtExceptionMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request, call_next):
        try:
            return await call_next(request)
        except Exception as e:
            logger.error(f"Uncaught exception: {e}\n{traceback.format_exc()}")
            return JSONResponse(
                status_code=500,
                content={"ok": False, "data": {}, "error": "internal_error", "message": "Internal Server Error"}
            )


# Security headers middleware
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses: CSP, HSTS, X-Frame-Options, X-Content-Type-Options"""
    async def dispatch(self, request, call_next):
        response = await call_next(request)

        # Images come from the backend's upload folder
        api_origin = request.app.state.settings.base_url
        response.headers["Content-Security-Policy"] = (
            "default-src 'self'; "
            "script-src 'self' 'unsafe-inline'; "
            "style-src 'self' 'unsafe-inline'; "
            f"connect-src 'self' {api_origin}; "
            f"img-src 'self' data: blob: {api_origin}; "
            "font-src 'self' data:; "
            "object-src 'none'; "
            "base-uri 'self'; "
            "form-action 'self';"
        )

        # HTTPS is only guaranteed in production
        if IS_PRODUCTION:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-Content-Type-Options"] = "nosniff"

        return response


async def validation_exception_handler(request, exc: RequestValidationError):
    errors = "; ".join(
        f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg')}" for err in exc.errors()
    )
    return error_response("validation_error", 400, errors or "Invalid request")


def create_app(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    token_storage: Optional[TokenStorage] = None,
) -> FastAPI:
    """
    Build the application and its services.

    Every service is created here and hung off `app.state`; routes reach
    them through the dependencies in `dependencies.py`. Tests pass an httpx
    transport standing in for the backend and an in-memory token storage.
    """
    settings = settings or default_settings
    setup_logging(settings)

    app = FastAPI(title="Portfolio Site Client")

    api = ApiClient(settings.base_url, settings.request_timeout, transport)
    session = SessionStore(api, token_storage or FileTokenStorage(settings.session_file))
    content = ContentService(api, session)
    uploads = UploadWorkflow(api, session, settings.uploads_prefix)

    app.state.settings = settings
    app.state.api = api
    app.state.session = session
    app.state.content = content
    app.state.uploads = uploads
    app.state.admin = AdminService(session, uploads, settings.site_owner)
    app.state.analytics = AnalyticsService(api, content)
    app.state.drafts = DraftRegistry()

    app.add_middleware(UncaughtExceptionMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)

    # CORS MUST be near the bottom
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url] if settings.frontend_url else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(SessionLoading, session_loading_handler)
    app.add_exception_handler(LoginRequired, login_required_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    @app.on_event("startup")
    async def initialize_session():
        """Verify any stored admin token against the backend"""
        state = await session.initialize()
        logger.info(f"Backend at {settings.base_url}; admin authenticated={state.authenticated}")

    @app.on_event("shutdown")
    async def close_api_client():
        await api.aclose()

    # ============================================================================
    # INCLUDE ROUTERS
    # ============================================================================
    app.include_router(auth_router)
    app.include_router(analytics_router)
    app.include_router(projects_router)
    app.include_router(skills_router)
    app.include_router(blog_router)
    app.include_router(media_router)
    app.include_router(public_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
