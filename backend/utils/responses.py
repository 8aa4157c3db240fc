from fastapi.responses import JSONResponse

from services.api_client import ApiError
from utils.security_utils import InputError
from utils.session_manager import AuthExpiredError


def success_response(data=None, message="OK", status=200):
    return JSONResponse(
        status_code=status,
        content={
            "ok": True,
            "data": data or {},
            "error": None,
            "message": message,
        }
    )


def error_response(error_code, status=400, message="An error occurred", data=None):
    return JSONResponse(
        status_code=status,
        content={
            "ok": False,
            "data": data or {},
            "error": error_code,
            "message": message,
        }
    )


def failure_response(exc: Exception, message="Request failed", data=None):
    """Envelope for a failed write: local validation, expired session or backend error"""
    if isinstance(exc, InputError):
        return error_response("validation_error", 400, exc.message, data)
    if isinstance(exc, AuthExpiredError):
        return error_response("auth_expired", 401, exc.message, data)
    if isinstance(exc, ApiError):
        if exc.is_network_error:
            return error_response("network_error", 502, exc.message, data)
        status = exc.status if 400 <= exc.status < 600 else 502
        return error_response("backend_error", status, exc.message, data)
    return error_response("internal_error", 500, message, data)
