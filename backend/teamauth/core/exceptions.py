# backend/teamauth/core/exceptions.py

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, status_code: int = None, clear_refresh_cookie: bool = False):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.clear_refresh_cookie = clear_refresh_cookie


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST


class AuthError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED


class TokenInvalidError(AuthError):
    status_code = status.HTTP_403_FORBIDDEN


class TokenExpiredError(TokenInvalidError):
    pass


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND


class Forbidden(AppError):
    status_code = status.HTTP_403_FORBIDDEN


class ServerError(AppError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class OAuthError(Exception):
    """Provider-side failure; `reason` ends up in the login redirect."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


def _error_body(message: str) -> dict:
    return {"success": False, "message": message}


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    response = JSONResponse(status_code=exc.status_code, content=_error_body(exc.message))
    if exc.clear_refresh_cookie:
        from teamauth.core.security import clear_refresh_cookie

        clear_refresh_cookie(response)
    return response


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("Rejected request body on %s: %s", request.url.path, exc.errors())
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=_error_body("Invalid request data"))


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    # detail stays in the server log, the client gets a generic message
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body("Internal server error"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
