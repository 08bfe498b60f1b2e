"""Обработчики исключений для auth."""

import logging

from fastapi import Request, status
from fastapi.responses import JSONResponse

from .exceptions import (
    AuthBaseException,
    InsufficientRoleError,
    InvalidTokenError,
    MissingTokenError,
    UserNotFoundError,
)

logger = logging.getLogger(__name__)

_STATUS_CODES = {
    MissingTokenError: status.HTTP_401_UNAUTHORIZED,
    InvalidTokenError: status.HTTP_403_FORBIDDEN,
    InsufficientRoleError: status.HTTP_403_FORBIDDEN,
    UserNotFoundError: status.HTTP_404_NOT_FOUND,
}


async def auth_exception_handler(
    request: Request,
    exc: AuthBaseException,
) -> JSONResponse:
    """Обработчик для AuthBaseException и его наследников."""
    status_code = _STATUS_CODES.get(type(exc), status.HTTP_500_INTERNAL_SERVER_ERROR)
    logger.warning("%s: %s", exc.__class__.__name__, exc.message)
    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    return JSONResponse(
        status_code=status_code,
        content={
            "detail": exc.message,
            "error_type": exc.__class__.__name__,
        },
        headers=headers,
    )


EXCEPTION_HANDLERS = {
    MissingTokenError: auth_exception_handler,
    InvalidTokenError: auth_exception_handler,
    InsufficientRoleError: auth_exception_handler,
    UserNotFoundError: auth_exception_handler,
    AuthBaseException: auth_exception_handler,
}
