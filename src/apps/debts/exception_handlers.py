"""Обработчики исключений для debts."""

import logging

from fastapi import Request, status
from fastapi.responses import JSONResponse

from .exceptions import (
    ClientNotFoundError,
    DebtsBaseException,
    InvalidSettlementRequestError,
    NoActiveDebtError,
    SettlementPersistenceError,
)

logger = logging.getLogger(__name__)


async def invalid_settlement_request_handler(
    request: Request,
    exc: InvalidSettlementRequestError,
) -> JSONResponse:
    """Обработчик для InvalidSettlementRequestError."""
    logger.warning("InvalidSettlementRequestError: %s", exc.message)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "detail": exc.message,
            "error_type": "InvalidSettlementRequestError",
            "details": exc.details,
        },
    )


async def not_found_handler(
    request: Request,
    exc: DebtsBaseException,
) -> JSONResponse:
    """Обработчик для ClientNotFoundError и NoActiveDebtError."""
    logger.warning("%s: %s", exc.__class__.__name__, exc.message)
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={
            "detail": exc.message,
            "error_type": exc.__class__.__name__,
            "details": exc.details,
        },
    )


async def settlement_persistence_error_handler(
    request: Request,
    exc: SettlementPersistenceError,
) -> JSONResponse:
    """Обработчик для SettlementPersistenceError."""
    logger.error("SettlementPersistenceError: %s, details=%s", exc.message, exc.details)
    # Детали ошибки БД наружу не отдаём
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": "Ошибка сервера при регистрации платежа",
            "error_type": "SettlementPersistenceError",
        },
    )


async def debts_base_exception_handler(
    request: Request,
    exc: DebtsBaseException,
) -> JSONResponse:
    """Обработчик для всех остальных DebtsBaseException."""
    logger.error(
        "DebtsBaseException: %s, details=%s",
        exc.message,
        exc.details,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": exc.message,
            "error_type": exc.__class__.__name__,
            "details": exc.details,
        },
    )


EXCEPTION_HANDLERS = {
    InvalidSettlementRequestError: invalid_settlement_request_handler,
    ClientNotFoundError: not_found_handler,
    NoActiveDebtError: not_found_handler,
    SettlementPersistenceError: settlement_persistence_error_handler,
    DebtsBaseException: debts_base_exception_handler,
}
