import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI

from src.apps.auth.exception_handlers import (
    EXCEPTION_HANDLERS as AUTH_EXCEPTION_HANDLERS,
)
from src.apps.debts.api import router as debts_router
from src.apps.debts.exception_handlers import (
    EXCEPTION_HANDLERS as DEBTS_EXCEPTION_HANDLERS,
)
from src.core.database import db_manager, init_db
from src.core.logging_config import setup_logging

Path("logs").mkdir(exist_ok=True)

setup_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    logger.info("БД инициализирована")
    yield
    await db_manager.dispose()


app = FastAPI(
    title="Долги клиентов: погашение платежей",
    lifespan=lifespan,
)

for exc_class, handler in AUTH_EXCEPTION_HANDLERS.items():
    app.add_exception_handler(exc_class, handler)

for exc_class, handler in DEBTS_EXCEPTION_HANDLERS.items():
    app.add_exception_handler(exc_class, handler)


app.include_router(debts_router, prefix="/api/debts", tags=["debts"])
