"""Unit of Work для погашения долгов."""

import logging
from typing import Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.uow import IUnitOfWork

from ..repositories.client_repository import ClientRepository
from ..repositories.invoice_repository import InvoiceRepository, SaleRepository

logger = logging.getLogger(__name__)


class UnitOfWork(IUnitOfWork):
    """
    Unit of Work для управления транзакцией и репозиториями.
    
    Обеспечивает:
    - Единую транзакцию для счетов и продаж
    - Автоматический rollback при исключении
    - Блокировку записи на время погашения (acquire_write_lock)
    - Rollback при выходе без commit, чтобы не держать блокировки
    """
    
    def __init__(self, session: AsyncSession) -> None:
        """
        Инициализировать Unit of Work.
        
        Args:
            session: Асинхронная сессия SQLAlchemy
        """
        self._session = session
        self._clients: Optional[ClientRepository] = None
        self._invoices: Optional[InvoiceRepository] = None
        self._sales: Optional[SaleRepository] = None
    
    @property
    def clients(self) -> ClientRepository:
        if self._clients is None:
            self._clients = ClientRepository(self._session)
        return self._clients
    
    @property
    def invoices(self) -> InvoiceRepository:
        if self._invoices is None:
            self._invoices = InvoiceRepository(self._session)
        return self._invoices
    
    @property
    def sales(self) -> SaleRepository:
        if self._sales is None:
            self._sales = SaleRepository(self._session)
        return self._sales
    
    async def acquire_write_lock(self, timeout_ms: int) -> None:
        """
        Начать пишущую транзакцию с ограниченным ожиданием блокировок.
        
        PostgreSQL: lock_timeout на транзакцию, строки блокирует FOR UPDATE.
        SQLite: FOR UPDATE игнорируется, поэтому транзакция сразу берёт
        блокировку записи на всю БД (BEGIN IMMEDIATE); конкурент ждёт
        до busy_timeout и получает OperationalError.
        
        Args:
            timeout_ms: Максимальное ожидание блокировки, мс
        """
        dialect = self._session.get_bind().dialect.name
        timeout_ms = int(timeout_ms)
        
        if dialect == "postgresql":
            await self._session.execute(text(f"SET LOCAL lock_timeout = {timeout_ms}"))
        elif dialect == "sqlite":
            await self._session.execute(text(f"PRAGMA busy_timeout = {timeout_ms}"))
            await self._session.execute(text("BEGIN IMMEDIATE"))
    
    async def commit(self) -> None:
        """Зафиксировать изменения в БД."""
        await self._session.commit()
    
    async def rollback(self) -> None:
        """Откатить изменения."""
        await self._session.rollback()
    
    async def __aenter__(self) -> "UnitOfWork":
        """Вход в контекстный менеджер."""
        return self
    
    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """
        Выход из контекстного менеджера.
        
        Откатывает транзакцию при исключении или если commit не был вызван.
        """
        if exc_type is not None:
            logger.error(
                "Откат транзакции: %s: %s",
                exc_type.__name__,
                exc_val,
            )
            await self.rollback()
        elif self._session.in_transaction():
            await self.rollback()
