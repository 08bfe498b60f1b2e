"""Репозитории счетов и продаж."""

from typing import List

from sqlalchemy import Select, String, select, type_coerce, update
from sqlalchemy.exc import SQLAlchemyError

from src.core.repository import SQLAlchemyRepository

from ..domain.entities import Allocation, OpenInvoiceEntity
from ..domain.value_objects import TERMINAL_STATUSES, parse_status
from ..exceptions import SettlementPersistenceError
from ..models import Invoice, Sale


class InvoiceRepository(SQLAlchemyRepository[Invoice]):
    """Репозиторий счетов."""
    
    model = Invoice
    
    @staticmethod
    def _outstanding_stmt(client_id: int) -> Select:
        """Неоплаченные счета клиента, от старых к новым."""
        return (
            select(
                Invoice.id,
                Invoice.sale_id,
                Invoice.invoice_date,
                Invoice.amount_paid,
                Invoice.amount_due,
                type_coerce(Invoice.status, String).label("status"),
                Sale.amount_paid.label("sale_amount_paid"),
            )
            .join(Sale, Invoice.sale_id == Sale.id)
            .where(
                Sale.client_id == client_id,
                Invoice.status.not_in(TERMINAL_STATUSES),
                Invoice.amount_due > 0,
            )
            .order_by(Invoice.invoice_date.asc(), Invoice.id.asc())
        )
    
    @classmethod
    def lock_outstanding_stmt(cls, client_id: int) -> Select:
        """
        Запрос неоплаченных счетов с блокировкой строк.
        
        FOR UPDATE без OF блокирует и счета, и продажи из JOIN
        до конца транзакции.
        """
        return cls._outstanding_stmt(client_id).with_for_update()
    
    async def lock_outstanding_for_client(self, client_id: int) -> List[OpenInvoiceEntity]:
        """
        Загрузить и заблокировать неоплаченные счета клиента.
        
        Args:
            client_id: ID клиента
            
        Returns:
            Счета, упорядоченные по дате (сначала самые старые)
            
        Raises:
            SettlementPersistenceError: Ошибка БД (в т.ч. таймаут блокировки)
            UnknownPaymentStatusError: В строке неизвестный статус
        """
        return await self._fetch(self.lock_outstanding_stmt(client_id))
    
    async def list_outstanding_for_client(self, client_id: int) -> List[OpenInvoiceEntity]:
        """Те же счета без блокировки, для просмотра."""
        return await self._fetch(self._outstanding_stmt(client_id))
    
    async def apply_allocation(self, allocation: Allocation) -> None:
        """
        Записать новые суммы и статус счёта.
        
        Raises:
            SettlementPersistenceError: Ошибка БД или счёт не найден
        """
        stmt = (
            update(Invoice)
            .where(Invoice.id == allocation.invoice_id)
            .values(
                amount_paid=allocation.amount_paid_after,
                amount_due=allocation.amount_due_after,
                status=allocation.status_after,
            )
        )
        await _execute_update(self._session, stmt, "счёт", allocation.invoice_id)
    
    async def _fetch(self, stmt: Select) -> List[OpenInvoiceEntity]:
        try:
            result = await self._session.execute(stmt)
            rows = result.all()
        except SQLAlchemyError as exc:
            raise SettlementPersistenceError(
                "Ошибка при загрузке счетов клиента",
                details={"error": str(exc)},
            ) from exc
        return [self._to_entity(row) for row in rows]
    
    @staticmethod
    def _to_entity(row) -> OpenInvoiceEntity:
        return OpenInvoiceEntity(
            id=row.id,
            sale_id=row.sale_id,
            invoice_date=row.invoice_date,
            amount_paid=row.amount_paid,
            amount_due=row.amount_due,
            status=parse_status(row.status),
            sale_amount_paid=row.sale_amount_paid,
        )


class SaleRepository(SQLAlchemyRepository[Sale]):
    """Репозиторий продаж."""
    
    model = Sale
    
    async def apply_allocation(self, allocation: Allocation) -> None:
        """
        Отразить оплату счёта на продаже: та же сумма и тот же статус.
        
        Raises:
            SettlementPersistenceError: Ошибка БД или продажа не найдена
        """
        stmt = (
            update(Sale)
            .where(Sale.id == allocation.sale_id)
            .values(
                amount_paid=allocation.sale_amount_paid_after,
                payment_status=allocation.status_after,
            )
        )
        await _execute_update(self._session, stmt, "продажа", allocation.sale_id)


async def _execute_update(session, stmt, entity_name: str, entity_id: int) -> None:
    try:
        result = await session.execute(stmt)
    except SQLAlchemyError as exc:
        raise SettlementPersistenceError(
            f"Ошибка при обновлении: {entity_name} id={entity_id}",
            details={"error": str(exc)},
        ) from exc
    if result.rowcount == 0:
        raise SettlementPersistenceError(
            f"Не найдена запись для обновления: {entity_name} id={entity_id}",
        )
