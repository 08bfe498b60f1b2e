"""Репозиторий клиентов и сводных долгов."""

from typing import List

from sqlalchemy import String, and_, func, select, type_coerce

from src.core.repository import SQLAlchemyRepository

from ..domain.entities import ClientDebtEntity
from ..domain.value_objects import TERMINAL_STATUSES, parse_status
from ..models import Client, Invoice, Sale
from ..schemas import PaymentStatus


class ClientRepository(SQLAlchemyRepository[Client]):
    """Репозиторий клиентов."""
    
    model = Client
    
    async def list_debts(self) -> List[ClientDebtEntity]:
        """
        Получить клиентов с ненулевым долгом.
        
        Долг клиента - сумма amount_due по незакрытым счетам его продаж.
        
        Returns:
            Список долгов, от большего к меньшему
            
        Raises:
            UnknownPaymentStatusError: В БД есть счёт с неизвестным статусом
        """
        await self._ensure_known_statuses()
        
        due_sum = func.coalesce(func.sum(Invoice.amount_due), 0)
        total_due = due_sum.label("total_due")
        stmt = (
            select(Client.id, Client.name, Client.phone, total_due)
            .select_from(Client)
            .outerjoin(Sale, Sale.client_id == Client.id)
            .outerjoin(
                Invoice,
                and_(
                    Invoice.sale_id == Sale.id,
                    Invoice.status.not_in(TERMINAL_STATUSES),
                ),
            )
            .where(Client.is_active.is_(True))
            .group_by(Client.id, Client.name, Client.phone)
            .having(due_sum > 0)
            .order_by(total_due.desc(), Client.id.asc())
        )
        result = await self._session.execute(stmt)
        
        return [
            ClientDebtEntity(
                client_id=row.id,
                client_name=row.name,
                phone=row.phone,
                total_due=row.total_due,
            )
            for row in result.all()
        ]
    
    async def _ensure_known_statuses(self) -> None:
        """Не считать долг по счетам со статусом вне перечисления."""
        raw_status = type_coerce(Invoice.status, String)
        stmt = (
            select(raw_status)
            .join(Sale, Invoice.sale_id == Sale.id)
            .join(Client, Sale.client_id == Client.id)
            .where(Client.is_active.is_(True))
            .where(raw_status.not_in([status.value for status in PaymentStatus]))
            .limit(1)
        )
        unknown = (await self._session.execute(stmt)).scalar_one_or_none()
        
        if unknown is not None:
            parse_status(unknown)
