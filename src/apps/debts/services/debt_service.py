"""Сервис просмотра долгов клиентов."""

import logging
from typing import List

from ..domain.entities import ClientDebtEntity
from ..domain.value_objects import ZERO
from ..exceptions import ClientNotFoundError
from ..uow.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


class DebtService:
    """Сервис только для чтения: сводные долги и открытые счета."""
    
    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow
    
    async def list_debts(self) -> List[ClientDebtEntity]:
        """
        Получить всех клиентов с ненулевым долгом.
        
        Returns:
            Список долгов по убыванию суммы
        """
        async with self._uow as uow:
            debts = await uow.clients.list_debts()
        
        logger.debug("Клиентов с долгом: %d", len(debts))
        return debts
    
    async def get_client_debt(self, client_id: int) -> ClientDebtEntity:
        """
        Получить долг клиента с открытыми счетами (без блокировки).
        
        Args:
            client_id: ID клиента
            
        Returns:
            Долг клиента; при отсутствии долга total_due = 0 и счетов нет
            
        Raises:
            ClientNotFoundError: Клиент не найден
        """
        async with self._uow as uow:
            client = await uow.clients.get_by_id(client_id)
            if client is None:
                raise ClientNotFoundError(
                    f"Клиент {client_id} не найден",
                    details={"client_id": client_id},
                )
            invoices = await uow.invoices.list_outstanding_for_client(client_id)
        
        return ClientDebtEntity(
            client_id=client.id,
            client_name=client.name,
            phone=client.phone,
            total_due=sum((invoice.amount_due for invoice in invoices), ZERO),
            invoices=invoices,
        )
