"""Сервис погашения долгов клиентов."""

import logging
from decimal import Decimal
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from src.core.config import settings

from ...auth.domain.entities import CallerContext
from ..domain.entities import SettlementResult
from ..domain.value_objects import SettlementRequest, format_amount
from ..exceptions import (
    ClientNotFoundError,
    NoActiveDebtError,
    SettlementPersistenceError,
)
from ..uow.unit_of_work import UnitOfWork
from .allocation import allocate_payment

logger = logging.getLogger(__name__)


class SettlementService:
    """
    Сервис погашения долга клиента общим платежом.
    
    Загрузка счетов с блокировкой, распределение платежа и обновление
    счетов и продаж выполняются в одной транзакции.
    """
    
    def __init__(
        self,
        uow: UnitOfWork,
        lock_timeout_ms: int | None = None,
        currency: str | None = None,
    ) -> None:
        """
        Инициализировать сервис погашения.
        
        Args:
            uow: Unit of Work для работы с БД
            lock_timeout_ms: Таймаут ожидания блокировок (по умолчанию из настроек)
            currency: Обозначение валюты для сообщений (по умолчанию из настроек)
        """
        self._uow = uow
        self._lock_timeout_ms = (
            settings.lock_timeout_ms if lock_timeout_ms is None else lock_timeout_ms
        )
        self._currency = currency or settings.currency_label
    
    async def settle_payment(
        self,
        client_id: Any,
        amount: Any,
        caller: CallerContext,
    ) -> SettlementResult:
        """
        Погасить долг клиента платежом: сначала самые старые счета.
        
        Переплата не отклоняется и не зачисляется в аванс: остаток
        возвращается в unapplied_amount.
        
        Args:
            client_id: ID клиента
            amount: Сумма платежа
            caller: Контекст вызывающего (уже прошёл проверку прав)
            
        Returns:
            Результат погашения
            
        Raises:
            InvalidSettlementRequestError: Некорректный клиент или сумма (до транзакции)
            ClientNotFoundError: Клиент не найден
            NoActiveDebtError: У клиента нет активной задолженности
            SettlementPersistenceError: Ошибка БД, транзакция откатена
        """
        request = SettlementRequest.create(client_id, amount)
        
        logger.info(
            "Погашение долга: client_id=%s, amount=%s, user_id=%s, role=%s",
            request.client_id,
            request.amount,
            caller.user_id,
            caller.role,
        )
        
        async with self._uow as uow:
            try:
                await uow.acquire_write_lock(self._lock_timeout_ms)
                
                if not await uow.clients.exists(request.client_id):
                    raise ClientNotFoundError(
                        f"Клиент {request.client_id} не найден",
                        details={"client_id": request.client_id},
                    )
                invoices = await uow.invoices.lock_outstanding_for_client(request.client_id)
                
                if not invoices:
                    raise NoActiveDebtError(
                        "У клиента нет активной задолженности",
                        details={"client_id": request.client_id},
                    )
                
                allocations = allocate_payment(invoices, request.amount)
                
                for allocation in allocations:
                    await uow.invoices.apply_allocation(allocation)
                    await uow.sales.apply_allocation(allocation)
                
                await uow.commit()
            except SQLAlchemyError as exc:
                raise SettlementPersistenceError(
                    "Ошибка БД при регистрации платежа",
                    details={"error": str(exc)},
                ) from exc
        
        result = SettlementResult(
            client_id=request.client_id,
            requested_amount=request.amount,
            allocations=allocations,
            message=(
                f"Платёж на сумму {format_amount(request.amount, self._currency)} "
                "успешно зарегистрирован"
            ),
        )
        
        if result.unapplied_amount > Decimal("0"):
            logger.warning(
                "Платёж превышает долг клиента %s: не распределено %s",
                request.client_id,
                result.unapplied_amount,
            )
        
        logger.info(
            "✓ Платёж клиента %s распределён: applied_total=%s, invoices=%d",
            request.client_id,
            result.applied_total,
            len(allocations),
        )
        
        return result
