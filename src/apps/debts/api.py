"""API эндпоинты для долгов клиентов."""

import logging
from typing import List

from fastapi import APIRouter

from ..auth.dependencies import CallerDep, FinancialCallerDep
from .dependencies import DebtSvcDep, SettlementSvcDep
from .schemas import (
    AllocationOut,
    ClientDebtDetailOut,
    ClientDebtOut,
    OpenInvoiceOut,
    SettlementPayload,
    SettlementResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=List[ClientDebtOut])
async def list_debts(service: DebtSvcDep, caller: CallerDep):
    """Клиенты с ненулевым долгом, от большего долга к меньшему."""
    debts = await service.list_debts()
    return [
        ClientDebtOut(
            client_id=d.client_id,
            client_name=d.client_name,
            phone=d.phone,
            total_due=d.total_due,
        )
        for d in debts
    ]


@router.get("/{client_id}", response_model=ClientDebtDetailOut)
async def get_client_debt(client_id: int, service: DebtSvcDep, caller: CallerDep):
    """Долг клиента с открытыми счетами."""
    debt = await service.get_client_debt(client_id)
    return ClientDebtDetailOut(
        client_id=debt.client_id,
        client_name=debt.client_name,
        phone=debt.phone,
        total_due=debt.total_due,
        invoices=[
            OpenInvoiceOut(
                invoice_id=i.id,
                sale_id=i.sale_id,
                invoice_date=i.invoice_date,
                amount_paid=i.amount_paid,
                amount_due=i.amount_due,
                status=i.status,
            )
            for i in debt.invoices
        ],
    )


@router.post("/payment", response_model=SettlementResponse)
async def settle_payment(
    payload: SettlementPayload,
    service: SettlementSvcDep,
    caller: FinancialCallerDep,
):
    """Зарегистрировать общий платёж клиента и погасить его долг."""
    logger.info(
        "Платёж клиента: client_id=%s, amount=%s, user_id=%s",
        payload.client_id,
        payload.amount,
        caller.user_id,
    )
    
    result = await service.settle_payment(
        client_id=payload.client_id,
        amount=payload.amount,
        caller=caller,
    )
    
    return SettlementResponse(
        message=result.message,
        applied_total=result.applied_total,
        unapplied_amount=result.unapplied_amount,
        allocations=[
            AllocationOut(
                invoice_id=a.invoice_id,
                sale_id=a.sale_id,
                amount=a.amount,
                amount_paid=a.amount_paid_after,
                amount_due=a.amount_due_after,
                status=a.status_after,
            )
            for a in result.allocations
        ],
    )
