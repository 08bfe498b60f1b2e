"""Распределение платежа по счетам клиента."""

import logging
from decimal import Decimal
from typing import List, Sequence

from ..domain.entities import Allocation, OpenInvoiceEntity
from ..domain.value_objects import ensure_transition, status_for_due

logger = logging.getLogger(__name__)


def allocate_payment(
    invoices: Sequence[OpenInvoiceEntity],
    amount: Decimal,
) -> List[Allocation]:
    """
    Распределить платёж по счетам: сначала самые старые.

    На каждый счёт относится min(остаток платежа, долг по счёту).
    Распределение останавливается, когда платёж исчерпан или счета кончились.
    Счета после точки остановки в результат не попадают.

    Args:
        invoices: Счета, упорядоченные от старых к новым
        amount: Сумма платежа (> 0)

    Returns:
        Список частей платежа по счетам
    """
    remaining = amount
    allocations: List[Allocation] = []

    for invoice in invoices:
        if remaining <= 0:
            break

        if invoice.amount_due <= 0:
            continue

        linked_sum = min(remaining, invoice.amount_due)
        due_after = invoice.amount_due - linked_sum
        status_after = status_for_due(due_after)
        ensure_transition(invoice.status, status_after)

        allocations.append(
            Allocation(
                invoice_id=invoice.id,
                sale_id=invoice.sale_id,
                amount=linked_sum,
                amount_paid_after=invoice.amount_paid + linked_sum,
                amount_due_after=due_after,
                sale_amount_paid_after=invoice.sale_amount_paid + linked_sum,
                status_before=invoice.status,
                status_after=status_after,
            )
        )

        logger.debug(
            "Часть платежа отнесена на счёт %s: linked_sum=%s, due_before=%s, remaining_payment=%s",
            invoice.id,
            linked_sum,
            invoice.amount_due,
            remaining - linked_sum,
        )

        remaining -= linked_sum

    return allocations
