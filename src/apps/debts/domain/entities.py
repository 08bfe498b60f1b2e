"""Доменные сущности долгов."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from ..schemas import PaymentStatus
from .value_objects import ZERO


@dataclass
class OpenInvoiceEntity:
    """Неоплаченный счёт клиента вместе с оплатой его продажи."""
    
    id: int
    sale_id: int
    invoice_date: datetime
    amount_paid: Decimal
    amount_due: Decimal
    status: PaymentStatus
    sale_amount_paid: Decimal = ZERO


@dataclass(frozen=True)
class Allocation:
    """Часть платежа, отнесённая на один счёт."""
    
    invoice_id: int
    sale_id: int
    amount: Decimal
    amount_paid_after: Decimal
    amount_due_after: Decimal
    sale_amount_paid_after: Decimal
    status_before: PaymentStatus
    status_after: PaymentStatus


@dataclass
class SettlementResult:
    """Результат погашения долга клиента."""
    
    client_id: int
    requested_amount: Decimal
    allocations: List[Allocation] = field(default_factory=list)
    message: Optional[str] = None
    
    @property
    def applied_total(self) -> Decimal:
        return sum((a.amount for a in self.allocations), ZERO)
    
    @property
    def unapplied_amount(self) -> Decimal:
        """Остаток платежа, который не на что было отнести."""
        return self.requested_amount - self.applied_total


@dataclass
class ClientDebtEntity:
    """Сводный долг клиента."""
    
    client_id: int
    client_name: str
    phone: Optional[str]
    total_due: Decimal
    invoices: List[OpenInvoiceEntity] = field(default_factory=list)
