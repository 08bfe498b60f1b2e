from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List

from pydantic import BaseModel, Field, field_validator

# Предел колонки Numeric(14, 2)
MAX_AMOUNT = Decimal("999999999999.99")


class PaymentStatus(str, Enum):
    unpaid = "unpaid"                      # Не оплачено
    partial_payment = "partial_payment"    # Частичная оплата
    paid_in_full = "paid_in_full"          # Оплачено полностью
    cancelled = "cancelled"                # Аннулировано
    returned_fully = "returned_fully"      # Полный возврат


class SettlementPayload(BaseModel):
    client_id: int = Field(..., gt=0)
    amount: Decimal

    @field_validator("amount")
    @classmethod
    def validate_amount(cls, v: Decimal) -> Decimal:
        if not v.is_finite():
            raise ValueError("Сумма должна быть числом")
        if v <= 0:
            raise ValueError("Сумма должна быть больше нуля")
        if v > MAX_AMOUNT:
            raise ValueError("Сумма превышает допустимый предел")
        if v != v.quantize(Decimal("0.01")):
            raise ValueError("Сумма не может содержать больше двух знаков после запятой")
        return v


class AllocationOut(BaseModel):
    invoice_id: int
    sale_id: int
    amount: Decimal
    amount_paid: Decimal
    amount_due: Decimal
    status: PaymentStatus


class SettlementResponse(BaseModel):
    message: str
    applied_total: Decimal
    unapplied_amount: Decimal
    allocations: List[AllocationOut]


class ClientDebtOut(BaseModel):
    client_id: int
    client_name: str
    phone: str | None = None
    total_due: Decimal


class OpenInvoiceOut(BaseModel):
    invoice_id: int
    sale_id: int
    invoice_date: datetime
    amount_paid: Decimal
    amount_due: Decimal
    status: PaymentStatus


class ClientDebtDetailOut(ClientDebtOut):
    invoices: List[OpenInvoiceOut]
