"""Value Objects и правила статусов для долгов."""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Dict, FrozenSet, Tuple

from ..exceptions import (
    InvalidSettlementRequestError,
    InvalidStatusTransitionError,
    UnknownPaymentStatusError,
)
from ..schemas import MAX_AMOUNT, PaymentStatus

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

TERMINAL_STATUSES: Tuple[PaymentStatus, ...] = (
    PaymentStatus.paid_in_full,
    PaymentStatus.cancelled,
    PaymentStatus.returned_fully,
)

# Переходы, которые может выполнить погашение долга
SETTLEMENT_TRANSITIONS: Dict[PaymentStatus, FrozenSet[PaymentStatus]] = {
    PaymentStatus.unpaid: frozenset({
        PaymentStatus.partial_payment,
        PaymentStatus.paid_in_full,
    }),
    PaymentStatus.partial_payment: frozenset({
        PaymentStatus.partial_payment,
        PaymentStatus.paid_in_full,
    }),
    PaymentStatus.paid_in_full: frozenset(),
    PaymentStatus.cancelled: frozenset(),
    PaymentStatus.returned_fully: frozenset(),
}


def to_money(value: Decimal) -> Decimal:
    """Привести сумму к точности копейки (минимальной денежной единицы)."""
    return value.quantize(CENT)


def format_amount(amount: Decimal, currency: str) -> str:
    """
    Отформатировать сумму для сообщения: целые единицы, пробел как разделитель разрядов.
    
    Округление только для отображения, учёт всегда точный.
    """
    whole = int(amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    return f"{whole:,}".replace(",", " ") + f" {currency}"


def parse_status(value: Any) -> PaymentStatus:
    """
    Преобразовать сохранённое значение в PaymentStatus.
    
    Raises:
        UnknownPaymentStatusError: Значение вне известного набора
    """
    if isinstance(value, PaymentStatus):
        return value
    try:
        return PaymentStatus(value)
    except ValueError as exc:
        raise UnknownPaymentStatusError(
            f"Неизвестный статус оплаты: {value!r}",
            details={"status": str(value)},
        ) from exc


def status_for_due(amount_due: Decimal) -> PaymentStatus:
    """Статус как функция остатка долга."""
    if amount_due <= 0:
        return PaymentStatus.paid_in_full
    return PaymentStatus.partial_payment


def ensure_transition(current: PaymentStatus, new: PaymentStatus) -> None:
    """
    Проверить, что погашение может перевести статус current -> new.
    
    Raises:
        InvalidStatusTransitionError: Переход не разрешён
    """
    if new not in SETTLEMENT_TRANSITIONS[current]:
        raise InvalidStatusTransitionError(
            f"Недопустимый переход статуса: {current.value} -> {new.value}",
            details={"from": current.value, "to": new.value},
        )


def _coerce_amount(value: Any) -> Decimal:
    if isinstance(value, bool) or value is None:
        raise InvalidOperation
    if isinstance(value, float):
        value = str(value)
    amount = Decimal(value)
    if not amount.is_finite():
        raise InvalidOperation
    return amount


@dataclass(frozen=True)
class SettlementRequest:
    """Запрос на погашение долга клиента (Value Object)."""
    
    client_id: int
    amount: Decimal
    
    @classmethod
    def create(cls, client_id: Any, amount: Any) -> "SettlementRequest":
        """
        Проверить входные данные и создать запрос.
        
        Args:
            client_id: ID клиента
            amount: Сумма платежа (> 0, не больше двух знаков после запятой)
            
        Returns:
            Запрос на погашение
            
        Raises:
            InvalidSettlementRequestError: Некорректный клиент или сумма
        """
        if isinstance(client_id, bool) or not isinstance(client_id, int) or client_id <= 0:
            raise InvalidSettlementRequestError(
                "ID клиента и корректная сумма платежа обязательны",
                details={"client_id": client_id},
            )
        try:
            parsed = _coerce_amount(amount)
        except (InvalidOperation, TypeError, ValueError) as exc:
            raise InvalidSettlementRequestError(
                "ID клиента и корректная сумма платежа обязательны",
                details={"amount": str(amount)},
            ) from exc
        if parsed <= 0 or parsed > MAX_AMOUNT or parsed != parsed.quantize(CENT):
            raise InvalidSettlementRequestError(
                "ID клиента и корректная сумма платежа обязательны",
                details={"amount": str(amount)},
            )
        return cls(client_id=client_id, amount=to_money(parsed))
