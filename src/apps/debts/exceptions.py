"""Исключения для работы с долгами клиентов."""


class DebtsBaseException(Exception):
    """Базовое исключение для приложения debts."""
    
    def __init__(self, message: str, details: dict | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class InvalidSettlementRequestError(DebtsBaseException):
    """Некорректный запрос на погашение (клиент или сумма)."""


class ClientNotFoundError(DebtsBaseException):
    """Клиент не найден."""


class NoActiveDebtError(DebtsBaseException):
    """У клиента нет активной задолженности."""


class UnknownPaymentStatusError(DebtsBaseException):
    """В БД найден статус оплаты вне известного набора."""


class InvalidStatusTransitionError(DebtsBaseException):
    """Недопустимый переход статуса оплаты."""


class SettlementPersistenceError(DebtsBaseException):
    """Ошибка при работе с БД во время погашения."""
