"""Исключения проверки доступа."""


class AuthBaseException(Exception):
    """Базовое исключение для приложения auth."""
    
    def __init__(self, message: str, details: dict | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class MissingTokenError(AuthBaseException):
    """Токен не передан."""


class InvalidTokenError(AuthBaseException):
    """Токен не прошёл проверку."""


class UserNotFoundError(AuthBaseException):
    """Пользователь из токена не найден."""


class InsufficientRoleError(AuthBaseException):
    """Роли пользователя недостаточно для операции."""
