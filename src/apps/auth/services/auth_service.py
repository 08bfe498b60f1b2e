import logging
from typing import Any, Dict, Optional

import jwt

from src.core.config import settings

from ..domain.entities import CallerContext
from ..exceptions import InvalidTokenError, MissingTokenError, UserNotFoundError
from ..repository import UserRepository

logger = logging.getLogger(__name__)


class AuthService:
    """Сервис проверки bearer-токена и определения роли вызывающего."""
    
    def __init__(
        self,
        users: UserRepository,
        secret: Optional[str] = None,
        algorithm: Optional[str] = None,
    ) -> None:
        self._users = users
        self._secret = secret or settings.jwt_secret
        self._algorithm = algorithm or settings.jwt_algorithm
    
    def decode_token(self, token: Optional[str]) -> Dict[str, Any]:
        """
        Проверить подпись и срок действия токена.
        
        Raises:
            MissingTokenError: Токен не передан
            InvalidTokenError: Токен не прошёл проверку
        """
        if not token:
            raise MissingTokenError("Токен отсутствует")
        try:
            return jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except jwt.PyJWTError as exc:
            logger.info("Токен отклонён: %s", exc)
            raise InvalidTokenError("Недействительный токен") from exc
    
    async def resolve_caller(self, token: Optional[str]) -> CallerContext:
        """
        Определить вызывающего по токену.
        
        Если в токене нет роли, она берётся из таблицы пользователей.
        
        Raises:
            MissingTokenError: Токен не передан
            InvalidTokenError: Токен не прошёл проверку или в нём нет userId
            UserNotFoundError: Роль не в токене, а пользователя нет в БД
        """
        claims = self.decode_token(token)
        
        user_id = claims.get("userId")
        if isinstance(user_id, bool) or not isinstance(user_id, int):
            raise InvalidTokenError("Доступ запрещён: в токене нет данных пользователя")
        
        role = claims.get("role")
        if not role:
            role = await self._users.get_role(user_id)
            if role is None:
                raise UserNotFoundError(
                    "Пользователь не найден",
                    details={"user_id": user_id},
                )
            logger.debug("Роль пользователя %s взята из БД: %s", user_id, role)
        
        return CallerContext(user_id=user_id, role=role)
