from typing import Annotated, Callable, Iterable, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config import settings
from src.core.database import get_session

from .domain.entities import CallerContext
from .exceptions import InsufficientRoleError
from .repository import UserRepository
from .services.auth_service import AuthService

bearer_scheme = HTTPBearer(auto_error=False)


async def get_auth_service(session: AsyncSession = Depends(get_session)) -> AuthService:
    return AuthService(users=UserRepository(session))


async def get_current_caller(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    auth_service: AuthService = Depends(get_auth_service),
) -> CallerContext:
    token = credentials.credentials if credentials else None
    return await auth_service.resolve_caller(token)


def require_roles(roles: Iterable[str]) -> Callable:
    """Dependency: вызывающий должен иметь одну из ролей."""
    allowed = tuple(roles)
    
    async def _check(caller: CallerContext = Depends(get_current_caller)) -> CallerContext:
        if not caller.has_role(*allowed):
            raise InsufficientRoleError(
                f'Доступ запрещён. Роли "{caller.role}" недостаточно',
                details={"role": caller.role},
            )
        return caller
    
    return _check


CallerDep = Annotated[CallerContext, Depends(get_current_caller)]
FinancialCallerDep = Annotated[CallerContext, Depends(require_roles(settings.financial_roles))]
