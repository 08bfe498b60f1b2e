from abc import ABC
from typing import Generic, Optional, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.engine import Result
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Base

T = TypeVar("T", bound=Base)


class SQLAlchemyRepository(ABC, Generic[T]):
    """Базовый репозиторий для работы с SQLAlchemy."""
    
    model: Type[T] = None
    
    def __init__(self, session: AsyncSession) -> None:
        self._session = session
    
    async def get_by_id(self, obj_id: int) -> Optional[T]:
        """Получить объект по ID."""
        stmt = select(self.model).where(
            self.model.id == obj_id,
            self.model.is_active.is_(True),
        )
        result: Result = await self._session.execute(stmt)
        return result.scalar_one_or_none()
    
    async def exists(self, obj_id: int) -> bool:
        """Проверить, что объект существует."""
        stmt = select(self.model.id).where(
            self.model.id == obj_id,
            self.model.is_active.is_(True),
        )
        result: Result = await self._session.execute(stmt)
        return result.scalar_one_or_none() is not None
