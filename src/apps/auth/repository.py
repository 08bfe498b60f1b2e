from typing import Optional

from sqlalchemy import select

from src.core.repository import SQLAlchemyRepository

from .models import User


class UserRepository(SQLAlchemyRepository[User]):
    """Репозиторий пользователей (только чтение ролей)."""
    
    model = User
    
    async def get_role(self, user_id: int) -> Optional[str]:
        stmt = select(User.role).where(
            User.id == user_id,
            User.is_active.is_(True),
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()
