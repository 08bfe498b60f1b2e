from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from .config import settings


class DatabaseManager:
    """Менеджер для управления подключением к БД и сессиями."""
    
    def __init__(self, url: str, echo: bool = False) -> None:
        self.engine = create_async_engine(
            url=url,
            echo=echo,
            future=True,
        )
        self.session_factory = async_sessionmaker(
            bind=self.engine,
            autoflush=False,
            autocommit=False,
            expire_on_commit=False,
            class_=AsyncSession,
        )
    
    async def session_dependency(self) -> AsyncGenerator[AsyncSession, None]:
        """Dependency для получения обычной сессии."""
        async with self.session_factory() as session:
            yield session
    
    async def dispose(self) -> None:
        """Закрыть пул соединений."""
        await self.engine.dispose()


db_manager = DatabaseManager(
    url=settings.database_url,
    echo=settings.database_echo,
)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Dependency для FastAPI."""
    async for session in db_manager.session_dependency():
        yield session


async def init_db() -> None:
    """Инициализация БД."""
    import src.apps.auth.models  # noqa: F401
    import src.apps.debts.models  # noqa: F401

    from .models import Base
    
    async with db_manager.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
