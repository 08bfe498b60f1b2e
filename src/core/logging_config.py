import logging
import sys
from pathlib import Path

from .config import settings


def setup_logging() -> None:
    """Настройка логирования для всего приложения"""
    
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)
    
    log_dir = Path("logs")
    log_dir.mkdir(exist_ok=True)
    
    logging.basicConfig(
        level=log_level,
        format=settings.log_format,
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler(
                log_dir / "app.log",
                encoding="utf-8",
            ),
        ],
    )
    
    # SQL пишем только при database_echo
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)
