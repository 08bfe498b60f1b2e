from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Database
    database_url: str = "sqlite+aiosqlite:///./db.sqlite3"
    database_echo: bool = False
    lock_timeout_ms: int = 5000

    # Auth
    jwt_secret: str = "dev-only-secret-change-me-in-production"
    jwt_algorithm: str = "HS256"
    financial_roles: List[str] = ["admin", "manager", "cashier"]

    # Money
    currency_label: str = "CFA"

    # Logging
    log_level: str = "INFO"
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="DEBTS_",
        extra="ignore",
        env_file_encoding="utf-8",
    )


settings = Settings()
