"""Application settings, read once from the environment at import time."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="EXAM_PORTAL_", env_file=".env", extra="ignore")

    database_url: str = "sqlite:///./exam_portal.db"
    # echo=False to avoid noisy logs; toggle for debugging
    sql_echo: bool = False
    secret_key: str = "CHANGE_ME_TO_A_RANDOM_SECRET"
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000

    # Seeded on startup when no admin account exists
    seed_admin_email: str = "admin@example.com"
    seed_admin_password: str = "admin123"


settings = Settings()
