from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite+aiosqlite:///./portflow.db"
    OPENAI_API_KEY: str

    # Models
    CHAT_MODEL: str = "gpt-4o-mini"
    EXTRACTION_MODEL: str = "gpt-4o-mini"
    SCAN_MODEL: str = "gpt-4o"

    # Intake webhook
    INTAKE_WEBHOOK_URL: str = "https://franzportflow.app.n8n.cloud/webhook/portflow-enquiry"
    INTAKE_TIMEOUT_SECONDS: float = 30.0

    # Chat intake
    CONFIRM_TRIGGER: str = "CONFIRM"
    READY_MARKER: str = "READY FOR OPS"

    # Bookings
    REFERENCE_PREFIX: str = "QRL"

    # Storage slots
    BOOKINGS_SLOT: str = "portflow_bookings"
    SESSION_SLOT: str = "portflow_session"

    # Login form defaults
    DEFAULT_LOGIN_EMAIL: str = "franz@portflow.org"
    DEFAULT_COMPANY_NAME: str = "PortFlow Global"

    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: list[str] = ["*"]

    class Config:
        env_file = ".env"


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
