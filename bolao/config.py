"""
Configurações da aplicação — Bolão GFT
"""
from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "sqlite:///./data/bolao.db"

    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = False

    # CORS
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:5173"]

    # Storage
    DATA_DIR: str = "./data"

    # Gemini (optional; an empty key selects the local fallbacks)
    GEMINI_API_KEY: str = ""
    GEMINI_MODEL: str = "gemini-1.5-flash"

    # Access control
    ADMIN_EMAILS: List[str] = []
    FALLBACK_ALLOWED_DOMAIN: str = "@experian.com"

    # Reconciliation / comments
    QUOTA_TOLERANCE: float = 0.01
    COMMENT_MAX_LENGTH: int = 140

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
