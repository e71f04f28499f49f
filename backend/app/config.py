from pydantic_settings import BaseSettings
from typing import List

class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./dev.db"
    FRONTEND_ORIGINS: List[str] = ["http://localhost:3000"]
    INVOICES_PATH: str = "/dashboard/invoices"
    ITEMS_PER_PAGE: int = 6
    # legacy behaviour switches, both off by default
    SWALLOW_PERSISTENCE_ERRORS: bool = False
    LEGACY_DELETE: bool = False
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

settings = Settings()
