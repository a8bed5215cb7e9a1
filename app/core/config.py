from pydantic_settings import BaseSettings
from typing import Literal


class Settings(BaseSettings):
    APP_NAME: str = "ProgressReports"
    AUTH_MODE: Literal["firebase", "mock"] = "mock"
    REPORT_BACKEND: Literal["supabase", "memory"] = "memory"

    SUPABASE_URL: str = ""
    SUPABASE_KEY: str = ""
    SUPABASE_SERVICE_KEY: str = ""

    FIREBASE_CREDENTIALS_PATH: str = "./firebase-credentials.json"

    CORS_ORIGINS: str = "http://localhost:3000"

    # Bulk submission
    BULK_BATCH_SIZE: int = 10
    BULK_GATHER_CONCURRENCY: int = 0  # 0 = every student at once

    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
