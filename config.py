from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env.local", env_file_encoding="utf-8", extra="ignore")

    # Oracle selection: openai | gemini | echo
    ORACLE_PROVIDER: str = "openai"
    ORACLE_TIMEOUT_SECONDS: float = 60.0

    # OpenAI
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_MODEL_NAME: str = "gpt-4o-mini"

    # Gemini
    GOOGLE_API_KEY: Optional[str] = None
    GEMINI_MODEL_NAME: str = "gemini-2.5-flash"

    # Request building
    MATCH_MAX_CANDIDATES: int = 20

    # Image fetching (remote image references)
    IMAGE_FETCH_TIMEOUT_SECONDS: float = 20.0
    IMAGE_FETCH_CONCURRENCY: int = 8
    IMAGE_MAX_BYTES: int = 10 * 1024 * 1024  # 10MB

    # Intake store
    SEED_DEMO_DATA: bool = True

    # Logging
    LOG_JSON: bool = False


settings = Settings()
