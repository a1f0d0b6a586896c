from pydantic import BaseModel, ConfigDict
from typing import Optional

from app.domain.match_schema import EMPTY_ORACLE_TEXT


class OracleConfig(BaseModel):
    """Explicit oracle configuration handed to OracleClient (never read from globals)."""
    model_config = ConfigDict(frozen=True)

    provider: str = "openai"  # openai | gemini | echo
    api_key: Optional[str] = None
    model_name: Optional[str] = None
    timeout_seconds: float = 60.0

    @classmethod
    def from_settings(cls, settings) -> "OracleConfig":
        provider = (settings.ORACLE_PROVIDER or "").strip().lower()
        if provider == "gemini":
            api_key, model_name = settings.GOOGLE_API_KEY, settings.GEMINI_MODEL_NAME
        elif provider == "openai":
            api_key, model_name = settings.OPENAI_API_KEY, settings.OPENAI_MODEL_NAME
        else:
            api_key, model_name = None, provider or None
        return cls(
            provider=provider,
            api_key=api_key,
            model_name=model_name,
            timeout_seconds=settings.ORACLE_TIMEOUT_SECONDS,
        )


class RawOracleOutput(BaseModel):
    text: str = EMPTY_ORACLE_TEXT
    provider: Optional[str] = None
    model: Optional[str] = None
    skipped: bool = False  # True when no candidates were sent
