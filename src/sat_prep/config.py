"""Environment-driven settings."""
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_DB_PATH = str(Path.home() / ".sat_prep" / "prep.db")


class Settings(BaseSettings):
    gemini_api_key: Optional[str] = Field(default=None, validation_alias="GEMINI_API_KEY")
    gemini_model: str = Field(default="gemini-2.5-flash", validation_alias="GEMINI_MODEL")
    gemini_base_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        validation_alias="GEMINI_BASE_URL",
    )
    # Seconds; whole mock-test modules can take a while to generate
    gemini_timeout: float = Field(default=120.0, validation_alias="GEMINI_TIMEOUT")

    db_path: str = Field(default=DEFAULT_DB_PATH, validation_alias="SAT_PREP_DB_PATH")
    log_level: str = Field(default="WARNING", validation_alias="SAT_PREP_LOG_LEVEL")

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


def get_settings() -> Settings:
    return Settings()
