from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from enum import Enum
from pathlib import Path

class EnvironmentType(str, Enum):
    DEVELOPMENT = "development"
    TESTING = "testing"
    PRODUCTION = "production"

class Settings(BaseSettings):
    # Basic Settings
    APP_NAME: str = "AI Mock Interviewer"
    ENVIRONMENT: EnvironmentType = EnvironmentType.DEVELOPMENT
    DEBUG: bool = True
    API_PREFIX: str = "/api"

    # Server Settings
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    LOG_LEVEL: str = "DEBUG"
    CLIENT_ORIGIN: str = "http://localhost:5173"

    # AI Settings
    OPENAI_API_KEY: str | None = None
    OPENAI_BASE_URL: str | None = None
    AI_MODEL: str = "gpt-4o-mini"
    AI_TEMPERATURE: float = 0.7
    AI_TIMEOUT_SECONDS: float = 30.0

    # Interview
    INTERVIEW_ROLE: str = "SDE Intern"

    # Database (unset means sessions live in process memory)
    DATABASE_URL: str | None = None

    # Paths
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra='ignore'
    )

@lru_cache
def get_settings() -> Settings:
    return Settings()
