# qa_service/core/config.py
import json
from pathlib import Path
from typing import List, Tuple, Union
from pydantic_settings import BaseSettings
from pydantic import field_validator, model_validator

def _env_file_candidates() -> Tuple[Union[str, Path], ...]:
    """.env files to read, service directory first, then the repository root and the CWD."""
    service_dir = Path(__file__).resolve().parent.parent
    repo_dir = service_dir.parent
    ordered = [
        service_dir / ".env",
        service_dir / ".env.local",
        repo_dir / ".env",
        repo_dir / ".env.local",
        Path(".env"),
    ]
    # dict.fromkeys keeps the first occurrence of each path
    return tuple(dict.fromkeys(ordered))


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "Engineering QA Service"
    APP_ENV: str = "dev"
    API_V1_PREFIX: str = "/api/v1"
    DEBUG: bool = False

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8010
    RELOAD: bool = False
    LOG_LEVEL: str = "info"

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./qa_service.db"
    SQL_LOG_LEVEL: str = "WARNING"

    # CORS: the test endpoints are called from the admin dashboard on any origin
    CORS_ORIGINS: List[str] = ["*"]
    CORS_METHODS: List[str] = ["GET", "POST", "OPTIONS"]
    CORS_HEADERS: List[str] = ["authorization", "x-client-info", "apikey", "content-type"]
    CORS_MAX_AGE: int = 600

    # Targets under test
    FUNCTIONS_BASE_URL: str = "http://localhost:54321/functions/v1"
    PROBE_TIMEOUT_SECONDS: float = 20.0
    MAX_PARALLEL_PROBES: int = 1
    THINK_TIME_CAP_MS: int = 500
    RUN_ENVIRONMENT: str = "production"

    # AI gateway (OpenAI-compatible). An empty key disables AI planning/analysis.
    AI_GATEWAY_BASE_URL: str = "https://openrouter.ai/api/v1"
    AI_GATEWAY_API_KEY: str = ""
    AI_PLAN_MODEL: str = "google/gemini-2.5-flash"
    AI_TIMEOUT_SECONDS: float = 30.0

    @field_validator("CORS_ORIGINS", "CORS_METHODS", "CORS_HEADERS", mode="before")
    @classmethod
    def split_list(cls, value):
        """Accept a JSON array or a comma-separated string for list settings."""
        if value is None:
            return []
        if not isinstance(value, str):
            return value
        text = value.strip()
        if text.startswith("["):
            try:
                return json.loads(text)
            except json.JSONDecodeError:
                return []
        return [item.strip() for item in text.split(",") if item.strip()]

    @model_validator(mode="after")
    def check_limits(self):
        if self.PROBE_TIMEOUT_SECONDS <= 0 or self.AI_TIMEOUT_SECONDS <= 0:
            raise ValueError("Outbound timeouts must be positive.")
        if self.MAX_PARALLEL_PROBES < 1:
            raise ValueError("MAX_PARALLEL_PROBES must be at least 1.")
        if self.THINK_TIME_CAP_MS < 0:
            raise ValueError("THINK_TIME_CAP_MS cannot be negative.")
        return self

    model_config = {
        "env_file": _env_file_candidates(),
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
        "extra": "ignore",
    }

settings = Settings()
__all__ = ["settings", "Settings"]
