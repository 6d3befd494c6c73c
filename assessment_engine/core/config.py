"""
Configuration management using Pydantic settings.
"""
from typing import List, Union
import os
from pydantic import AnyHttpUrl, validator
from pydantic_settings import BaseSettings
from dotenv import load_dotenv
load_dotenv()



class Settings(BaseSettings):
    """Application settings."""

    # API Configuration
    API_V1_PREFIX: str = "/api/v1"
    PROJECT_NAME: str = "Assessment Attempt Engine"
    ENV: str = os.getenv("ENV", "development")
    DEBUG: bool = True
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Database Configuration
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./assessment.db")

    # JWT Configuration (tokens are issued by the external identity layer)
    SECRET_KEY: str = os.getenv("SECRET_KEY", "change-me")
    ALGORITHM: str = os.getenv("ALGORITHM", "HS256")
    REQUIRE_AUTH: bool = os.getenv("REQUIRE_AUTH", "true").lower() == "true"

    # Attempt policy
    DEFAULT_TIME_LIMIT_MINUTES: int = int(os.getenv("DEFAULT_TIME_LIMIT_MINUTES", 30))
    DEFAULT_PASSING_SCORE: float = float(os.getenv("DEFAULT_PASSING_SCORE", 60))
    CLAMP_TIME_OVERRUN: bool = os.getenv("CLAMP_TIME_OVERRUN", "true").lower() == "true"
    SUBMIT_GRACE_SECONDS: int = int(os.getenv("SUBMIT_GRACE_SECONDS", 0))
    SUBMIT_REPLAY_WINDOW_SECONDS: int = int(os.getenv("SUBMIT_REPLAY_WINDOW_SECONDS", 300))
    OPEN_ENDED_COUNTS_TOWARD_MAX_SCORE: bool = (
        os.getenv("OPEN_ENDED_COUNTS_TOWARD_MAX_SCORE", "false").lower() == "true"
    )

    # Stale attempt sweep
    ATTEMPT_SWEEP_INTERVAL_SECONDS: int = int(os.getenv("ATTEMPT_SWEEP_INTERVAL_SECONDS", 60))
    ABANDON_IDLE_HOURS: int = int(os.getenv("ABANDON_IDLE_HOURS", 0))

    # CORS Configuration
    BACKEND_CORS_ORIGINS: Union[List[AnyHttpUrl], str] = "*"

    @validator("BACKEND_CORS_ORIGINS", pre=True)
    def assemble_cors_origins(cls, v):
        if v == "*" or v == ["*"]:
            return "*"
        if isinstance(v, str):
            return [i.strip() for i in v.split(",")]
        return v

    class Config:
        """Pydantic config."""

        env_file = ".env"
        case_sensitive = True


settings = Settings()
