"""
Centralized configuration management using Pydantic Settings.

All environment variables and configuration in one place.
Type-safe with validation.
"""

from typing import Optional, Literal
from pydantic_settings import BaseSettings
from pydantic import Field, field_validator


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    # ==================== LLM Configuration ====================
    google_api_key: Optional[str] = Field(default=None, description="Google Gemini API key")
    default_model: str = Field(default="gemini-2.5-flash", description="Default LLM model")
    fallback_model: str = Field(default="gemini-2.5-pro", description="Fallback LLM model")
    max_output_tokens: Optional[int] = Field(default=None, ge=1, description="Max output tokens per flow call")

    # LLM Temperature settings
    temp_study: float = Field(default=0.7, ge=0.0, le=1.0, description="Tutoring/chat temperature")
    temp_quiz: float = Field(default=0.4, ge=0.0, le=1.0, description="Quiz/flashcard generation temperature")
    temp_code: float = Field(default=0.2, ge=0.0, le=1.0, description="Code analysis temperature")
    temp_creative: float = Field(default=0.9, ge=0.0, le=1.0, description="Creative temperature")

    # ==================== Flow Configuration ====================
    flow_dedupe_enabled: bool = Field(
        default=True,
        description="Share one model call between identical concurrent flow calls"
    )
    default_question_count: int = Field(default=5, ge=1, le=100, description="Default questions per batch")
    default_flashcard_count: int = Field(default=10, ge=1, le=100, description="Default flashcards per batch")
    session_idle_minutes: int = Field(default=120, ge=1, description="Minutes before an untouched session is dropped")

    # ==================== Database Configuration ====================
    database_url: str = Field(
        default="sqlite:///./study_ai.db",
        description="Database connection string (PostgreSQL or SQLite)"
    )
    db_pool_pre_ping: bool = Field(default=True, description="Enable pool pre-ping")
    db_echo: bool = Field(default=False, description="Echo SQL queries")
    knowledge_items_limit: int = Field(default=100, ge=1, description="Max knowledge items kept per user")
    history_items_limit: int = Field(default=50, ge=1, description="Max learning history items kept per user")

    # ==================== API Configuration ====================
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=8000, ge=1024, le=65535, description="API port")
    api_workers: int = Field(default=1, ge=1, le=16, description="Number of API workers")
    api_reload: bool = Field(default=False, description="Enable auto-reload")
    cors_allowed_origins: str = Field(
        default="http://localhost:3000,https://localhost:3000",
        description="Comma-separated list of allowed CORS origins"
    )

    # ==================== Monitoring & Logging ====================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level"
    )
    enable_metrics: bool = Field(default=True, description="Enable flow metrics collection")

    # ==================== Development ====================
    debug: bool = Field(default=False, description="Debug mode")
    testing: bool = Field(default=False, description="Testing mode")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Ensure database URL is a supported backend."""
        if not v.startswith(("postgresql://", "postgresql+psycopg2://", "sqlite://")):
            raise ValueError("Database URL must use PostgreSQL or SQLite")
        return v

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.debug or self.testing

    @property
    def allowed_origins(self) -> list[str]:
        """CORS origins with blanks removed."""
        return [origin.strip() for origin in self.cors_allowed_origins.split(",") if origin.strip()]

    def validate_production_config(self) -> list[str]:
        """Get list of production configuration issues."""
        issues = []

        if not self.google_api_key:
            issues.append("GOOGLE_API_KEY is required for flow execution")

        if not self.is_development and self.database_url.startswith("sqlite"):
            issues.append("DATABASE_URL should point at PostgreSQL in production")

        return issues

    @property
    def temperature_settings(self) -> dict[str, float]:
        """Get temperature settings for different use cases."""
        return {
            "study": self.temp_study,
            "quiz": self.temp_quiz,
            "code": self.temp_code,
            "creative": self.temp_creative,
            "precise": 0.0,
        }


# Global settings instance
settings = Settings()
