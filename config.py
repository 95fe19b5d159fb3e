"""
Configuration management for the Kitchen Kompanion Assistant Service
Centralized settings with proper validation
"""

from typing import List, Optional
from enum import Enum

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
from typing_extensions import Annotated


class Environment(str, Enum):
    """Application environments"""
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTING = "testing"


class LogLevel(str, Enum):
    """Logging levels"""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class Settings(BaseSettings):
    """Application settings with validation"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Kitchen Kompanion Assistant"
    app_version: str = "1.0.0"
    environment: Environment = Environment.PRODUCTION
    debug: bool = False

    # Server Configuration
    host: str = "0.0.0.0"
    port: int = Field(default=8000, ge=1, le=65535)

    # Security
    cors_origins: Annotated[List[str], NoDecode] = Field(default_factory=lambda: ["http://localhost:3000"])
    cors_allow_credentials: bool = True
    cors_allow_methods: List[str] = Field(default_factory=lambda: ["GET", "POST", "PUT"])
    cors_allow_headers: List[str] = Field(default_factory=lambda: ["*"])

    # Backend selection
    force_mock_ai: bool = False
    llm_model_path: Optional[str] = None
    min_model_memory_mb: int = Field(default=2048, ge=0)

    # Simulated processing time multiplier for the rule-based backend
    latency_scale: float = Field(default=1.0, ge=0.0)

    # Requests
    ai_request_timeout: float = Field(default=30.0, gt=0)
    max_ingredients: int = Field(default=15, ge=1)

    # Monitoring & Logging
    log_level: LogLevel = LogLevel.INFO
    enable_access_logs: bool = True

    # Performance
    max_concurrent_requests: int = Field(default=100, ge=1)
    keep_alive_timeout: int = Field(default=5, ge=1)

    @field_validator('cors_origins', mode='before')
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(',') if origin.strip()]
        return v

    @field_validator('cors_origins')
    @classmethod
    def validate_cors_origins(cls, v, info):
        env = info.data.get('environment')
        if env == Environment.PRODUCTION and '*' in v:
            raise ValueError("Wildcard CORS origins not allowed in production")
        return v

    @field_validator('debug')
    @classmethod
    def validate_debug(cls, v, info):
        env = info.data.get('environment')
        if env == Environment.PRODUCTION and v:
            raise ValueError("Debug mode not allowed in production")
        return v

    @property
    def is_production(self) -> bool:
        return self.environment == Environment.PRODUCTION

    @property
    def is_development(self) -> bool:
        return self.environment == Environment.DEVELOPMENT

    @property
    def is_testing(self) -> bool:
        return self.environment == Environment.TESTING


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get application settings"""
    return settings


def validate_production_config(config: Settings) -> List[str]:
    """Validate configuration for production deployment"""
    issues = []

    if config.debug:
        issues.append("Debug mode should be disabled in production")

    if "*" in config.cors_origins:
        issues.append("CORS origins should not include wildcards in production")

    if config.log_level == LogLevel.DEBUG:
        issues.append("Log level should not be DEBUG in production")

    if config.force_mock_ai and config.llm_model_path:
        issues.append("llm_model_path is set but force_mock_ai keeps the model disabled")

    return issues
