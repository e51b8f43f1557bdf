"""
Centralized configuration management using pydantic-settings.
All components should import Settings from this module.
"""

from enum import Enum
from typing import Dict, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Environment types."""
    DEVELOPMENT = "development"
    TEST = "test"
    STAGING = "staging"
    PRODUCTION = "production"


class LimitSource(str, Enum):
    """Where concentration limits are read from."""
    DATABASE = "database"
    REDIS = "redis"
    STATIC = "static"


class LedgerBackend(str, Enum):
    """Where admitted loans are persisted."""
    DATABASE = "database"
    MEMORY = "memory"


class AdmissionCoordination(str, Enum):
    """How concurrent admissions are serialized."""
    NONE = "none"  # No coordination, check-then-act race is possible
    JURISDICTION = "jurisdiction"  # One lock per jurisdiction
    GLOBAL = "global"  # One lock for every admission


class DatabaseSettings(BaseSettings):
    """Relational database settings."""
    url: str = Field(default="sqlite:///./loanguard.db", description="SQLAlchemy database URL")
    echo: bool = Field(default=False, description="Echo SQL statements")

    model_config = SettingsConfigDict(env_prefix="DATABASE_")


class RedisSettings(BaseSettings):
    """Redis settings."""
    url: str = Field(default="redis://localhost:6379/0", description="Redis connection URL")
    limits_key: str = Field(default="concentration_limits", description="Hash holding concentration limits")

    model_config = SettingsConfigDict(env_prefix="REDIS_")


class LimitSettings(BaseSettings):
    """Concentration limit settings."""
    source: LimitSource = Field(default=LimitSource.DATABASE, description="Limit configuration source")
    cache_ttl_seconds: float = Field(default=300.0, gt=0, description="Limit snapshot time-to-live in seconds")
    fallback_default: float = Field(default=0.10, gt=0, le=1, description="Default limit when none is configured")

    # Used by the static source and by the seed routine
    static_default: Optional[float] = Field(default=0.10, gt=0, le=1, description="Static default limit")
    static_limits: Dict[str, float] = Field(
        default_factory=lambda: {"SP": 0.20},
        description="Static per-jurisdiction limits",
    )

    model_config = SettingsConfigDict(env_prefix="LIMITS_")

    @field_validator("static_limits")
    @classmethod
    def check_static_limits(cls, value: Dict[str, float]) -> Dict[str, float]:
        for code, threshold in value.items():
            if not 0 < threshold <= 1:
                raise ValueError(f"Limit for {code} must be in (0, 1], got {threshold}")
        return {code.strip().upper(): threshold for code, threshold in value.items()}


class AdmissionSettings(BaseSettings):
    """Admission pipeline settings."""
    coordination: AdmissionCoordination = Field(
        default=AdmissionCoordination.JURISDICTION,
        description="Serialization strategy for concurrent admissions",
    )
    ledger_backend: LedgerBackend = Field(default=LedgerBackend.DATABASE, description="Ledger store backend")

    model_config = SettingsConfigDict(env_prefix="ADMISSION_")


class ApiSettings(BaseSettings):
    """HTTP boundary settings."""
    host: str = Field(default="0.0.0.0", description="Bind host")
    port: int = Field(default=3333, description="Bind port")
    prefix: str = Field(default="/api/v1/loans", description="Loan routes prefix")

    model_config = SettingsConfigDict(env_prefix="API_")


class MonitoringSettings(BaseSettings):
    """Monitoring and observability settings."""
    # Logging
    log_level: str = Field(default="INFO", description="Log level")
    log_format: str = Field(default="json", description="Log format (json or text)")
    log_file: Optional[str] = Field(default=None, description="Log file path")

    model_config = SettingsConfigDict(env_prefix="MONITORING_")


class Settings(BaseSettings):
    """Main settings class combining all component settings."""
    # Environment
    environment: Environment = Field(default=Environment.DEVELOPMENT, description="Environment")
    service_name: str = Field(default="loanguard", description="Service name")

    # Sub-settings
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)
    limits: LimitSettings = Field(default_factory=LimitSettings)
    admission: AdmissionSettings = Field(default_factory=AdmissionSettings)
    api: ApiSettings = Field(default_factory=ApiSettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )


# Global settings instance
settings = Settings()
