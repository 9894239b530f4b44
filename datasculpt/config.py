"""
DataSculpt configuration.

One BaseSettings class per concern (LLM_, DATABASE_, REGISTRY_, LOG_ prefixes)
nested under Settings, loaded once per process by get_settings().

Usage:
    from datasculpt.config import get_settings

    settings = get_settings()
    print(settings.llm.default_provider)
    print(settings.database.mysql_url)
"""

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import AnyUrl, Field, ValidationInfo, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


_KEY_PREFIXES = {
    "openai_api_key": ("OpenAI", "sk-"),
    "anthropic_api_key": ("Anthropic", "sk-ant-"),
}


class LLMSettings(BaseSettings):
    """Language model provider configuration."""

    default_provider: Literal["bedrock", "anthropic", "openai"] = Field(
        default="bedrock", description="Provider used by the query generator"
    )

    # AWS Bedrock configuration
    bedrock_region: str = Field(default="us-east-1", description="AWS region for Bedrock")
    bedrock_model: str = Field(
        default="anthropic.claude-3-5-sonnet-20241022-v2:0",
        description="Bedrock model identifier",
    )
    aws_access_key_id: str | None = Field(
        None, description="AWS access key (None = default AWS credential chain)"
    )
    aws_secret_access_key: str | None = Field(
        None, description="AWS secret key (None = default AWS credential chain)"
    )

    # Anthropic API
    anthropic_api_key: str | None = Field(
        None,
        description="Anthropic API key",
        min_length=20,
    )
    anthropic_model: str = Field(
        default="claude-3-5-sonnet-20241022", description="Anthropic model"
    )

    # OpenAI
    openai_api_key: str | None = Field(
        None,
        description="OpenAI API key",
        min_length=20,
    )
    openai_model: str = Field(default="gpt-4o", description="OpenAI model")

    # Shared by every provider
    temperature: float = Field(
        default=0.1,
        ge=0.0,
        le=1.0,
        description="Sampling temperature for SQL generation (low = deterministic)",
    )
    max_tokens: int = Field(
        default=1000,
        gt=0,
        le=8000,
        description="Maximum tokens per generation",
    )
    timeout: int = Field(
        default=30,
        gt=0,
        description="Model request timeout in seconds",
    )

    model_config = SettingsConfigDict(
        env_prefix="LLM_",
        env_file=".env",
        extra="ignore",
    )

    @field_validator("openai_api_key", "anthropic_api_key")
    @classmethod
    def validate_key_prefix(cls, v: str | None, info: ValidationInfo) -> str | None:
        """Catch keys pasted into the wrong variable."""
        label, prefix = _KEY_PREFIXES[info.field_name]
        if v and not v.startswith(prefix):
            raise ValueError(f"{label} API key must start with '{prefix}'")
        return v

    @model_validator(mode="after")
    def validate_aws_credentials(self) -> "LLMSettings":
        """AWS keys are used as a pair or not at all."""
        if bool(self.aws_access_key_id) != bool(self.aws_secret_access_key):
            raise ValueError(
                "Set both LLM_AWS_ACCESS_KEY_ID and LLM_AWS_SECRET_ACCESS_KEY, or neither"
            )
        return self


class DatabaseSettings(BaseSettings):
    """Environment default data sources and execution limits."""

    postgres_url: AnyUrl | None = Field(
        None,
        description="Default PostgreSQL source used when no data source is active",
    )
    mysql_url: AnyUrl | None = Field(
        None,
        description="Default MySQL source used when no data source is active",
    )
    connect_timeout: int = Field(
        default=10,
        gt=0,
        description="Connection timeout in seconds",
    )
    statement_timeout: int = Field(
        default=30,
        gt=0,
        description="Statement timeout in seconds",
    )

    model_config = SettingsConfigDict(
        env_prefix="DATABASE_",
        env_file=".env",
        extra="ignore",
    )

    @field_validator("postgres_url", "mysql_url", mode="before")
    @classmethod
    def normalize_url(cls, v: str | AnyUrl | None) -> str | AnyUrl | None:
        """Treat empty strings as missing."""
        if v == "":
            return None
        return v

    @field_validator("postgres_url")
    @classmethod
    def validate_postgres_url(cls, v: AnyUrl | None) -> AnyUrl | None:
        if v is None:
            return v
        scheme = v.scheme.split("+")[0].lower()
        if scheme not in {"postgres", "postgresql"}:
            raise ValueError("DATABASE_POSTGRES_URL must use the postgresql:// scheme")
        return v

    @field_validator("mysql_url")
    @classmethod
    def validate_mysql_url(cls, v: AnyUrl | None) -> AnyUrl | None:
        if v is None:
            return v
        if v.scheme.split("+")[0].lower() != "mysql":
            raise ValueError("DATABASE_MYSQL_URL must use the mysql:// scheme")
        return v


class RegistrySettings(BaseSettings):
    """Data source registry persistence."""

    path: Path = Field(
        default=Path.home() / ".datasculpt" / "sources.json",
        description="JSON file holding registered data sources",
    )
    credentials_key: str | None = Field(
        None,
        description="Fernet key used to encrypt stored passwords",
    )

    model_config = SettingsConfigDict(
        env_prefix="REGISTRY_",
        env_file=".env",
        extra="ignore",
    )


class LoggingSettings(BaseSettings):
    """Root logger setup applied when settings load."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Application log level",
    )
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log message format",
    )
    date_format: str = Field(
        default="%Y-%m-%d %H:%M:%S",
        description="Log timestamp format",
    )
    file: Path | None = Field(
        default=None,
        description="Optional log file path (None = stdout only)",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=".env",
        extra="ignore",
    )

    def configure(self) -> None:
        """Configure Python logging with these settings."""
        handlers: list[logging.Handler] = [logging.StreamHandler()]

        if self.file:
            self.file.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(self.file))

        logging.basicConfig(
            level=getattr(logging, self.level),
            format=self.format,
            datefmt=self.date_format,
            handlers=handlers,
            force=True,
        )


class Settings(BaseSettings):
    """
    Process settings: API server, CORS, schema descriptor and the nested groups.

    Environment variables:
        ENVIRONMENT, APP_NAME, DEBUG, API_HOST, API_PORT, CORS_ORIGINS, SCHEMA_PATH
        LLM_*        language model provider (see LLMSettings)
        DATABASE_*   default sources and timeouts (see DatabaseSettings)
        REGISTRY_*   data source registry file (see RegistrySettings)
        LOG_*        logging (see LoggingSettings)

    Example:
        >>> settings = get_settings()
        >>> settings.llm.default_provider
        'bedrock'
        >>> settings.api_port
        3001
    """

    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Deployment environment",
    )
    app_name: str = Field(default="DataSculpt", description="Application name")
    debug: bool = Field(default=False, description="Enable debug mode")
    api_host: str = Field(default="0.0.0.0", description="API server host")
    api_port: int = Field(default=3001, gt=0, le=65535, description="API server port")
    cors_origins: str = Field(
        default="http://localhost:5173,http://localhost:3000",
        description="Comma-separated list of allowed CORS origins",
    )
    schema_path: Path | None = Field(
        default=None,
        description="YAML schema descriptor (None = bundled LUX Industries schema)",
    )

    llm: LLMSettings = Field(default_factory=LLMSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    registry: RegistrySettings = Field(default_factory=RegistrySettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @model_validator(mode="after")
    def configure_logging(self) -> "Settings":
        """Configure logging when settings are loaded."""
        self.logging.configure()
        return self

    def model_post_init(self, __context) -> None:
        """Log configuration on initialization."""
        logger = logging.getLogger(__name__)
        logger.info(
            f"Settings loaded for {self.app_name} ({self.environment})",
            extra={
                "environment": self.environment,
                "llm_provider": self.llm.default_provider,
                "has_postgres_default": self.database.postgres_url is not None,
                "has_mysql_default": self.database.mysql_url is not None,
            },
        )


_DOTENV_PATH = Path(__file__).resolve().parents[1] / ".env"


def _apply_dotenv_precedence() -> None:
    env_source = os.getenv("DATASCULPT_ENV_SOURCE", "dotenv").lower()
    if env_source not in {"dotenv", "envfile", "file"}:
        return
    if _DOTENV_PATH.exists():
        load_dotenv(_DOTENV_PATH, override=False)


@lru_cache
def get_settings() -> Settings:
    """
    Settings for this process, built on first use.

    Settings are loaded once per process; call clear_settings_cache() to
    reload them (tests, CLI overrides).
    """
    _apply_dotenv_precedence()
    return Settings()


def clear_settings_cache() -> None:
    """
    Forget the cached Settings so the next get_settings() re-reads the environment.

    Example:
        >>> import os
        >>> os.environ["ENVIRONMENT"] = "production"
        >>> clear_settings_cache()
        >>> settings = get_settings()  # Reloads with new env vars
    """
    get_settings.cache_clear()
