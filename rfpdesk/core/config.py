"""Configuration module for the rfpdesk application."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from urllib.parse import urlparse

from dotenv import load_dotenv

from rfpdesk.core.exceptions import ConfigurationError

load_dotenv()


def _as_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _as_schedule(value: str | None, default: tuple[float, ...]) -> tuple[float, ...]:
    if not value:
        return default
    try:
        return tuple(float(part) for part in value.split(",") if part.strip())
    except ValueError as exc:
        raise ConfigurationError("AI_BACKOFF_SCHEDULE_SECONDS must be a comma separated list of numbers.") from exc


@dataclass(frozen=True)
class AiGatewayConfig:
    """Retry policy for the AI gateway."""

    max_attempts: int = 5
    backoff_schedule_seconds: tuple[float, ...] = (1.0, 30.0, 60.0, 90.0)


@dataclass(frozen=True)
class TransportConfig:
    """SMTP/IMAP settings plus the transport's own retry and inbox policy."""

    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    smtp_use_ssl: bool = False
    smtp_user: str | None = None
    smtp_password: str | None = None
    smtp_timeout_seconds: float = 30.0
    from_email: str | None = None
    from_name: str = "RFP Management System"
    send_max_attempts: int = 3
    send_backoff_seconds: float = 2.0
    sandbox_mode: bool = False
    imap_host: str = "imap.gmail.com"
    imap_port: int = 993
    imap_user: str | None = None
    imap_password: str | None = None
    imap_tls: bool = True
    imap_timeout_seconds: float = 30.0
    imap_mailbox: str = "INBOX"
    lookback_hours: int = 24
    max_messages_per_poll: int = 10

    @property
    def smtp_configured(self) -> bool:
        return bool(self.smtp_user and self.smtp_password)

    @property
    def imap_configured(self) -> bool:
        return bool(self.imap_user and self.imap_password)


@dataclass(frozen=True)
class PollingConfig:
    enabled: bool = True
    interval_seconds: float = 60.0


@dataclass(frozen=True)
class Config:
    """Runtime configuration with validation."""

    APP_NAME: str
    APP_VERSION: str
    ENV: str
    DEBUG: bool
    DATABASE_URL: str
    API_PREFIX: str
    CORS_ORIGINS: tuple[str, ...]
    LOG_LEVEL: str
    LOG_FILE: str
    LLM_PROVIDER: str
    LLM_API_KEY: str | None
    LLM_MODEL: str
    OLLAMA_URL: str
    OLLAMA_MODEL: str
    LLM_TIMEOUT_SECONDS: int
    LLM_MIN_INTERVAL_SECONDS: float
    AI_MAX_ATTEMPTS: int
    AI_BACKOFF_SCHEDULE_SECONDS: tuple[float, ...]
    SMTP_HOST: str
    SMTP_PORT: int
    SMTP_USE_SSL: bool
    SMTP_USER: str | None
    SMTP_PASSWORD: str | None
    SMTP_TIMEOUT_SECONDS: float
    EMAIL_FROM: str | None
    EMAIL_FROM_NAME: str
    EMAIL_SEND_MAX_ATTEMPTS: int
    EMAIL_SEND_BACKOFF_SECONDS: float
    EMAIL_SANDBOX_MODE: bool
    EMAIL_WEBHOOK_SECRET: str | None
    IMAP_HOST: str
    IMAP_PORT: int
    IMAP_USER: str | None
    IMAP_PASSWORD: str | None
    IMAP_TLS: bool
    IMAP_TIMEOUT_SECONDS: float
    IMAP_MAILBOX: str
    IMAP_LOOKBACK_HOURS: int
    IMAP_MAX_MESSAGES_PER_POLL: int
    INBOX_POLLING_ENABLED: bool
    INBOX_POLL_INTERVAL_SECONDS: float
    CELERY_BROKER_URL: str
    CELERY_RESULT_BACKEND: str

    @property
    def is_production(self) -> bool:
        return self.ENV == "production"

    @property
    def is_development(self) -> bool:
        return self.ENV == "development"

    def ai_gateway(self) -> AiGatewayConfig:
        return AiGatewayConfig(
            max_attempts=self.AI_MAX_ATTEMPTS,
            backoff_schedule_seconds=self.AI_BACKOFF_SCHEDULE_SECONDS,
        )

    def transport(self) -> TransportConfig:
        return TransportConfig(
            smtp_host=self.SMTP_HOST,
            smtp_port=self.SMTP_PORT,
            smtp_use_ssl=self.SMTP_USE_SSL,
            smtp_user=self.SMTP_USER,
            smtp_password=self.SMTP_PASSWORD,
            smtp_timeout_seconds=self.SMTP_TIMEOUT_SECONDS,
            from_email=self.EMAIL_FROM or self.SMTP_USER,
            from_name=self.EMAIL_FROM_NAME,
            send_max_attempts=self.EMAIL_SEND_MAX_ATTEMPTS,
            send_backoff_seconds=self.EMAIL_SEND_BACKOFF_SECONDS,
            sandbox_mode=self.EMAIL_SANDBOX_MODE,
            imap_host=self.IMAP_HOST,
            imap_port=self.IMAP_PORT,
            imap_user=self.IMAP_USER,
            imap_password=self.IMAP_PASSWORD,
            imap_tls=self.IMAP_TLS,
            imap_timeout_seconds=self.IMAP_TIMEOUT_SECONDS,
            imap_mailbox=self.IMAP_MAILBOX,
            lookback_hours=self.IMAP_LOOKBACK_HOURS,
            max_messages_per_poll=self.IMAP_MAX_MESSAGES_PER_POLL,
        )

    def polling(self) -> PollingConfig:
        return PollingConfig(
            enabled=self.INBOX_POLLING_ENABLED,
            interval_seconds=self.INBOX_POLL_INTERVAL_SECONDS,
        )


def _build_config(env: str | None = None) -> Config:
    resolved_env = (env or os.getenv("ENV", "development")).strip().lower()
    debug = _as_bool(os.getenv("DEBUG"), default=(resolved_env != "production"))
    redis_url = os.getenv("REDIS_URL", "redis://localhost:6379/0")

    config = Config(
        APP_NAME="rfpdesk",
        APP_VERSION=os.getenv("APP_VERSION", "1.0.0"),
        ENV=resolved_env,
        DEBUG=debug if resolved_env != "production" else False,
        DATABASE_URL=os.getenv("DATABASE_URL", "sqlite:///./rfpdesk.db"),
        API_PREFIX=os.getenv("API_PREFIX", "/api"),
        CORS_ORIGINS=tuple(
            origin.strip()
            for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",")
            if origin.strip()
        ),
        LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO").upper(),
        LOG_FILE=os.getenv("LOG_FILE", "rfpdesk.log"),
        LLM_PROVIDER=os.getenv("LLM_PROVIDER", "ollama").strip().lower(),
        LLM_API_KEY=os.getenv("LLM_API_KEY"),
        LLM_MODEL=os.getenv("LLM_MODEL", "gemini-2.0-flash"),
        OLLAMA_URL=os.getenv("OLLAMA_URL", "http://localhost:11434/api/generate"),
        OLLAMA_MODEL=os.getenv("OLLAMA_MODEL", "qwen2.5:7b"),
        LLM_TIMEOUT_SECONDS=int(os.getenv("LLM_TIMEOUT_SECONDS", "90")),
        LLM_MIN_INTERVAL_SECONDS=float(os.getenv("LLM_MIN_INTERVAL_SECONDS", "0.25")),
        AI_MAX_ATTEMPTS=int(os.getenv("AI_MAX_ATTEMPTS", "5")),
        AI_BACKOFF_SCHEDULE_SECONDS=_as_schedule(
            os.getenv("AI_BACKOFF_SCHEDULE_SECONDS"), AiGatewayConfig.backoff_schedule_seconds
        ),
        SMTP_HOST=os.getenv("SMTP_HOST", "smtp.gmail.com"),
        SMTP_PORT=int(os.getenv("SMTP_PORT", "587")),
        SMTP_USE_SSL=_as_bool(os.getenv("SMTP_USE_SSL")),
        SMTP_USER=os.getenv("SMTP_USER"),
        SMTP_PASSWORD=os.getenv("SMTP_PASSWORD"),
        SMTP_TIMEOUT_SECONDS=float(os.getenv("SMTP_TIMEOUT_SECONDS", "30")),
        EMAIL_FROM=os.getenv("EMAIL_FROM"),
        EMAIL_FROM_NAME=os.getenv("EMAIL_FROM_NAME", "RFP Management System"),
        EMAIL_SEND_MAX_ATTEMPTS=int(os.getenv("EMAIL_SEND_MAX_ATTEMPTS", "3")),
        EMAIL_SEND_BACKOFF_SECONDS=float(os.getenv("EMAIL_SEND_BACKOFF_SECONDS", "2")),
        EMAIL_SANDBOX_MODE=_as_bool(os.getenv("EMAIL_SANDBOX_MODE")),
        EMAIL_WEBHOOK_SECRET=os.getenv("EMAIL_WEBHOOK_SECRET") or None,
        IMAP_HOST=os.getenv("IMAP_HOST", "imap.gmail.com"),
        IMAP_PORT=int(os.getenv("IMAP_PORT", "993")),
        IMAP_USER=os.getenv("IMAP_USER"),
        IMAP_PASSWORD=os.getenv("IMAP_PASSWORD"),
        IMAP_TLS=_as_bool(os.getenv("IMAP_TLS"), default=True),
        IMAP_TIMEOUT_SECONDS=float(os.getenv("IMAP_TIMEOUT_SECONDS", "30")),
        IMAP_MAILBOX=os.getenv("IMAP_MAILBOX", "INBOX"),
        IMAP_LOOKBACK_HOURS=int(os.getenv("IMAP_LOOKBACK_HOURS", "24")),
        IMAP_MAX_MESSAGES_PER_POLL=int(os.getenv("IMAP_MAX_MESSAGES_PER_POLL", "10")),
        INBOX_POLLING_ENABLED=_as_bool(os.getenv("INBOX_POLLING_ENABLED"), default=True),
        INBOX_POLL_INTERVAL_SECONDS=float(os.getenv("INBOX_POLL_INTERVAL_SECONDS", "60")),
        CELERY_BROKER_URL=os.getenv("CELERY_BROKER_URL", redis_url),
        CELERY_RESULT_BACKEND=os.getenv("CELERY_RESULT_BACKEND", redis_url),
    )
    _validate_config(config)
    return config


def _validate_database_url(database_url: str) -> None:
    parsed = urlparse(database_url)
    if parsed.scheme not in {"sqlite", "postgresql", "postgresql+psycopg2"}:
        raise ConfigurationError("DATABASE_URL must use sqlite:// or postgresql:// style URL.")
    if parsed.scheme.startswith("postgresql") and not parsed.hostname:
        raise ConfigurationError("PostgreSQL DATABASE_URL is missing hostname.")


def _validate_config(config: Config) -> None:
    _validate_database_url(config.DATABASE_URL)

    if config.LLM_PROVIDER not in {"ollama", "gemini"}:
        raise ConfigurationError("LLM_PROVIDER must be one of ollama/gemini.")
    if config.LLM_TIMEOUT_SECONDS < 1:
        raise ConfigurationError("LLM_TIMEOUT_SECONDS must be >= 1.")
    if config.LLM_MIN_INTERVAL_SECONDS < 0:
        raise ConfigurationError("LLM_MIN_INTERVAL_SECONDS must be >= 0.")
    if config.AI_MAX_ATTEMPTS < 1:
        raise ConfigurationError("AI_MAX_ATTEMPTS must be >= 1.")
    if not config.AI_BACKOFF_SCHEDULE_SECONDS or any(d < 0 for d in config.AI_BACKOFF_SCHEDULE_SECONDS):
        raise ConfigurationError("AI_BACKOFF_SCHEDULE_SECONDS must contain non-negative delays.")
    if config.EMAIL_SEND_MAX_ATTEMPTS < 1:
        raise ConfigurationError("EMAIL_SEND_MAX_ATTEMPTS must be >= 1.")
    if config.IMAP_MAX_MESSAGES_PER_POLL < 1:
        raise ConfigurationError("IMAP_MAX_MESSAGES_PER_POLL must be >= 1.")
    if config.INBOX_POLL_INTERVAL_SECONDS <= 0:
        raise ConfigurationError("INBOX_POLL_INTERVAL_SECONDS must be > 0.")
    if config.LOG_LEVEL not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
        raise ConfigurationError("LOG_LEVEL must be one of DEBUG/INFO/WARNING/ERROR/CRITICAL.")


@lru_cache(maxsize=8)
def get_config(env: str | None = None) -> Config:
    """Get validated configuration for the requested environment."""
    return _build_config(env)
