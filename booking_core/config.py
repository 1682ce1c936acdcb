"""
Centralized configuration with environment variable overrides.

Scheduling defaults, database connection settings and logging level are
configurable here. Nothing is hardcoded in the scheduling or lifecycle logic.
"""

import logging
import os
from dataclasses import dataclass, field
from datetime import datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

from booking_core.logging_context import LOG_FORMAT, attach_request_id
from booking_core.utils import parse_clock

load_dotenv()

logger = logging.getLogger(__name__)


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_bool(env_var: str, default: str) -> bool:
    """Parse a boolean flag from an env var ("1", "true", "yes" are truthy)."""
    raw = os.getenv(env_var, default)
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class SchedulingConfig:
    """Slot generation defaults shared by every tenant."""

    timezone: str = os.getenv("BOOKING_TIMEZONE", "UTC")
    default_open: str = os.getenv("BOOKING_DEFAULT_OPEN", "09:00")
    default_close: str = os.getenv("BOOKING_DEFAULT_CLOSE", "17:00")
    max_slot_days: int = _safe_int("BOOKING_MAX_SLOT_DAYS", "31")
    list_limit: int = _safe_int("BOOKING_LIST_LIMIT", "50")


@dataclass(frozen=True)
class DatabaseConfig:
    """Relational store connection settings."""

    url: str = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./bookings.db")
    echo: bool = _safe_bool("DATABASE_ECHO", "false")
    pool_size: int = _safe_int("DATABASE_POOL_SIZE", "5")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    scheduling: SchedulingConfig = field(default_factory=SchedulingConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    service_name: str = os.getenv("SERVICE_NAME", "booking-core")


def _validate_clock(env_var: str, value: str) -> None:
    try:
        datetime.strptime(value.strip(), "%H:%M")
    except ValueError:
        raise ValueError(f"{env_var} must be in HH:MM format, got {value!r}") from None


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    try:
        ZoneInfo(config.scheduling.timezone)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValueError(
            f"BOOKING_TIMEZONE is not a known timezone: {config.scheduling.timezone!r}"
        ) from None

    _validate_clock("BOOKING_DEFAULT_OPEN", config.scheduling.default_open)
    _validate_clock("BOOKING_DEFAULT_CLOSE", config.scheduling.default_close)
    opening = parse_clock(config.scheduling.default_open)
    if opening >= parse_clock(config.scheduling.default_close):
        raise ValueError(
            "BOOKING_DEFAULT_OPEN must be earlier than BOOKING_DEFAULT_CLOSE, "
            f"got {config.scheduling.default_open}-{config.scheduling.default_close}"
        )
    if config.scheduling.max_slot_days < 1:
        raise ValueError(
            f"BOOKING_MAX_SLOT_DAYS must be >= 1, got {config.scheduling.max_slot_days}"
        )
    if not 1 <= config.scheduling.list_limit <= 100:
        raise ValueError(
            f"BOOKING_LIST_LIMIT must be between 1 and 100, got {config.scheduling.list_limit}"
        )
    if config.database.pool_size < 1:
        raise ValueError(
            f"DATABASE_POOL_SIZE must be >= 1, got {config.database.pool_size}"
        )


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    for handler in logging.getLogger().handlers:
        attach_request_id(handler)
    logger.info("Configuration loaded for '%s'", config.service_name)
    return config


# Singleton instance
settings = load_config()
