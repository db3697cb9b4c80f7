"""
Application configuration — single source of truth for engine constants and
environment-driven settings.

Import from here in services and routes rather than reading os.environ
directly.  The settings object is built once by ``load_config()`` and passed
explicitly to whatever needs it (master-data client, record store, app
factory).
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field


# ── Engine constants ──────────────────────────────────────────────────────────

# Monetary values and targets are rounded to this many decimals
CURRENCY_DECIMALS: int = 2

# Production type labels as they appear in master data
PRODUCTION_TYPE_INDIVIDUAL: str = "Individual"
PRODUCTION_TYPE_GROUP: str = "Group"

# Record type tags
RECORD_TYPE_ALLOWANCE: str = "allowance"
RECORD_TYPE_INCENTIVE: str = "incentive"
RECORD_TYPE_GENERAL_INCENTIVE: str = "general_incentive"

# Payroll report page size (matches the dashboard table)
DEFAULT_PAYROLL_PAGE_SIZE: int = 10

# Master data service
DEFAULT_MASTER_DATA_BASE_URL: str = "http://localhost:5000/v1/api"
DEFAULT_MASTER_DATA_TIMEOUT_S: float = 10.0


# ── Runtime settings ──────────────────────────────────────────────────────────

@dataclass(frozen=True)
class AppConfig:
    """Environment-derived settings for one running process."""

    database_url: str = ""
    master_data_base_url: str = DEFAULT_MASTER_DATA_BASE_URL
    master_data_token: str = ""
    master_data_timeout_s: float = DEFAULT_MASTER_DATA_TIMEOUT_S
    log_level: str = "INFO"
    json_logs: bool = True
    payroll_page_size: int = DEFAULT_PAYROLL_PAGE_SIZE
    cors_origins: list[str] = field(default_factory=lambda: ["*"])

    @property
    def dev_mode(self) -> bool:
        return not self.database_url


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "")
    try:
        return float(raw) if raw else default
    except ValueError:
        return default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "")
    try:
        return int(raw) if raw else default
    except ValueError:
        return default


def load_config() -> AppConfig:
    """Build an ``AppConfig`` from the current environment."""
    origins = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
    return AppConfig(
        database_url=os.getenv("DATABASE_URL", ""),
        master_data_base_url=os.getenv("MASTER_DATA_BASE_URL", DEFAULT_MASTER_DATA_BASE_URL).rstrip("/"),
        master_data_token=os.getenv("MASTER_DATA_TOKEN", ""),
        master_data_timeout_s=_env_float("MASTER_DATA_TIMEOUT", DEFAULT_MASTER_DATA_TIMEOUT_S),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        json_logs=os.getenv("LOG_FORMAT", "json").lower() != "text",
        payroll_page_size=max(1, _env_int("PAYROLL_PAGE_SIZE", DEFAULT_PAYROLL_PAGE_SIZE)),
        cors_origins=origins or ["*"],
    )
