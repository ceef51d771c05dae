"""
Reporting configuration — single source of truth for schedule timing,
aggregation defaults and deployment settings.

Import from here in all services rather than hardcoding values.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import timedelta


# ── Aggregation defaults ──────────────────────────────────────────────────────

# Day span used for averageDaily when the caller supplies no window
DEFAULT_DAY_SPAN: int = 30

# Upper bound on income entries fetched per employee for one report
INCOME_HISTORY_LIMIT: int = 1000

# Number of employee reports surfaced as top performers
TOP_PERFORMER_COUNT: int = 5

# |changePercent| below this is classified as a stable trend
TREND_STABLE_THRESHOLD_PCT: int = 5


# ── Schedule timing ───────────────────────────────────────────────────────────

TEST_TICK_INTERVAL: timedelta = timedelta(minutes=3)
HOURLY_TICK_INTERVAL: timedelta = timedelta(hours=1)

# Fire conditions, evaluated in BUSINESS_TIMEZONE
WEEKLY_FIRE_WEEKDAY: int = 4          # Friday (Python weekday, Monday = 0)
WEEKLY_FIRE_HOUR: int = 17
MONTHLY_FIRE_DAY: int = 1
MONTHLY_FIRE_HOUR: int = 9
YEARLY_FIRE_MONTH: int = 1
YEARLY_FIRE_DAY: int = 1
YEARLY_FIRE_HOUR: int = 10

# Months covered by the trend section of scheduled reports
MONTHLY_REPORT_TREND_MONTHS: int = 3
YEARLY_REPORT_TREND_MONTHS: int = 12

# Bounds for on-demand trend requests
DEFAULT_TREND_MONTHS: int = 3
MAX_TREND_MONTHS: int = 36


# ── Enrichment defaults ───────────────────────────────────────────────────────

DEFAULT_WEATHER_CITY: str = "Jakarta"
DEFAULT_BUSINESS_TYPE: str = "automotive garage"
DEFAULT_REGION: str = "indonesia"
WEATHER_HISTORY_MAX_DAYS: int = 30
HTTP_TIMEOUT_SECONDS: float = 10.0

# Telegram rejects messages longer than this
TELEGRAM_MESSAGE_LIMIT: int = 4096


@dataclass(frozen=True)
class Settings:
    """Deployment settings read from the environment."""

    app_env: str = "production"
    database_url: str = ""
    business_timezone: str = "Asia/Jakarta"
    telegram_bot_token: str = ""
    weather_api_key: str = ""
    weather_city: str = DEFAULT_WEATHER_CITY
    google_search_api_key: str = ""
    google_search_engine_id: str = ""
    scheduler_backend: str = "inprocess"   # "inprocess" | "celery"
    log_level: str = "INFO"
    json_logs: bool = True

    @property
    def dev_mode(self) -> bool:
        return self.app_env.lower() == "development"


def load_settings() -> Settings:
    return Settings(
        app_env=os.getenv("APP_ENV", "production"),
        database_url=os.getenv("DATABASE_URL", ""),
        business_timezone=os.getenv("BUSINESS_TIMEZONE", "Asia/Jakarta"),
        telegram_bot_token=os.getenv("TELEGRAM_BOT_TOKEN", ""),
        weather_api_key=os.getenv("WEATHER_API_KEY", ""),
        weather_city=os.getenv("WEATHER_CITY", DEFAULT_WEATHER_CITY),
        google_search_api_key=os.getenv("GOOGLE_SEARCH_API_KEY", ""),
        google_search_engine_id=os.getenv("GOOGLE_SEARCH_ENGINE_ID", ""),
        scheduler_backend=os.getenv("SCHEDULER_BACKEND", "inprocess").lower(),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        json_logs=os.getenv("LOG_FORMAT", "json").lower() != "text",
    )
