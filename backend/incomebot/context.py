"""
Application context — every long-lived collaborator, wired once at startup.

The FastAPI lifespan and the Celery worker each build their own context;
nothing else constructs services.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from incomebot.config import Settings
from incomebot.services.delivery import ReportDelivery, TelegramDelivery
from incomebot.services.market_research import MarketResearchService
from incomebot.services.perf_monitor import DispatchTracker, tracker as default_tracker
from incomebot.services.report_composer import ReportComposer
from incomebot.services.report_dispatcher import ReportDispatcher
from incomebot.services.reporting_service import ReportingService
from incomebot.services.repositories import IncomeRepository
from incomebot.services.scheduler import ReportScheduler
from incomebot.services.time_frame import TimeFrameParser
from incomebot.services.weather_service import WeatherService

logger = logging.getLogger("incomebot")


@dataclass
class AppContext:
    settings: Settings
    repository: IncomeRepository
    reporting: ReportingService
    weather: WeatherService
    market: MarketResearchService
    composer: ReportComposer
    delivery: ReportDelivery
    dispatcher: ReportDispatcher
    scheduler: ReportScheduler
    tracker: DispatchTracker


def build_context(
    settings: Settings,
    repository: Optional[IncomeRepository] = None,
    delivery: Optional[ReportDelivery] = None,
    weather: Optional[WeatherService] = None,
    market: Optional[MarketResearchService] = None,
    tracker: Optional[DispatchTracker] = None,
) -> AppContext:
    """Collaborators left as None are built from ``settings``."""
    if repository is None:
        from incomebot.db import AsyncSessionLocal
        from incomebot.services.repositories import SqlIncomeRepository
        repository = SqlIncomeRepository(AsyncSessionLocal)

    reporting = ReportingService(repository, time_frames=TimeFrameParser(settings.business_timezone))
    weather = weather or WeatherService(
        settings.weather_api_key, settings.weather_city, timezone=settings.business_timezone
    )
    market = market or MarketResearchService(settings.google_search_api_key, settings.google_search_engine_id)
    delivery = delivery or TelegramDelivery(settings.telegram_bot_token)
    tracker = tracker or default_tracker

    composer = ReportComposer(
        reporting,
        weather,
        market,
        timezone=settings.business_timezone,
        dev_mode=settings.dev_mode,
    )
    dispatcher = ReportDispatcher(repository, composer, delivery, tracker)
    scheduler = ReportScheduler(dispatcher, timezone=settings.business_timezone, dev_mode=settings.dev_mode)

    logger.info(
        f"Context built (env={settings.app_env}, scheduler={settings.scheduler_backend}, "
        f"live_weather={weather.live}, web_search={market.search_enabled})"
    )
    return AppContext(
        settings=settings,
        repository=repository,
        reporting=reporting,
        weather=weather,
        market=market,
        composer=composer,
        delivery=delivery,
        dispatcher=dispatcher,
        scheduler=scheduler,
        tracker=tracker,
    )
