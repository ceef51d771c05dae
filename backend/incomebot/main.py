"""
IncomeBot Reporting API
FastAPI backend serving employee, period and trend reports and owning the
in-process report scheduler (unless scheduling is delegated to Celery beat).
"""
import logging
import sys
import time
from contextlib import asynccontextmanager
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from starlette.responses import JSONResponse

from incomebot.api.report_routes import router as report_router
from incomebot.api.schedule_routes import router as schedule_router
from incomebot.config import load_settings
from incomebot.context import AppContext, build_context
from incomebot.errors import DataAccessError, NotFoundError
from incomebot.services.logging_config import setup_logging
from incomebot.services.middleware import RequestTimingMiddleware

load_dotenv()

VERSION = "1.0.0"

logger = logging.getLogger("incomebot-api")

# Record process start time for uptime calculation
_PROCESS_START = time.monotonic()


def create_app(context: Optional[AppContext] = None) -> FastAPI:
    """Build the API. A supplied context is used as-is (tests); otherwise one is built at startup."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        ctx = context
        if ctx is None:
            settings = load_settings()
            setup_logging(level=settings.log_level, json_output=settings.json_logs)
            if not settings.database_url:
                logger.warning("MISSING env var: DATABASE_URL — report queries will fail")
            if not settings.telegram_bot_token:
                logger.warning("MISSING env var: TELEGRAM_BOT_TOKEN — scheduled reports cannot be delivered")
            ctx = build_context(settings)
        app.state.context = ctx

        in_process = ctx.settings.scheduler_backend == "inprocess"
        if in_process:
            ctx.scheduler.start_scheduled_reports()
        else:
            logger.info(f"Scheduling delegated to {ctx.settings.scheduler_backend}")

        yield

        if in_process:
            await ctx.scheduler.stop_scheduled_reports()

    app = FastAPI(
        title="IncomeBot Reporting API",
        version=VERSION,
        description="Income reports and automated business reporting",
        lifespan=lifespan,
    )
    app.add_middleware(RequestTimingMiddleware)

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(DataAccessError)
    async def data_access_handler(request: Request, exc: DataAccessError):
        logger.error(f"Data access failed on {request.url.path}: {exc}")
        return JSONResponse(status_code=503, content={"detail": "Income data temporarily unavailable"})

    app.include_router(report_router)
    app.include_router(schedule_router)

    @app.get("/health")
    async def health_check(request: Request):
        ctx: AppContext = request.app.state.context
        return {
            "status": "active",
            "version": VERSION,
            "environment": ctx.settings.app_env,
            "scheduler_backend": ctx.settings.scheduler_backend,
            "scheduler_running": ctx.scheduler.running,
            "live_weather": ctx.weather.live,
            "web_search": ctx.market.search_enabled,
        }

    @app.get("/metrics")
    async def metrics(request: Request):
        """
        Dispatch metrics: firings, reports sent and delivery failures per
        schedule kind, plus process uptime and peak memory.
        """
        ctx: AppContext = request.app.state.context
        uptime_seconds = round(time.monotonic() - _PROCESS_START, 1)

        memory_mb: float = 0.0
        try:
            import resource  # Unix only
            usage = resource.getrusage(resource.RUSAGE_SELF)
            # ru_maxrss is in kilobytes on Linux, bytes on macOS
            if sys.platform == "darwin":
                memory_mb = round(usage.ru_maxrss / (1024 * 1024), 2)
            else:
                memory_mb = round(usage.ru_maxrss / 1024, 2)
        except ImportError:
            memory_mb = 0.0

        return {
            "uptime_seconds": uptime_seconds,
            "memory_usage_mb": memory_mb,
            **ctx.tracker.get_metrics(),
        }

    return app


app = create_app()
