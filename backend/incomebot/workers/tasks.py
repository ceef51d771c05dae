"""
Celery Tasks — scheduled report dispatch off the API process.

Each task run builds its own application context and event loop; the
dispatcher's per-recipient isolation applies unchanged. Schedule toggles made
through the API affect the in-process scheduler only; beat firings are
governed by the beat schedule.
"""
import asyncio
import logging

from incomebot.config import load_settings
from incomebot.context import build_context
from incomebot.models.report_models import ScheduleKind
from incomebot.workers.celery_app import celery_app

logger = logging.getLogger("incomebot-celery")


def _run_async(coro):
    """Run an async coroutine in a sync Celery task context (new event loop)."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@celery_app.task(name="tasks.dispatch_scheduled_report")
def dispatch_scheduled_report(kind: str):
    """Send the ``kind`` report to every registered business."""
    schedule_kind = ScheduleKind(kind)
    ctx = build_context(load_settings())

    async def _dispatch():
        from incomebot.db import engine
        try:
            return await ctx.dispatcher.dispatch(schedule_kind)
        finally:
            # Pooled connections belong to this task's event loop
            await engine.dispose()

    result = _run_async(_dispatch())
    logger.info(f"Beat firing finished: {result.sent} sent, {result.failed} failed", extra={"schedule_kind": kind})
    return {"kind": kind, "sent": result.sent, "failed": result.failed}
