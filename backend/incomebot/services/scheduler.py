"""
Report Scheduler — recurring timers for test, weekly, monthly and yearly reports.

Every schedule kind owns one APScheduler interval job. A job tick only
evaluates the fire condition in the business time zone; a matching tick hands
the firing to the dispatcher as its own asyncio task so a slow recipient never
holds up the timer. Timers are armed for disabled schedules too, which lets
``update_schedule`` re-enable a kind without a restart.

Weekly, monthly and yearly ticks are hourly and the predicates are hour-exact;
a per-hour guard additionally keeps an early or repeated tick inside the same
hour from firing twice.
"""
import asyncio
import logging
import threading
from dataclasses import replace
from datetime import datetime
from typing import Callable, Dict, List, Optional, Set
from zoneinfo import ZoneInfo

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from incomebot.config import (
    HOURLY_TICK_INTERVAL,
    MONTHLY_FIRE_DAY,
    MONTHLY_FIRE_HOUR,
    TEST_TICK_INTERVAL,
    WEEKLY_FIRE_HOUR,
    WEEKLY_FIRE_WEEKDAY,
    YEARLY_FIRE_DAY,
    YEARLY_FIRE_HOUR,
    YEARLY_FIRE_MONTH,
)
from incomebot.models.report_models import ReportSchedule, ScheduleKind
from incomebot.services.report_dispatcher import ReportDispatcher

logger = logging.getLogger("incomebot-scheduler")

HOURLY_KINDS = (ScheduleKind.WEEKLY, ScheduleKind.MONTHLY, ScheduleKind.YEARLY)


def default_schedules(dev_mode: bool) -> Dict[ScheduleKind, ReportSchedule]:
    return {
        ScheduleKind.TEST: ReportSchedule(
            kind=ScheduleKind.TEST,
            tick_interval=TEST_TICK_INTERVAL,
            enabled=dev_mode,
            description="Test report every 3 minutes",
        ),
        ScheduleKind.WEEKLY: ReportSchedule(
            kind=ScheduleKind.WEEKLY,
            tick_interval=HOURLY_TICK_INTERVAL,
            enabled=True,
            description="Weekly report every Friday at 5 PM",
        ),
        ScheduleKind.MONTHLY: ReportSchedule(
            kind=ScheduleKind.MONTHLY,
            tick_interval=HOURLY_TICK_INTERVAL,
            enabled=True,
            description="Monthly report on 1st of every month at 9 AM",
        ),
        ScheduleKind.YEARLY: ReportSchedule(
            kind=ScheduleKind.YEARLY,
            tick_interval=HOURLY_TICK_INTERVAL,
            enabled=True,
            description="Yearly report on January 1st at 10 AM",
        ),
    }


class ReportScheduler:
    def __init__(
        self,
        dispatcher: ReportDispatcher,
        timezone: str = "Asia/Jakarta",
        dev_mode: bool = False,
        scheduler_factory: Optional[Callable[[ZoneInfo], AsyncIOScheduler]] = None,
    ):
        self.dispatcher = dispatcher
        self.tz = ZoneInfo(timezone)
        self.dev_mode = dev_mode
        self._scheduler_factory = scheduler_factory or (lambda tz: AsyncIOScheduler(timezone=tz))
        self._scheduler: Optional[AsyncIOScheduler] = None
        self._schedules = default_schedules(dev_mode)
        self._last_fired_hour: Dict[ScheduleKind, datetime] = {}
        self._in_flight: Set[asyncio.Task] = set()
        self._lock = threading.Lock()
        self._stopped = False

    # -----------------------------------------------------------------------
    # Lifecycle
    # -----------------------------------------------------------------------

    def start_scheduled_reports(self) -> None:
        """Arm one timer per schedule kind. Must be called on a running event loop."""
        if self._scheduler is not None:
            logger.info("Automated reporting already running")
            return

        logger.info("Starting automated reporting service")
        with self._lock:
            self._stopped = False
            schedules = list(self._schedules.values())

        scheduler = self._scheduler_factory(self.tz)
        for schedule in schedules:
            scheduler.add_job(
                self._on_timer,
                trigger=IntervalTrigger(seconds=int(schedule.tick_interval.total_seconds()), timezone=self.tz),
                args=[schedule.kind],
                id=f"report-{schedule.kind.value}",
                name=schedule.description,
                replace_existing=True,
                max_instances=1,
                coalesce=True,
            )
            logger.info(
                f"{schedule.kind.value} report scheduled every {schedule.tick_interval} "
                f"(enabled={schedule.enabled})",
                extra={"schedule_kind": schedule.kind.value},
            )
        scheduler.start()
        self._scheduler = scheduler

    async def stop_scheduled_reports(self) -> None:
        """Remove every timer and cancel in-flight dispatches before returning."""
        logger.info("Stopping automated reporting service")
        with self._lock:
            self._stopped = True

        if self._scheduler is not None:
            self._scheduler.remove_all_jobs()
            self._scheduler.shutdown(wait=False)
            self._scheduler = None

        pending = list(self._in_flight)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        self._in_flight.clear()

    @property
    def running(self) -> bool:
        return self._scheduler is not None

    # -----------------------------------------------------------------------
    # Registry
    # -----------------------------------------------------------------------

    def update_schedule(self, kind: ScheduleKind, enabled: bool) -> ReportSchedule:
        kind = ScheduleKind(kind)
        if kind is ScheduleKind.TEST and enabled and not self.dev_mode:
            raise ValueError("test reports can only be enabled in development mode")
        with self._lock:
            schedule = self._schedules[kind]
            schedule.enabled = enabled
            snapshot = replace(schedule)
        logger.info(f"Updated {kind.value} schedule: enabled={enabled}", extra={"schedule_kind": kind.value})
        return snapshot

    def get_schedule_status(self) -> List[ReportSchedule]:
        with self._lock:
            return [replace(s) for s in self._schedules.values()]

    # -----------------------------------------------------------------------
    # Ticks
    # -----------------------------------------------------------------------

    async def _on_timer(self, kind: ScheduleKind) -> None:
        self.tick(kind)

    def should_fire(self, kind: ScheduleKind, local: datetime) -> bool:
        if kind is ScheduleKind.TEST:
            return self.dev_mode
        if kind is ScheduleKind.WEEKLY:
            return local.weekday() == WEEKLY_FIRE_WEEKDAY and local.hour == WEEKLY_FIRE_HOUR
        if kind is ScheduleKind.MONTHLY:
            return local.day == MONTHLY_FIRE_DAY and local.hour == MONTHLY_FIRE_HOUR
        if kind is ScheduleKind.YEARLY:
            return (
                local.month == YEARLY_FIRE_MONTH
                and local.day == YEARLY_FIRE_DAY
                and local.hour == YEARLY_FIRE_HOUR
            )
        return False

    def _local(self, now: Optional[datetime]) -> datetime:
        if now is None:
            return datetime.now(self.tz)
        if now.tzinfo is None:
            return now.replace(tzinfo=self.tz)
        return now.astimezone(self.tz)

    def tick(self, kind: ScheduleKind, now: Optional[datetime] = None) -> Optional[asyncio.Task]:
        """
        Evaluate one timer tick. Returns the dispatch task when the schedule
        fires, otherwise None. Must be called on a running event loop.
        """
        kind = ScheduleKind(kind)
        local = self._local(now)

        with self._lock:
            if self._stopped or not self._schedules[kind].enabled:
                return None
            if not self.should_fire(kind, local):
                return None
            if kind in HOURLY_KINDS:
                hour = local.replace(minute=0, second=0, microsecond=0)
                if self._last_fired_hour.get(kind) == hour:
                    logger.debug(f"{kind.value} already fired for {hour:%Y-%m-%d %H}:00")
                    return None
                self._last_fired_hour[kind] = hour

        task = asyncio.create_task(self.dispatcher.dispatch(kind, local), name=f"dispatch-{kind.value}")
        self._in_flight.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task) -> None:
        self._in_flight.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Scheduled dispatch {task.get_name()} crashed: {type(exc).__name__}: {exc}")
