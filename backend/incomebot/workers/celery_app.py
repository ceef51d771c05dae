"""
Celery Application — cron-style scheduling of automated business reports.

Used instead of the in-process scheduler when SCHEDULER_BACKEND=celery; run
one beat process and at least one worker.

Beat schedule (Asia/Jakarta):
  weekly  — every Friday 17:00
  monthly — 1st of every month 09:00
  yearly  — January 1st 10:00
"""
import os

from celery import Celery
from celery.schedules import crontab

from incomebot.config import (
    MONTHLY_FIRE_DAY,
    MONTHLY_FIRE_HOUR,
    WEEKLY_FIRE_HOUR,
    YEARLY_FIRE_DAY,
    YEARLY_FIRE_HOUR,
    YEARLY_FIRE_MONTH,
)

BROKER_URL = os.getenv("CELERY_BROKER_URL", "redis://localhost:6379/0")
RESULT_BACKEND = os.getenv("CELERY_RESULT_BACKEND", "redis://localhost:6379/1")

celery_app = Celery(
    "incomebot",
    broker=BROKER_URL,
    backend=RESULT_BACKEND,
    include=["incomebot.workers.tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone=os.getenv("BUSINESS_TIMEZONE", "Asia/Jakarta"),
    enable_utc=True,
    task_track_started=True,
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    task_soft_time_limit=600,
    task_time_limit=900,
    result_expires=3600,
    # ── Beat schedule ────────────────────────────────────────────────────────
    beat_schedule={
        "weekly-report": {
            "task": "tasks.dispatch_scheduled_report",
            # crontab day_of_week counts from Sunday = 0
            "schedule": crontab(minute=0, hour=WEEKLY_FIRE_HOUR, day_of_week=5),
            "args": ["weekly"],
            "options": {"expires": 3600},
        },
        "monthly-report": {
            "task": "tasks.dispatch_scheduled_report",
            "schedule": crontab(minute=0, hour=MONTHLY_FIRE_HOUR, day_of_month=MONTHLY_FIRE_DAY),
            "args": ["monthly"],
            "options": {"expires": 3600},
        },
        "yearly-report": {
            "task": "tasks.dispatch_scheduled_report",
            "schedule": crontab(
                minute=0,
                hour=YEARLY_FIRE_HOUR,
                day_of_month=YEARLY_FIRE_DAY,
                month_of_year=YEARLY_FIRE_MONTH,
            ),
            "args": ["yearly"],
            "options": {"expires": 3600},
        },
    },
)
