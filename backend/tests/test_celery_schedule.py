"""
test_celery_schedule.py — Beat crontabs for the cron-style scheduling backend.

Only the Celery configuration is inspected; no broker connection is made.
"""

import pytest

celery_app_module = pytest.importorskip("incomebot.workers.celery_app")


@pytest.fixture
def beat():
    return celery_app_module.celery_app.conf.beat_schedule


def test_every_dispatching_kind_has_a_beat_entry(beat):
    assert {entry["args"][0] for entry in beat.values()} == {"weekly", "monthly", "yearly"}
    assert all(entry["task"] == "tasks.dispatch_scheduled_report" for entry in beat.values())


def test_weekly_runs_friday_at_five_pm(beat):
    schedule = beat["weekly-report"]["schedule"]
    assert schedule.hour == {17}
    assert schedule.minute == {0}
    assert schedule.day_of_week == {5}


def test_monthly_runs_on_the_first_at_nine(beat):
    schedule = beat["monthly-report"]["schedule"]
    assert schedule.day_of_month == {1}
    assert schedule.hour == {9}


def test_yearly_runs_new_year_at_ten(beat):
    schedule = beat["yearly-report"]["schedule"]
    assert schedule.month_of_year == {1}
    assert schedule.day_of_month == {1}
    assert schedule.hour == {10}


def test_beat_uses_business_timezone():
    assert celery_app_module.celery_app.conf.timezone == "Asia/Jakarta"
