"""
test_api.py — HTTP surface over an in-memory context.

The app runs with scheduling delegated to Celery so the lifespan never arms
real timers; collaborators come from conftest doubles.
"""

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from incomebot.config import Settings
from incomebot.context import build_context
from incomebot.main import create_app
from incomebot.services.market_research import MarketResearchService
from incomebot.services.perf_monitor import DispatchTracker
from incomebot.services.weather_service import WeatherService


@pytest.fixture
def client(repository, delivery):
    context = build_context(
        Settings(scheduler_backend="celery", app_env="test"),
        repository=repository,
        delivery=delivery,
        weather=WeatherService(),
        market=MarketResearchService(),
        tracker=DispatchTracker(),
    )
    with TestClient(create_app(context)) as c:
        yield c


class TestReports:

    def test_employee_report_explicit_window(self, client):
        r = client.get("/api/v1/reports/1/employees", params={"start": "2024-03-01", "end": "2024-03-11"})
        assert r.status_code == 200
        body = r.json()
        assert [e["employee_name"] for e in body] == ["Andi", "Budi"]
        assert Decimal(body[0]["total_income"]) == Decimal("300")
        assert Decimal(body[0]["average_daily"]) == Decimal("30")
        assert body[0]["entry_count"] == 2

    def test_employee_name_filter(self, client):
        r = client.get("/api/v1/reports/1/employees", params={"employee_name": "bud"})
        assert [e["employee_name"] for e in r.json()] == ["Budi"]

    def test_unknown_manager_is_404(self, client):
        r = client.get("/api/v1/reports/99/employees")
        assert r.status_code == 404
        assert "Manager 99" in r.json()["detail"]

    def test_lone_start_date_rejected(self, client):
        r = client.get("/api/v1/reports/1/employees", params={"start": "2024-03-01"})
        assert r.status_code == 422

    def test_reversed_window_rejected(self, client):
        r = client.get("/api/v1/reports/1/period", params={"start": "2024-03-11", "end": "2024-03-01"})
        assert r.status_code == 422

    def test_period_report(self, client):
        r = client.get("/api/v1/reports/1/period", params={"start": "2024-03-01", "end": "2024-03-11"})
        assert r.status_code == 200
        body = r.json()
        assert Decimal(body["total_income"]) == Decimal("400")
        assert body["start_date"] == "2024-03-01"
        assert body["top_performers"][0]["employee_name"] == "Andi"
        assert "Top performer: Andi with Rp 300" in body["insights"]

    def test_trend_point_count(self, client):
        r = client.get("/api/v1/reports/1/trend", params={"months": 2})
        assert r.status_code == 200
        assert len(r.json()["points"]) == 2

    def test_trend_period_phrase(self, client):
        r = client.get("/api/v1/reports/1/trend", params={"period": "quarter"})
        assert len(r.json()["points"]) == 3

    def test_trend_months_bounds(self, client):
        assert client.get("/api/v1/reports/1/trend", params={"months": 0}).status_code == 422

    @pytest.mark.parametrize("period", ["0 months", "37 months", "500000 months"])
    def test_trend_period_outside_bounds_is_422(self, client, period):
        r = client.get("/api/v1/reports/1/trend", params={"period": period})
        assert r.status_code == 422
        assert "1 to 36 months" in r.json()["detail"]

    def test_trend_period_at_upper_bound(self, client):
        r = client.get("/api/v1/reports/1/trend", params={"period": "last 36 months"})
        assert r.status_code == 200
        assert len(r.json()["points"]) == 36

    def test_huge_time_frame_offset_falls_back_to_this_month(self, client):
        r = client.get("/api/v1/reports/1/period", params={"time_frame": "99999999 weeks ago"})
        assert r.status_code == 200
        assert r.json()["label"] == "This Month"

    def test_repository_failure_is_503(self, client, repository):
        repository.fail_employees_for.add(1)
        r = client.get("/api/v1/reports/1/employees")
        assert r.status_code == 503


class TestSchedules:

    def test_list(self, client):
        r = client.get("/api/v1/schedules")
        assert r.status_code == 200
        kinds = {s["kind"]: s for s in r.json()}
        assert set(kinds) == {"test", "weekly", "monthly", "yearly"}
        assert kinds["weekly"]["tick_interval_seconds"] == 3600
        assert kinds["test"]["enabled"] is False

    def test_toggle(self, client):
        r = client.put("/api/v1/schedules/monthly", json={"enabled": False})
        assert r.status_code == 200
        assert r.json()["enabled"] is False
        monthly = [s for s in client.get("/api/v1/schedules").json() if s["kind"] == "monthly"][0]
        assert monthly["enabled"] is False

    def test_unknown_kind_is_422(self, client):
        assert client.put("/api/v1/schedules/daily", json={"enabled": True}).status_code == 422

    def test_enabling_test_schedule_outside_dev_mode_is_422(self, client):
        r = client.put("/api/v1/schedules/test", json={"enabled": True})
        assert r.status_code == 422
        assert "development mode" in r.json()["detail"]

    def test_manual_report_sent(self, client, delivery):
        r = client.post("/api/v1/schedules/test-report", json={"delivery_address": "1001"})
        assert r.json() == {"status": "sent"}
        assert delivery.sent[0][1].startswith("🧪 Manual Test Report")

    def test_manual_report_unregistered(self, client, delivery):
        r = client.post("/api/v1/schedules/test-report", json={"delivery_address": "4242"})
        assert r.json() == {"status": "not_registered"}
        assert delivery.addresses() == ["4242"]

    def test_manual_report_delivery_failure_is_502(self, client, delivery):
        delivery.failing.add("1001")
        r = client.post("/api/v1/schedules/test-report", json={"delivery_address": "1001"})
        assert r.status_code == 502


class TestOperational:

    def test_health(self, client):
        r = client.get("/health")
        body = r.json()
        assert body["status"] == "active"
        assert body["scheduler_backend"] == "celery"
        assert body["scheduler_running"] is False
        assert body["live_weather"] is False
        assert body["web_search"] is False

    def test_metrics(self, client):
        body = client.get("/metrics").json()
        assert body["firings"] == 0
        assert "uptime_seconds" in body

    def test_request_headers(self, client):
        r = client.get("/api/v1/schedules")
        assert "X-Request-ID" in r.headers
        assert "X-Process-Time" in r.headers
