"""
test_weather_service.py — WeatherService with climatology and mocked OpenWeatherMap.

HTTP is served by ``httpx.MockTransport``; no request leaves the process.
"""

import asyncio
from datetime import date, datetime
from zoneinfo import ZoneInfo

import httpx
import pytest

from incomebot.services.weather_service import (
    WeatherData,
    WeatherService,
    _season,
    climatology_reading,
)

NOW = datetime(2024, 1, 15, 13, 0)


def _reading(condition, temperature=28):
    return WeatherData(
        temperature=temperature, condition=condition, humidity=80,
        wind_speed=3.0, description=condition.lower(), icon="01d",
    )


def _openweather(request: httpx.Request) -> httpx.Response:
    if request.url.path.endswith("/data/2.5/weather"):
        return httpx.Response(200, json={
            "coord": {"lat": -6.2, "lon": 106.8},
            "main": {"temp": 31.6, "humidity": 74},
            "wind": {"speed": 4.1},
            "weather": [{"main": "Clouds", "description": "broken clouds", "icon": "04d"}],
        })
    if request.url.path.endswith("/onecall/timemachine"):
        return httpx.Response(200, json={"data": [{
            "temp": 27.4, "humidity": 88, "wind_speed": 2.0,
            "weather": [{"main": "Rain", "description": "light rain", "icon": "10d"}],
        }]})
    return httpx.Response(404)


class TestClimatology:

    @pytest.mark.parametrize("month,season", [(12, "rainy"), (1, "rainy"), (3, "rainy"), (4, "normal"), (8, "dry"), (11, "normal")])
    def test_season(self, month, season):
        assert _season(month) == season

    def test_reading_is_deterministic(self):
        assert climatology_reading(NOW) == climatology_reading(NOW)

    def test_reading_stays_within_jakarta_range(self):
        for hour in range(24):
            reading = climatology_reading(NOW.replace(hour=hour))
            assert 22 <= reading.temperature <= 36
            assert 70 <= reading.humidity < 90

    def test_service_without_key_uses_climatology(self, weather_service):
        assert weather_service.live is False
        assert asyncio.run(weather_service.current_weather(now=NOW)) == climatology_reading(NOW)

    def test_history_without_key_has_one_reading_per_day(self, weather_service):
        history = asyncio.run(weather_service.weather_history(date(2024, 1, 1), date(2024, 1, 7)))
        assert len(history) == 7

    def test_aware_clock_read_in_business_time(self, weather_service):
        utc_late = datetime(2024, 1, 15, 23, 0, tzinfo=ZoneInfo("UTC"))
        expected = climatology_reading(datetime(2024, 1, 16, 6, 0))
        assert asyncio.run(weather_service.current_weather(now=utc_late)) == expected

    def test_default_clock_is_business_time(self):
        service = WeatherService(timezone="Asia/Jakarta")
        assert service._local(None).tzinfo == ZoneInfo("Asia/Jakarta")

    def test_configured_timezone_is_honoured(self):
        service = WeatherService(timezone="UTC")
        jakarta_noon = datetime(2024, 1, 15, 12, 0, tzinfo=ZoneInfo("Asia/Jakarta"))
        assert service._local(jakarta_noon).hour == 5


class TestLiveApi:

    def test_current_weather_parsed(self):
        service = WeatherService("key", transport=httpx.MockTransport(_openweather))
        current = asyncio.run(service.current_weather(now=NOW))
        assert current.temperature == 32
        assert current.condition == "Clouds"
        assert current.humidity == 74
        assert current.is_rainy is False

    def test_rejected_key_falls_back(self):
        service = WeatherService("bad", transport=httpx.MockTransport(lambda r: httpx.Response(401)))
        assert asyncio.run(service.current_weather(now=NOW)) == climatology_reading(NOW)

    def test_network_failure_falls_back(self):
        def refuse(request):
            raise httpx.ConnectError("unreachable", request=request)

        service = WeatherService("key", transport=httpx.MockTransport(refuse))
        assert asyncio.run(service.current_weather(now=NOW)) == climatology_reading(NOW)

    def test_history_from_timemachine(self):
        service = WeatherService("key", transport=httpx.MockTransport(_openweather))
        history = asyncio.run(service.weather_history(date(2024, 1, 1), date(2024, 1, 2)))
        assert len(history) == 2
        assert all(w.is_rainy for w in history)
        assert history[0].temperature == 27


class TestSummary:

    def test_empty_history(self, weather_service):
        insight = weather_service.summarize([])
        assert insight.total_days == 0
        assert insight.period == "No data"

    def test_frequent_rain(self, weather_service):
        history = [_reading("Rain"), _reading("Thunderstorm"), _reading("Rain"), _reading("Clear")]
        insight = weather_service.summarize(history, today=date(2024, 1, 20))
        assert insight.rainy_days == 3
        assert insight.total_days == 4
        assert insight.dominant_condition == "Rain"
        assert insight.average_temp == 28.0
        assert "Frequent rainfall (3/4 days)" in insight.weather_impact
        assert "Rainy season strategy" in insight.business_recommendation

    def test_hot_dry_spell(self, weather_service):
        history = [_reading("Clear", 34), _reading("Clear", 35)]
        insight = weather_service.summarize(history, today=date(2024, 8, 10))
        assert "AC service demand" in insight.weather_impact
        assert "Minimal rainfall (0/2 days)" in insight.weather_impact
        assert "Dry season focus" in insight.business_recommendation
