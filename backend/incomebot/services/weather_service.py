"""
Weather enrichment for scheduled reports.

Live data comes from OpenWeatherMap when WEATHER_API_KEY is set. Without a
key, or when the API rejects the key or is unreachable, readings fall back to
Jakarta climatology (rainy Dec–Mar, dry Jul–Sep) so reports still carry a
weather section.
"""
import asyncio
import logging
from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import List, Optional, Tuple
from zoneinfo import ZoneInfo

import httpx

from incomebot.config import DEFAULT_WEATHER_CITY, HTTP_TIMEOUT_SECONDS, WEATHER_HISTORY_MAX_DAYS

logger = logging.getLogger("incomebot-weather")

BASE_URL = "https://api.openweathermap.org/data/2.5"
HISTORY_URL = "https://api.openweathermap.org/data/3.0/onecall/timemachine"
JAKARTA_COORDS = (-6.2088, 106.8456)

RAIN_MARKERS = ("rain", "drizzle", "thunderstorm")

# Season → (base °C, conditions, descriptions); month index is 1-based
_SEASONS = {
    "rainy": (26, ["Rain", "Thunderstorm", "Cloudy", "Drizzle"],
              ["moderate rain", "thunderstorm with rain", "overcast clouds", "light drizzle"]),
    "dry": (30, ["Clear", "Sunny", "Partly Cloudy"],
            ["clear sky", "sunny", "few clouds"]),
    "normal": (28, ["Clear", "Partly Cloudy", "Cloudy"],
               ["clear sky", "partly cloudy", "overcast clouds"]),
}

_ICONS = {
    "Clear": "01d", "Sunny": "01d", "Partly Cloudy": "02d", "Cloudy": "03d",
    "Overcast": "04d", "Rain": "10d", "Drizzle": "09d", "Thunderstorm": "11d", "Fog": "50d",
}


@dataclass
class WeatherData:
    temperature: int
    condition: str
    humidity: int
    wind_speed: float
    description: str
    icon: str

    @property
    def is_rainy(self) -> bool:
        lowered = self.condition.lower()
        return any(marker in lowered for marker in RAIN_MARKERS)


@dataclass
class WeatherInsight:
    period: str
    average_temp: float
    dominant_condition: str
    rainy_days: int
    total_days: int
    weather_impact: str
    business_recommendation: str


def _season(month: int) -> str:
    if month == 12 or month <= 3:
        return "rainy"
    if 7 <= month <= 9:
        return "dry"
    return "normal"


def climatology_reading(moment: datetime) -> WeatherData:
    """Typical Jakarta weather for a given local date and hour."""
    base, conditions, descriptions = _SEASONS[_season(moment.month)]
    hour = moment.hour
    if 6 <= hour <= 10:
        base -= 2
    elif 12 <= hour <= 16:
        base += 4
    elif 18 <= hour <= 22:
        base += 1
    else:
        base -= 3

    index = moment.toordinal() % len(conditions)
    condition = conditions[index]
    return WeatherData(
        temperature=max(22, min(36, base)),
        condition=condition,
        humidity=70 + (moment.toordinal() % 20),
        wind_speed=float(5 + moment.toordinal() % 10),
        description=descriptions[index],
        icon=_ICONS.get(condition, "02d"),
    )


class WeatherService:
    def __init__(
        self,
        api_key: str = "",
        city: str = DEFAULT_WEATHER_CITY,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timezone: str = "Asia/Jakarta",
    ):
        self.api_key = api_key
        self.city = city
        self.tz = ZoneInfo(timezone)
        self._transport = transport
        if not self.live:
            logger.info("Weather API key not provided — using Jakarta climatology")

    @property
    def live(self) -> bool:
        return bool(self.api_key)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=HTTP_TIMEOUT_SECONDS, transport=self._transport)

    def _local(self, now: Optional[datetime]) -> datetime:
        """Business-time clock; naive datetimes are already business time."""
        if now is None:
            return datetime.now(self.tz)
        if now.tzinfo is None:
            return now
        return now.astimezone(self.tz)

    async def current_weather(self, city: Optional[str] = None, now: Optional[datetime] = None) -> WeatherData:
        now = self._local(now)
        if not self.live:
            return climatology_reading(now)

        try:
            async with self._client() as client:
                resp = await client.get(
                    f"{BASE_URL}/weather",
                    params={"q": city or self.city, "appid": self.api_key, "units": "metric"},
                )
            if resp.status_code == 401:
                logger.warning("Weather API rejected the key — using climatology")
                return climatology_reading(now)
            resp.raise_for_status()
            data = resp.json()
            return WeatherData(
                temperature=round(data["main"]["temp"]),
                condition=data["weather"][0]["main"],
                humidity=data["main"]["humidity"],
                wind_speed=data.get("wind", {}).get("speed", 0),
                description=data["weather"][0]["description"],
                icon=data["weather"][0]["icon"],
            )
        except (httpx.HTTPError, KeyError, ValueError) as e:
            logger.warning(f"Current weather fetch failed ({type(e).__name__}: {e}) — using climatology")
            return climatology_reading(now)

    async def weather_history(
        self,
        start: date,
        end: date,
        city: Optional[str] = None,
    ) -> List[WeatherData]:
        """One reading per day in [start, end], capped at WEATHER_HISTORY_MAX_DAYS."""
        if not self.live:
            return self._climatology_history(start, end)

        history: List[WeatherData] = []
        try:
            async with self._client() as client:
                lat, lon = await self._coordinates(client, city or self.city)
                day = start
                while day <= end and len(history) < WEATHER_HISTORY_MAX_DAYS:
                    stamp = int(datetime.combine(day, time(12), tzinfo=timezone.utc).timestamp())
                    resp = await client.get(
                        HISTORY_URL,
                        params={"lat": lat, "lon": lon, "dt": stamp, "appid": self.api_key, "units": "metric"},
                    )
                    if resp.status_code == 401:
                        logger.warning("Weather API rejected the key for history — using climatology")
                        return self._climatology_history(start, end)
                    if resp.is_success:
                        reading = resp.json()["data"][0]
                        history.append(
                            WeatherData(
                                temperature=round(reading["temp"]),
                                condition=reading["weather"][0]["main"],
                                humidity=reading["humidity"],
                                wind_speed=reading.get("wind_speed", 0),
                                description=reading["weather"][0]["description"],
                                icon=reading["weather"][0]["icon"],
                            )
                        )
                    day += timedelta(days=1)
                    await asyncio.sleep(0.1)
        except (httpx.HTTPError, KeyError, IndexError, ValueError) as e:
            logger.warning(f"Weather history fetch failed ({type(e).__name__}: {e}) — using climatology")
            return self._climatology_history(start, end)

        return history or self._climatology_history(start, end)

    async def _coordinates(self, client: httpx.AsyncClient, city: str) -> Tuple[float, float]:
        try:
            resp = await client.get(f"{BASE_URL}/weather", params={"q": city, "appid": self.api_key})
            resp.raise_for_status()
            coord = resp.json()["coord"]
            return coord["lat"], coord["lon"]
        except (httpx.HTTPError, KeyError, ValueError) as e:
            logger.debug(f"Geocoding {city} failed, using Jakarta: {e}")
            return JAKARTA_COORDS

    @staticmethod
    def _climatology_history(start: date, end: date) -> List[WeatherData]:
        readings = []
        day = start
        while day <= end:
            readings.append(climatology_reading(datetime.combine(day, time(12))))
            day += timedelta(days=1)
        return readings

    # -----------------------------------------------------------------------
    # Insights
    # -----------------------------------------------------------------------

    def summarize(self, history: List[WeatherData], today: Optional[date] = None) -> WeatherInsight:
        """Average temperature, dominant condition and garage-specific advice."""
        if not history:
            return WeatherInsight(
                period="No data",
                average_temp=28.0,
                dominant_condition="Partly Cloudy",
                rainy_days=0,
                total_days=0,
                weather_impact="Weather analysis based on typical Jakarta climate patterns",
                business_recommendation="Monitor local weather patterns for optimal service planning",
            )

        total_days = len(history)
        average_temp = sum(w.temperature for w in history) / total_days
        dominant = Counter(w.condition for w in history).most_common(1)[0][0]
        rainy_days = sum(1 for w in history if w.is_rainy)
        impact, recommendation = self._garage_advice(
            average_temp, rainy_days, total_days, (today or datetime.now(self.tz).date()).month
        )
        return WeatherInsight(
            period=f"{total_days} days analyzed",
            average_temp=round(average_temp, 1),
            dominant_condition=dominant,
            rainy_days=rainy_days,
            total_days=total_days,
            weather_impact=impact,
            business_recommendation=recommendation,
        )

    @staticmethod
    def _garage_advice(avg_temp: float, rainy_days: int, total_days: int, month: int) -> Tuple[str, str]:
        impact: List[str] = []
        advice: List[str] = []

        if avg_temp > 32:
            impact.append("Hot weather increases AC service demand and may reduce outdoor work efficiency.")
            advice.append("Promote AC maintenance services and schedule intensive work during cooler morning hours.")
        elif avg_temp < 25:
            impact.append("Cooler weather typically increases vehicle usage and maintenance needs.")
            advice.append("Focus on general maintenance services and engine check-ups.")
        else:
            impact.append("Moderate temperatures provide optimal working conditions for most services.")
            advice.append("Take advantage of comfortable weather for comprehensive vehicle inspections.")

        rainy_pct = rainy_days / total_days * 100
        if rainy_pct > 40:
            impact.append(
                f"Frequent rainfall ({rainy_days}/{total_days} days) likely reduced walk-in customers "
                "but increased urgent repair needs."
            )
            advice.append("Emphasize emergency services, brake maintenance and electrical system checks.")
        elif rainy_pct > 20:
            impact.append(
                f"Moderate rainfall ({rainy_days}/{total_days} days) may have caused some service delays."
            )
            advice.append("Promote wiper blade replacements and undercarriage cleaning.")
        else:
            impact.append(
                f"Minimal rainfall ({rainy_days}/{total_days} days) provided excellent working conditions."
            )
            advice.append("Maximize outdoor services like painting and bodywork during dry periods.")

        season = _season(month)
        if season == "rainy":
            advice.append("Rainy season strategy: stock wiper blades, brake pads and waterproofing supplies.")
        elif season == "dry":
            advice.append("Dry season focus: AC servicing, cooling systems and dust filter replacements.")

        return " ".join(impact), " ".join(advice)
