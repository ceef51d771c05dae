"""
Report Composer — renders scheduled report text for one business.

Core figures (period totals, trends, top performers) come from the
ReportingService and any failure there propagates to the caller. Weather and
market sections are enrichment: each is wrapped on its own so a failing
provider drops only that section from the message.
"""
import calendar
import logging
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import List, Optional
from zoneinfo import ZoneInfo

from incomebot.config import (
    DEFAULT_BUSINESS_TYPE,
    DEFAULT_REGION,
    MONTHLY_REPORT_TREND_MONTHS,
    YEARLY_REPORT_TREND_MONTHS,
)
from incomebot.models.report_models import EmployeeReport, Manager, ScheduleKind
from incomebot.services.insight_engine import format_currency, format_percent
from incomebot.services.market_research import MarketResearchService
from incomebot.services.perf_monitor import timed_async
from incomebot.services.reporting_service import ReportingService
from incomebot.services.time_frame import month_bounds, shift_month, week_start
from incomebot.services.weather_service import WeatherService

logger = logging.getLogger("incomebot-composer")

TITLES = {
    ScheduleKind.TEST: "🧪 Test Report (Every 3 Minutes)",
    ScheduleKind.WEEKLY: "📊 Weekly Business Report",
    ScheduleKind.MONTHLY: "📈 Monthly Business Report",
    ScheduleKind.YEARLY: "🎊 Annual Business Report",
}
MANUAL_TEST_TITLE = "🧪 Manual Test Report"
NOT_REGISTERED_MESSAGE = "❌ No business found. Please register your business first."

# Months whose seasonal outlook the yearly report contrasts (rainy, cool dry)
YEARLY_SEASON_SAMPLES = (12, 7)


def _top_lines(reports: List[EmployeeReport], with_counts: bool) -> List[str]:
    lines = []
    for idx, r in enumerate(reports, start=1):
        line = f"{idx}. {r.employee.name}: {format_currency(r.total_income)}"
        if with_counts:
            line += f" ({r.entry_count} transactions)"
        lines.append(line)
    return lines


class ReportComposer:
    def __init__(
        self,
        reporting: ReportingService,
        weather: WeatherService,
        market: MarketResearchService,
        timezone: str = "Asia/Jakarta",
        dev_mode: bool = False,
    ):
        self.reporting = reporting
        self.weather = weather
        self.market = market
        self.tz = ZoneInfo(timezone)
        self.dev_mode = dev_mode

    def now(self) -> datetime:
        return datetime.now(self.tz)

    # -----------------------------------------------------------------------
    # Entry points
    # -----------------------------------------------------------------------

    @timed_async
    async def compose(self, kind: ScheduleKind, manager: Manager, now: Optional[datetime] = None) -> str:
        now = (now or self.now()).astimezone(self.tz)
        renderers = {
            ScheduleKind.TEST: self.test_body,
            ScheduleKind.WEEKLY: self.weekly_body,
            ScheduleKind.MONTHLY: self.monthly_body,
            ScheduleKind.YEARLY: self.yearly_body,
        }
        body = await renderers[kind](manager.id, now)
        return self.frame(TITLES[kind], manager, body, now)

    async def compose_manual(self, manager: Manager, now: Optional[datetime] = None) -> str:
        now = (now or self.now()).astimezone(self.tz)
        body = await self.weekly_body(manager.id, now)
        return self.frame(MANUAL_TEST_TITLE, manager, body, now)

    def frame(self, title: str, manager: Manager, body: str, now: datetime) -> str:
        stamp = now.astimezone(self.tz).strftime("%A, %d %B %Y %H:%M")
        return f"{title}\n\n🏢 {manager.business_name}\n{stamp}\n\n{body}"

    # -----------------------------------------------------------------------
    # Bodies
    # -----------------------------------------------------------------------

    async def test_body(self, manager_id: int, now: datetime) -> str:
        today = now.date()
        report = await self.reporting.generate_period_report(manager_id, today, today)

        lines = [
            "📋 Quick Status Check",
            "",
            f"💰 Today's Income: {format_currency(report.total_income)}",
            f"📝 Total Entries: {report.total_entries}",
            f"👥 Active Employees: {len(report.employee_reports)}",
            "",
        ]
        lines += await self._section("current weather", self._current_weather_section(now))
        lines.append("🔄 This is an automated test report sent every 3 minutes.")
        lines.append("💡 Disable it by setting APP_ENV=production")
        if self.dev_mode:
            status = (
                "✅ Weather API configured"
                if self.weather.live
                else "⚠️ Weather API not configured - using climatology data"
            )
            lines.append(f"🔧 Dev Info: {status}")
        return "\n".join(lines)

    async def weekly_body(self, manager_id: int, now: datetime) -> str:
        start = week_start(now.date())
        end = start + timedelta(days=6)
        report = await self.reporting.generate_period_report(manager_id, start, end)

        lines = [
            "📅 This Week's Performance",
            f"🗓️ {start:%d/%m/%Y} - {end:%d/%m/%Y}",
            "",
            f"💰 Total Revenue: {format_currency(report.total_income)}",
            f"📈 Daily Average: {format_currency(report.average_daily)}",
            f"📝 Total Transactions: {report.total_entries}",
            "",
        ]
        if report.top_performers:
            lines.append("🏆 Top Performers:")
            lines += _top_lines(report.top_performers[:3], with_counts=False)
            lines.append("")

        lines += await self._section("weekly weather", self._weather_summary_section(start, end, now, detailed=True))
        lines += await self._section("weekly market", self._industry_section("📊 Market Intelligence:", now))

        lines.append("💡 Key Business Insights:")
        lines += [f"• {insight}" for insight in report.insights]
        lines.append("")
        lines.append("🎯 Have a productive weekend and great week ahead!")
        return "\n".join(lines)

    async def monthly_body(self, manager_id: int, now: datetime) -> str:
        year, month = shift_month(now.year, now.month, -1)
        start, end = month_bounds(year, month)
        report = await self.reporting.generate_period_report(manager_id, start, end)
        trend = await self.reporting.generate_trend_analysis(
            manager_id, MONTHLY_REPORT_TREND_MONTHS, today=now.date()
        )

        lines = [
            "📊 Monthly Business Summary",
            f"🗓️ {calendar.month_name[month]} {year}",
            "",
            f"💰 Monthly Revenue: {format_currency(report.total_income)}",
            f"📈 Daily Average: {format_currency(report.average_daily)}",
            f"📝 Total Transactions: {report.total_entries}",
            f"👥 Active Employees: {len(report.employee_reports)}",
            "",
            f"📈 {MONTHLY_REPORT_TREND_MONTHS}-Month Trend: "
            f"{trend.direction.value.upper()} by {format_percent(trend.change_percent)}%",
            "",
        ]
        if report.top_performers:
            lines.append("🏆 Monthly Top Performers:")
            lines += _top_lines(report.top_performers, with_counts=True)
            lines.append("")

        lines += await self._section("monthly weather", self._weather_summary_section(start, end, now, detailed=False))
        lines += await self._section("seasonal", self._seasonal_section(month))
        lines += await self._section("economic", self._economic_section("📊 Economic Context:"))

        lines.append("💡 Monthly Insights:")
        lines += [f"• {insight}" for insight in report.insights]
        lines.append("")
        lines.append("🚀 Here's to another successful month ahead!")
        return "\n".join(lines)

    async def yearly_body(self, manager_id: int, now: datetime) -> str:
        year = now.year - 1
        start, end = date(year, 1, 1), date(year, 12, 31)
        report = await self.reporting.generate_period_report(manager_id, start, end)
        trend = await self.reporting.generate_trend_analysis(
            manager_id, YEARLY_REPORT_TREND_MONTHS, today=now.date()
        )

        lines = [
            f"🎊 ANNUAL BUSINESS REPORT {year}",
            "🏢 Year in Review",
            "",
            f"💰 Annual Revenue: {format_currency(report.total_income)}",
            f"📈 Monthly Average: {format_currency(report.total_income / Decimal(12))}",
            f"📝 Total Transactions: {report.total_entries}",
            f"👥 Team Size: {len(report.employee_reports)} employees",
            "",
            f"📈 Annual Trend: {trend.direction.value.upper()} by {format_percent(trend.change_percent)}%",
            "",
        ]
        if report.top_performers:
            lines.append("🏆 Annual Top Performers:")
            lines += _top_lines(report.top_performers, with_counts=True)
            lines.append("")

        lines += await self._section("yearly industry", self._industry_section("🏭 Industry Intelligence Summary:", now))
        lines += await self._section("competitor", self._competitor_section())
        lines += await self._section("seasonal patterns", self._seasonal_patterns_section())
        lines += await self._section("economic", self._economic_section("📊 Economic Environment:"))

        lines.append("💡 Annual Strategic Insights:")
        lines += [f"• {insight}" for insight in trend.insights]
        lines.append("")
        lines.append(f"🎯 Thank you for an amazing year! Here's to continued success in {now.year}!")
        lines.append("")
        lines.append(
            "🔮 Looking ahead: Focus on digital transformation, service quality, "
            "and weather-adaptive strategies for sustained growth."
        )
        return "\n".join(lines)

    # -----------------------------------------------------------------------
    # Enrichment sections
    # -----------------------------------------------------------------------

    async def _section(self, name: str, pending) -> List[str]:
        """Await one enrichment section; on any failure the section is omitted."""
        try:
            return await pending
        except Exception as e:
            logger.warning(f"Skipping {name} section: {type(e).__name__}: {e}")
            return []

    async def _current_weather_section(self, now: datetime) -> List[str]:
        current = await self.weather.current_weather(now=now)
        source = "🌐 Live Weather Data" if self.weather.live else "🤖 Climate Pattern Analysis"
        lines = [
            f"🌤️ Weather Impact Analysis ({source}):",
            f"   Temperature: {current.temperature}°C ({current.description})",
            f"   Condition: {current.condition}",
            f"   Humidity: {current.humidity}%",
        ]
        if "rain" in current.condition.lower():
            lines.append("   💡 Rainy conditions may reduce walk-in traffic but increase emergency brake and electrical services")
            lines.append("   🔧 Recommended: Stock wiper blades and offer covered service areas")
        elif current.temperature > 32:
            lines.append("   💡 Hot weather increases AC service demand and affects workshop comfort")
            lines.append("   🔧 Recommended: Promote AC maintenance and ensure adequate workshop ventilation")
        elif current.temperature < 25:
            lines.append("   💡 Cooler weather typically increases vehicle maintenance needs")
            lines.append("   🔧 Recommended: Focus on engine check-ups and general maintenance services")
        else:
            lines.append("   💡 Moderate weather provides optimal conditions for all service types")
            lines.append("   🔧 Recommended: Ideal time for comprehensive vehicle inspections")
        lines.append("")
        return lines

    async def _weather_summary_section(
        self, start: date, end: date, now: datetime, detailed: bool
    ) -> List[str]:
        history = await self.weather.weather_history(start, min(end, now.date()))
        insight = self.weather.summarize(history, today=now.date())
        if not detailed:
            return [
                "🌤️ Monthly Weather Analysis:",
                f"   {insight.weather_impact}",
                f"   Recommendation: {insight.business_recommendation}",
                "",
            ]
        return [
            "🌤️ Weather Impact Analysis:",
            f"   Average Temperature: {insight.average_temp}°C",
            f"   Dominant Condition: {insight.dominant_condition}",
            f"   Rainy Days: {insight.rainy_days}/{insight.total_days}",
            f"   📊 {insight.weather_impact}",
            f"   💡 {insight.business_recommendation}",
            "",
        ]

    async def _industry_section(self, heading: str, now: datetime) -> List[str]:
        insights = await self.market.industry_insights(DEFAULT_BUSINESS_TYPE, today=now.date())
        if not insights:
            return []
        lines = [heading]
        for insight in insights[:2]:
            if insight.insights:
                lines.append(f"   {insight.category}:")
                lines += [f"   • {item}" for item in insight.insights[:2]]
        lines.append("")
        return lines

    async def _seasonal_section(self, month: int) -> List[str]:
        seasonal = await self.market.seasonal_insights(month, DEFAULT_BUSINESS_TYPE)
        lines = [f"🌸 Seasonal Market Intelligence ({seasonal.season} season):"]
        if seasonal.trends:
            lines.append("   Market Trends:")
            lines += [f"   • {t}" for t in seasonal.trends[:2]]
        if seasonal.business_recommendations:
            lines.append("   Strategic Recommendations:")
            lines += [f"   • {r}" for r in seasonal.business_recommendations[:2]]
        lines.append("")
        return lines

    async def _economic_section(self, heading: str) -> List[str]:
        economic = await self.market.economic_factors(DEFAULT_REGION)
        return [heading] + [f"   • {i}" for i in economic.insights[:3]] + [""]

    async def _competitor_section(self) -> List[str]:
        competitors = await self.market.competitor_trends(DEFAULT_BUSINESS_TYPE)
        return ["🏁 Competitive Landscape:"] + [f"   • {i}" for i in competitors.insights[:3]] + [""]

    async def _seasonal_patterns_section(self) -> List[str]:
        lines = [
            "🌅 Seasonal Business Patterns:",
            "   Rainy Season Impact: Higher demand for brake/electrical services",
            "   Dry Season Opportunities: Peak AC maintenance period",
        ]
        for month in YEARLY_SEASON_SAMPLES:
            pattern = await self.market.seasonal_insights(month, DEFAULT_BUSINESS_TYPE)
            if pattern.business_recommendations:
                lines.append(f"   {pattern.season} Strategy: {pattern.business_recommendations[0]}")
        lines.append("")
        return lines
