"""
Reporting Service — employee, period and trend reports for one business.

Every call is a read-and-compute pipeline over the repository. Repository
failures (DataAccessError) propagate to the caller unmodified.
"""
import calendar
import logging
from datetime import date
from typing import List, Optional

from incomebot.config import INCOME_HISTORY_LIMIT
from incomebot.models.report_models import (
    EmployeeReport,
    PeriodReport,
    TimeFrame,
    TrendAnalysis,
    TrendPoint,
)
from incomebot.services.aggregation_engine import AggregationEngine
from incomebot.services.insight_engine import InsightGenerator
from incomebot.services.perf_monitor import timed_async
from incomebot.services.repositories import IncomeRepository
from incomebot.services.time_frame import TimeFrameParser, month_bounds, shift_month
from incomebot.services.trend_engine import TrendAnalyzer

logger = logging.getLogger("incomebot-reporting")


class ReportingService:
    def __init__(
        self,
        repository: IncomeRepository,
        time_frames: Optional[TimeFrameParser] = None,
        aggregation: Optional[AggregationEngine] = None,
        trends: Optional[TrendAnalyzer] = None,
        insights: Optional[InsightGenerator] = None,
    ):
        self.repository = repository
        self.time_frames = time_frames or TimeFrameParser()
        self.aggregation = aggregation or AggregationEngine()
        self.trends = trends or TrendAnalyzer()
        self.insights = insights or InsightGenerator()

    def parse_time_frame(self, text: str, today: Optional[date] = None) -> TimeFrame:
        return self.time_frames.parse(text, today)

    async def generate_employee_report(
        self,
        manager_id: int,
        employee_name: Optional[str] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> List[EmployeeReport]:
        """One report per employee (optionally name-filtered), richest first."""
        logger.debug(f"Generating employee report for manager {manager_id}")
        employees = await self.repository.list_employees(manager_id)
        if employee_name:
            needle = employee_name.lower()
            employees = [e for e in employees if needle in e.name.lower()]

        reports = []
        for employee in employees:
            entries = await self.repository.list_income_entries(employee.id, INCOME_HISTORY_LIMIT)
            reports.append(self.aggregation.employee_report(employee, entries, start, end))
        return self.aggregation.rank(reports)

    async def generate_period_report(
        self,
        manager_id: int,
        start: date,
        end: date,
        label: Optional[str] = None,
    ) -> PeriodReport:
        logger.debug(f"Generating period report for manager {manager_id}: {start} → {end}")
        reports = await self.generate_employee_report(manager_id, None, start, end)
        insights = self.insights.period_insights(reports, self.aggregation.day_span(start, end))
        return self.aggregation.period_report(reports, start, end, label, insights)

    @timed_async
    async def generate_trend_analysis(
        self,
        manager_id: int,
        months: int,
        today: Optional[date] = None,
    ) -> TrendAnalysis:
        """Month-by-month totals for ``months`` calendar months ending with the current one."""
        if months < 1:
            raise ValueError(f"months must be at least 1, got {months}")
        today = today or self.time_frames.today()
        logger.debug(f"Generating {months}-month trend analysis for manager {manager_id}")

        points: List[TrendPoint] = []
        for offset in range(months - 1, -1, -1):
            year, month = shift_month(today.year, today.month, -offset)
            start, end = month_bounds(year, month)
            label = f"{calendar.month_name[month]} {year}"
            report = await self.generate_period_report(manager_id, start, end, label)
            points.append(
                TrendPoint(
                    label=label,
                    total_income=report.total_income,
                    entry_count=report.total_entries,
                    average_daily=report.average_daily,
                )
            )

        direction, change = self.trends.analyze(points)
        return TrendAnalysis(
            points=points,
            direction=direction,
            change_percent=change,
            insights=self.insights.trend_insights(points, direction, change),
        )
