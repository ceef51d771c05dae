"""
Report Routes — employee, period and trend reports for one business.

GET /api/v1/reports/{manager_id}/employees  — per-employee totals, richest first
GET /api/v1/reports/{manager_id}/period     — period roll-up with insights
GET /api/v1/reports/{manager_id}/trend      — month-by-month trend analysis
"""
import logging
from datetime import date
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from incomebot.api.deps import get_context, require_manager
from incomebot.config import DEFAULT_TREND_MONTHS, MAX_TREND_MONTHS
from incomebot.context import AppContext
from incomebot.models.report_models import EmployeeReport, PeriodReport, TrendAnalysis
from incomebot.services.time_frame import parse_trend_months

router = APIRouter(prefix="/api/v1/reports", tags=["Reports"])
logger = logging.getLogger("incomebot-api")


# ─── Pydantic schemas ────────────────────────────────────────────────────────

class EmployeeReportOut(BaseModel):
    employee_id: int
    employee_name: str
    total_income: Decimal
    entry_count: int
    average_daily: Decimal

    @classmethod
    def from_report(cls, report: EmployeeReport) -> "EmployeeReportOut":
        return cls(
            employee_id=report.employee.id,
            employee_name=report.employee.name,
            total_income=report.total_income,
            entry_count=report.entry_count,
            average_daily=report.average_daily,
        )


class PeriodReportOut(BaseModel):
    label: str
    start_date: date
    end_date: date
    total_income: Decimal
    total_entries: int
    average_daily: Decimal
    employee_reports: List[EmployeeReportOut]
    top_performers: List[EmployeeReportOut]
    insights: List[str]

    @classmethod
    def from_report(cls, report: PeriodReport) -> "PeriodReportOut":
        return cls(
            label=report.label,
            start_date=report.start_date,
            end_date=report.end_date,
            total_income=report.total_income,
            total_entries=report.total_entries,
            average_daily=report.average_daily,
            employee_reports=[EmployeeReportOut.from_report(r) for r in report.employee_reports],
            top_performers=[EmployeeReportOut.from_report(r) for r in report.top_performers],
            insights=report.insights,
        )


class TrendPointOut(BaseModel):
    label: str
    total_income: Decimal
    entry_count: int
    average_daily: Decimal


class TrendAnalysisOut(BaseModel):
    direction: str
    change_percent: Decimal
    points: List[TrendPointOut]
    insights: List[str]

    @classmethod
    def from_analysis(cls, analysis: TrendAnalysis) -> "TrendAnalysisOut":
        return cls(
            direction=analysis.direction.value,
            change_percent=analysis.change_percent,
            points=[
                TrendPointOut(
                    label=p.label,
                    total_income=p.total_income,
                    entry_count=p.entry_count,
                    average_daily=p.average_daily,
                )
                for p in analysis.points
            ],
            insights=analysis.insights,
        )


# ─── Routes ──────────────────────────────────────────────────────────────────

def _window(ctx: AppContext, time_frame: Optional[str], start: Optional[date], end: Optional[date]):
    """Explicit dates win over a time-frame phrase; a lone date is rejected."""
    if start or end:
        if not (start and end):
            raise HTTPException(status_code=422, detail="start and end must be supplied together")
        if start > end:
            raise HTTPException(status_code=422, detail="start must not be after end")
        return start, end, None
    if time_frame:
        frame = ctx.reporting.parse_time_frame(time_frame)
        return frame.start_date, frame.end_date, frame.label
    return None, None, None


@router.get("/{manager_id}/employees", response_model=List[EmployeeReportOut])
async def employee_report(
    manager_id: int,
    employee_name: Optional[str] = None,
    time_frame: Optional[str] = Query(None, description='e.g. "last week", "3 weeks ago"'),
    start: Optional[date] = None,
    end: Optional[date] = None,
    ctx: AppContext = Depends(get_context),
):
    await require_manager(ctx, manager_id)
    window_start, window_end, _ = _window(ctx, time_frame, start, end)
    reports = await ctx.reporting.generate_employee_report(manager_id, employee_name, window_start, window_end)
    return [EmployeeReportOut.from_report(r) for r in reports]


@router.get("/{manager_id}/period", response_model=PeriodReportOut)
async def period_report(
    manager_id: int,
    time_frame: str = Query("this month", description='e.g. "this week", "last 3 months"'),
    start: Optional[date] = None,
    end: Optional[date] = None,
    ctx: AppContext = Depends(get_context),
):
    await require_manager(ctx, manager_id)
    window_start, window_end, label = _window(ctx, time_frame or "this month", start, end)
    report = await ctx.reporting.generate_period_report(manager_id, window_start, window_end, label)
    return PeriodReportOut.from_report(report)


def _trend_months(period: Optional[str]) -> int:
    """Month count from a period phrase, held to the same bounds as ``months``."""
    if not period:
        return DEFAULT_TREND_MONTHS
    try:
        count = parse_trend_months(period)
    except ValueError:
        count = 0
    if not 1 <= count <= MAX_TREND_MONTHS:
        raise HTTPException(
            status_code=422,
            detail=f"period must cover 1 to {MAX_TREND_MONTHS} months",
        )
    return count


@router.get("/{manager_id}/trend", response_model=TrendAnalysisOut)
async def trend_analysis(
    manager_id: int,
    months: Optional[int] = Query(None, ge=1, le=MAX_TREND_MONTHS),
    period: Optional[str] = Query(None, description='e.g. "6 months", "quarter", "year"'),
    ctx: AppContext = Depends(get_context),
):
    await require_manager(ctx, manager_id)
    count = months or _trend_months(period)
    analysis = await ctx.reporting.generate_trend_analysis(manager_id, count)
    logger.info(f"Trend analysis served ({count} months)", extra={"manager_id": manager_id})
    return TrendAnalysisOut.from_analysis(analysis)
