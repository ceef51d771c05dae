"""
aggregation_engine.py — Income aggregation for employee and period reports.

Covers:
  - Inclusive date-window filtering of raw income entries
  - Per-employee totals, entry counts and daily averages
  - Period roll-up across employees with top-performer ranking

All amounts are Decimal. The daily average divides by the window length in
days (ceil, minimum 1), or by DEFAULT_DAY_SPAN when no window is supplied.
"""
import math
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Optional, Sequence

from incomebot.config import DEFAULT_DAY_SPAN, TOP_PERFORMER_COUNT
from incomebot.models.report_models import (
    Employee,
    EmployeeReport,
    IncomeRecord,
    PeriodReport,
)

_CENT = Decimal("0.01")
_ZERO = Decimal("0")


def format_window_label(start: date, end: date) -> str:
    return f"{start:%d/%m/%Y} - {end:%d/%m/%Y}"


class AggregationEngine:
    """Stateless aggregation over income entries supplied by the caller."""

    # -----------------------------------------------------------------------
    # Window helpers
    # -----------------------------------------------------------------------

    @staticmethod
    def day_span(start: Optional[date] = None, end: Optional[date] = None) -> int:
        """Window length in whole days; DEFAULT_DAY_SPAN when no window is given."""
        if start is None or end is None:
            return DEFAULT_DAY_SPAN
        seconds = (end - start).total_seconds()
        return max(1, math.ceil(seconds / 86400))

    @staticmethod
    def filter_window(
        entries: Iterable[IncomeRecord],
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> List[IncomeRecord]:
        """Keep entries dated within [start, end]; undated entries are dropped."""
        if start is None or end is None:
            return list(entries)
        return [e for e in entries if e.date is not None and start <= e.date <= end]

    @staticmethod
    def average(total: Decimal, days: int) -> Decimal:
        return (total / days).quantize(_CENT, rounding=ROUND_HALF_UP)

    # -----------------------------------------------------------------------
    # Reports
    # -----------------------------------------------------------------------

    def employee_report(
        self,
        employee: Employee,
        entries: Iterable[IncomeRecord],
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> EmployeeReport:
        selected = self.filter_window(entries, start, end)
        total = sum((e.amount for e in selected), _ZERO)
        return EmployeeReport(
            employee=employee,
            total_income=total,
            entry_count=len(selected),
            average_daily=self.average(total, self.day_span(start, end)),
            entries=selected,
        )

    @staticmethod
    def rank(reports: Iterable[EmployeeReport]) -> List[EmployeeReport]:
        """Descending by total income; ties keep enumeration order."""
        return sorted(reports, key=lambda r: r.total_income, reverse=True)

    def period_report(
        self,
        employee_reports: Sequence[EmployeeReport],
        start: date,
        end: date,
        label: Optional[str] = None,
        insights: Optional[List[str]] = None,
    ) -> PeriodReport:
        ranked = self.rank(employee_reports)
        total = sum((r.total_income for r in ranked), _ZERO)
        return PeriodReport(
            label=label or format_window_label(start, end),
            start_date=start,
            end_date=end,
            total_income=total,
            total_entries=sum(r.entry_count for r in ranked),
            average_daily=self.average(total, self.day_span(start, end)),
            employee_reports=ranked,
            top_performers=ranked[:TOP_PERFORMER_COUNT],
            insights=list(insights or []),
        )
