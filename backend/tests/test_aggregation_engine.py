"""
test_aggregation_engine.py — Unit tests for AggregationEngine.

Tests cover:
  - Window length (ceil of days, minimum 1, default 30 without a window)
  - Inclusive date filtering and undated entries
  - Employee and period roll-ups, ranking and top-performer prefix
  - Cent rounding of daily averages (ROUND_HALF_UP)
"""

from datetime import date
from decimal import Decimal

import pytest

from incomebot.models.report_models import Employee, IncomeRecord
from incomebot.services.aggregation_engine import AggregationEngine, format_window_label

START = date(2024, 3, 1)
END = date(2024, 3, 11)


def _records(subject_id, *pairs):
    return [IncomeRecord(subject_id=subject_id, date=d, amount=Decimal(str(a))) for d, a in pairs]


@pytest.fixture(scope="module")
def engine():
    return AggregationEngine()


class TestWindow:

    def test_day_span_of_ten_day_window(self, engine):
        assert engine.day_span(START, END) == 10

    def test_day_span_same_day_is_one(self, engine):
        assert engine.day_span(START, START) == 1

    def test_day_span_without_window_defaults_to_thirty(self, engine):
        assert engine.day_span() == 30
        assert engine.day_span(START, None) == 30

    def test_filter_is_inclusive_at_both_ends(self, engine):
        records = _records(1, (START, 1), (END, 2), (date(2024, 2, 29), 4), (date(2024, 3, 12), 8))
        kept = engine.filter_window(records, START, END)
        assert [r.amount for r in kept] == [Decimal("1"), Decimal("2")]

    def test_undated_entries_dropped_only_with_window(self, engine):
        records = _records(1, (None, 5), (START, 1))
        assert len(engine.filter_window(records, START, END)) == 1
        assert len(engine.filter_window(records)) == 2

    def test_format_window_label(self):
        assert format_window_label(START, END) == "01/03/2024 - 11/03/2024"


class TestEmployeeReport:

    def test_totals_match_entries(self, engine):
        andi = Employee(id=1, manager_id=1, name="Andi")
        report = engine.employee_report(andi, _records(1, (date(2024, 3, 2), 100), (date(2024, 3, 5), 200)), START, END)
        assert report.total_income == Decimal("300")
        assert report.entry_count == 2
        assert report.average_daily == Decimal("30.00")
        assert report.subject_id == 1

    def test_no_entries_gives_zero_report(self, engine):
        report = engine.employee_report(Employee(id=2, manager_id=1, name="Budi"), [], START, END)
        assert report.total_income == Decimal("0")
        assert report.entry_count == 0
        assert report.average_daily == Decimal("0")

    def test_without_window_averages_over_thirty_days(self, engine):
        report = engine.employee_report(Employee(id=1, manager_id=1, name="Andi"), _records(1, (None, 90)))
        assert report.average_daily == Decimal("3.00")

    def test_average_rounds_half_up(self, engine):
        assert engine.average(Decimal("0.125"), 1) == Decimal("0.13")
        assert engine.average(Decimal("100"), 3) == Decimal("33.33")


class TestPeriodReport:

    def test_ten_day_scenario(self, engine):
        a = engine.employee_report(
            Employee(id=1, manager_id=1, name="A"),
            _records(1, (date(2024, 3, 2), 100), (date(2024, 3, 5), 200)),
            START, END,
        )
        b = engine.employee_report(Employee(id=2, manager_id=1, name="B"), _records(2, (date(2024, 3, 8), 100)), START, END)

        report = engine.period_report([b, a], START, END)

        assert report.total_income == Decimal("400")
        assert report.total_entries == 3
        assert report.employee_reports[0].employee.name == "A"
        assert report.employee_reports[0].average_daily == Decimal("30")
        assert report.average_daily == Decimal("40.00")
        assert report.label == "01/03/2024 - 11/03/2024"

    def test_top_performers_is_prefix_of_at_most_five(self, engine):
        reports = [
            engine.employee_report(Employee(id=i, manager_id=1, name=f"E{i}"), _records(i, (START, i * 10)), START, END)
            for i in range(1, 8)
        ]
        report = engine.period_report(reports, START, END, label="March")

        totals = [r.total_income for r in report.employee_reports]
        assert totals == sorted(totals, reverse=True)
        assert len(report.top_performers) == 5
        assert report.top_performers == report.employee_reports[:5]
        assert report.total_income == sum(totals)
        assert report.label == "March"

    def test_rank_keeps_enumeration_order_on_ties(self, engine):
        first = engine.employee_report(Employee(id=1, manager_id=1, name="First"), _records(1, (START, 50)), START, END)
        second = engine.employee_report(Employee(id=2, manager_id=1, name="Second"), _records(2, (START, 50)), START, END)
        assert [r.employee.name for r in engine.rank([first, second])] == ["First", "Second"]

    def test_empty_period(self, engine):
        report = engine.period_report([], START, END, insights=["No employee data available for this period"])
        assert report.total_income == Decimal("0")
        assert report.top_performers == []
        assert report.insights == ["No employee data available for this period"]
