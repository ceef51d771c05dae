"""Human-readable observations derived from aggregated income data."""
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Sequence

from incomebot.models.report_models import EmployeeReport, TrendDirection, TrendPoint

_CENT = Decimal("0.01")
_ZERO = Decimal("0")


def format_currency(amount: Decimal) -> str:
    """Rupiah with dot thousands separators, e.g. ``Rp 1.234.567`` or ``Rp 1.234,50``."""
    value = Decimal(amount).quantize(_CENT, rounding=ROUND_HALF_UP)
    if value == value.to_integral_value():
        text = f"{int(value):,}"
    else:
        text = f"{value:,.2f}"
    text = text.replace(",", "_").replace(".", ",").replace("_", ".")
    return f"Rp {text}"


def format_percent(value: Decimal) -> str:
    """Drop insignificant trailing zeros: 20.00 → ``20``, 4.50 → ``4.5``."""
    return f"{Decimal(value).normalize():f}"


class InsightGenerator:

    def period_insights(self, reports: Sequence[EmployeeReport], day_span: int) -> List[str]:
        """
        Observations for a period, in fixed order:
        top performer, mean per employee, inactive employees (if any),
        weekly average (only for windows of a week or longer).

        ``reports`` must already be sorted descending by total income.
        """
        if not reports:
            return ["No employee data available for this period"]

        total = sum((r.total_income for r in reports), _ZERO)
        top = reports[0]
        insights = [
            f"Top performer: {top.employee.name} with {format_currency(top.total_income)}",
            f"Average income per employee: {format_currency(total / len(reports))}",
        ]

        inactive = sum(1 for r in reports if r.entry_count == 0)
        if inactive > 0:
            noun = "employees" if inactive > 1 else "employee"
            insights.append(f"{inactive} {noun} had no income entries in this period")

        if day_span >= 7:
            weekly = total * 7 / day_span
            insights.append(f"Weekly average income: {format_currency(weekly)}")

        return insights

    def trend_insights(
        self,
        points: Sequence[TrendPoint],
        direction: TrendDirection,
        change_percent: Decimal,
    ) -> List[str]:
        insights = [f"Overall trend: {direction.value} by {format_percent(change_percent)}%"]
        if not points:
            return insights

        total = sum((p.total_income for p in points), _ZERO)
        insights.append(f"Average monthly income: {format_currency(total / len(points))}")

        # max/min keep the earliest point on ties
        best = max(points, key=lambda p: p.total_income)
        worst = min(points, key=lambda p: p.total_income)
        insights.append(
            f"Best performing month: {best.label} ({format_currency(best.total_income)})"
        )
        insights.append(
            f"Lowest performing month: {worst.label} ({format_currency(worst.total_income)})"
        )
        return insights
