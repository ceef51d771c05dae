"""Trend direction over an ordered series of period totals."""
from decimal import Decimal, ROUND_HALF_UP
from typing import Sequence, Tuple

from incomebot.config import TREND_STABLE_THRESHOLD_PCT
from incomebot.models.report_models import TrendDirection, TrendPoint

_CENT = Decimal("0.01")


class TrendAnalyzer:
    """
    Compares the first and last period of a chronological series.

    Within the ±5 % deadband the trend is stable and the signed percentage is
    reported; outside it the magnitude is reported (never negative) alongside
    an increasing/decreasing label.
    """

    def analyze(self, points: Sequence[TrendPoint]) -> Tuple[TrendDirection, Decimal]:
        if len(points) < 2:
            return TrendDirection.STABLE, Decimal("0")

        first = Decimal(points[0].total_income)
        last = Decimal(points[-1].total_income)

        if first == 0 and last == 0:
            return TrendDirection.STABLE, Decimal("0")
        if first == 0:
            return TrendDirection.INCREASING, Decimal("100")

        change = (last - first) / first * 100

        if abs(change) < TREND_STABLE_THRESHOLD_PCT:
            return TrendDirection.STABLE, change.quantize(_CENT, rounding=ROUND_HALF_UP)

        direction = TrendDirection.INCREASING if change > 0 else TrendDirection.DECREASING
        return direction, abs(change).quantize(_CENT, rounding=ROUND_HALF_UP)
