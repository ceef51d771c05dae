"""Value objects returned by the reporting core. Owned by the caller."""
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from enum import Enum
from typing import List, Optional


class TrendDirection(str, Enum):
    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"


class ScheduleKind(str, Enum):
    TEST = "test"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


@dataclass
class Manager:
    id: int
    business_name: str
    delivery_address: str   # Telegram chat id of the business owner


@dataclass
class Employee:
    id: int
    manager_id: int
    name: str


@dataclass
class IncomeRecord:
    subject_id: int
    date: Optional[date]
    amount: Decimal
    notes: Optional[str] = None


@dataclass
class TimeFrame:
    start_date: date
    end_date: date          # inclusive
    label: str


@dataclass
class EmployeeReport:
    employee: Employee
    total_income: Decimal
    entry_count: int
    average_daily: Decimal
    entries: List[IncomeRecord] = field(default_factory=list)

    @property
    def subject_id(self) -> int:
        return self.employee.id


@dataclass
class PeriodReport:
    label: str
    start_date: date
    end_date: date
    total_income: Decimal
    total_entries: int
    average_daily: Decimal
    employee_reports: List[EmployeeReport]
    top_performers: List[EmployeeReport]
    insights: List[str]


@dataclass
class TrendPoint:
    label: str
    total_income: Decimal
    entry_count: int
    average_daily: Decimal


@dataclass
class TrendAnalysis:
    points: List[TrendPoint]
    direction: TrendDirection
    change_percent: Decimal
    insights: List[str]


@dataclass
class ReportSchedule:
    kind: ScheduleKind
    tick_interval: timedelta
    enabled: bool
    description: str
