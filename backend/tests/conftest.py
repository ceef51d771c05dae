"""
conftest.py — Shared pytest fixtures for the IncomeBot reporting test suite.

No database or network fixtures are defined here. The repository is an
in-memory stand-in for the income store, delivery records messages instead of
calling Telegram, and the enrichment services run without API keys so they
answer from climatology and curated fallbacks.

Import-path bootstrapping:
    The ``backend/`` directory is inserted into sys.path so that all
    ``incomebot.*`` imports resolve correctly regardless of where pytest is invoked.

Sample business data (manager 1, "Bengkel Maju", address "1001"):
    Andi (10): 2024-03-12 150, 2024-03-05 200, 2024-03-02 100, 2024-02-29 50, undated 10
    Budi (11): 2024-03-08 100
Manager 2, "Garasi Jaya", address "2002":
    Citra (20): 2024-03-04 75
"""

import os
import sys
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional, Set

import pytest

# ---------------------------------------------------------------------------
# Ensure ``backend/`` is on the import path before any incomebot imports occur.
# ---------------------------------------------------------------------------
_BACKEND_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _BACKEND_DIR not in sys.path:
    sys.path.insert(0, _BACKEND_DIR)

from incomebot.errors import DataAccessError, DeliveryError  # noqa: E402
from incomebot.models.report_models import Employee, IncomeRecord, Manager  # noqa: E402


# ---------------------------------------------------------------------------
# Collaborator doubles
# ---------------------------------------------------------------------------

class InMemoryIncomeRepository:
    """IncomeRepository over plain lists; ``fail_*`` switches simulate read failures."""

    def __init__(self):
        self.managers: List[Manager] = []
        self.employees: List[Employee] = []
        self.entries: Dict[int, List[IncomeRecord]] = {}
        self.fail_list_managers = False
        self.fail_employees_for: Set[int] = set()

    def add_manager(self, manager: Manager) -> Manager:
        self.managers.append(manager)
        return manager

    def add_employee(self, employee: Employee, *records) -> Employee:
        self.employees.append(employee)
        self.entries[employee.id] = [
            IncomeRecord(subject_id=employee.id, date=d, amount=Decimal(str(a))) for d, a in records
        ]
        return employee

    async def list_managers(self) -> List[Manager]:
        if self.fail_list_managers:
            raise DataAccessError("managers table unavailable")
        return list(self.managers)

    async def get_manager(self, manager_id: int) -> Optional[Manager]:
        return next((m for m in self.managers if m.id == manager_id), None)

    async def get_manager_by_delivery_address(self, address: str) -> Optional[Manager]:
        return next((m for m in self.managers if m.delivery_address == address), None)

    async def list_employees(self, manager_id: int) -> List[Employee]:
        if manager_id in self.fail_employees_for:
            raise DataAccessError(f"employees for manager {manager_id} unavailable")
        return [e for e in self.employees if e.manager_id == manager_id]

    async def list_income_entries(self, subject_id: int, limit: int) -> List[IncomeRecord]:
        records = self.entries.get(subject_id, [])
        # Most recent first; undated entries sort last
        ordered = sorted(records, key=lambda r: r.date or date.min, reverse=True)
        return ordered[:limit]


class FakeDelivery:
    """Records every message; addresses in ``failing`` raise DeliveryError."""

    def __init__(self):
        self.sent: List[tuple] = []
        self.failing: Set[str] = set()

    async def send(self, address: str, text: str) -> None:
        if address in self.failing:
            raise DeliveryError(address, "chat not found")
        self.sent.append((address, text))

    def addresses(self) -> List[str]:
        return [address for address, _ in self.sent]


# ---------------------------------------------------------------------------
# Data fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def repository():
    repo = InMemoryIncomeRepository()
    repo.add_manager(Manager(id=1, business_name="Bengkel Maju", delivery_address="1001"))
    repo.add_manager(Manager(id=2, business_name="Garasi Jaya", delivery_address="2002"))
    repo.add_employee(
        Employee(id=10, manager_id=1, name="Andi"),
        (date(2024, 3, 12), 150),
        (date(2024, 3, 5), 200),
        (date(2024, 3, 2), 100),
        (date(2024, 2, 29), 50),
        (None, 10),
    )
    repo.add_employee(Employee(id=11, manager_id=1, name="Budi"), (date(2024, 3, 8), 100))
    repo.add_employee(Employee(id=20, manager_id=2, name="Citra"), (date(2024, 3, 4), 75))
    return repo


@pytest.fixture
def delivery():
    return FakeDelivery()


# ---------------------------------------------------------------------------
# Service fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def reporting_service(repository):
    from incomebot.services.reporting_service import ReportingService
    return ReportingService(repository)


@pytest.fixture
def weather_service():
    """WeatherService without an API key — answers from Jakarta climatology."""
    from incomebot.services.weather_service import WeatherService
    return WeatherService()


@pytest.fixture
def market_service():
    """MarketResearchService without search credentials — curated fallbacks only."""
    from incomebot.services.market_research import MarketResearchService
    return MarketResearchService()


@pytest.fixture
def composer(reporting_service, weather_service, market_service):
    from incomebot.services.report_composer import ReportComposer
    return ReportComposer(reporting_service, weather_service, market_service)


@pytest.fixture
def tracker():
    from incomebot.services.perf_monitor import DispatchTracker
    return DispatchTracker()


@pytest.fixture
def dispatcher(repository, composer, delivery, tracker):
    from incomebot.services.report_dispatcher import ReportDispatcher
    return ReportDispatcher(repository, composer, delivery, tracker)


@pytest.fixture
def scheduler(dispatcher):
    from incomebot.services.scheduler import ReportScheduler
    return ReportScheduler(dispatcher)
