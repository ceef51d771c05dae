"""
Read-side repository over the income store.

The reporting core only ever reads managers, employees and income entries;
writes belong to the conversational front end.
"""
import logging
from decimal import Decimal
from typing import List, Optional, Protocol

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from incomebot.errors import DataAccessError
from incomebot.models.orm_models import EmployeeRow, IncomeEntryRow, ManagerRow
from incomebot.models.report_models import Employee, IncomeRecord, Manager

logger = logging.getLogger("incomebot-db")


class IncomeRepository(Protocol):
    async def list_managers(self) -> List[Manager]: ...

    async def get_manager(self, manager_id: int) -> Optional[Manager]: ...

    async def get_manager_by_delivery_address(self, address: str) -> Optional[Manager]: ...

    async def list_employees(self, manager_id: int) -> List[Employee]: ...

    async def list_income_entries(self, subject_id: int, limit: int) -> List[IncomeRecord]:
        """Most-recent-first."""
        ...


def _manager(row: ManagerRow) -> Manager:
    return Manager(id=row.id, business_name=row.business_name, delivery_address=row.telegram_user_id)


class SqlIncomeRepository:
    """IncomeRepository backed by the async SQLAlchemy session factory."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def list_managers(self) -> List[Manager]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(select(ManagerRow).order_by(ManagerRow.id))
                return [_manager(row) for row in result.scalars().all()]
        except SQLAlchemyError as e:
            logger.error(f"Failed to list managers: {e}")
            raise DataAccessError("could not list managers") from e

    async def get_manager(self, manager_id: int) -> Optional[Manager]:
        try:
            async with self._session_factory() as session:
                row = await session.get(ManagerRow, manager_id)
                return _manager(row) if row else None
        except SQLAlchemyError as e:
            raise DataAccessError(f"could not load manager {manager_id}") from e

    async def get_manager_by_delivery_address(self, address: str) -> Optional[Manager]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(ManagerRow).where(ManagerRow.telegram_user_id == address)
                )
                row = result.scalar_one_or_none()
                return _manager(row) if row else None
        except SQLAlchemyError as e:
            raise DataAccessError(f"could not look up manager for {address}") from e

    async def list_employees(self, manager_id: int) -> List[Employee]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(EmployeeRow)
                    .where(EmployeeRow.manager_id == manager_id)
                    .order_by(EmployeeRow.id)
                )
                return [
                    Employee(id=row.id, manager_id=row.manager_id, name=row.employee_name)
                    for row in result.scalars().all()
                ]
        except SQLAlchemyError as e:
            logger.error(f"Failed to list employees for manager {manager_id}: {e}")
            raise DataAccessError(f"could not list employees for manager {manager_id}") from e

    async def list_income_entries(self, subject_id: int, limit: int) -> List[IncomeRecord]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(IncomeEntryRow)
                    .where(IncomeEntryRow.employee_id == subject_id)
                    .order_by(IncomeEntryRow.date.desc(), IncomeEntryRow.id.desc())
                    .limit(limit)
                )
                return [
                    IncomeRecord(
                        subject_id=row.employee_id,
                        date=row.date,
                        amount=Decimal(row.amount),
                        notes=row.notes,
                    )
                    for row in result.scalars().all()
                ]
        except SQLAlchemyError as e:
            logger.error(f"Failed to list income entries for employee {subject_id}: {e}")
            raise DataAccessError(f"could not list income entries for employee {subject_id}") from e
