"""ORM Models for the income store — SQLAlchemy 2.0 (read side only)."""
from datetime import datetime, date
from decimal import Decimal
from typing import Optional
from sqlalchemy import (
    String, Text, Integer, Numeric, DateTime, Date,
    ForeignKey, UniqueConstraint, Index
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func
from incomebot.db import Base


# ── MANAGERS (one per registered business) ────────────────────────────────────
class ManagerRow(Base):
    __tablename__ = "managers"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    telegram_user_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    business_name: Mapped[str] = mapped_column(String(255), default="My Garage Business")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    employees: Mapped[list["EmployeeRow"]] = relationship("EmployeeRow", back_populates="manager")


# ── EMPLOYEES ─────────────────────────────────────────────────────────────────
class EmployeeRow(Base):
    __tablename__ = "employees"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    manager_id: Mapped[int] = mapped_column(Integer, ForeignKey("managers.id"), nullable=False)
    employee_name: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    manager: Mapped["ManagerRow"] = relationship("ManagerRow", back_populates="employees")


# ── INCOME ENTRIES ────────────────────────────────────────────────────────────
class IncomeEntryRow(Base):
    __tablename__ = "income_entries"
    __table_args__ = (
        UniqueConstraint("employee_id", "date", name="uq_income_employee_date"),
        Index("ix_income_employee_date", "employee_id", "date"),
    )
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    employee_id: Mapped[int] = mapped_column(Integer, ForeignKey("employees.id"), nullable=False)
    date: Mapped[Optional[date]] = mapped_column(Date, server_default=func.current_date())
    amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
