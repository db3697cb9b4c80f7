"""ORM Models for the production incentive records — SQLAlchemy 2.0"""
import uuid
from datetime import datetime, date
from decimal import Decimal
from sqlalchemy import String, Numeric, DateTime, Date, Index
from sqlalchemy.dialects.postgresql import UUID, JSONB
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func
from incentive.db import Base


def gen_uuid():
    return str(uuid.uuid4())


# ── PRODUCTION INCENTIVE (TIMESHEET) ─────────────────────────────────────────
class TimesheetEntry(Base):
    __tablename__ = "timesheet_entries"
    id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True, default=gen_uuid)
    production_date: Mapped[date] = mapped_column(Date, nullable=False)
    building_id: Mapped[str] = mapped_column(String(64), nullable=False)
    nature_id: Mapped[str] = mapped_column(String(64), nullable=False)
    shift_id: Mapped[str] = mapped_column(String(64), nullable=False)
    employee_id: Mapped[str] = mapped_column(String(64), nullable=False)
    emp_code: Mapped[str] = mapped_column(String(50), nullable=False)
    employee_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    nature_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    production_type: Mapped[str] = mapped_column(String(20), nullable=False)  # Individual | Group
    produced_qty: Mapped[Decimal] = mapped_column(Numeric(14, 4), nullable=False, default=Decimal("0"))
    worked_hrs: Mapped[Decimal] = mapped_column(Numeric(8, 2), nullable=False, default=Decimal("0"))
    shift_hrs: Mapped[Decimal] = mapped_column(Numeric(8, 2), nullable=False, default=Decimal("0"))
    target: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=Decimal("0"))
    incentive_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    manpower: Mapped[Decimal] = mapped_column(Numeric(8, 2), nullable=False, default=Decimal("0"))
    norms: Mapped[Decimal] = mapped_column(Numeric(14, 4), nullable=False, default=Decimal("0"))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("ix_timesheet_date_emp", "production_date", "emp_code"),
    )


# ── FLAT ALLOWANCES ──────────────────────────────────────────────────────────
class AllowanceEntry(Base):
    __tablename__ = "allowance_entries"
    id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True, default=gen_uuid)
    production_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    allowance_id: Mapped[str] = mapped_column(String(64), nullable=False)
    shift_ids: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    employee_id: Mapped[str] = mapped_column(String(64), nullable=False)
    emp_code: Mapped[str] = mapped_column(String(50), nullable=False)
    employee_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


# ── GENERAL (BUILDING-LEVEL) INCENTIVES ──────────────────────────────────────
class GeneralIncentiveEntry(Base):
    __tablename__ = "general_incentive_entries"
    id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True, default=gen_uuid)
    production_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    building_id: Mapped[str] = mapped_column(String(64), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    type: Mapped[str] = mapped_column(String(30), nullable=False, default="general_incentive")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
