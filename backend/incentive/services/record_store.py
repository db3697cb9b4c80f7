"""
SQLAlchemy-backed store for emitted records.

Each save runs in its own session and transaction; a failed row leaves the
rows before it committed.
"""
import logging
from datetime import date
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import async_sessionmaker

from incentive.config import RECORD_TYPE_ALLOWANCE, RECORD_TYPE_INCENTIVE
from incentive.db import AsyncSessionLocal
from incentive.models.orm_models import AllowanceEntry, GeneralIncentiveEntry, TimesheetEntry
from incentive.models.schemas import (
    AllowanceRecord,
    GeneralIncentiveRecord,
    PayrollLine,
    TimesheetRecord,
)

logger = logging.getLogger("incentive-db.store")


def _dec(value: float) -> Decimal:
    return Decimal(str(value))


class RecordStore:

    def __init__(self, session_factory: Optional[async_sessionmaker] = None) -> None:
        self._sessions = session_factory or AsyncSessionLocal

    async def _persist(self, row) -> str:
        async with self._sessions() as db:
            db.add(row)
            await db.commit()
            return row.id

    async def save_timesheet(self, record: TimesheetRecord) -> str:
        row_id = await self._persist(TimesheetEntry(
            production_date=record.production_date,
            building_id=record.building_id,
            nature_id=record.nature_id,
            shift_id=record.shift_id,
            employee_id=record.employee_id,
            emp_code=record.emp_code,
            employee_name=record.employee_name,
            nature_name=record.nature_name,
            production_type=record.production_type.value,
            produced_qty=_dec(record.produced_qty),
            worked_hrs=_dec(record.worked_hrs),
            shift_hrs=_dec(record.shift_hrs),
            target=_dec(record.target),
            incentive_amount=_dec(record.incentive),
            manpower=_dec(record.manpower),
            norms=_dec(record.norms),
        ))
        logger.debug("timesheet saved", extra={"emp_code": record.emp_code})
        return row_id

    async def save_allowance(self, record: AllowanceRecord) -> str:
        return await self._persist(AllowanceEntry(
            production_date=record.production_date,
            allowance_id=record.allowance_id,
            shift_ids=list(record.shift_ids),
            employee_id=record.employee_id,
            emp_code=record.emp_code,
            employee_name=record.employee_name,
            amount=_dec(record.amount),
        ))

    async def save_general_incentive(self, record: GeneralIncentiveRecord) -> str:
        return await self._persist(GeneralIncentiveEntry(
            production_date=record.production_date,
            building_id=record.building_id,
            amount=_dec(record.amount),
            type=record.type,
        ))

    async def payroll_lines(self, from_date: date, to_date: date) -> Tuple[List[PayrollLine], List[PayrollLine]]:
        """Allowance lines and incentive lines dated within ``[from_date, to_date]``."""
        async with self._sessions() as db:
            allowances = (await db.execute(
                select(AllowanceEntry)
                .where(AllowanceEntry.production_date.between(from_date, to_date))
                .order_by(AllowanceEntry.production_date, AllowanceEntry.emp_code)
            )).scalars().all()
            timesheets = (await db.execute(
                select(TimesheetEntry)
                .where(TimesheetEntry.production_date.between(from_date, to_date))
                .order_by(TimesheetEntry.production_date, TimesheetEntry.emp_code)
            )).scalars().all()

        allowance_lines = [
            PayrollLine(
                employee_code=row.emp_code,
                employee_name=row.employee_name or None,
                production_date=row.production_date,
                amount=float(row.amount or 0),
                type=RECORD_TYPE_ALLOWANCE,
            )
            for row in allowances
        ]
        incentive_lines = [
            PayrollLine(
                employee_code=row.emp_code,
                employee_name=row.employee_name or None,
                building_id=row.building_id,
                nature_id=row.nature_id,
                nature_name=row.nature_name or None,
                production_date=row.production_date,
                worked_hrs=float(row.worked_hrs or 0),
                shift_hrs=float(row.shift_hrs or 0),
                amount=float(row.incentive_amount or 0),
                type=RECORD_TYPE_INCENTIVE,
            )
            for row in timesheets
        ]
        return allowance_lines, incentive_lines
