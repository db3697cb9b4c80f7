"""
test_record_store.py — RecordStore row mapping against an in-memory session.

Tests cover:
  - save_timesheet / save_allowance / save_general_incentive: decimal columns,
    denormalised names, fractional manpower, returned row id
  - payroll_lines: ORM rows mapped to payroll lines of each type

The session factory is a fake that records added rows and answers selects by
entity; no database is required.
"""

import asyncio
from datetime import date
from decimal import Decimal

import pytest

from incentive.models.orm_models import AllowanceEntry, GeneralIncentiveEntry, TimesheetEntry
from incentive.models.schemas import (
    AllowanceRecord,
    GeneralIncentiveRecord,
    ProductionType,
    TimesheetRecord,
)
from incentive.services.record_store import RecordStore


class _Result:

    def __init__(self, rows):
        self._rows = rows

    def scalars(self):
        return self

    def all(self):
        return list(self._rows)


class FakeSession:
    """Async session stand-in sharing one row list across sessions."""

    def __init__(self, rows):
        self.rows = rows
        self._pending = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    def add(self, row):
        self._pending.append(row)

    async def commit(self):
        for row in self._pending:
            row.id = f"row-{len(self.rows) + 1}"
            self.rows.append(row)
        self._pending = []

    async def execute(self, stmt):
        entity = stmt.column_descriptions[0]["entity"]
        return _Result([r for r in self.rows if isinstance(r, entity)])


@pytest.fixture
def rows():
    return []


@pytest.fixture
def store(rows):
    return RecordStore(session_factory=lambda: FakeSession(rows))


def _timesheet(**overrides):
    fields = dict(
        production_date=date(2025, 3, 14),
        building_id="B1",
        nature_id="N2",
        shift_id="S1",
        employee_id="id-E001",
        emp_code="E001",
        employee_name="Worker E001",
        nature_name="Coil Winding",
        production_type=ProductionType.GROUP,
        produced_qty=300,
        worked_hrs=8,
        shift_hrs=8,
        target=250,
        incentive=250.0,
        manpower=2.5,
        norms=400,
    )
    fields.update(overrides)
    return TimesheetRecord(**fields)


def _allowance(**overrides):
    fields = dict(
        production_date=date(2025, 3, 14),
        shift_ids=["S1"],
        allowance_id="A1",
        employee_id="id-E003",
        emp_code="E003",
        amount=75.0,
        employee_name="Worker E003",
    )
    fields.update(overrides)
    return AllowanceRecord(**fields)


# ===========================================================================
# Class 1: Saving records
# ===========================================================================

class TestSave:

    def test_timesheet_row(self, store, rows):
        row_id = asyncio.run(store.save_timesheet(_timesheet()))
        row = rows[0]
        assert row_id == row.id == "row-1"
        assert isinstance(row, TimesheetEntry)
        assert row.manpower == Decimal("2.5")
        assert row.incentive_amount == Decimal("250.0")
        assert row.production_type == ProductionType.GROUP.value
        assert row.employee_name == "Worker E001"
        assert row.nature_name == "Coil Winding"

    def test_allowance_row(self, store, rows):
        asyncio.run(store.save_allowance(_allowance()))
        row = rows[0]
        assert isinstance(row, AllowanceEntry)
        assert row.amount == Decimal("75.0")
        assert row.shift_ids == ["S1"]
        assert row.employee_name == "Worker E003"

    def test_general_incentive_row(self, store, rows):
        record = GeneralIncentiveRecord(production_date=date(2025, 3, 14), building_id="B1", amount=120.5)
        asyncio.run(store.save_general_incentive(record))
        row = rows[0]
        assert isinstance(row, GeneralIncentiveEntry)
        assert row.amount == Decimal("120.5")
        assert row.type == "general_incentive"

    def test_each_save_gets_its_own_id(self, store):
        first = asyncio.run(store.save_allowance(_allowance()))
        second = asyncio.run(store.save_allowance(_allowance(emp_code="E001")))
        assert first != second


# ===========================================================================
# Class 2: Payroll lines
# ===========================================================================

class TestPayrollLines:

    def test_lines_by_type(self, store):
        asyncio.run(store.save_timesheet(_timesheet()))
        asyncio.run(store.save_allowance(_allowance()))
        allowances, incentives = asyncio.run(
            store.payroll_lines(date(2025, 3, 1), date(2025, 3, 31))
        )

        assert len(allowances) == 1
        assert allowances[0].type == "allowance"
        assert allowances[0].employee_code == "E003"
        assert allowances[0].employee_name == "Worker E003"
        assert allowances[0].amount == 75.0
        assert allowances[0].nature_name is None

        line = incentives[0]
        assert line.type == "incentive"
        assert line.employee_name == "Worker E001"
        assert line.nature_id == "N2"
        assert line.nature_name == "Coil Winding"
        assert line.building_id == "B1"
        assert line.amount == 250.0
        assert isinstance(line.amount, float)
        assert line.worked_hrs == 8.0

    def test_blank_names_become_none(self, store):
        asyncio.run(store.save_timesheet(_timesheet(employee_name="", nature_name="")))
        _, incentives = asyncio.run(store.payroll_lines(date(2025, 3, 1), date(2025, 3, 31)))
        assert incentives[0].employee_name is None
        assert incentives[0].nature_name is None

    def test_empty_store(self, store):
        assert asyncio.run(store.payroll_lines(date(2025, 3, 1), date(2025, 3, 31))) == ([], [])
