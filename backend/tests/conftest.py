"""
conftest.py — Shared pytest fixtures for the production incentive test suite.

Engine, session and compensation tests are pure unit tests.  Collaborators
(record store, master-data service) are replaced by the in-memory fakes
defined here; no database or network access is needed.

Import-path bootstrapping:
    The ``backend/`` directory is inserted into sys.path so that all
    ``incentive.*`` imports resolve regardless of where pytest is invoked.
"""

import sys
import os
from datetime import date

import pytest

_BACKEND_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _BACKEND_DIR not in sys.path:
    sys.path.insert(0, _BACKEND_DIR)


# ---------------------------------------------------------------------------
# Master data payloads (upstream camelCase shape)
# ---------------------------------------------------------------------------

def nature_payload(**overrides):
    """
    Individual nature on building B1: norms 80 for one head in an 8 h shift.
    Tiers (cascading): 0–10 pays 1/unit, 11+ pays 2/unit.
    """
    payload = {
        "_id": "N1",
        "building_id": {"_id": "B1", "buildingName": "Press Shop", "buildingCode": "PS"},
        "productionNature": "Panel Pressing",
        "productionType": "Individual",
        "productionCode": "PP-01",
        "manpower": 1,
        "norms": 80,
        "incentives": [
            {"min": 11, "max": None, "each": 1, "amount": 2, "additionalValues": False},
            {"min": 0, "max": 10, "each": 1, "amount": 1, "additionalValues": False},
        ],
        "isDeleted": False,
    }
    payload.update(overrides)
    return payload


def group_nature_payload(**overrides):
    """
    Group nature on building B1: 4 heads produce 400 in an 8 h shift,
    so per_head_hour = 400 / 4 / 8 = 12.5.
    Tiers (single band each): 0–100 pays 50 per 10 units, 101+ pays 100 per 10.
    """
    payload = {
        "_id": "N2",
        "building_id": "B1",
        "productionNature": "Coil Winding",
        "productionType": "Group",
        "productionCode": "CW-02",
        "manpower": 4,
        "norms": 400,
        "incentives": [
            {"min": 0, "max": 100, "each": 10, "amount": 50, "additionalValues": True},
            {"min": 101, "max": None, "each": 10, "amount": 100, "additionalValues": True},
        ],
    }
    payload.update(overrides)
    return payload


def shift_payload(**overrides):
    payload = {
        "_id": "S1",
        "shiftName": "General",
        "shiftHrs": 8,
        "startTime": "08:00",
        "endTime": "16:00",
        "isDeleted": False,
    }
    payload.update(overrides)
    return payload


def employee_payload(emp_code, name=""):
    return {"_id": f"id-{emp_code}", "empCode": emp_code, "fullName": name or f"Worker {emp_code}"}


# ---------------------------------------------------------------------------
# Parsed models
# ---------------------------------------------------------------------------

@pytest.fixture(scope="session")
def calculator():
    """IncentiveCalculator is stateless; one instance serves the whole run."""
    from incentive.services.incentive_engine import IncentiveCalculator
    return IncentiveCalculator()


@pytest.fixture
def individual_nature():
    from incentive.models.schemas import ProductionNature
    return ProductionNature.model_validate(nature_payload())


@pytest.fixture
def group_nature():
    from incentive.models.schemas import ProductionNature
    return ProductionNature.model_validate(group_nature_payload())


@pytest.fixture
def shift_8h():
    from incentive.models.schemas import ShiftConfig
    return ShiftConfig.model_validate(shift_payload())


@pytest.fixture
def employees():
    from incentive.models.schemas import Employee
    return [Employee.model_validate(employee_payload(code)) for code in ("E001", "E002", "E003")]


@pytest.fixture
def production_date():
    return date(2025, 3, 14)


# ---------------------------------------------------------------------------
# Collaborator fakes
# ---------------------------------------------------------------------------

class RecordingSink:
    """Async sink that keeps every record and fails for the given keys."""

    def __init__(self, fail_keys=()):
        self.records = []
        self.fail_keys = set(fail_keys)

    async def __call__(self, record):
        key = getattr(record, "emp_code", None) or getattr(record, "building_id", None)
        if key in self.fail_keys:
            raise RuntimeError(f"store rejected {key}")
        self.records.append(record)


@pytest.fixture
def sink_factory():
    return RecordingSink


class FakeRecordStore:
    """Stands in for RecordStore; keeps records in lists."""

    def __init__(self, fail_keys=()):
        self.timesheets = []
        self.allowances = []
        self.general = []
        self.fail_keys = set(fail_keys)
        self.payroll_error = None

    def _check(self, key):
        if key in self.fail_keys:
            raise RuntimeError(f"store rejected {key}")

    async def save_timesheet(self, record):
        self._check(record.emp_code)
        self.timesheets.append(record)
        return f"ts-{len(self.timesheets)}"

    async def save_allowance(self, record):
        self._check(record.emp_code)
        self.allowances.append(record)
        return f"al-{len(self.allowances)}"

    async def save_general_incentive(self, record):
        self._check(record.building_id)
        self.general.append(record)
        return f"gi-{len(self.general)}"

    async def payroll_lines(self, from_date, to_date):
        from incentive.models.schemas import PayrollLine
        if self.payroll_error is not None:
            raise self.payroll_error
        allowances = [
            PayrollLine(employee_code=r.emp_code, employee_name=r.employee_name,
                        production_date=r.production_date, amount=r.amount, type="allowance")
            for r in self.allowances if from_date <= r.production_date <= to_date
        ]
        incentives = [
            PayrollLine(employee_code=r.emp_code, employee_name=r.employee_name,
                        building_id=r.building_id, nature_id=r.nature_id, nature_name=r.nature_name,
                        production_date=r.production_date, worked_hrs=r.worked_hrs,
                        shift_hrs=r.shift_hrs, amount=r.incentive, type="incentive")
            for r in self.timesheets if from_date <= r.production_date <= to_date
        ]
        return allowances, incentives


class FakeMasterData:
    """In-memory master-data service with the MasterDataClient read API."""

    def __init__(self):
        from incentive.models.schemas import AllowanceType, Employee, ProductionNature, ShiftConfig
        self.natures = {
            p["_id"]: ProductionNature.model_validate(p)
            for p in (nature_payload(), group_nature_payload())
        }
        self.shifts = {"S1": ShiftConfig.model_validate(shift_payload())}
        self.employees = {
            code: Employee.model_validate(employee_payload(code))
            for code in ("E001", "E002", "E003")
        }
        self.allowances = {
            "A1": AllowanceType.model_validate({"_id": "A1", "allowence": "Night Meal", "amount": 75})
        }

    @staticmethod
    def _missing(what, key):
        from incentive.services.errors import MasterDataError
        return MasterDataError(f"{what} {key} not found", status_code=404)

    async def get_nature(self, nature_id):
        if nature_id not in self.natures:
            raise self._missing("Production nature", nature_id)
        return self.natures[nature_id]

    async def get_shift(self, shift_id):
        if shift_id not in self.shifts:
            raise self._missing("Shift", shift_id)
        return self.shifts[shift_id]

    async def get_employee(self, emp_code):
        if emp_code not in self.employees:
            raise self._missing("Employee", emp_code)
        return self.employees[emp_code]

    async def get_allowance(self, allowance_id):
        if allowance_id not in self.allowances:
            raise self._missing("Allowance", allowance_id)
        return self.allowances[allowance_id]


@pytest.fixture
def fake_store():
    return FakeRecordStore()


@pytest.fixture
def fake_master_data():
    return FakeMasterData()
