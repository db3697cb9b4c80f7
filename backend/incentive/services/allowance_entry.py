"""
Flat allowance entry: one allowance type, a production date and one or more
shifts, applied to a list of employees.  Each employee carries the
allowance's catalogue amount; nothing depends on output.
"""
from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Tuple

from incentive.models.schemas import AllowanceRecord, AllowanceType, Employee
from incentive.services.errors import DuplicateWorkerError, EntryStateError, ValidationFailed
from incentive.services.submission import RecordSink, SubmissionResult, submit_sequentially


@dataclass
class AllowanceLine:
    employee: Employee
    amount: float


class AllowanceEntry:

    def __init__(self) -> None:
        self.production_date: Optional[date] = None
        self.shift_ids: List[str] = []
        self.allowance: Optional[AllowanceType] = None
        self.lines: List[AllowanceLine] = []

    def set_date(self, production_date: Optional[date]) -> None:
        self.production_date = production_date

    def toggle_shift(self, shift_id: str, selected: bool = True) -> None:
        if selected and shift_id not in self.shift_ids:
            self.shift_ids.append(shift_id)
        elif not selected and shift_id in self.shift_ids:
            self.shift_ids.remove(shift_id)

    def select_allowance(self, allowance: AllowanceType) -> None:
        # Lines keep the amount they were added with
        self.allowance = allowance

    def add_employee(self, employee: Employee) -> AllowanceLine:
        if self.allowance is None:
            raise EntryStateError("Select an allowance before adding employees")
        if any(line.employee.id == employee.id for line in self.lines):
            raise DuplicateWorkerError(employee.emp_code)
        line = AllowanceLine(employee=employee, amount=self.allowance.amount)
        self.lines.append(line)
        return line

    def remove_employee(self, employee_id: str) -> None:
        self.lines = [line for line in self.lines if line.employee.id != employee_id]

    def validate(self) -> None:
        problems = []
        if self.production_date is None:
            problems.append("Production date is required")
        if not self.shift_ids:
            problems.append("Select at least one shift")
        if self.allowance is None:
            problems.append("Select an allowance")
        if not self.lines:
            problems.append("Add at least one employee")
        if problems:
            raise ValidationFailed(problems)

    def build_records(self) -> List[Tuple[str, AllowanceRecord]]:
        self.validate()
        return [
            (
                line.employee.emp_code,
                AllowanceRecord(
                    production_date=self.production_date,
                    shift_ids=list(self.shift_ids),
                    allowance_id=self.allowance.id,
                    employee_id=line.employee.id,
                    emp_code=line.employee.emp_code,
                    employee_name=line.employee.full_name,
                    amount=line.amount,
                ),
            )
            for line in self.lines
        ]

    async def submit(self, sink: RecordSink) -> SubmissionResult:
        result = await submit_sequentially("allowance", self.build_records(), sink)
        if result.all_succeeded:
            self.lines = []
            self.shift_ids = []
            self.allowance = None
        return result
