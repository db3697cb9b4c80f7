"""
entry_session.py — Production incentive entry: context, roster and recompute paths.

States (derived from what has been selected):
    IDLE → BUILDING_SELECTED → NATURE_SELECTED → SHIFT_SELECTED → READY → SUBMITTING → IDLE

    - select_building   clears nature, type, norms, manpower, target and roster
    - select_nature     loads type/manpower/norms, resets roster, recomputes
    - select_shift      sets shift hours, defaults production hours to them
    - set_production_type resets the roster when the type actually changes
    - manpower / production hours / norms edits recompute every worker
    - a worker's own qty/hours edit recomputes that worker (individual) or
      everyone (group)
    - submit            one record per worker, sequential; full success
                        resets to IDLE, anything else keeps the roster

Every derived value is recomputed synchronously inside the mutating call, so
the roster never exposes a target or incentive that is stale with respect to
the current inputs.
"""

import enum
import uuid
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from incentive.models.schemas import (
    Employee,
    ProductionNature,
    ProductionType,
    ShiftConfig,
    TimesheetRecord,
)
from incentive.services.allocation_engine import AllocationSummary, Member, allocate_group_incentive
from incentive.services.errors import DuplicateWorkerError, EntryStateError, ValidationFailed
from incentive.services.incentive_engine import IncentiveCalculator
from incentive.services.logging_config import bind_logger
from incentive.services.numeric import coerce_number
from incentive.services.quota_engine import GroupBasis, QuotaModel
from incentive.services.submission import RecordSink, SubmissionResult, submit_sequentially


class EntryState(str, enum.Enum):
    IDLE = "idle"
    BUILDING_SELECTED = "building_selected"
    NATURE_SELECTED = "nature_selected"
    SHIFT_SELECTED = "shift_selected"
    READY = "ready"
    SUBMITTING = "submitting"


@dataclass
class WorkerEntry:
    employee: Employee
    produced_qty: float = 0.0
    worked_hrs: float = 0.0
    target: float = 0.0
    incentive: float = 0.0

    @property
    def emp_code(self) -> str:
        return self.employee.emp_code

    def as_dict(self) -> Dict[str, Any]:
        return {
            "employee_id": self.employee.id,
            "emp_code": self.employee.emp_code,
            "full_name": self.employee.full_name,
            "produced_qty": self.produced_qty,
            "worked_hrs": self.worked_hrs,
            "target": self.target,
            "incentive": self.incentive,
        }


class EntrySession:
    """
    One production-incentive entry being filled in.  Single mutator, no
    locking; the only suspension point is ``submit``.
    """

    def __init__(self, calculator: Optional[IncentiveCalculator] = None, entry_id: Optional[str] = None) -> None:
        self.entry_id = entry_id or uuid.uuid4().hex[:12]
        self._calc = calculator or IncentiveCalculator()
        self._log = bind_logger("incentive-session", entry_id=self.entry_id)
        self._submitting = False
        self.production_date: Optional[date] = None
        self.shift: Optional[ShiftConfig] = None
        self.shift_hrs: float = 0.0
        self.production_hrs: float = 0.0
        self._clear_building()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    def _clear_building(self) -> None:
        self.building_id: Optional[str] = None
        self._clear_nature()

    def _clear_nature(self) -> None:
        self.nature: Optional[ProductionNature] = None
        self.production_type: Optional[ProductionType] = None
        self.norms: float = 0.0
        self.manpower: float = 0.0
        self.per_head_hour: float = 0.0
        self.target: float = 0.0
        self.roster: List[WorkerEntry] = []

    @property
    def state(self) -> EntryState:
        if self._submitting:
            return EntryState.SUBMITTING
        if self.building_id is None:
            return EntryState.IDLE
        if self.nature is None:
            return EntryState.BUILDING_SELECTED
        if self.shift is None:
            return EntryState.NATURE_SELECTED
        if not self.roster:
            return EntryState.SHIFT_SELECTED
        return EntryState.READY

    @property
    def is_group(self) -> bool:
        return self.production_type == ProductionType.GROUP

    @property
    def group_basis(self) -> GroupBasis:
        return GroupBasis(self.per_head_hour, self.manpower, self.production_hrs)

    def _guard(self) -> None:
        if self._submitting:
            raise EntryStateError("Entry is being submitted; wait for the batch to finish")

    def _find(self, emp_code: str) -> WorkerEntry:
        for worker in self.roster:
            if worker.emp_code == emp_code:
                return worker
        raise EntryStateError(f"Employee {emp_code} is not on this entry")

    # ------------------------------------------------------------------
    # Context transitions
    # ------------------------------------------------------------------

    def set_date(self, production_date: Optional[date]) -> None:
        self._guard()
        self.production_date = production_date

    def select_building(self, building_id: str) -> None:
        self._guard()
        self._clear_building()
        self.building_id = str(building_id)
        self._log.info("building selected", extra={"building_id": self.building_id})

    def select_nature(self, nature: ProductionNature) -> None:
        self._guard()
        if self.building_id is None:
            raise EntryStateError("Select a production building before choosing a nature")
        if nature.building_id is not None and nature.building_id != self.building_id:
            raise EntryStateError(
                f"Nature {nature.id} belongs to building {nature.building_id}, not {self.building_id}"
            )
        self._clear_nature()
        self.nature = nature
        self.production_type = nature.production_type
        self.manpower = float(nature.manpower)
        self.norms = nature.norms
        self._refresh_per_head_hour()
        self._recompute_all()
        self._log.info("nature selected", extra={"nature_id": nature.id})

    def select_shift(self, shift: ShiftConfig) -> None:
        self._guard()
        self.shift = shift
        self.shift_hrs = shift.shift_hrs
        self.production_hrs = shift.shift_hrs
        self._refresh_per_head_hour()
        self._recompute_all()

    def set_production_type(self, production_type: Any) -> None:
        self._guard()
        new_type = ProductionType.parse(production_type)
        if new_type == self.production_type:
            return
        self.production_type = new_type
        self.roster = []
        self._recompute_all()

    def set_manpower(self, value: Any) -> None:
        self._guard()
        self.manpower = coerce_number(value)
        self._recompute_all()

    def set_production_hrs(self, value: Any) -> None:
        self._guard()
        self.production_hrs = coerce_number(value)
        self._recompute_all()

    def set_norms(self, value: Any) -> None:
        self._guard()
        self.norms = coerce_number(value)
        self._refresh_per_head_hour()
        self._recompute_all()

    # ------------------------------------------------------------------
    # Roster
    # ------------------------------------------------------------------

    def add_worker(self, employee: Employee, produced_qty: Any = 0, worked_hrs: Any = None) -> WorkerEntry:
        self._guard()
        if self.nature is None or self.shift is None:
            raise EntryStateError("Select a production nature and shift before adding workers")
        if any(w.emp_code == employee.emp_code for w in self.roster):
            raise DuplicateWorkerError(employee.emp_code)
        worker = WorkerEntry(
            employee=employee,
            produced_qty=coerce_number(produced_qty),
            worked_hrs=self.production_hrs if worked_hrs is None else coerce_number(worked_hrs),
        )
        self._recompute_worker(worker)
        self.roster.append(worker)
        self._log.debug("worker added", extra={"emp_code": employee.emp_code})
        return worker

    def remove_worker(self, emp_code: str) -> None:
        self._guard()
        self.roster.remove(self._find(emp_code))

    def update_worker(self, emp_code: str, produced_qty: Any = None, worked_hrs: Any = None) -> WorkerEntry:
        self._guard()
        worker = self._find(emp_code)
        if produced_qty is not None:
            worker.produced_qty = coerce_number(produced_qty)
        if worked_hrs is not None:
            worker.worked_hrs = coerce_number(worked_hrs)
        if self.is_group:
            self._recompute_all()
        else:
            self._recompute_worker(worker)
        return worker

    # ------------------------------------------------------------------
    # Recompute paths
    # ------------------------------------------------------------------

    def _refresh_per_head_hour(self) -> None:
        if self.nature is None:
            self.per_head_hour = 0.0
            return
        # Headcount as configured on the nature, not the live manpower field
        self.per_head_hour = QuotaModel.per_head_hour(self.norms, self.nature.manpower, self.shift_hrs)

    def _recompute_all(self) -> None:
        if self.nature is None:
            self.target = 0.0
        elif self.is_group:
            self.target = self.group_basis.target
        else:
            self.target = QuotaModel.individual_target(self.norms, self.shift_hrs, self.production_hrs)
        for worker in self.roster:
            self._recompute_worker(worker)

    def _recompute_worker(self, worker: WorkerEntry) -> None:
        if self.nature is None:
            worker.target = 0.0
            worker.incentive = 0.0
            return
        if self.is_group:
            worker.target = self.group_basis.target
            worker.incentive = self._calc.calculate(
                self.nature, worker.target, worker.produced_qty, worker.worked_hrs,
                group=self.group_basis, production_type=ProductionType.GROUP,
            )
        else:
            worker.target = QuotaModel.individual_target(self.norms, self.shift_hrs, worker.worked_hrs)
            worker.incentive = self._calc.calculate(
                self.nature, worker.target, worker.produced_qty, worker.worked_hrs,
                production_type=ProductionType.INDIVIDUAL,
            )

    def allocation_summary(self) -> Optional[AllocationSummary]:
        """Group split report; None outside group mode or with an empty roster."""
        if not self.is_group or not self.roster:
            return None
        members = [Member(w.emp_code, w.produced_qty, w.worked_hrs) for w in self.roster]
        return allocate_group_incentive(self._calc, self.nature, self.group_basis, members)

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    def build_records(self) -> List[Tuple[str, TimesheetRecord]]:
        if self.state != EntryState.READY:
            raise EntryStateError(f"Entry is not ready to submit (state: {self.state.value})")
        if self.production_date is None:
            raise ValidationFailed(["Production date is required"])
        return [
            (
                w.emp_code,
                TimesheetRecord(
                    production_date=self.production_date,
                    building_id=self.building_id,
                    nature_id=self.nature.id,
                    shift_id=self.shift.id,
                    employee_id=w.employee.id,
                    emp_code=w.emp_code,
                    employee_name=w.employee.full_name,
                    nature_name=self.nature.name,
                    production_type=self.production_type,
                    produced_qty=w.produced_qty,
                    worked_hrs=w.worked_hrs,
                    shift_hrs=self.shift_hrs,
                    target=w.target,
                    incentive=w.incentive,
                    manpower=self.manpower,
                    norms=self.norms,
                ),
            )
            for w in self.roster
        ]

    async def submit(self, sink: RecordSink) -> SubmissionResult:
        """
        Send every worker's record to ``sink``.  Full success resets the
        session to IDLE; any failure leaves context and roster untouched so
        the user can retry.
        """
        records = self.build_records()
        self._submitting = True
        try:
            result = await submit_sequentially("timesheet", records, sink)
        finally:
            self._submitting = False

        if result.all_succeeded:
            self.reset()
        else:
            self._log.warning(
                "entry kept for retry: %d of %d records failed", result.failed, result.total,
            )
        return result

    def reset(self) -> None:
        self._guard()
        self.production_date = None
        self.shift = None
        self.shift_hrs = 0.0
        self.production_hrs = 0.0
        self._clear_building()

    def snapshot(self) -> Dict[str, Any]:
        summary = self.allocation_summary()
        return {
            "entry_id": self.entry_id,
            "state": self.state.value,
            "production_date": self.production_date.isoformat() if self.production_date else None,
            "building_id": self.building_id,
            "nature_id": self.nature.id if self.nature else None,
            "shift_id": self.shift.id if self.shift else None,
            "production_type": self.production_type.value if self.production_type else None,
            "manpower": self.manpower,
            "norms": self.norms,
            "shift_hrs": self.shift_hrs,
            "production_hrs": self.production_hrs,
            "per_head_hour": self.per_head_hour,
            "target": self.target,
            "workers": [w.as_dict() for w in self.roster],
            "allocation": summary.as_dict() if summary else None,
        }
