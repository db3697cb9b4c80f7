"""
Production incentive routes.

``/preview`` is a pure computation over inline master data; ``/entries``
resolves nature, shift and employees from the master-data service, runs an
entry session and persists one timesheet record per worker.
"""
import logging
from datetime import date
from typing import Any, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from incentive.api.deps import (
    get_calculator,
    get_master_data_client,
    get_record_store,
    http_error,
    submission_response,
)
from incentive.models.schemas import Employee, ProductionNature, ShiftConfig
from incentive.services.entry_session import EntrySession
from incentive.services.errors import IncentiveError
from incentive.services.incentive_engine import IncentiveCalculator
from incentive.services.master_data_client import MasterDataClient
from incentive.services.record_store import RecordStore

router = APIRouter(prefix="/api/v1/incentives", tags=["Production Incentive"])
logger = logging.getLogger("incentive-api.entries")

# Placeholder building for previews of natures that carry no building reference
_PREVIEW_BUILDING = "preview"


class EntryOverrides(BaseModel):
    """Optional edits applied after nature and shift are selected, in field order."""
    production_type: Optional[str] = None
    norms: Optional[Any] = None
    manpower: Optional[Any] = None
    production_hrs: Optional[Any] = None


class PreviewWorker(BaseModel):
    emp_code: str
    employee_id: Optional[str] = None
    full_name: str = ""
    produced_qty: Any = 0
    worked_hrs: Optional[Any] = None


class PreviewRequest(EntryOverrides):
    nature: ProductionNature
    shift: ShiftConfig
    workers: List[PreviewWorker] = Field(default_factory=list)


class EntryWorker(BaseModel):
    emp_code: str
    produced_qty: Any = 0
    worked_hrs: Optional[Any] = None


class EntrySubmitRequest(EntryOverrides):
    production_date: date
    building_id: str
    nature_id: str
    shift_id: str
    workers: List[EntryWorker] = Field(..., min_length=1)


def _apply_overrides(session: EntrySession, req: EntryOverrides) -> None:
    if req.production_type is not None:
        session.set_production_type(req.production_type)
    if req.norms is not None:
        session.set_norms(req.norms)
    if req.manpower is not None:
        session.set_manpower(req.manpower)
    if req.production_hrs is not None:
        session.set_production_hrs(req.production_hrs)


@router.post("/preview")
async def preview_entry(
    req: PreviewRequest,
    calculator: IncentiveCalculator = Depends(get_calculator),
):
    """Targets and incentives for an ad-hoc roster; nothing is persisted."""
    session = EntrySession(calculator=calculator)
    try:
        session.select_building(req.nature.building_id or _PREVIEW_BUILDING)
        session.select_nature(req.nature)
        session.select_shift(req.shift)
        _apply_overrides(session, req)
        for w in req.workers:
            employee = Employee(id=w.employee_id or w.emp_code, emp_code=w.emp_code, full_name=w.full_name)
            session.add_worker(employee, produced_qty=w.produced_qty, worked_hrs=w.worked_hrs)
    except IncentiveError as e:
        raise http_error(e)
    return session.snapshot()


@router.post("/entries")
async def submit_entry(
    req: EntrySubmitRequest,
    calculator: IncentiveCalculator = Depends(get_calculator),
    master_data: MasterDataClient = Depends(get_master_data_client),
    store: RecordStore = Depends(get_record_store),
):
    """
    Persist one production-incentive record per worker.

    Records are written one by one; individual failures are counted and
    reported (HTTP 207) without stopping the rest of the batch.
    """
    session = EntrySession(calculator=calculator)
    try:
        nature = await master_data.get_nature(req.nature_id)
        shift = await master_data.get_shift(req.shift_id)
        session.set_date(req.production_date)
        session.select_building(req.building_id)
        session.select_nature(nature)
        session.select_shift(shift)
        _apply_overrides(session, req)
        for w in req.workers:
            employee = await master_data.get_employee(w.emp_code)
            session.add_worker(employee, produced_qty=w.produced_qty, worked_hrs=w.worked_hrs)
        entry = session.snapshot()
        result = await session.submit(store.save_timesheet)
    except IncentiveError as e:
        raise http_error(e)

    logger.info(
        "production entry submitted: %d/%d records", result.succeeded, result.total,
        extra={"entry_id": session.entry_id},
    )
    return submission_response(result, entry=entry)
