"""Flat compensation routes: employee allowances and building-level general incentives."""
import logging
from datetime import date
from typing import Any, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from incentive.api.deps import get_master_data_client, get_record_store, http_error, submission_response
from incentive.services.allowance_entry import AllowanceEntry
from incentive.services.errors import IncentiveError
from incentive.services.general_incentive import submit_general_incentives
from incentive.services.master_data_client import MasterDataClient
from incentive.services.record_store import RecordStore

router = APIRouter(prefix="/api/v1", tags=["Allowances & General Incentives"])
logger = logging.getLogger("incentive-api.compensation")


class AllowanceBatchRequest(BaseModel):
    production_date: Optional[date] = None
    shift_ids: List[str] = Field(default_factory=list)
    allowance_id: str
    emp_codes: List[str] = Field(default_factory=list)


class BuildingAmount(BaseModel):
    building_id: str
    amount: Any = 0


class GeneralIncentiveRequest(BaseModel):
    production_date: Optional[date] = None
    buildings: List[BuildingAmount] = Field(default_factory=list)


@router.post("/allowances/entries")
async def submit_allowances(
    req: AllowanceBatchRequest,
    master_data: MasterDataClient = Depends(get_master_data_client),
    store: RecordStore = Depends(get_record_store),
):
    """One allowance record per employee at the allowance's catalogue amount."""
    entry = AllowanceEntry()
    try:
        entry.set_date(req.production_date)
        for shift_id in req.shift_ids:
            entry.toggle_shift(shift_id)
        entry.select_allowance(await master_data.get_allowance(req.allowance_id))
        for emp_code in req.emp_codes:
            entry.add_employee(await master_data.get_employee(emp_code))
        result = await entry.submit(store.save_allowance)
    except IncentiveError as e:
        raise http_error(e)
    return submission_response(result)


@router.post("/general-incentives")
async def create_general_incentives(
    req: GeneralIncentiveRequest,
    store: RecordStore = Depends(get_record_store),
):
    try:
        result = await submit_general_incentives(
            req.production_date,
            [(b.building_id, b.amount) for b in req.buildings],
            store.save_general_incentive,
        )
    except IncentiveError as e:
        raise http_error(e)
    return submission_response(result)
