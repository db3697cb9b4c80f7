"""Payroll report route — allowances and production incentives for a date range."""
import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import SQLAlchemyError

from incentive.api.deps import get_config, get_record_store, http_error
from incentive.config import AppConfig
from incentive.services.errors import IncentiveError
from incentive.services.payroll_summary import build_payroll_report, validate_range
from incentive.services.record_store import RecordStore

router = APIRouter(prefix="/api/v1/payroll", tags=["Payroll"])
logger = logging.getLogger("incentive-api.payroll")


@router.get("")
async def payroll_report(
    from_date: Optional[date] = Query(None),
    to_date: Optional[date] = Query(None),
    page: int = Query(1, ge=1),
    config: AppConfig = Depends(get_config),
    store: RecordStore = Depends(get_record_store),
):
    try:
        validate_range(from_date, to_date)
    except IncentiveError as e:
        raise http_error(e)
    try:
        allowance_lines, incentive_lines = await store.payroll_lines(from_date, to_date)
    except SQLAlchemyError as e:
        logger.error(f"Payroll query failed: {e}")
        raise HTTPException(status_code=503, detail="Payroll records are unavailable")
    report = build_payroll_report(
        allowance_lines, incentive_lines, page=page, page_size=config.payroll_page_size,
    )
    report["from_date"] = from_date.isoformat()
    report["to_date"] = to_date.isoformat()
    return report
