"""FastAPI dependency injection — configuration and collaborators."""
from functools import lru_cache
from typing import AsyncGenerator, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse

from incentive.config import AppConfig, load_config
from incentive.services.errors import (
    DuplicateWorkerError,
    EntryStateError,
    IncentiveError,
    MasterDataError,
    ValidationFailed,
)
from incentive.services.incentive_engine import IncentiveCalculator
from incentive.services.master_data_client import MasterDataClient, MasterDataContext
from incentive.services.record_store import RecordStore
from incentive.services.submission import SubmissionResult


@lru_cache()
def get_config() -> AppConfig:
    return load_config()


@lru_cache()
def get_record_store() -> RecordStore:
    return RecordStore()


@lru_cache()
def get_calculator() -> IncentiveCalculator:
    return IncentiveCalculator()


def _bearer(request: Request) -> Optional[str]:
    header = request.headers.get("Authorization", "")
    if header.lower().startswith("bearer "):
        return header[7:].strip() or None
    return None


async def get_master_data_client(
    request: Request,
    config: AppConfig = Depends(get_config),
) -> AsyncGenerator[MasterDataClient, None]:
    """
    Client scoped to one request.  The caller's bearer token is forwarded to
    the master-data service; without one the configured service token is used.
    """
    client = MasterDataClient(MasterDataContext.from_config(config, _bearer(request)))
    try:
        yield client
    finally:
        await client.aclose()


def http_error(err: IncentiveError) -> HTTPException:
    """Translate a domain error into the HTTP error the routers raise."""
    if isinstance(err, ValidationFailed):
        return HTTPException(status_code=422, detail=err.problems)
    if isinstance(err, (DuplicateWorkerError, EntryStateError)):
        return HTTPException(status_code=422, detail=str(err))
    if isinstance(err, MasterDataError):
        if err.status_code == 404:
            return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(err))
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(err))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(err))


def submission_response(result: SubmissionResult, **body) -> JSONResponse:
    """201 when every record landed, 207 when some did, 502 when none did."""
    if result.all_succeeded:
        code = status.HTTP_201_CREATED
    elif result.succeeded:
        code = status.HTTP_207_MULTI_STATUS
    else:
        code = status.HTTP_502_BAD_GATEWAY
    return JSONResponse(status_code=code, content={"result": result.as_dict(), **body})
