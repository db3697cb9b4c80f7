"""
Async client for the upstream master-data REST service.

Every response wraps its payload as ``{"data": ...}``; soft-deleted rows
(``isDeleted: true``) are dropped before parsing.  The bearer token and base
URL travel in an explicit ``MasterDataContext`` built from ``AppConfig``.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from incentive.config import AppConfig
from incentive.models.schemas import AllowanceType, Employee, ProductionNature, ShiftConfig
from incentive.services.errors import MasterDataError

logger = logging.getLogger("incentive-masterdata")


@dataclass(frozen=True)
class MasterDataContext:
    base_url: str
    auth_token: str = ""
    timeout_s: float = 10.0

    @classmethod
    def from_config(cls, config: AppConfig, auth_token: Optional[str] = None) -> "MasterDataContext":
        return cls(
            base_url=config.master_data_base_url,
            auth_token=auth_token if auth_token is not None else config.master_data_token,
            timeout_s=config.master_data_timeout_s,
        )

    @property
    def headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.auth_token:
            headers["Authorization"] = f"Bearer {self.auth_token}"
        return headers


def _live(rows: Any) -> List[Dict[str, Any]]:
    if not isinstance(rows, list):
        return []
    return [r for r in rows if isinstance(r, dict) and not r.get("isDeleted")]


class MasterDataClient:
    """
    Thin httpx wrapper.  Pass ``transport`` to substitute the network layer
    (``httpx.MockTransport`` in tests).
    """

    def __init__(self, context: MasterDataContext, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        self.context = context
        self._client = httpx.AsyncClient(
            base_url=context.base_url,
            headers=context.headers,
            timeout=context.timeout_s,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "MasterDataClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        try:
            response = await self._client.get(path, params=params)
        except httpx.HTTPError as e:
            logger.error(f"Master data request {path} failed: {e}")
            raise MasterDataError(f"Unable to reach master data service ({path})") from e
        if response.status_code >= 400:
            logger.error(f"Master data {path} returned HTTP {response.status_code}")
            raise MasterDataError(
                f"Master data service returned {response.status_code} for {path}",
                status_code=response.status_code,
            )
        try:
            body = response.json()
        except ValueError as e:
            raise MasterDataError(f"Master data service sent invalid JSON for {path}") from e
        return body.get("data") if isinstance(body, dict) else body

    @staticmethod
    def _parse(model, payload: Any, what: str):
        try:
            return model.model_validate(payload)
        except ValidationError as e:
            raise MasterDataError(f"Malformed {what} in master data: {e.error_count()} error(s)") from e

    # ------------------------------------------------------------------
    # Shifts
    # ------------------------------------------------------------------

    async def list_shifts(self) -> List[ShiftConfig]:
        rows = _live(await self._get("/ProductionShift"))
        return [self._parse(ShiftConfig, r, "shift") for r in rows]

    async def get_shift(self, shift_id: str) -> ShiftConfig:
        for shift in await self.list_shifts():
            if shift.id == shift_id:
                return shift
        raise MasterDataError(f"Shift {shift_id} not found", status_code=404)

    # ------------------------------------------------------------------
    # Production natures
    # ------------------------------------------------------------------

    async def list_natures(self, building_id: Optional[str] = None) -> List[ProductionNature]:
        rows = _live(await self._get("/ProductionNature"))
        natures = [self._parse(ProductionNature, r, "production nature") for r in rows]
        if building_id is not None:
            natures = [n for n in natures if n.building_id == building_id]
        return natures

    async def get_nature(self, nature_id: str) -> ProductionNature:
        payload = await self._get(f"/ProductionNature/{nature_id}")
        if not isinstance(payload, dict) or payload.get("isDeleted"):
            raise MasterDataError(f"Production nature {nature_id} not found", status_code=404)
        return self._parse(ProductionNature, payload, "production nature")

    # ------------------------------------------------------------------
    # Employees and allowances
    # ------------------------------------------------------------------

    async def search_employees(self, emp_code: str = "", page: int = 1, limit: int = 10) -> List[Employee]:
        params: Dict[str, Any] = {"page": page, "limit": limit}
        if emp_code:
            params["empCode"] = emp_code
        rows = _live(await self._get("/employeesList", params=params))
        return [self._parse(Employee, r, "employee") for r in rows]

    async def get_employee(self, emp_code: str) -> Employee:
        for employee in await self.search_employees(emp_code=emp_code):
            if employee.emp_code == emp_code:
                return employee
        raise MasterDataError(f"Employee {emp_code} not found", status_code=404)

    async def list_allowances(self) -> List[AllowanceType]:
        rows = _live(await self._get("/getAllowences"))
        return [self._parse(AllowanceType, r, "allowance") for r in rows]

    async def get_allowance(self, allowance_id: str) -> AllowanceType:
        for allowance in await self.list_allowances():
            if allowance.id == allowance_id:
                return allowance
        raise MasterDataError(f"Allowance {allowance_id} not found", status_code=404)
