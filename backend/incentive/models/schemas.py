"""
Pydantic schemas for master data consumed by the engine and the records it emits.

Master data arrives from the upstream REST service in camelCase with Mongo
style ``_id`` keys; every input model accepts those aliases as well as its
own snake_case field names.  Numeric fields go through ``coerce_number`` so
blank or malformed values become 0 instead of failing validation.
"""
from __future__ import annotations

import enum
from datetime import date
from typing import Any, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from incentive.config import (
    PRODUCTION_TYPE_GROUP,
    PRODUCTION_TYPE_INDIVIDUAL,
    RECORD_TYPE_GENERAL_INCENTIVE,
)
from incentive.services.numeric import coerce_number


class ProductionType(str, enum.Enum):
    INDIVIDUAL = PRODUCTION_TYPE_INDIVIDUAL
    GROUP = PRODUCTION_TYPE_GROUP

    @classmethod
    def parse(cls, raw: Any) -> "ProductionType":
        """Case-insensitive; anything starting with "group" is GROUP, the rest INDIVIDUAL."""
        if isinstance(raw, cls):
            return raw
        text = str(raw or "").strip().lower()
        return cls.GROUP if text.startswith("group") else cls.INDIVIDUAL


def _ref_id(value: Any) -> Optional[str]:
    """Populated references come back as objects (``{"_id": ...}``); plain ids as strings."""
    if value is None:
        return None
    if isinstance(value, dict):
        inner = value.get("_id") or value.get("id")
        return str(inner) if inner is not None else None
    return str(value)


class _MasterData(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# ── Master data (read-only inputs) ────────────────────────────────────────────

class TargetOverride(_MasterData):
    """Flat bonus paid when produced quantity equals the computed target exactly."""
    enabled: bool = False
    value: float = 0.0

    @field_validator("value", mode="before")
    @classmethod
    def _num(cls, v):
        return coerce_number(v)


class IncentiveTier(_MasterData):
    """
    One payout band.  ``[min, max]`` is inclusive, ``max=None`` is open-ended.
    ``each``/``amount`` may be null in master data; such a band pays nothing.
    """
    min: float = 0.0
    max: Optional[float] = None
    each: Optional[float] = None
    amount: Optional[float] = None
    additional_values: bool = Field(
        False, validation_alias=AliasChoices("additionalValues", "additional_values")
    )

    @field_validator("min", mode="before")
    @classmethod
    def _min(cls, v):
        return coerce_number(v)

    @field_validator("max", "each", "amount", mode="before")
    @classmethod
    def _optional_num(cls, v):
        if v is None or (isinstance(v, str) and not v.strip()):
            return None
        return coerce_number(v)

    @property
    def pays(self) -> bool:
        """True when the band can produce an amount (rate present and unit > 0)."""
        return self.amount is not None and self.each is not None and self.each > 0

    def contains(self, quantity: float) -> bool:
        return quantity >= self.min and (self.max is None or quantity <= self.max)


class ProductionNature(_MasterData):
    id: str = Field(..., validation_alias=AliasChoices("_id", "id"))
    building_id: Optional[str] = Field(None, validation_alias=AliasChoices("building_id", "buildingId"))
    name: str = Field("", validation_alias=AliasChoices("productionNature", "name"))
    code: str = Field("", validation_alias=AliasChoices("productionCode", "code"))
    production_type: ProductionType = Field(
        ProductionType.INDIVIDUAL, validation_alias=AliasChoices("productionType", "production_type")
    )
    manpower: int = 0
    norms: float = 0.0
    incentive_tiers: List[IncentiveTier] = Field(
        default_factory=list,
        validation_alias=AliasChoices("incentives", "incentiveTiers", "incentive_tiers"),
    )
    target: Optional[TargetOverride] = None
    is_deleted: bool = Field(False, validation_alias=AliasChoices("isDeleted", "is_deleted"))

    @field_validator("id", mode="before")
    @classmethod
    def _id(cls, v):
        return str(v)

    @field_validator("building_id", mode="before")
    @classmethod
    def _building(cls, v):
        return _ref_id(v)

    @field_validator("production_type", mode="before")
    @classmethod
    def _type(cls, v):
        return ProductionType.parse(v)

    @field_validator("manpower", mode="before")
    @classmethod
    def _manpower(cls, v):
        return int(coerce_number(v))

    @field_validator("norms", mode="before")
    @classmethod
    def _norms(cls, v):
        return coerce_number(v)

    @field_validator("incentive_tiers", mode="before")
    @classmethod
    def _tiers(cls, v):
        return v or []


class ShiftConfig(_MasterData):
    id: str = Field(..., validation_alias=AliasChoices("_id", "id"))
    name: str = Field("", validation_alias=AliasChoices("shiftName", "name"))
    shift_hrs: float = Field(0.0, validation_alias=AliasChoices("shiftHrs", "shift_hrs"))
    start_time: Optional[str] = Field(None, validation_alias=AliasChoices("startTime", "start_time"))
    end_time: Optional[str] = Field(None, validation_alias=AliasChoices("endTime", "end_time"))
    is_deleted: bool = Field(False, validation_alias=AliasChoices("isDeleted", "is_deleted"))

    @field_validator("id", mode="before")
    @classmethod
    def _id(cls, v):
        return str(v)

    @field_validator("shift_hrs", mode="before")
    @classmethod
    def _hrs(cls, v):
        return coerce_number(v)


class Employee(_MasterData):
    id: str = Field(..., validation_alias=AliasChoices("_id", "id"))
    emp_code: str = Field(..., validation_alias=AliasChoices("empCode", "emp_code"))
    full_name: str = Field("", validation_alias=AliasChoices("fullName", "full_name"))

    @field_validator("id", "emp_code", mode="before")
    @classmethod
    def _str(cls, v):
        return str(v)


class AllowanceType(_MasterData):
    id: str = Field(..., validation_alias=AliasChoices("_id", "id"))
    name: str = Field("", validation_alias=AliasChoices("allowence", "allowance", "name"))
    amount: float = 0.0
    is_deleted: bool = Field(False, validation_alias=AliasChoices("isDeleted", "is_deleted"))

    @field_validator("id", mode="before")
    @classmethod
    def _id(cls, v):
        return str(v)

    @field_validator("amount", mode="before")
    @classmethod
    def _amount(cls, v):
        return coerce_number(v)


# ── Emitted records ───────────────────────────────────────────────────────────

class TimesheetRecord(BaseModel):
    """One persisted production-incentive line per worker per entry."""
    production_date: date
    building_id: str
    nature_id: str
    shift_id: str
    employee_id: str
    emp_code: str
    employee_name: str = ""
    nature_name: str = ""
    production_type: ProductionType
    produced_qty: float
    worked_hrs: float
    shift_hrs: float
    target: float
    incentive: float
    manpower: float
    norms: float


class AllowanceRecord(BaseModel):
    production_date: date
    shift_ids: List[str]
    allowance_id: str
    employee_id: str
    emp_code: str
    amount: float
    employee_name: str = ""


class GeneralIncentiveRecord(BaseModel):
    production_date: date
    building_id: str
    amount: float
    type: str = RECORD_TYPE_GENERAL_INCENTIVE


class PayrollLine(BaseModel):
    employee_code: str
    employee_name: Optional[str] = None
    building_id: Optional[str] = None
    nature_id: Optional[str] = None
    nature_name: Optional[str] = None
    production_date: date
    worked_hrs: float = 0.0
    shift_hrs: float = 0.0
    amount: float = 0.0
    type: str
