"""
quota_engine.py — Target quantity derivation for production entries.

Two production models:
  - INDIVIDUAL: each worker's target scales linearly with their own hours
        target = (norms / shift_hrs) × worked_hrs
  - GROUP: one target for the whole entry, built from a per-head-hour rate
        per_head_hour = norms / manpower_at_selection / shift_hrs
        target        = per_head_hour × current_manpower × current_production_hrs

The per-head-hour rate depends only on the nature's configured headcount and
the reference shift length.  Callers compute it once per nature/shift/norms
selection and pass it back in; later edits to manpower or production hours
must not touch it.

Every zero or negative denominator yields 0 rather than raising, because it
comes from incomplete configuration.
"""

from dataclasses import dataclass

from incentive.config import CURRENCY_DECIMALS


@dataclass(frozen=True)
class GroupBasis:
    """Live group-entry inputs used for the group target and for allocation."""
    per_head_hour: float
    manpower: float
    production_hrs: float

    @property
    def target(self) -> float:
        return QuotaModel.group_target(self.per_head_hour, self.manpower, self.production_hrs)


class QuotaModel:
    """Stateless target formulas.  All methods are pure."""

    @staticmethod
    def per_head_hour(norms: float, manpower: float, shift_hrs: float) -> float:
        """Quantity one head is expected to produce in one hour (unrounded)."""
        if manpower <= 0 or shift_hrs <= 0:
            return 0.0
        return norms / manpower / shift_hrs

    @staticmethod
    def individual_target(norms: float, shift_hrs: float, worked_hrs: float) -> float:
        if shift_hrs <= 0:
            return 0.0
        return round((norms / shift_hrs) * worked_hrs, CURRENCY_DECIMALS)

    @staticmethod
    def group_target(per_head_hour: float, manpower: float, production_hrs: float) -> float:
        return round(per_head_hour * manpower * production_hrs, CURRENCY_DECIMALS)
