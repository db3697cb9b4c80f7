"""
incentive_engine.py — Converts (target, produced quantity) into a signed incentive.

Evaluation order:
  1. No nature or a zero target                      → 0
  2. Individual mode, target override enabled and
     produced == target exactly                      → override value (flat bonus)
  3. Comparison target: the given target (individual) or
     per_head_hour × manpower × production_hrs recomputed from the live
     group basis (group)
  4. extra = produced − comparison; sign and magnitude
  5. Shortfall → always the lowest band, linear:  |extra| / each × amount
     Surplus   → the band containing |extra| (none → 0)
       additionalValues=True  → linear on that band only
       additionalValues=False → cascading accrual over every band up to it
  6. Group mode: scale by worked_hrs / production_hrs
  7. Reapply sign, round to currency precision

In group mode the target passed in is only used for the zero check in step 1;
the amount is always banded against the freshly recomputed comparison target.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from incentive.models.schemas import IncentiveTier, ProductionNature, ProductionType
from incentive.services.numeric import round_money
from incentive.services.quota_engine import GroupBasis
from incentive.services.tier_schedule import TierSchedule

logger = logging.getLogger("incentive-engine")


@dataclass
class BandContribution:
    tier_min: float
    tier_max: Optional[float]
    units: float
    amount: float


@dataclass
class IncentiveResult:
    """Full breakdown of one evaluation; ``incentive`` is the final rounded value."""
    incentive: float
    rule: str                       # which branch produced the value
    comparison_target: float = 0.0
    extra: float = 0.0
    sign: int = 1
    banded_amount: float = 0.0      # before group scaling and sign
    bands: List[BandContribution] = field(default_factory=list)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "incentive": self.incentive,
            "rule": self.rule,
            "comparison_target": round_money(self.comparison_target),
            "extra": round_money(self.extra),
            "sign": self.sign,
            "banded_amount": round_money(self.banded_amount),
            "bands": [
                {
                    "min": b.tier_min,
                    "max": b.tier_max,
                    "units": round_money(b.units),
                    "amount": round_money(b.amount),
                }
                for b in self.bands
            ],
        }


def _linear(tier: IncentiveTier, units: float) -> float:
    return (units / tier.each) * tier.amount


class IncentiveCalculator:
    """Pure, stateless incentive evaluation.  Safe to share across sessions."""

    def calculate(
        self,
        nature: Optional[ProductionNature],
        target: float,
        produced_qty: float,
        worked_hrs: float,
        group: Optional[GroupBasis] = None,
        production_type: Optional[ProductionType] = None,
    ) -> float:
        """Signed incentive rounded to currency precision."""
        return self.evaluate(
            nature, target, produced_qty, worked_hrs,
            group=group, production_type=production_type,
        ).incentive

    def evaluate(
        self,
        nature: Optional[ProductionNature],
        target: float,
        produced_qty: float,
        worked_hrs: float,
        group: Optional[GroupBasis] = None,
        production_type: Optional[ProductionType] = None,
    ) -> IncentiveResult:
        """
        Same as ``calculate`` but returns the breakdown.

        ``production_type`` defaults to the nature's own; the entry session
        passes it explicitly because the type can be switched per entry.
        """
        if nature is None or target == 0:
            return IncentiveResult(incentive=0.0, rule="no_target")

        mode = production_type or nature.production_type
        is_group = mode == ProductionType.GROUP

        override = nature.target
        if not is_group and override is not None and override.enabled and target == produced_qty:
            return IncentiveResult(
                incentive=round_money(override.value),
                rule="exact_target_bonus",
                comparison_target=target,
            )

        if is_group:
            basis = group or GroupBasis(0.0, 0.0, 0.0)
            comparison = basis.per_head_hour * basis.manpower * basis.production_hrs
        else:
            basis = None
            comparison = target

        extra = produced_qty - comparison
        sign = 1 if extra >= 0 else -1
        magnitude = abs(extra)
        result = IncentiveResult(
            incentive=0.0, rule="on_target",
            comparison_target=comparison, extra=extra, sign=sign,
        )
        if magnitude == 0:
            return result

        schedule = TierSchedule(nature.incentive_tiers)
        if sign < 0:
            tier = schedule.first()
            if tier is None or not tier.pays:
                result.rule = "no_tier"
                return result
            amount = _linear(tier, magnitude)
            result.rule = "shortfall"
            result.bands = [BandContribution(tier.min, tier.max, magnitude, amount)]
        else:
            tier = schedule.match(magnitude)
            if tier is None:
                result.rule = "no_tier"
                return result
            if tier.additional_values:
                if not tier.pays:
                    result.rule = "no_tier"
                    return result
                amount = _linear(tier, magnitude)
                result.rule = "surplus_single_band"
                result.bands = [BandContribution(tier.min, tier.max, magnitude, amount)]
            else:
                amount, result.bands = self._cascade(schedule, tier, magnitude)
                result.rule = "surplus_cascade"

        result.banded_amount = amount

        if is_group:
            if basis.production_hrs <= 0:
                amount = 0.0
            else:
                amount = amount * (worked_hrs / basis.production_hrs)

        result.incentive = round_money(amount * sign)
        return result

    @staticmethod
    def _cascade(schedule: TierSchedule, matched: IncentiveTier, magnitude: float):
        """
        Accrue every band up to ``matched``.  A bounded band covers the units
        ``(max(min - 1, 0), max]``; the open band takes whatever is left.
        """
        total = 0.0
        allocated = 0.0
        bands: List[BandContribution] = []
        for tier in schedule.bands_through(matched):
            if allocated >= magnitude:
                break
            if not tier.pays:
                continue
            if tier.max is None:
                units = magnitude - allocated
            else:
                units = min(magnitude, tier.max) - max(tier.min - 1, 0)
            units = min(units, magnitude - allocated)
            if units <= 0:
                continue
            contribution = _linear(tier, units)
            bands.append(BandContribution(tier.min, tier.max, units, contribution))
            total += contribution
            allocated += units
        if allocated < magnitude:
            logger.debug("cascade left %.4f units unallocated (band gap or unpaid band)", magnitude - allocated)
        return total, bands
