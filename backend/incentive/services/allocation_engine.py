"""
allocation_engine.py — Per-member split of a group incentive.

Each member is evaluated independently with the shared group basis and their
own worked hours; the calculator's hours scaling performs the split.  Shares
are ``group_amount × member_hrs / production_hrs``, so when member hours do
not add up to the entry's production hours the allocated total differs from
the nominal group amount.  That difference is reported, never corrected.
"""

from dataclasses import dataclass, field
from typing import Dict, NamedTuple, Optional, Sequence

from incentive.models.schemas import ProductionNature, ProductionType
from incentive.services.incentive_engine import IncentiveCalculator
from incentive.services.numeric import round_money
from incentive.services.quota_engine import GroupBasis

# Hours are compared at this tolerance when deciding whether they balance
_HOURS_EPSILON = 1e-6


class Member(NamedTuple):
    emp_code: str
    produced_qty: float
    worked_hrs: float


@dataclass
class AllocationSummary:
    group_target: float
    # Nominal amount at full production hours; None when members report
    # different produced quantities (no single group output to band)
    group_amount: Optional[float]
    allocated_total: float
    variance: Optional[float]
    member_hours: float
    production_hrs: float
    hours_balanced: bool
    shares: Dict[str, float] = field(default_factory=dict)

    def as_dict(self) -> dict:
        return {
            "group_target": self.group_target,
            "group_amount": self.group_amount,
            "allocated_total": self.allocated_total,
            "variance": self.variance,
            "member_hours": self.member_hours,
            "production_hrs": self.production_hrs,
            "hours_balanced": self.hours_balanced,
            "shares": dict(self.shares),
        }


def allocate_group_incentive(
    calculator: IncentiveCalculator,
    nature: Optional[ProductionNature],
    basis: GroupBasis,
    members: Sequence[Member],
) -> AllocationSummary:
    """Split the group incentive across ``members`` and summarise the result."""
    group_target = basis.target

    shares: Dict[str, float] = {}
    for member in members:
        shares[member.emp_code] = calculator.calculate(
            nature, group_target, member.produced_qty, member.worked_hrs,
            group=basis, production_type=ProductionType.GROUP,
        )

    allocated = round_money(sum(shares.values()))
    member_hours = round(sum(m.worked_hrs for m in members), 4)

    produced = {m.produced_qty for m in members}
    nominal = variance = None
    if len(produced) == 1:
        nominal = calculator.calculate(
            nature, group_target, produced.pop(), basis.production_hrs,
            group=basis, production_type=ProductionType.GROUP,
        )
        variance = round_money(allocated - nominal)

    return AllocationSummary(
        group_target=group_target,
        group_amount=nominal,
        allocated_total=allocated,
        variance=variance,
        member_hours=member_hours,
        production_hrs=basis.production_hrs,
        hours_balanced=abs(member_hours - basis.production_hrs) < _HOURS_EPSILON,
        shares=shares,
    )
