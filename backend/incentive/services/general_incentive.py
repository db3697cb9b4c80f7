"""General incentive: a flat amount per building for one production date."""
from datetime import date
from typing import Dict, List, Optional, Sequence, Tuple

from incentive.models.schemas import GeneralIncentiveRecord
from incentive.services.errors import ValidationFailed
from incentive.services.numeric import coerce_number, round_money
from incentive.services.submission import RecordSink, SubmissionResult, submit_sequentially


def build_general_incentives(
    production_date: Optional[date],
    amounts: Sequence[Tuple[str, object]],
) -> List[Tuple[str, GeneralIncentiveRecord]]:
    """
    Validate ``(building_id, amount)`` pairs and turn them into records.

    Raises ``ValidationFailed`` listing every problem: missing date, no
    buildings, repeated buildings, non-positive amounts.
    """
    problems: List[str] = []
    if not amounts:
        problems.append("Select at least one building")
    if production_date is None:
        problems.append("Production date is required")

    seen: Dict[str, float] = {}
    for building_id, raw_amount in amounts:
        amount = coerce_number(raw_amount)
        if building_id in seen:
            problems.append(f"Building {building_id} is listed more than once")
            continue
        if amount <= 0:
            problems.append(f"Enter a valid amount for building {building_id}")
        seen[building_id] = amount

    if problems:
        raise ValidationFailed(problems)

    return [
        (building_id, GeneralIncentiveRecord(
            production_date=production_date,
            building_id=building_id,
            amount=round_money(amount),
        ))
        for building_id, amount in seen.items()
    ]


async def submit_general_incentives(
    production_date: Optional[date],
    amounts: Sequence[Tuple[str, object]],
    sink: RecordSink,
) -> SubmissionResult:
    records = build_general_incentives(production_date, amounts)
    return await submit_sequentially("general_incentive", records, sink)
