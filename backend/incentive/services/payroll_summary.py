"""
Payroll report: allowance and incentive lines for a date range, merged,
totalled by type and paginated for the dashboard table.
"""
import math
from datetime import date
from typing import Any, Dict, Iterable, List, Optional

from incentive.config import DEFAULT_PAYROLL_PAGE_SIZE, RECORD_TYPE_ALLOWANCE, RECORD_TYPE_INCENTIVE
from incentive.models.schemas import PayrollLine
from incentive.services.errors import ValidationFailed
from incentive.services.numeric import round_money


def validate_range(from_date: Optional[date], to_date: Optional[date]) -> None:
    if from_date is None or to_date is None:
        raise ValidationFailed(["Select both from and to dates"])
    if from_date > to_date:
        raise ValidationFailed(["From date cannot be after to date"])


def build_payroll_report(
    allowance_lines: Iterable[PayrollLine],
    incentive_lines: Iterable[PayrollLine],
    page: int = 1,
    page_size: int = DEFAULT_PAYROLL_PAGE_SIZE,
) -> Dict[str, Any]:
    """
    Allowances first, then incentives, each in the order given.  Totals
    always cover every line; ``lines`` holds only the requested page.
    Pages start at 1; a page past the end returns no lines.
    """
    lines: List[PayrollLine] = list(allowance_lines) + list(incentive_lines)

    total_allowance = sum(l.amount for l in lines if l.type == RECORD_TYPE_ALLOWANCE)
    total_incentive = sum(l.amount for l in lines if l.type == RECORD_TYPE_INCENTIVE)

    page_size = max(1, page_size)
    page = max(1, page)
    total_pages = max(1, math.ceil(len(lines) / page_size))
    start = (page - 1) * page_size

    return {
        "totals": {
            "total_allowance": round_money(total_allowance),
            "total_incentive": round_money(total_incentive),
            "total_payroll": round_money(total_allowance + total_incentive),
        },
        "record_count": len(lines),
        "page": page,
        "page_size": page_size,
        "total_pages": total_pages,
        "lines": [l.model_dump(mode="json") for l in lines[start:start + page_size]],
    }
