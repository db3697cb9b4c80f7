"""Domain exceptions raised by the incentive services and mapped to HTTP errors by the routers."""
from typing import List, Optional


class IncentiveError(Exception):
    """Base class for all domain errors in this package."""


class EntryStateError(IncentiveError):
    """An entry-session operation was attempted in a state that does not allow it."""


class DuplicateWorkerError(IncentiveError):
    """The employee code is already on the roster."""

    def __init__(self, emp_code: str):
        super().__init__(f"Employee {emp_code} is already added to this entry")
        self.emp_code = emp_code


class ValidationFailed(IncentiveError):
    """A batch failed pre-submission validation; ``problems`` lists every issue found."""

    def __init__(self, problems: List[str]):
        super().__init__("; ".join(problems))
        self.problems = problems


class MasterDataError(IncentiveError):
    """The external master-data service could not be reached or returned an error."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
