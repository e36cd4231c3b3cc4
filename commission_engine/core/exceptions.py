"""Exceptions raised by the commission engine."""

from datetime import date
from typing import Optional


class CommissionEngineError(Exception):
    """Base exception for commission engine errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class DealNotFoundError(CommissionEngineError):
    """Raised when the deal being recalculated does not exist."""

    def __init__(self, deal_id: str):
        self.deal_id = deal_id
        super().__init__(f"Deal not found: {deal_id}")


class PersonNotFoundError(CommissionEngineError):
    """Raised when a referenced person (setter, closer, payee) does not exist."""

    def __init__(self, person_id: str, role: Optional[str] = None):
        self.person_id = person_id
        self.role = role
        label = role.capitalize() if role else "Person"
        super().__init__(f"{label} not found: {person_id}")


class InvalidRuleConditionsError(CommissionEngineError):
    """Raised when a commission rule carries a malformed conditions payload."""

    def __init__(self, rule_id: str, detail: str):
        self.rule_id = rule_id
        self.detail = detail
        super().__init__(f"Invalid conditions on commission rule {rule_id}: {detail}")


class InvalidPayPlanAssignmentError(CommissionEngineError):
    """Raised when a new pay plan would start on or before the open assignment's start."""

    def __init__(self, person_id: str, effective_date: date, current_start: date):
        self.person_id = person_id
        self.effective_date = effective_date
        self.current_start = current_start
        super().__init__(
            f"Pay plan for person {person_id} cannot start {effective_date.isoformat()}; "
            f"the open assignment starts {current_start.isoformat()}"
        )
