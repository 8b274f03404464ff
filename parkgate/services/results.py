# parkgate/services/results.py
"""
Typed results returned across the admission boundary.
Services never raise for validation or store failures; they return an
AdmissionResult whose outcome the HTTP layer maps to a status code.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class Outcome(str, Enum):
    # success markers
    VALID = "valid"
    ACCEPTED = "accepted"
    RELEASED = "released"
    HISTORY = "history"
    EMPTY = "empty"
    # rejections
    MISSING_PLATE = "missing_plate"
    MISSING_DOCUMENT_ID = "missing_document_id"
    INVALID_DATE = "invalid_date"
    NOT_FOUND = "not_found"
    DUPLICATE_ENTRY = "duplicate_entry"
    CAPACITY_EXCEEDED = "capacity_exceeded"
    EXIT_IN_PROGRESS = "exit_in_progress"
    INTERNAL_ERROR = "internal_error"


SUCCESS_OUTCOMES = {Outcome.VALID, Outcome.ACCEPTED, Outcome.RELEASED, Outcome.HISTORY, Outcome.EMPTY}


@dataclass
class AdmissionResult:
    outcome: Outcome
    message: str
    plate_number: Optional[str] = None
    transaction_id: Optional[str] = None
    data: Any = None
    action: Optional[str] = None        # enter | exit (validate only)

    @property
    def ok(self) -> bool:
        return self.outcome in SUCCESS_OUTCOMES

    def to_body(self) -> dict:
        """Response body with camelCase keys; None fields are omitted."""
        body = {"message": self.message, "status": self.outcome.value}
        if self.plate_number is not None:
            body["plateNumber"] = self.plate_number
        if self.transaction_id is not None:
            body["transactionId"] = self.transaction_id
        if self.data is not None:
            body["data"] = self.data
        if self.action is not None:
            body["action"] = self.action
        return body


def internal_error(message: str = "Internal server error") -> AdmissionResult:
    return AdmissionResult(Outcome.INTERNAL_ERROR, message)
