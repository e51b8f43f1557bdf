"""
Loan admission error handling and exception classes.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional


class LoanAdmissionError(Exception):
    """Base exception for business errors raised while admitting a loan."""

    status_code: int = 400
    error: str = "Bad Request"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details
        self.timestamp = datetime.now(timezone.utc)
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Render the error body returned to API clients."""
        body: Dict[str, Any] = {"error": self.error, "message": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class InvalidAmountError(LoanAdmissionError):
    """Raised when an amount is not a positive integer."""

    def __init__(self, amount: Any):
        self.amount = amount
        super().__init__(
            f"Amount must be a positive integer, received: {amount!r}",
            {"amount": amount if isinstance(amount, (int, float)) else str(amount)},
        )


class InvalidJurisdictionError(LoanAdmissionError):
    """Raised when a jurisdiction code is outside the enumerated set."""

    def __init__(self, jurisdiction: Any):
        self.jurisdiction = jurisdiction
        super().__init__(
            f"Invalid jurisdiction: {jurisdiction!r}",
            {"jurisdiction": str(jurisdiction)},
        )


class ConcentrationLimitExceededError(LoanAdmissionError):
    """Raised when a loan would push its jurisdiction above the concentration limit."""

    status_code = 422
    error = "Unprocessable Entity"

    def __init__(self, jurisdiction: str, current_share: float, limit: float):
        self.jurisdiction = jurisdiction
        self.current_share = current_share
        self.limit = limit
        super().__init__(
            f"Concentration limit exceeded for {jurisdiction}: "
            f"{current_share * 100:.2f}% would exceed {limit * 100:g}% limit",
            {
                "jurisdiction": jurisdiction,
                "current_share": current_share,
                "limit": limit,
            },
        )
