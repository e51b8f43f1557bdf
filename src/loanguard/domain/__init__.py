"""Loan ledger domain: records, jurisdictions and the error taxonomy."""

from .errors import (
    ConcentrationLimitExceededError,
    InvalidAmountError,
    InvalidJurisdictionError,
    LoanAdmissionError,
)
from .jurisdictions import (
    JURISDICTION_CODES,
    Jurisdiction,
    is_valid_jurisdiction,
    normalize_code,
    parse_jurisdiction,
)
from .models import (
    DEFAULT_JURISDICTION_KEY,
    MAX_AMOUNT,
    ConcentrationLimitConfig,
    LoanRecord,
    PortfolioAggregate,
    validate_amount,
)

__all__ = [
    "Jurisdiction",
    "JURISDICTION_CODES",
    "is_valid_jurisdiction",
    "normalize_code",
    "parse_jurisdiction",
    "LoanRecord",
    "ConcentrationLimitConfig",
    "PortfolioAggregate",
    "DEFAULT_JURISDICTION_KEY",
    "MAX_AMOUNT",
    "validate_amount",
    "LoanAdmissionError",
    "InvalidAmountError",
    "InvalidJurisdictionError",
    "ConcentrationLimitExceededError",
]
