"""
Loan ledger data models.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .errors import InvalidAmountError
from .jurisdictions import is_valid_jurisdiction, normalize_code, parse_jurisdiction

DEFAULT_JURISDICTION_KEY = "DEFAULT"

# Largest amount a signed 64-bit ledger column can hold
MAX_AMOUNT = 2 ** 63 - 1


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def validate_amount(amount: Any) -> int:
    """
    Check that an amount is a positive integer in the smallest currency unit.

    Integral floats (5000.0) are accepted and narrowed to int.

    Raises:
        InvalidAmountError: If the amount is not a positive integer up to MAX_AMOUNT
    """
    if isinstance(amount, bool) or not isinstance(amount, (int, float)):
        raise InvalidAmountError(amount)
    if isinstance(amount, float):
        if amount != amount or amount in (float("inf"), float("-inf")) or not amount.is_integer():
            raise InvalidAmountError(amount)
        amount = int(amount)
    if amount <= 0 or amount > MAX_AMOUNT:
        raise InvalidAmountError(amount)
    return amount


class LoanRecord(BaseModel):
    """One loan admitted to the ledger. Immutable once built."""
    model_config = ConfigDict(frozen=True)

    id: Optional[str] = Field(default=None, description="Identifier assigned by the ledger store")
    amount: int = Field(description="Amount in cents")
    jurisdiction: str = Field(description="Canonical upper-case jurisdiction code")
    created_at: datetime = Field(default_factory=utcnow)

    @field_validator("amount", mode="before")
    @classmethod
    def check_amount(cls, value: Any) -> int:
        return validate_amount(value)

    @field_validator("jurisdiction", mode="before")
    @classmethod
    def check_jurisdiction(cls, value: Any) -> str:
        return parse_jurisdiction(value).value

    @classmethod
    def create(
        cls,
        amount: Any,
        jurisdiction: Any,
        created_at: Optional[datetime] = None,
    ) -> "LoanRecord":
        """Build an unsaved record, validating amount then jurisdiction."""
        amount = validate_amount(amount)
        code = parse_jurisdiction(jurisdiction).value
        if created_at is None:
            return cls(amount=amount, jurisdiction=code)
        return cls(amount=amount, jurisdiction=code, created_at=created_at)

    @property
    def is_persisted(self) -> bool:
        return self.id is not None

    def with_identity(self, id: str, created_at: Optional[datetime] = None) -> "LoanRecord":
        """Return the stored copy of this record."""
        update: Dict[str, Any] = {"id": id}
        if created_at is not None:
            update["created_at"] = created_at
        return self.model_copy(update=update)

    def to_projection(self) -> Dict[str, Any]:
        """Structured view rendered by the API."""
        return {
            "id": self.id,
            "amount": self.amount,
            "jurisdiction": self.jurisdiction,
            "created_at": self.created_at.isoformat(),
        }


class ConcentrationLimitConfig(BaseModel):
    """Maximum concentration share for one jurisdiction, or the default when jurisdiction is None."""
    model_config = ConfigDict(frozen=True)

    jurisdiction: Optional[str] = Field(default=None, description="Jurisdiction code, None for the default entry")
    threshold: float = Field(gt=0, le=1, description="Maximum share in (0, 1]")

    @field_validator("jurisdiction", mode="before")
    @classmethod
    def check_jurisdiction(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        code = normalize_code(value)
        if code == DEFAULT_JURISDICTION_KEY:
            return None
        if not is_valid_jurisdiction(code):
            raise ValueError(f"Unknown jurisdiction code: {value!r}")
        return code

    @property
    def is_default(self) -> bool:
        return self.jurisdiction is None

    @property
    def key(self) -> str:
        """Snapshot key; the default entry is stored under DEFAULT."""
        return self.jurisdiction or DEFAULT_JURISDICTION_KEY


class PortfolioAggregate(BaseModel):
    """Ledger totals read for one admission. Derived, never persisted."""
    timestamp: datetime = Field(default_factory=utcnow)
    total_amount: int = Field(0, ge=0, description="Sum of all loan amounts")
    amount_by_jurisdiction: Dict[str, int] = Field(default_factory=dict, description="Summed amount per jurisdiction")

    @property
    def is_consistent(self) -> bool:
        """True when the jurisdiction buckets add up to the total."""
        return sum(self.amount_by_jurisdiction.values()) == self.total_amount

    def share_of(self, jurisdiction: str) -> float:
        """Current share of the total held by a jurisdiction."""
        if self.total_amount <= 0:
            return 0.0
        return self.amount_by_jurisdiction.get(normalize_code(jurisdiction), 0) / self.total_amount
