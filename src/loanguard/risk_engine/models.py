"""
Data models for the concentration risk engine.
"""

from typing import Optional

from pydantic import BaseModel, Field


class ConcentrationAssessment(BaseModel):
    """Outcome of checking one candidate loan against a concentration limit."""
    jurisdiction: str
    accepted: bool
    limit: float = Field(description="Limit the share was compared with")
    new_share: Optional[float] = Field(default=None, description="Jurisdiction share after the loan; None when bypassed")
    new_total: int = Field(description="Portfolio total after the loan")
    new_jurisdiction_amount: int = Field(description="Jurisdiction total after the loan")
    reason: str
