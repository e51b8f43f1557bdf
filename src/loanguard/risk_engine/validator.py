"""
Concentration risk validation.

Pure functions: no I/O, no clocks, no shared state. The caller supplies the
ledger totals read before the candidate loan and a limit already resolved
for the loan's jurisdiction.
"""

from typing import Mapping

from loanguard.domain import ConcentrationLimitExceededError, normalize_code

from .models import ConcentrationAssessment


def assess_concentration(
    total_portfolio_amount: int,
    amount_by_jurisdiction: Mapping[str, int],
    new_loan_amount: int,
    new_loan_jurisdiction: str,
    limit: float,
) -> ConcentrationAssessment:
    """
    Decide whether a candidate loan keeps its jurisdiction within the limit.

    Args:
        total_portfolio_amount: Ledger total before the loan
        amount_by_jurisdiction: Per-jurisdiction totals before the loan
        new_loan_amount: Candidate amount in cents
        new_loan_jurisdiction: Candidate jurisdiction, any case
        limit: Maximum share in (0, 1]

    Returns:
        ConcentrationAssessment: accepted is False only when the new share
        is strictly greater than the limit
    """
    jurisdiction = normalize_code(new_loan_jurisdiction)
    new_total = total_portfolio_amount + new_loan_amount
    current_amount = amount_by_jurisdiction.get(jurisdiction, 0)
    new_jurisdiction_amount = current_amount + new_loan_amount

    if new_total <= 0:
        return ConcentrationAssessment(
            jurisdiction=jurisdiction,
            accepted=True,
            limit=limit,
            new_total=new_total,
            new_jurisdiction_amount=new_jurisdiction_amount,
            reason="non-positive portfolio total",
        )

    if total_portfolio_amount == 0:
        return ConcentrationAssessment(
            jurisdiction=jurisdiction,
            accepted=True,
            limit=limit,
            new_total=new_total,
            new_jurisdiction_amount=new_jurisdiction_amount,
            reason="first loan in an empty ledger",
        )

    # int / int is correctly rounded, so a share exactly equal to the limit compares equal
    new_share = new_jurisdiction_amount / new_total
    accepted = not new_share > limit

    return ConcentrationAssessment(
        jurisdiction=jurisdiction,
        accepted=accepted,
        limit=limit,
        new_share=new_share,
        new_total=new_total,
        new_jurisdiction_amount=new_jurisdiction_amount,
        reason="within limit" if accepted else "limit exceeded",
    )


def validate_concentration(
    total_portfolio_amount: int,
    amount_by_jurisdiction: Mapping[str, int],
    new_loan_amount: int,
    new_loan_jurisdiction: str,
    limit: float,
) -> ConcentrationAssessment:
    """
    Same as assess_concentration, but rejection raises.

    Raises:
        ConcentrationLimitExceededError: If the new share exceeds the limit
    """
    assessment = assess_concentration(
        total_portfolio_amount,
        amount_by_jurisdiction,
        new_loan_amount,
        new_loan_jurisdiction,
        limit,
    )
    if not assessment.accepted:
        raise ConcentrationLimitExceededError(assessment.jurisdiction, assessment.new_share, assessment.limit)
    return assessment
