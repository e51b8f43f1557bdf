"""Concentration risk engine: limit resolution and the pure validator."""

from .limits import FALLBACK_DEFAULT_LIMIT, LimitProvider
from .models import ConcentrationAssessment
from .validator import assess_concentration, validate_concentration

__all__ = [
    "LimitProvider",
    "FALLBACK_DEFAULT_LIMIT",
    "ConcentrationAssessment",
    "assess_concentration",
    "validate_concentration",
]
