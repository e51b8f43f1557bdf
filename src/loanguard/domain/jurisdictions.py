"""
Closed set of jurisdiction codes a loan can be attributed to.
"""

from enum import Enum
from typing import Any

from .errors import InvalidJurisdictionError


class Jurisdiction(str, Enum):
    """Brazilian federative units (UF)."""
    AC = "AC"
    AL = "AL"
    AP = "AP"
    AM = "AM"
    BA = "BA"
    CE = "CE"
    DF = "DF"
    ES = "ES"
    GO = "GO"
    MA = "MA"
    MT = "MT"
    MS = "MS"
    MG = "MG"
    PA = "PA"
    PB = "PB"
    PR = "PR"
    PE = "PE"
    PI = "PI"
    RJ = "RJ"
    RN = "RN"
    RS = "RS"
    RO = "RO"
    RR = "RR"
    SC = "SC"
    SP = "SP"
    SE = "SE"
    TO = "TO"


JURISDICTION_CODES = tuple(member.value for member in Jurisdiction)


def normalize_code(value: Any) -> str:
    """Canonical form of a code: stripped, upper case. Does not check membership."""
    if isinstance(value, Jurisdiction):
        return value.value
    return str(value).strip().upper()


def is_valid_jurisdiction(value: Any) -> bool:
    """Check membership, ignoring case."""
    if not isinstance(value, str):
        return False
    return normalize_code(value) in Jurisdiction.__members__


def parse_jurisdiction(value: Any) -> Jurisdiction:
    """
    Parse a user-supplied code into a Jurisdiction.

    Raises:
        InvalidJurisdictionError: If the code is not in the enumerated set
    """
    if not is_valid_jurisdiction(value):
        raise InvalidJurisdictionError(value)
    return Jurisdiction(normalize_code(value))
