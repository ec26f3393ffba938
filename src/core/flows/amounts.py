"""
Client-side amount checks for the amount-entry step.

The balance check is soft: it only keeps an obviously unaffordable amount from
being submitted. The server re-checks during quote and authorization.
"""

import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Optional

from src.core.flows.models import quantize_amount

_AMOUNT_PATTERN = re.compile(r"[0-9]+(?:\.[0-9]{1,2})?")


class AmountRejection(str, Enum):
    NOT_A_NUMBER = "NOT_A_NUMBER"
    BELOW_MINIMUM = "BELOW_MINIMUM"
    ABOVE_MAXIMUM = "ABOVE_MAXIMUM"
    EXCEEDS_BALANCE = "EXCEEDS_BALANCE"


@dataclass(frozen=True)
class AmountCheck:
    value: Optional[Decimal] = None
    rejection: Optional[AmountRejection] = None

    @property
    def ok(self) -> bool:
        return self.rejection is None


def parse_amount(amount_text: str) -> Optional[Decimal]:
    text = (amount_text or "").strip()
    if not _AMOUNT_PATTERN.fullmatch(text):
        return None
    try:
        return quantize_amount(Decimal(text))
    except InvalidOperation:
        # More integer digits than the decimal context can carry.
        return None


def validate_amount(
    amount_text: str,
    balance: Decimal,
    minimum: Decimal,
    maximum: Optional[Decimal] = None,
) -> AmountCheck:
    value = parse_amount(amount_text)
    if value is None:
        return AmountCheck(rejection=AmountRejection.NOT_A_NUMBER)
    if value < minimum:
        return AmountCheck(rejection=AmountRejection.BELOW_MINIMUM)
    if maximum is not None and value > maximum:
        return AmountCheck(rejection=AmountRejection.ABOVE_MAXIMUM)
    if value > balance:
        return AmountCheck(rejection=AmountRejection.EXCEEDS_BALANCE)
    return AmountCheck(value=value)
