"""Violation codes carried by a compliance verdict."""

from __future__ import annotations

from enum import Enum
from typing import Iterable


class ReasonCode(str, Enum):
    AGE_UNDER_MINIMUM = "AGE_UNDER_MINIMUM"
    KYC_INCOMPLETE = "KYC_INCOMPLETE"
    LOCATION_NOT_VERIFIED = "LOCATION_NOT_VERIFIED"
    RESTRICTED_ZONE = "RESTRICTED_ZONE"
    OUTSIDE_SERVICE_AREA = "OUTSIDE_SERVICE_AREA"
    DAILY_LIMIT_EXCEEDED = "DAILY_LIMIT_EXCEEDED"


REASON_MESSAGES: dict[ReasonCode, str] = {
    ReasonCode.AGE_UNDER_MINIMUM: "You must be {minimum_age} or older to order from this service.",
    ReasonCode.KYC_INCOMPLETE: "Complete identity verification (KYC) before placing an order.",
    ReasonCode.LOCATION_NOT_VERIFIED: "Verify your delivery location before placing an order.",
    ReasonCode.RESTRICTED_ZONE: "Delivery is not allowed near schools, places of worship, hospitals or government sites.",
    ReasonCode.OUTSIDE_SERVICE_AREA: "This location is outside our delivery service area.",
    ReasonCode.DAILY_LIMIT_EXCEEDED: "This order would exceed the daily limit of {daily_limit_ml}ml per person.",
}


def describe_reasons(reasons: Iterable[str], *, minimum_age: int = 21, daily_limit_ml: int = 2000) -> list[str]:
    """Map reason codes to messages a user can act on, keeping their order."""

    messages = []
    for reason in reasons:
        template = REASON_MESSAGES[ReasonCode(reason)]
        messages.append(template.format(minimum_age=minimum_age, daily_limit_ml=daily_limit_ml))
    return messages
