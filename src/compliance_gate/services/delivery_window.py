"""Delivery-hour restrictions attached to delivery zones."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from ..config import settings
from ..errors import InvalidDate

_CUTOFF_PATTERN = re.compile(r"^(?:cutoff_|no_delivery_after_)(\d{1,2}):(\d{2})$")


@dataclass(frozen=True, slots=True)
class DeliveryWindow:
    open_now: bool
    start_hour: int
    end_hour: int
    next_window: Optional[str] = None


def cutoff_hour(restrictions: Iterable[str]) -> Optional[int]:
    """Earliest cutoff hour named by the restriction codes, if any."""

    hours = []
    for code in restrictions:
        match = _CUTOFF_PATTERN.match(code.strip())
        if match:
            hour = int(match.group(1))
            if 0 < hour <= 24:
                hours.append(hour)
    return min(hours) if hours else None


def check_delivery_window(
    restrictions: Iterable[str],
    at: datetime,
    *,
    start_hour: Optional[int] = None,
    end_hour: Optional[int] = None,
) -> DeliveryWindow:
    if at.tzinfo is None:
        raise InvalidDate("Delivery window checks need a timezone-aware datetime")
    start = settings.delivery_start_hour if start_hour is None else start_hour
    end = settings.delivery_end_hour if end_hour is None else end_hour
    cutoff = cutoff_hour(restrictions)
    if cutoff is not None:
        end = min(end, cutoff)

    local_hour = at.astimezone(settings.tzinfo).hour
    open_now = start <= local_hour < end
    next_window = None
    if not open_now:
        next_window = f"{start:02d}:00 today" if local_hour < start else f"{start:02d}:00 tomorrow"
    return DeliveryWindow(open_now=open_now, start_hour=start, end_hour=end, next_window=next_window)
