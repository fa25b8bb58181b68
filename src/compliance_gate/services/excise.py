"""Excise duty and GST on regulated products."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Union

EXCISE_RATES: dict[str, Decimal] = {
    "whisky": Decimal("0.25"),
    "whiskey": Decimal("0.25"),
    "rum": Decimal("0.25"),
    "vodka": Decimal("0.25"),
    "gin": Decimal("0.25"),
    "brandy": Decimal("0.25"),
    "wine": Decimal("0.15"),
    "beer": Decimal("0.10"),
}
DEFAULT_EXCISE_RATE = Decimal("0.20")
GST_RATE = Decimal("0.18")
_CENT = Decimal("0.01")


@dataclass(frozen=True, slots=True)
class ExciseBreakdown:
    excise_tax: Decimal
    gst: Decimal
    total_tax: Decimal


def calculate_excise_tax(product_type: str, base_price: Union[Decimal, int, str]) -> ExciseBreakdown:
    """Excise on the base price, then GST on price plus excise."""

    price = Decimal(str(base_price))
    if price < 0:
        raise ValueError("base_price must be >= 0")
    rate = EXCISE_RATES.get(product_type.strip().lower(), DEFAULT_EXCISE_RATE)
    excise = price * rate
    gst = (price + excise) * GST_RATE
    return ExciseBreakdown(
        excise_tax=excise.quantize(_CENT, rounding=ROUND_HALF_UP),
        gst=gst.quantize(_CENT, rounding=ROUND_HALF_UP),
        total_tax=(excise + gst).quantize(_CENT, rounding=ROUND_HALF_UP),
    )
