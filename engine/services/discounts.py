# services/discounts.py
from dataclasses import dataclass
from decimal import Decimal
from typing import Tuple

from engine.services.units import HUNDRED, ZERO, to_decimal

FIXED = "fixed"
PERCENTAGE = "percentage"


@dataclass(frozen=True)
class Discount:
    type: str = FIXED
    value: Decimal = ZERO

    @classmethod
    def coerce(cls, discount_type=None, value=None) -> "Discount":
        code = str(discount_type or FIXED).strip().lower()
        if code != PERCENTAGE:
            code = FIXED
        return cls(type=code, value=max(to_decimal(value), ZERO))


def line_discount(line) -> Discount:
    """
    Read a line's discount, either from a `discount` object carrying
    type/value or from flat discount_type/discount_value fields.
    """
    nested = getattr(line, "discount", None)
    if nested is not None:
        if isinstance(nested, dict):
            return Discount.coerce(nested.get("type"), nested.get("value"))
        return Discount.coerce(getattr(nested, "type", None), getattr(nested, "value", None))
    return Discount.coerce(
        getattr(line, "discount_type", None),
        getattr(line, "discount_value", None),
    )


def apply_discount(base_price, discount: Discount, clamp: bool = True) -> Tuple[Decimal, Decimal]:
    """
    Returns (discount_amount, price_after_discount).
    With `clamp` the price after discount never drops below zero; the
    discount amount is reported as entered either way.
    """
    base = to_decimal(base_price)
    if discount.type == PERCENTAGE:
        amount = base * discount.value / HUNDRED
    else:
        amount = discount.value

    after = base - amount
    if clamp and after < ZERO:
        after = ZERO
    return amount, after
