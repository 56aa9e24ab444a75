# services/pricing.py
import logging
from decimal import Decimal
from typing import Any, Iterable, List, Optional

from engine.services.context import PricingContext
from engine.services.units import (
    ZERO,
    area_in_sq_m,
    conversion_factor,
    is_area_unit,
    to_base_units,
    to_decimal,
    to_quantity,
)

logger = logging.getLogger(__name__)

FIXED = "fixed"
MEASURED = "measured"


# -------------------------------------------------------------------
# HELPERS
# -------------------------------------------------------------------
def related_list(obj, name: str) -> List[Any]:
    """
    Return a list for a to-many attribute, whether it is a plain list,
    a Django related manager, or missing.
    """
    value = getattr(obj, name, None)
    if value is None:
        return []
    if hasattr(value, "all"):
        return list(value.all())
    return list(value)


def item_type_of(item) -> str:
    code = str(getattr(item, "item_type", None) or getattr(item, "type", None) or FIXED)
    return MEASURED if code.strip().lower() == MEASURED else FIXED


# -------------------------------------------------------------------
# ADD-ONS
# -------------------------------------------------------------------
def _add_on_key(option):
    name = str(getattr(option, "name", "") or "").strip().lower()
    return name, to_decimal(getattr(option, "price", None))


def available_add_ons(item, parent=None) -> List[Any]:
    """
    The item's own add-on options followed by its parent's, with options
    sharing the same (name, price) collapsed onto the first one seen.
    """
    if item is None:
        return []
    merged = {}
    raw: Iterable[Any] = related_list(item, "add_on_options")
    if parent is not None:
        raw = list(raw) + related_list(parent, "add_on_options")
    for option in raw:
        merged.setdefault(_add_on_key(option), option)
    return list(merged.values())


def available_add_ons_for(item, context: PricingContext) -> List[Any]:
    return available_add_ons(item, context.parent_of(item) if item is not None else None)


def selected_add_ons(available: List[Any], selected_ids) -> List[Any]:
    """Options from `available` whose id was selected; unknown ids are dropped."""
    wanted = {str(i) for i in (selected_ids or ())}
    return [opt for opt in available if str(getattr(opt, "id", "")) in wanted]


def add_ons_total(available: List[Any], selected_ids) -> Decimal:
    return sum(
        (to_decimal(getattr(opt, "price", None)) for opt in selected_add_ons(available, selected_ids)),
        ZERO,
    )


# -------------------------------------------------------------------
# BASE PRICE
# -------------------------------------------------------------------
def price_per_base_unit(item) -> Decimal:
    """
    Catalog price re-expressed per m² (area units) or per m (length units).
    A measured item with no unit is taken as priced per m².
    """
    price = to_decimal(getattr(item, "price", None))
    unit = getattr(item, "measurement_unit", None)
    if not unit:
        return price
    factor = conversion_factor(unit)
    if factor == 0:
        return ZERO
    return price / factor


def measured_amount(item, length, width, unit, quantity) -> Decimal:
    """Measured price before add-ons and minimum charge."""
    if not unit:
        logger.debug("Measured line without a unit prices at zero")
        return ZERO

    per_base = price_per_base_unit(item)
    item_unit = getattr(item, "measurement_unit", None)
    if item_unit and not is_area_unit(item_unit):
        # length-priced: only the run length counts
        if is_area_unit(unit):
            logger.debug("Length-priced item measured in area unit %r", unit)
        return to_base_units(length, unit) * per_base * quantity

    return area_in_sq_m(length, width, unit) * per_base * quantity


def calculate_base_price(item, line, add_ons: Optional[List[Any]] = None) -> Decimal:
    """
    Pre-discount, pre-tax price of one line.

      fixed:     unit price × quantity + add-ons
      measured:  area (or length) × price per base unit × quantity + add-ons
      no item:   manual unit price × quantity
    """
    quantity = to_quantity(getattr(line, "quantity", None))

    if item is None:
        return to_decimal(getattr(line, "unit_price", None)) * quantity

    extras = add_ons_total(add_ons or [], getattr(line, "selected_add_on_ids", None))

    if item_type_of(item) == MEASURED:
        amount = measured_amount(
            item,
            getattr(line, "length", None),
            getattr(line, "width", None),
            getattr(line, "unit", None),
            quantity,
        )
        minimum = to_decimal(getattr(item, "min_price", None))
        if minimum > 0 and amount < minimum:
            amount = minimum
        return amount + extras

    return to_decimal(getattr(item, "price", None)) * quantity + extras


def line_base_price(line, context: PricingContext) -> Decimal:
    """Resolve the line's catalog item through `context` and price it."""
    item_id = getattr(line, "catalog_item_id", None)
    item = context.catalog_item(item_id)
    if item is None and item_id:
        logger.warning("Line %s references a missing catalog item; using manual price",
                       getattr(line, "id", "?"))
    return calculate_base_price(item, line, available_add_ons_for(item, context))
