#services/costs.py
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Tuple

from engine.services.context import PricingContext
from engine.services.impositions import sheet_size_m, sheets_for_piece
from engine.services.pricing import MEASURED, item_type_of, related_list
from engine.services.units import (
    HUNDRED,
    ZERO,
    area_in_sq_m,
    is_area_unit,
    to_base_units,
    to_decimal,
    to_quantity,
    to_rate,
)

logger = logging.getLogger(__name__)

LINKED = "linked"
MANUAL = "manual"


@dataclass(frozen=True)
class CostResult:
    cost_item_id: Optional[str]
    kind: str
    proportional_cost: Decimal = ZERO
    wastage_cost: Decimal = ZERO
    total_material_cost: Decimal = ZERO
    cost_vat_rate: Decimal = ZERO
    cost_vat: Decimal = ZERO
    sheets_consumed: Optional[int] = None


# -------------------------------------------------------------------
# HELPER: material price per m²
# -------------------------------------------------------------------
def material_price_per_sq_m(material) -> Optional[Decimal]:
    """
    Explicit per-m² price when set, otherwise the sheet price spread over
    the sheet's area. None when neither is available.
    """
    explicit = to_decimal(getattr(material, "price_per_sq_m", None))
    if explicit > 0:
        return explicit

    size = sheet_size_m(material)
    price = to_decimal(getattr(material, "price", None))
    if size is None or price <= 0:
        return None
    mat_l, mat_w = size
    return price / (mat_l * mat_w)


def _kind_of(cost_item) -> str:
    return str(getattr(cost_item, "kind", None) or getattr(cost_item, "type", None) or "").strip().lower()


# -------------------------------------------------------------------
# MEASURED MATERIAL
# -------------------------------------------------------------------
def measured_material_cost(material, line) -> Tuple[Decimal, Decimal, Optional[int]]:
    """
    (proportional_cost, total_material_cost, sheets_consumed) for a
    measured material cut to the line's dimensions.
    """
    per_sq_m = material_price_per_sq_m(material)
    unit = getattr(line, "unit", None)
    length = to_decimal(getattr(line, "length", None))
    width = to_decimal(getattr(line, "width", None))
    quantity = to_quantity(getattr(line, "quantity", None))

    if per_sq_m is None or not unit or length <= 0:
        return ZERO, ZERO, None

    proportional = area_in_sq_m(length, width, unit) * per_sq_m * quantity

    include_wastage = getattr(material, "include_wastage", True) is not False
    size = sheet_size_m(material)
    if not include_wastage or size is None or is_area_unit(unit) or width <= 0:
        return proportional, proportional, None

    part_l = to_base_units(length, unit)
    part_w = to_base_units(width, unit)
    mat_l, mat_w = size
    sheets = sheets_for_piece(part_l, part_w, mat_l, mat_w)
    if sheets <= 0:
        return proportional, proportional, None

    sheet_price = to_decimal(getattr(material, "price", None))
    total = Decimal(sheets) * quantity * sheet_price
    return proportional, total, sheets


# -------------------------------------------------------------------
# MAIN: Compute one cost item
# -------------------------------------------------------------------
def compute_cost_item(cost_item, line, context: PricingContext) -> CostResult:
    """
    Cost side of one cost item attached to `line`.

      linked/fixed     material price × quantity
      linked/measured  area × price per m² × quantity, plus offcut wastage
                       from whole stock sheets when the material tracks it
      manual           the user-entered cost

    A linked item whose material is gone prices at zero.
    """
    kind = _kind_of(cost_item)
    item_id = getattr(cost_item, "id", None)
    item_id = str(item_id) if item_id is not None else None
    stored_rate = getattr(cost_item, "cost_vat_rate", None)

    if kind == LINKED:
        rate = to_rate(stored_rate, context.default_vat_rate) if stored_rate is not None \
            else context.default_vat_rate
        material = context.material(getattr(cost_item, "material_id", None))
        if material is None:
            logger.debug("Cost item %s has no resolvable material; costing at zero", item_id)
            return CostResult(cost_item_id=item_id, kind=kind, cost_vat_rate=rate)

        sheets = None
        if item_type_of(material) == MEASURED:
            proportional, total, sheets = measured_material_cost(material, line)
        else:
            quantity = to_quantity(getattr(line, "quantity", None))
            proportional = to_decimal(getattr(material, "price", None)) * quantity
            total = proportional

        wastage = total - proportional
        if wastage < 0:
            logger.warning(
                "Negative wastage %s on cost item %s: sheet price is below its per-m² price",
                wastage, item_id,
            )
        return CostResult(
            cost_item_id=item_id,
            kind=kind,
            proportional_cost=proportional,
            wastage_cost=wastage,
            total_material_cost=total,
            cost_vat_rate=rate,
            cost_vat=total * rate / HUNDRED,
            sheets_consumed=sheets,
        )

    if kind == MANUAL:
        rate = to_rate(stored_rate)
        cost = to_decimal(getattr(cost_item, "manual_cost", None))
        return CostResult(
            cost_item_id=item_id,
            kind=kind,
            proportional_cost=cost,
            total_material_cost=cost,
            cost_vat_rate=rate,
            cost_vat=cost * rate / HUNDRED,
        )

    logger.warning("Cost item %s has unknown kind %r", item_id, kind)
    return CostResult(cost_item_id=item_id, kind=kind)


def compute_cost_items(line, context: PricingContext) -> Tuple[CostResult, ...]:
    return tuple(compute_cost_item(ci, line, context) for ci in related_list(line, "cost_items"))
