#services/impositions.py
from decimal import Decimal
from math import ceil
from typing import Optional

from engine.services.units import is_area_unit, to_base_units, to_decimal


# -------------------------------------------------------------------
# GRID COVERING
# -------------------------------------------------------------------
def sheets_to_cover(
    part_l: Decimal,
    part_w: Decimal,
    sheet_l: Decimal,
    sheet_w: Decimal,
) -> int:
    """
    Whole sheets laid edge to edge needed to cover one part, with the
    sheet's length running along the part's length.
    """
    if part_l <= 0 or part_w <= 0 or sheet_l <= 0 or sheet_w <= 0:
        return 0
    return ceil(part_l / sheet_l) * ceil(part_w / sheet_w)


def sheets_for_piece(
    part_l: Decimal,
    part_w: Decimal,
    sheet_l: Decimal,
    sheet_w: Decimal,
    allow_rotation: bool = True,
) -> int:
    """
    Sheets consumed by a single rectangular piece: the cheaper of the two
    orientations when the piece may be turned 90° against the stock.
    One piece per line; offcuts are never shared between pieces.
    """
    straight = sheets_to_cover(part_l, part_w, sheet_l, sheet_w)
    if not allow_rotation:
        return straight
    rotated = sheets_to_cover(part_l, part_w, sheet_w, sheet_l)
    return min(straight, rotated)


# -------------------------------------------------------------------
# MATERIAL SHORTCUTS
# -------------------------------------------------------------------
def sheet_size_m(material) -> Optional[tuple]:
    """(length_m, width_m) of a material's stock sheet, or None when unknown."""
    length = to_decimal(getattr(material, "length", None))
    width = to_decimal(getattr(material, "width", None))
    unit = getattr(material, "measurement_unit", None)
    if length <= 0 or width <= 0 or not unit or is_area_unit(unit):
        return None
    mat_l = to_base_units(length, unit)
    mat_w = to_base_units(width, unit)
    if mat_l <= 0 or mat_w <= 0:
        return None
    return mat_l, mat_w
