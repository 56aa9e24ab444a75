# services/units.py
import logging
from decimal import Decimal, InvalidOperation, getcontext
from typing import Dict

logger = logging.getLogger(__name__)

METERS_PER_FOOT = Decimal("0.3048")
CM_PER_METER = Decimal("100")
MM_PER_METER = Decimal("1000")
INCHES_PER_FOOT = Decimal("12")

ZERO = Decimal("0")
ONE = Decimal("1")
HUNDRED = Decimal("100")


# -------------------------------------------------------------------
# UTILITIES
# -------------------------------------------------------------------
def to_decimal(v, default: Decimal = ZERO) -> Decimal:
    """Convert numeric-like input to Decimal safely; junk becomes `default`."""
    if v is None or isinstance(v, bool):
        return default
    if isinstance(v, Decimal):
        result = v
    else:
        try:
            result = Decimal(str(v).strip())
        except (InvalidOperation, TypeError, ValueError):
            return default
    if not result.is_finite():
        return default
    if result and abs(result.adjusted()) > max_exponent():
        logger.debug("Discarding out-of-range number %s", result)
        return default
    return result


def max_exponent() -> int:
    """
    Largest decimal exponent an input may carry. A line multiplies several
    inputs together, so each gets a fraction of the context's range.
    """
    return getcontext().Emax // 8


def to_quantity(v) -> Decimal:
    """Line quantities: missing, junk or non-positive input counts as one."""
    qty = to_decimal(v, ONE)
    if qty <= 0:
        return ONE
    return qty


def to_rate(v, default: Decimal = ZERO) -> Decimal:
    """Percent rate clamped into [0, 100]."""
    rate = to_decimal(v, default)
    return min(max(rate, ZERO), HUNDRED)


# -------------------------------------------------------------------
# CONVERSION TABLE
# -------------------------------------------------------------------
_INCH = METERS_PER_FOOT / INCHES_PER_FOOT

# Area units convert to square metres, length units to metres.
CONVERSION_TO_BASE_UNIT: Dict[str, Decimal] = {
    "sq_m": ONE,
    "sq_ft": METERS_PER_FOOT * METERS_PER_FOOT,
    "sq_cm": (ONE / CM_PER_METER) * (ONE / CM_PER_METER),
    "sq_mm": (ONE / MM_PER_METER) * (ONE / MM_PER_METER),
    "sq_in": _INCH * _INCH,
    "m": ONE,
    "cm": ONE / CM_PER_METER,
    "mm": ONE / MM_PER_METER,
    "ft": METERS_PER_FOOT,
    "in": _INCH,
}

AREA_UNITS = tuple(u for u in CONVERSION_TO_BASE_UNIT if u.startswith("sq_"))
LENGTH_UNITS = tuple(u for u in CONVERSION_TO_BASE_UNIT if not u.startswith("sq_"))


def _unit_code(unit) -> str:
    # TextChoices members are str subclasses; normalise anything else
    return str(unit or "").strip().lower()


def conversion_factor(unit) -> Decimal:
    """
    Multiplicative factor from `unit` to its base unit.
    Unknown units fall back to 1 so a malformed row never stops pricing.
    """
    code = _unit_code(unit)
    factor = CONVERSION_TO_BASE_UNIT.get(code)
    if factor is None:
        if code:
            logger.warning("Unknown measurement unit %r, using factor 1", code)
        return ONE
    return factor


def is_area_unit(unit) -> bool:
    return _unit_code(unit).startswith("sq_")


def is_length_unit(unit) -> bool:
    return _unit_code(unit) in LENGTH_UNITS


def to_base_units(value, unit) -> Decimal:
    """value × factor[unit] (metres for lengths, square metres for areas)."""
    return to_decimal(value) * conversion_factor(unit)


# -------------------------------------------------------------------
# EQUIVALENT PRICES
# -------------------------------------------------------------------
def equivalent_area_prices(price, unit) -> Dict[str, Decimal]:
    """
    Re-express a price quoted per `unit` of area in every other area unit.
    Returns an empty dict for length units or non-positive prices.
    """
    amount = to_decimal(price)
    if not is_area_unit(unit) or amount <= 0:
        return {}
    per_sq_m = amount / conversion_factor(unit)
    return {u: per_sq_m * CONVERSION_TO_BASE_UNIT[u] for u in AREA_UNITS}


def sheet_area_prices(total_price, length, width, unit) -> Dict[str, Decimal]:
    """
    Price per area unit of a stock sheet, from its price and its
    length/width measured in a length unit.
    """
    amount = to_decimal(total_price)
    length = to_decimal(length)
    width = to_decimal(width)
    if amount <= 0 or length <= 0 or width <= 0 or not unit:
        return {}
    if is_area_unit(unit):
        logger.debug("sheet_area_prices expects a length unit, got %r", unit)
        return {}

    area_sq_m = to_base_units(length, unit) * to_base_units(width, unit)
    if area_sq_m <= 0:
        return {}
    per_sq_m = amount / area_sq_m
    return {u: per_sq_m * CONVERSION_TO_BASE_UNIT[u] for u in AREA_UNITS}


def area_in_sq_m(length, width, unit) -> Decimal:
    """
    Area of a length × width piece in m². Length units convert each side;
    area units treat length × (width or 1) as an area already.
    """
    length = to_decimal(length)
    width = to_decimal(width)
    if is_area_unit(unit):
        return length * (width if width > 0 else ONE) * conversion_factor(unit)
    return to_base_units(length, unit) * to_base_units(width, unit)
