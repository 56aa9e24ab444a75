# engine/services/summaries.py
from decimal import Decimal, ROUND_HALF_UP

from engine.services.costs import LINKED
from engine.services.totals import JobTotals, LineResult
from engine.services.units import to_decimal

CENT = Decimal("0.01")


# -------------------------------------------------------------------
# HELPER: Format currency
# -------------------------------------------------------------------
def money(amount) -> Decimal:
    """Round to pence for display and snapshots."""
    return to_decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)


def format_currency(amount, symbol: str = "£") -> str:
    value = money(amount)
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol}{abs(value):,.2f}"


# -------------------------------------------------------------------
# LINE SUMMARY
# -------------------------------------------------------------------
def line_summary(result: LineResult, symbol: str = "£", description: str = "") -> str:
    """
    Human-readable breakdown of one recomputed line: sale side first,
    then each cost item with its wastage and sheet count.
    """
    name = description or "Line item"
    fmt = lambda v: format_currency(v, symbol)  # noqa: E731

    msg = (
        f"🧾 {name}: base {fmt(result.base_price)}"
        f" - discount {fmt(result.discount_amount)} = {fmt(result.price_after_discount)}\n"
        f"💷 Sale ex VAT {fmt(result.sale_ex_vat)} + VAT {fmt(result.vat_amount)}"
        f" = {fmt(result.gross_total)}\n"
    )

    for cost in result.cost_items:
        label = "Material" if cost.kind == LINKED else "Manual cost"
        msg += f"📦 {label}: {fmt(cost.total_material_cost)}"
        if cost.wastage_cost:
            msg += f" (proportional {fmt(cost.proportional_cost)}, wastage {fmt(cost.wastage_cost)})"
        if cost.sheets_consumed:
            msg += f" from {cost.sheets_consumed} sheet(s)"
        msg += "\n"

    msg += f"💵 Line profit: {fmt(result.profit)}"
    return msg


# -------------------------------------------------------------------
# JOB SUMMARY
# -------------------------------------------------------------------
def job_summary(totals: JobTotals, symbol: str = "£") -> str:
    fmt = lambda v: format_currency(v, symbol)  # noqa: E731
    return (
        f"Total Sale Price (ex. VAT): {fmt(totals.total_sale)}\n"
        f"VAT: {fmt(totals.total_vat)}\n"
        f"Total Material Cost: {fmt(totals.total_cost)}\n"
        f"Gross Profit: {fmt(totals.gross_profit)} ({money(totals.margin_percent)}%)"
    )
