# services/totals.py
"""
Line recomputation and job roll-up.

Every function here is a pure function of its arguments: recomputing an
unchanged line against an unchanged context returns an equal LineResult,
so callers compare results with `==` before writing anything back.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, List, Tuple

from engine.services.context import PricingContext
from engine.services.costs import CostResult, compute_cost_items
from engine.services.discounts import apply_discount, line_discount
from engine.services.pricing import line_base_price
from engine.services.tax import decompose
from engine.services.units import HUNDRED, ZERO


@dataclass(frozen=True)
class LineResult:
    line_id: str
    base_price: Decimal
    discount_amount: Decimal
    price_after_discount: Decimal
    sale_ex_vat: Decimal
    vat_amount: Decimal
    gross_total: Decimal
    cost_items: Tuple[CostResult, ...] = ()

    @property
    def total_cost(self) -> Decimal:
        return sum((c.total_material_cost for c in self.cost_items), ZERO)

    @property
    def total_cost_vat(self) -> Decimal:
        return sum((c.cost_vat for c in self.cost_items), ZERO)

    @property
    def profit(self) -> Decimal:
        return self.sale_ex_vat - self.total_cost


@dataclass(frozen=True)
class JobTotals:
    total_sale: Decimal = ZERO
    total_vat: Decimal = ZERO
    total_gross: Decimal = ZERO
    total_cost: Decimal = ZERO
    total_cost_vat: Decimal = ZERO

    @property
    def gross_profit(self) -> Decimal:
        return self.total_sale - self.total_cost

    @property
    def margin_percent(self) -> Decimal:
        if self.total_sale == 0:
            return ZERO
        return self.gross_profit / self.total_sale * HUNDRED


def line_vat_rate(line, context: PricingContext):
    rate = getattr(line, "vat_rate", None)
    return context.default_vat_rate if rate is None else rate


def recompute_line(line, context: PricingContext) -> LineResult:
    """Price, discount, tax and cost a single line item."""
    base = line_base_price(line, context)
    discount_amount, after = apply_discount(base, line_discount(line), clamp=context.clamp_negative)
    tax = decompose(after, line_vat_rate(line, context), context.tax_mode)

    return LineResult(
        line_id=str(getattr(line, "id", "")),
        base_price=base,
        discount_amount=discount_amount,
        price_after_discount=after,
        sale_ex_vat=tax.sale_ex_vat,
        vat_amount=tax.vat_amount,
        gross_total=tax.gross_total,
        cost_items=compute_cost_items(line, context),
    )


def aggregate_totals(results: Iterable[LineResult]) -> JobTotals:
    total_sale = total_vat = total_gross = total_cost = total_cost_vat = ZERO
    for result in results:
        total_sale += result.sale_ex_vat
        total_vat += result.vat_amount
        total_gross += result.gross_total
        total_cost += result.total_cost
        total_cost_vat += result.total_cost_vat
    return JobTotals(
        total_sale=total_sale,
        total_vat=total_vat,
        total_gross=total_gross,
        total_cost=total_cost,
        total_cost_vat=total_cost_vat,
    )


def recompute_job(lines: Iterable, context: PricingContext) -> Tuple[List[LineResult], JobTotals]:
    results = [recompute_line(line, context) for line in lines]
    return results, aggregate_totals(results)
