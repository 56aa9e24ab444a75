from decimal import Decimal

from django.test import SimpleTestCase

from engine.services.context import PricingContext
from engine.services.totals import JobTotals, aggregate_totals, recompute_job, recompute_line
from engine.tests import factories as f


class RecomputeLineTests(SimpleTestCase):
    def setUp(self):
        self.item = f.catalog_item("100")
        self.context = PricingContext.build([self.item])

    def test_full_line(self):
        line = f.line(
            catalog_item_id=self.item.id,
            discount_type="percentage",
            discount_value="10",
            cost_items=[f.manual_cost("30")],
        )
        result = recompute_line(line, self.context)

        self.assertEqual(result.base_price, Decimal("100"))
        self.assertEqual(result.discount_amount, Decimal("10"))
        self.assertEqual(result.price_after_discount, Decimal("90"))
        self.assertEqual(result.sale_ex_vat, Decimal("90"))
        self.assertEqual(result.vat_amount, Decimal("18"))
        self.assertEqual(result.gross_total, Decimal("108"))
        self.assertEqual(result.total_cost, Decimal("30"))
        self.assertEqual(result.profit, Decimal("60"))

    def test_recompute_is_stable(self):
        line = f.line(catalog_item_id=self.item.id, cost_items=[f.manual_cost("30")])
        self.assertEqual(recompute_line(line, self.context), recompute_line(line, self.context))

    def test_change_is_visible_in_result(self):
        line = f.line(catalog_item_id=self.item.id)
        before = recompute_line(line, self.context)
        line.quantity = 2
        self.assertNotEqual(recompute_line(line, self.context), before)

    def test_missing_line_rate_uses_default(self):
        line = f.line(catalog_item_id=self.item.id, vat_rate=None)
        context = PricingContext.build([self.item], default_vat_rate="5")
        self.assertEqual(recompute_line(line, context).vat_amount, Decimal("5"))

    def test_inclusive_job(self):
        line = f.line(unit_price="120")
        context = PricingContext.build(tax_mode="inclusive")
        result = recompute_line(line, context)
        self.assertEqual(result.sale_ex_vat, Decimal("100"))
        self.assertEqual(result.gross_total, Decimal("120"))

    def test_no_vat_job(self):
        line = f.line(unit_price="50", vat_rate=Decimal("20"))
        result = recompute_line(line, PricingContext.build(tax_mode="none"))
        self.assertEqual(result.vat_amount, Decimal("0"))


class JobTotalsTests(SimpleTestCase):
    def test_totals_are_sums_of_lines(self):
        item = f.catalog_item("100")
        ink = f.material("5")
        context = PricingContext.build([item], [ink])
        lines = [
            f.line(catalog_item_id=item.id, cost_items=[f.linked_cost(ink.id)]),
            f.line(unit_price="50", quantity=2, cost_items=[f.manual_cost("40")]),
        ]
        results, totals = recompute_job(lines, context)

        self.assertEqual(len(results), 2)
        self.assertEqual(totals.total_sale, Decimal("200"))
        self.assertEqual(totals.total_vat, Decimal("40"))
        self.assertEqual(totals.total_gross, Decimal("240"))
        self.assertEqual(totals.total_cost, Decimal("45"))
        self.assertEqual(totals.total_cost_vat, Decimal("1"))
        self.assertEqual(totals.gross_profit, Decimal("155"))
        self.assertEqual(totals.margin_percent, Decimal("77.5"))
        self.assertEqual(aggregate_totals(results), totals)

    def test_empty_job(self):
        totals = aggregate_totals([])
        self.assertEqual(totals, JobTotals())
        self.assertEqual(totals.margin_percent, Decimal("0"))
