from decimal import Decimal

from django.test import SimpleTestCase

from engine.services.context import PricingContext
from engine.services.summaries import format_currency, job_summary, line_summary, money
from engine.services.totals import JobTotals, recompute_line
from engine.tests import factories as f


class FormattingTests(SimpleTestCase):
    def test_money_rounds_half_up(self):
        self.assertEqual(money(Decimal("2.005")), Decimal("2.01"))
        self.assertEqual(money(None), Decimal("0.00"))

    def test_format_currency(self):
        self.assertEqual(format_currency(Decimal("1234.5")), "£1,234.50")
        self.assertEqual(format_currency(Decimal("-1234.5")), "-£1,234.50")
        self.assertEqual(format_currency(Decimal("3"), "$"), "$3.00")


class SummaryTests(SimpleTestCase):
    def test_job_summary(self):
        totals = JobTotals(
            total_sale=Decimal("90"),
            total_vat=Decimal("18"),
            total_gross=Decimal("108"),
            total_cost=Decimal("30"),
        )
        text = job_summary(totals)
        self.assertIn("Total Sale Price (ex. VAT): £90.00", text)
        self.assertIn("VAT: £18.00", text)
        self.assertIn("Total Material Cost: £30.00", text)
        self.assertIn("Gross Profit: £60.00 (66.67%)", text)

    def test_line_summary_lists_wastage(self):
        sheet = f.material("20", item_type="measured", length=1, width=1, measurement_unit="m")
        item = f.catalog_item("40", item_type="measured", measurement_unit="sq_m")
        line = f.line(
            catalog_item_id=item.id, length="1.5", width="0.5", unit="m",
            cost_items=[f.linked_cost(sheet.id)],
        )
        result = recompute_line(line, PricingContext.build([item], [sheet]))

        text = line_summary(result, description="Foamex board")
        self.assertIn("🧾 Foamex board: base £30.00 - discount £0.00 = £30.00", text)
        self.assertIn("📦 Material: £40.00 (proportional £15.00, wastage £25.00) from 2 sheet(s)", text)
        self.assertIn("💵 Line profit: -£10.00", text)
