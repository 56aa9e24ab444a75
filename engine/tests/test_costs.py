from decimal import Decimal
from types import SimpleNamespace

from django.test import SimpleTestCase

from engine.services.context import PricingContext
from engine.services.costs import (
    compute_cost_item,
    compute_cost_items,
    material_price_per_sq_m,
)
from engine.services.impositions import sheet_size_m, sheets_for_piece, sheets_to_cover
from engine.tests import factories as f


class ImpositionTests(SimpleTestCase):
    def test_grid_covering(self):
        self.assertEqual(sheets_to_cover(Decimal("1.5"), Decimal("0.5"), Decimal("1"), Decimal("1")), 2)
        self.assertEqual(sheets_to_cover(Decimal("0"), Decimal("0.5"), Decimal("1"), Decimal("1")), 0)

    def test_rotation_picks_fewer_sheets(self):
        args = (Decimal("3"), Decimal("1"), Decimal("1"), Decimal("3"))
        self.assertEqual(sheets_for_piece(*args), 1)
        self.assertEqual(sheets_for_piece(*args, allow_rotation=False), 3)

    def test_sheet_size_in_metres(self):
        sheet = f.material("8", length=100, width=200, measurement_unit="cm")
        self.assertEqual(sheet_size_m(sheet), (Decimal("1"), Decimal("2")))
        self.assertIsNone(sheet_size_m(f.material("8", length=1, width=2, measurement_unit="sq_m")))
        self.assertIsNone(sheet_size_m(f.material("8", length=1, measurement_unit="m")))


class MaterialPriceTests(SimpleTestCase):
    def test_explicit_price_per_sq_m_wins(self):
        sheet = f.material("8", length=1, width=2, measurement_unit="m", price_per_sq_m="6")
        self.assertEqual(material_price_per_sq_m(sheet), Decimal("6"))

    def test_derived_from_sheet(self):
        sheet = f.material("8", length=100, width=200, measurement_unit="cm")
        self.assertEqual(material_price_per_sq_m(sheet), Decimal("4"))

    def test_unknown_without_size(self):
        self.assertIsNone(material_price_per_sq_m(f.material("8")))


class LinkedMeasuredCostTests(SimpleTestCase):
    def setUp(self):
        self.sheet = f.material("20", item_type="measured", length=1, width=1, measurement_unit="m")

    def cost(self, line_obj, material=None):
        material = material or self.sheet
        context = PricingContext.build(material_items=[material])
        return compute_cost_item(f.linked_cost(material.id), line_obj, context)

    def test_wastage_from_whole_sheets(self):
        result = self.cost(f.line(length="1.5", width="0.5", unit="m"))
        self.assertEqual(result.proportional_cost, Decimal("15"))
        self.assertEqual(result.total_material_cost, Decimal("40"))
        self.assertEqual(result.wastage_cost, Decimal("25"))
        self.assertEqual(result.sheets_consumed, 2)
        self.assertEqual(result.cost_vat, Decimal("8"))

    def test_quantity_multiplies_sheets(self):
        result = self.cost(f.line(length="1.5", width="0.5", unit="m", quantity=3))
        self.assertEqual(result.proportional_cost, Decimal("45"))
        self.assertEqual(result.total_material_cost, Decimal("120"))

    def test_rotated_piece_uses_fewer_sheets(self):
        long_sheet = f.material("30", item_type="measured", length=1, width=3, measurement_unit="m")
        result = self.cost(f.line(length=3, width=1, unit="m"), long_sheet)
        self.assertEqual(result.sheets_consumed, 1)
        self.assertEqual(result.total_material_cost, Decimal("30"))
        self.assertEqual(result.wastage_cost, Decimal("0"))

    def test_wastage_can_be_switched_off(self):
        no_waste = f.material(
            "20", item_type="measured", length=1, width=1, measurement_unit="m", include_wastage=False,
        )
        result = self.cost(f.line(length="1.5", width="0.5", unit="m"), no_waste)
        self.assertEqual(result.total_material_cost, Decimal("15"))
        self.assertEqual(result.wastage_cost, Decimal("0"))
        self.assertIsNone(result.sheets_consumed)

    def test_area_unit_line_has_no_wastage(self):
        result = self.cost(f.line(length="0.75", unit="sq_m"))
        self.assertEqual(result.proportional_cost, Decimal("15"))
        self.assertEqual(result.total_material_cost, Decimal("15"))
        self.assertIsNone(result.sheets_consumed)

    def test_line_without_dimensions_costs_nothing(self):
        result = self.cost(f.line())
        self.assertEqual(result.total_material_cost, Decimal("0"))

    def test_negative_wastage_is_kept_and_logged(self):
        cheap_sheet = f.material(
            "10", item_type="measured", length=1, width=1, measurement_unit="m", price_per_sq_m="100",
        )
        with self.assertLogs("engine.services.costs", level="WARNING"):
            result = self.cost(f.line(length="0.5", width="0.5", unit="m"), cheap_sheet)
        self.assertEqual(result.proportional_cost, Decimal("25"))
        self.assertEqual(result.total_material_cost, Decimal("10"))
        self.assertEqual(result.wastage_cost, Decimal("-15"))


class LinkedFixedAndManualCostTests(SimpleTestCase):
    def test_fixed_material_times_quantity(self):
        ink = f.material("2.50")
        context = PricingContext.build(material_items=[ink])
        result = compute_cost_item(f.linked_cost(ink.id), f.line(quantity=4), context)
        self.assertEqual(result.total_material_cost, Decimal("10"))
        self.assertEqual(result.cost_vat_rate, Decimal("20"))
        self.assertEqual(result.cost_vat, Decimal("2"))

    def test_linked_rate_override(self):
        ink = f.material("10")
        context = PricingContext.build(material_items=[ink])
        result = compute_cost_item(f.linked_cost(ink.id, cost_vat_rate=Decimal("5")), f.line(), context)
        self.assertEqual(result.cost_vat, Decimal("0.5"))

    def test_missing_material_costs_zero(self):
        result = compute_cost_item(f.linked_cost("deleted"), f.line(quantity=3), PricingContext())
        self.assertEqual(result.total_material_cost, Decimal("0"))
        self.assertEqual(result.cost_vat, Decimal("0"))

    def test_manual_cost_defaults_to_no_vat(self):
        result = compute_cost_item(f.manual_cost("12"), f.line(quantity=5), PricingContext())
        self.assertEqual(result.total_material_cost, Decimal("12"))
        self.assertEqual(result.cost_vat, Decimal("0"))

    def test_manual_cost_with_rate(self):
        result = compute_cost_item(f.manual_cost("12", cost_vat_rate=Decimal("20")), f.line(), PricingContext())
        self.assertEqual(result.cost_vat, Decimal("2.4"))

    def test_unknown_kind_costs_zero(self):
        odd = SimpleNamespace(id="x", kind="barter", material_id=None, manual_cost=Decimal("5"), cost_vat_rate=None)
        with self.assertLogs("engine.services.costs", level="WARNING"):
            result = compute_cost_item(odd, f.line(), PricingContext())
        self.assertEqual(result.total_material_cost, Decimal("0"))

    def test_all_cost_items_of_a_line(self):
        ink = f.material("3")
        line_obj = f.line(quantity=2, cost_items=[f.linked_cost(ink.id), f.manual_cost("4")])
        results = compute_cost_items(line_obj, PricingContext.build(material_items=[ink]))
        self.assertEqual([r.total_material_cost for r in results], [Decimal("6"), Decimal("4")])
