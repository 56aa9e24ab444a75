from decimal import Decimal

from django.test import SimpleTestCase

from engine.services.context import PricingContext
from engine.services.totals import recompute_line
from engine.services.units import (
    area_in_sq_m,
    conversion_factor,
    equivalent_area_prices,
    is_area_unit,
    is_length_unit,
    sheet_area_prices,
    to_base_units,
    to_decimal,
    to_quantity,
    to_rate,
)
from engine.tests import factories as f


class CoercionTests(SimpleTestCase):
    def test_to_decimal_handles_junk(self):
        self.assertEqual(to_decimal("12.5"), Decimal("12.5"))
        self.assertEqual(to_decimal(None), Decimal("0"))
        self.assertEqual(to_decimal("abc"), Decimal("0"))
        self.assertEqual(to_decimal("NaN"), Decimal("0"))
        self.assertEqual(to_decimal(True), Decimal("0"))

    def test_quantity_defaults_to_one(self):
        self.assertEqual(to_quantity(3), Decimal("3"))
        self.assertEqual(to_quantity(0), Decimal("1"))
        self.assertEqual(to_quantity(-2), Decimal("1"))
        self.assertEqual(to_quantity(None), Decimal("1"))
        self.assertEqual(to_quantity("x"), Decimal("1"))

    def test_rate_is_clamped(self):
        self.assertEqual(to_rate(150), Decimal("100"))
        self.assertEqual(to_rate(-5), Decimal("0"))
        self.assertEqual(to_rate("17.5"), Decimal("17.5"))


class ConversionTests(SimpleTestCase):
    def test_known_factors(self):
        self.assertEqual(conversion_factor("sq_m"), Decimal("1"))
        self.assertEqual(conversion_factor("sq_ft"), Decimal("0.09290304"))
        self.assertEqual(conversion_factor("cm"), Decimal("0.01"))
        self.assertEqual(conversion_factor("ft"), Decimal("0.3048"))

    def test_unknown_unit_uses_factor_one(self):
        with self.assertLogs("engine.services.units", level="WARNING"):
            self.assertEqual(conversion_factor("furlong"), Decimal("1"))

    def test_unit_families(self):
        self.assertTrue(is_area_unit("sq_in"))
        self.assertFalse(is_area_unit("in"))
        self.assertTrue(is_length_unit("mm"))
        self.assertFalse(is_length_unit("sq_mm"))

    def test_to_base_units(self):
        self.assertEqual(to_base_units(250, "cm"), Decimal("2.5"))
        self.assertEqual(to_base_units(10, "ft"), Decimal("3.048"))


class AreaTests(SimpleTestCase):
    def test_length_units_convert_each_side(self):
        self.assertEqual(area_in_sq_m(200, 300, "cm"), Decimal("6"))

    def test_area_unit_treats_width_as_optional(self):
        self.assertEqual(area_in_sq_m(4, None, "sq_m"), Decimal("4"))
        self.assertEqual(area_in_sq_m(2, 3, "sq_m"), Decimal("6"))

    def test_equivalent_area_prices(self):
        prices = equivalent_area_prices(10, "sq_m")
        self.assertEqual(prices["sq_m"], Decimal("10"))
        self.assertEqual(prices["sq_cm"], Decimal("0.001"))
        self.assertEqual(set(prices), {"sq_m", "sq_ft", "sq_cm", "sq_mm", "sq_in"})

    def test_equivalent_prices_need_an_area_unit(self):
        self.assertEqual(equivalent_area_prices(5, "m"), {})
        self.assertEqual(equivalent_area_prices(0, "sq_m"), {})

    def test_sheet_area_prices(self):
        prices = sheet_area_prices(30, 2, 3, "m")
        self.assertEqual(prices["sq_m"], Decimal("5"))
        self.assertEqual(sheet_area_prices(30, 0, 3, "m"), {})
        self.assertEqual(sheet_area_prices(30, 2, 3, "sq_m"), {})


class OutOfRangeInputTests(SimpleTestCase):
    HUGE = "1e999999999"

    def test_huge_exponents_are_discarded(self):
        self.assertEqual(to_decimal(self.HUGE), Decimal("0"))
        self.assertEqual(to_decimal(Decimal("-1e999999999"), Decimal("7")), Decimal("7"))
        self.assertEqual(to_decimal("1e-999999999"), Decimal("0"))
        self.assertEqual(to_quantity(self.HUGE), Decimal("1"))

    def test_huge_quantity_prices_as_one(self):
        line = f.line(unit_price="10", quantity=self.HUGE)
        result = recompute_line(line, PricingContext())
        self.assertEqual(result.base_price, Decimal("10"))

    def test_huge_length_prices_without_error(self):
        item = f.catalog_item("5", item_type="measured", measurement_unit="sq_m")
        sheet = f.material("20", item_type="measured", length=1, width=1, measurement_unit="m")
        line = f.line(
            catalog_item_id=item.id, length=self.HUGE, width="0.5", unit="m",
            cost_items=[f.linked_cost(sheet.id)],
        )
        result = recompute_line(line, PricingContext.build([item], [sheet]))
        self.assertEqual(result.base_price, Decimal("0"))
        self.assertEqual(result.total_cost, Decimal("0"))
