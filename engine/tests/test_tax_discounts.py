from decimal import Decimal
from types import SimpleNamespace

from django.test import SimpleTestCase

from engine.services.discounts import Discount, apply_discount, line_discount
from engine.services.tax import TaxBreakdown, decompose


class DiscountTests(SimpleTestCase):
    def test_percentage_discount(self):
        amount, after = apply_discount(Decimal("200"), Discount.coerce("percentage", "10"))
        self.assertEqual(amount, Decimal("20"))
        self.assertEqual(after, Decimal("180"))

    def test_fixed_discount(self):
        amount, after = apply_discount(Decimal("200"), Discount.coerce("fixed", "25.50"))
        self.assertEqual(amount, Decimal("25.50"))
        self.assertEqual(after, Decimal("174.50"))

    def test_discount_larger_than_price_clamps_to_zero(self):
        amount, after = apply_discount(Decimal("30"), Discount.coerce("fixed", "50"))
        self.assertEqual(amount, Decimal("50"))
        self.assertEqual(after, Decimal("0"))

    def test_clamping_can_be_switched_off(self):
        _amount, after = apply_discount(Decimal("30"), Discount.coerce("fixed", "50"), clamp=False)
        self.assertEqual(after, Decimal("-20"))

    def test_negative_or_junk_values_become_zero(self):
        self.assertEqual(Discount.coerce("fixed", "-5").value, Decimal("0"))
        self.assertEqual(Discount.coerce("percentage", "abc").value, Decimal("0"))

    def test_unknown_type_is_fixed(self):
        self.assertEqual(Discount.coerce("bogus", "5").type, "fixed")

    def test_line_discount_sources(self):
        flat = SimpleNamespace(discount_type="percentage", discount_value=Decimal("15"))
        nested = SimpleNamespace(discount={"type": "percentage", "value": "15"})
        self.assertEqual(line_discount(flat), Discount("percentage", Decimal("15")))
        self.assertEqual(line_discount(nested), Discount("percentage", Decimal("15")))
        self.assertEqual(line_discount(SimpleNamespace()), Discount())


class TaxTests(SimpleTestCase):
    def test_exclusive_adds_vat(self):
        self.assertEqual(
            decompose(Decimal("100"), Decimal("20"), "exclusive"),
            TaxBreakdown(Decimal("100"), Decimal("20"), Decimal("120")),
        )

    def test_inclusive_backs_vat_out(self):
        tax = decompose(Decimal("120"), Decimal("20"), "inclusive")
        self.assertEqual(tax.sale_ex_vat, Decimal("100"))
        self.assertEqual(tax.vat_amount, Decimal("20"))
        self.assertEqual(tax.gross_total, Decimal("120"))

    def test_none_mode_ignores_rate(self):
        tax = decompose(Decimal("80"), Decimal("20"), "none")
        self.assertEqual(tax.vat_amount, Decimal("0"))
        self.assertEqual(tax.gross_total, Decimal("80"))

    def test_parts_always_add_up(self):
        for mode in ("exclusive", "inclusive", "none"):
            tax = decompose(Decimal("99.99"), Decimal("17.5"), mode)
            self.assertEqual(tax.sale_ex_vat + tax.vat_amount, tax.gross_total)

    def test_parts_add_up_at_every_rate(self):
        for rate in ("0", "5", "17.5", "20", "100"):
            for amount in ("0", "0.01", "99.99", "120", "12345.67"):
                for mode in ("exclusive", "inclusive", "none"):
                    with self.subTest(rate=rate, amount=amount, mode=mode):
                        tax = decompose(Decimal(amount), Decimal(rate), mode)
                        self.assertEqual(tax.sale_ex_vat + tax.vat_amount, tax.gross_total)

    def test_inclusive_round_trip_at_every_rate(self):
        for rate in ("0", "5", "17.5", "20", "100"):
            for amount in ("0.01", "99.99", "120", "12345.67"):
                with self.subTest(rate=rate, amount=amount):
                    gross = Decimal(amount)
                    tax = decompose(gross, Decimal(rate), "inclusive")
                    self.assertEqual(tax.gross_total, gross)
                    rebuilt = decompose(tax.sale_ex_vat, Decimal(rate), "exclusive").gross_total
                    self.assertEqual(rebuilt.quantize(Decimal("0.000001")), gross.quantize(Decimal("0.000001")))

    def test_rate_out_of_range_is_clamped(self):
        self.assertEqual(decompose(Decimal("10"), Decimal("150"), "exclusive").vat_amount, Decimal("10"))
        self.assertEqual(decompose(Decimal("10"), Decimal("-5"), "exclusive").vat_amount, Decimal("0"))

    def test_unknown_mode_treated_as_exclusive(self):
        with self.assertLogs("engine.services.context", level="WARNING"):
            tax = decompose(Decimal("100"), Decimal("20"), "sideways")
        self.assertEqual(tax.gross_total, Decimal("120"))
