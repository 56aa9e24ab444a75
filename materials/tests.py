from decimal import Decimal

from django.test import TestCase

from .models import SupplierMaterialItem


class SupplierMaterialItemTests(TestCase):
    def test_price_per_sq_m_derived_from_sheet(self):
        sheet = SupplierMaterialItem.objects.create(
            name="Dibond 3mm",
            item_type="measured",
            price=Decimal("48"),
            length=Decimal("2440"),
            width=Decimal("1220"),
            measurement_unit="mm",
        )
        self.assertEqual(
            sheet.effective_price_per_sq_m.quantize(Decimal("0.0001")), Decimal("16.1247")
        )
        self.assertEqual(sheet.area_prices["sq_m"], sheet.effective_price_per_sq_m)

    def test_explicit_price_per_sq_m(self):
        sheet = SupplierMaterialItem.objects.create(
            name="Vinyl roll", item_type="measured", price=Decimal("90"), price_per_sq_m=Decimal("3.5"),
        )
        self.assertEqual(sheet.effective_price_per_sq_m, Decimal("3.5"))
        self.assertEqual(sheet.area_prices, {})

    def test_str_includes_supplier(self):
        sheet = SupplierMaterialItem(name="Foamex", supplier_name="Boards Ltd")
        self.assertEqual(str(sheet), "Foamex (Boards Ltd)")
