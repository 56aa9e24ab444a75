from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import TestCase

from engine.services.context import PricingContext
from engine.services.pricing import available_add_ons_for

from .models import AddOnOption, SaleCatalogItem


class SaleCatalogItemTests(TestCase):
    def test_measured_item_needs_unit(self):
        item = SaleCatalogItem(name="Banner", item_type="measured", price=Decimal("12"))
        with self.assertRaises(ValidationError):
            item.full_clean()

    def test_equivalent_prices(self):
        item = SaleCatalogItem.objects.create(
            name="Vinyl", item_type="measured", price=Decimal("10"), measurement_unit="sq_m",
        )
        prices = item.equivalent_prices
        self.assertEqual(prices["sq_m"], Decimal("10"))
        self.assertEqual(prices["sq_cm"], Decimal("0.001"))

    def test_fixed_item_has_no_area_prices(self):
        item = SaleCatalogItem.objects.create(name="Mug", price=Decimal("8"))
        self.assertFalse(item.is_measured)
        self.assertEqual(item.equivalent_prices, {})

    def test_variant_add_ons_from_database(self):
        parent = SaleCatalogItem.objects.create(name="Banner", price=Decimal("10"))
        variant = SaleCatalogItem.objects.create(name="Banner XL", price=Decimal("15"), parent=parent)
        own = AddOnOption.objects.create(item=variant, name="Hemming", price=Decimal("4"))
        inherited = AddOnOption.objects.create(item=parent, name="Eyelets", price=Decimal("2"))
        AddOnOption.objects.create(item=parent, name="hemming", price=Decimal("4"))

        context = PricingContext.build(
            SaleCatalogItem.objects.prefetch_related("add_on_options")
        )
        self.assertEqual(available_add_ons_for(context.catalog_item(variant.id), context), [own, inherited])

    def test_deleting_parent_keeps_variant(self):
        parent = SaleCatalogItem.objects.create(name="Banner", price=Decimal("10"))
        variant = SaleCatalogItem.objects.create(name="Banner XL", price=Decimal("15"), parent=parent)
        parent.delete()
        variant.refresh_from_db()
        self.assertIsNone(variant.parent)
