# catalog/models.py
import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils.translation import gettext_lazy as _


class MeasurementUnit(models.TextChoices):
    # Area
    SQ_M = "sq_m", _("Square metre")
    SQ_FT = "sq_ft", _("Square foot")
    SQ_CM = "sq_cm", _("Square centimetre")
    SQ_MM = "sq_mm", _("Square millimetre")
    SQ_IN = "sq_in", _("Square inch")
    # Linear
    M = "m", _("Metre")
    CM = "cm", _("Centimetre")
    MM = "mm", _("Millimetre")
    FT = "ft", _("Foot")
    IN = "in", _("Inch")


class ItemType(models.TextChoices):
    FIXED = "fixed", _("Fixed price")
    MEASURED = "measured", _("Measured (per length or area)")


VAT_RATE_VALIDATORS = [MinValueValidator(Decimal("0")), MaxValueValidator(Decimal("100"))]


# -------------------------------------------------------------------
# SALE CATALOG ITEM
# -------------------------------------------------------------------
class SaleCatalogItem(models.Model):
    """
    Something the business sells. Fixed items carry a unit price; measured
    items carry a price per `measurement_unit` of length or area.
    Variants point at a parent and inherit its add-on options.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(_("name"), max_length=255)
    sku = models.CharField(_("SKU"), max_length=64, blank=True)
    item_type = models.CharField(
        _("item type"), max_length=10, choices=ItemType.choices, default=ItemType.FIXED
    )
    price = models.DecimalField(
        _("price"),
        max_digits=12,
        decimal_places=4,
        default=Decimal("0"),
        help_text=_("Unit price for fixed items, or price per measurement unit for measured items."),
    )
    measurement_unit = models.CharField(
        _("measurement unit"), max_length=8, choices=MeasurementUnit.choices, blank=True
    )
    min_price = models.DecimalField(
        _("minimum price"),
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
        help_text=_("Minimum charge for a measured line, before add-ons."),
    )
    vat_rate = models.DecimalField(
        _("VAT rate (%)"),
        max_digits=5,
        decimal_places=2,
        null=True,
        blank=True,
        validators=VAT_RATE_VALIDATORS,
        help_text=_("Leave blank to use the default VAT rate."),
    )
    parent = models.ForeignKey(
        "self",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="variants",
        verbose_name=_("parent item"),
    )
    linked_materials = models.ManyToManyField(
        "materials.SupplierMaterialItem",
        blank=True,
        related_name="sale_items",
        verbose_name=_("linked materials"),
        help_text=_("Materials costed automatically whenever this item is added to a job."),
    )
    is_active = models.BooleanField(_("is active"), default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("sale catalog item")
        verbose_name_plural = _("sale catalog items")
        ordering = ["name"]

    def __str__(self):
        return self.name

    def clean(self):
        if self.item_type == ItemType.MEASURED and not self.measurement_unit:
            raise ValidationError({"measurement_unit": _("Measured items need a measurement unit.")})
        if self.parent_id and self.parent_id == self.id:
            raise ValidationError({"parent": _("An item cannot be its own parent.")})

    @property
    def is_measured(self) -> bool:
        return self.item_type == ItemType.MEASURED

    @property
    def equivalent_prices(self):
        """This item's area price expressed in every area unit."""
        from engine.services.units import equivalent_area_prices
        return equivalent_area_prices(self.price, self.measurement_unit)


# -------------------------------------------------------------------
# ADD-ON OPTION
# -------------------------------------------------------------------
class AddOnOption(models.Model):
    """An optional priced extra offered on a catalog item and its variants."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    item = models.ForeignKey(
        SaleCatalogItem,
        on_delete=models.CASCADE,
        related_name="add_on_options",
        verbose_name=_("item"),
    )
    name = models.CharField(_("name"), max_length=120)
    price = models.DecimalField(_("price"), max_digits=10, decimal_places=2, default=Decimal("0.00"))

    class Meta:
        verbose_name = _("add-on option")
        verbose_name_plural = _("add-on options")
        ordering = ["name"]

    def __str__(self):
        return f"{self.name} (+{self.price})"
