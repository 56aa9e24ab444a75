from django.db import models
from django.utils.translation import gettext_lazy as _
from decimal import Decimal
import uuid

from catalog.models import ItemType, MeasurementUnit


# -------------------------------------------------------------------
# SUPPLIER MATERIAL
# -------------------------------------------------------------------
class SupplierMaterialItem(models.Model):
    """
    A material bought from a supplier and consumed by jobs.
    Fixed materials are bought per unit. Measured materials are bought as
    stock sheets of `length` × `width` (in `measurement_unit`) at `price`
    per sheet, and cut to size.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(_("name"), max_length=150)
    supplier_name = models.CharField(_("supplier"), max_length=150, blank=True)
    item_code = models.CharField(_("item code"), max_length=64, blank=True)
    item_type = models.CharField(
        _("item type"), max_length=10, choices=ItemType.choices, default=ItemType.FIXED
    )
    price = models.DecimalField(
        _("price"),
        max_digits=12,
        decimal_places=4,
        default=Decimal("0"),
        help_text=_("Price per unit, or per stock sheet for measured materials."),
    )
    length = models.DecimalField(
        _("sheet length"), max_digits=10, decimal_places=3, null=True, blank=True
    )
    width = models.DecimalField(
        _("sheet width"), max_digits=10, decimal_places=3, null=True, blank=True
    )
    measurement_unit = models.CharField(
        _("sheet unit"),
        max_length=8,
        choices=MeasurementUnit.choices,
        blank=True,
        help_text=_("Length unit the sheet dimensions are given in."),
    )
    price_per_sq_m = models.DecimalField(
        _("price per m²"),
        max_digits=12,
        decimal_places=4,
        null=True,
        blank=True,
        help_text=_("Leave blank to derive it from the sheet price and size."),
    )
    include_wastage = models.BooleanField(
        _("include wastage"),
        default=True,
        help_text=_("Cost whole sheets, so offcuts are charged to the job."),
    )

    class Meta:
        verbose_name = _("supplier material")
        verbose_name_plural = _("supplier materials")
        ordering = ["name"]

    def __str__(self):
        if self.supplier_name:
            return f"{self.name} ({self.supplier_name})"
        return self.name

    @property
    def effective_price_per_sq_m(self):
        from engine.services.costs import material_price_per_sq_m
        return material_price_per_sq_m(self)

    @property
    def area_prices(self):
        """Sheet price spread over its area, in every area unit."""
        from engine.services.units import sheet_area_prices
        return sheet_area_prices(self.price, self.length, self.width, self.measurement_unit)
