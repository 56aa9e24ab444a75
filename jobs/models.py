import uuid
from decimal import Decimal, ROUND_HALF_UP

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from catalog.models import VAT_RATE_VALIDATORS, MeasurementUnit


# -------------------------------------------------------------------
# ENUMS
# -------------------------------------------------------------------
class TaxMode(models.TextChoices):
    EXCLUSIVE = "exclusive", _("Prices exclude VAT")
    INCLUSIVE = "inclusive", _("Prices include VAT")
    NONE = "none", _("No VAT")


class DiscountType(models.TextChoices):
    FIXED = "fixed", _("Fixed amount")
    PERCENTAGE = "percentage", _("Percentage")


class CostItemKind(models.TextChoices):
    LINKED = "linked", _("Linked material")
    MANUAL = "manual", _("Manual cost")


# -------------------------------------------------------------------
# JOB MODEL
# -------------------------------------------------------------------
class Job(models.Model):
    class Status(models.TextChoices):
        DRAFT = "draft", _("Draft")
        SAVED = "saved", _("Saved")
        QUOTED = "quoted", _("Converted to quote")
        INVOICED = "invoiced", _("Converted to invoice")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    job_number = models.CharField(_("Job Number"), max_length=20, unique=True, blank=True)
    customer_name = models.CharField(max_length=200, blank=True)
    reference = models.CharField(max_length=200, blank=True)
    issue_date = models.DateField(default=timezone.localdate)
    notes = models.TextField(blank=True)
    tax_mode = models.CharField(max_length=10, choices=TaxMode.choices, default=TaxMode.EXCLUSIVE)
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.DRAFT)

    # Snapshot written on save/convert; may go stale against catalog prices
    total_sale = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    total_cost = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    saved_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        verbose_name = _("Job")
        verbose_name_plural = _("Jobs")

    def save(self, *args, **kwargs):
        if not self.job_number:
            self.job_number = f"JOB-{uuid.uuid4().hex[:8].upper()}"
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.job_number} - {self.customer_name or 'No customer'} ({self.get_status_display()})"

    @property
    def gross_profit(self) -> Decimal:
        """Profit as recorded in the last snapshot."""
        return (self.total_sale - self.total_cost).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


# -------------------------------------------------------------------
# JOB LINE ITEM
# -------------------------------------------------------------------
class JobLineItem(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    job = models.ForeignKey("jobs.Job", on_delete=models.CASCADE, related_name="line_items")
    position = models.PositiveIntegerField(default=0)

    catalog_item = models.ForeignKey(
        "catalog.SaleCatalogItem",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="job_lines",
    )
    description = models.TextField(blank=True)
    quantity = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    unit_price = models.DecimalField(
        max_digits=12, decimal_places=2, null=True, blank=True,
        help_text=_("Manual unit price, used when no catalog item is selected."),
    )
    length = models.DecimalField(max_digits=10, decimal_places=3, null=True, blank=True)
    width = models.DecimalField(max_digits=10, decimal_places=3, null=True, blank=True)
    unit = models.CharField(max_length=8, choices=MeasurementUnit.choices, blank=True)

    discount_type = models.CharField(max_length=10, choices=DiscountType.choices, default=DiscountType.FIXED)
    discount_value = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    vat_rate = models.DecimalField(
        max_digits=5, decimal_places=2, default=Decimal("20.00"), validators=VAT_RATE_VALIDATORS
    )
    selected_add_on_ids = models.JSONField(default=list, blank=True)

    class Meta:
        ordering = ["position", "id"]
        verbose_name = _("Job Line Item")
        verbose_name_plural = _("Job Line Items")

    def __str__(self):
        return f"{self.description or 'Line item'} x{self.quantity}"

    def clean(self):
        if self.discount_value is not None and self.discount_value < 0:
            raise ValidationError({"discount_value": _("Discount cannot be negative.")})


# -------------------------------------------------------------------
# COST ITEM
# -------------------------------------------------------------------
class CostItem(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    line = models.ForeignKey("jobs.JobLineItem", on_delete=models.CASCADE, related_name="cost_items")
    kind = models.CharField(max_length=8, choices=CostItemKind.choices, default=CostItemKind.MANUAL)
    description = models.CharField(max_length=255, blank=True)
    material = models.ForeignKey(
        "materials.SupplierMaterialItem",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="cost_items",
    )
    manual_cost = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    cost_vat_rate = models.DecimalField(
        max_digits=5, decimal_places=2, null=True, blank=True, validators=VAT_RATE_VALIDATORS,
        help_text=_("Blank: default VAT rate for linked materials, 0 for manual costs."),
    )

    # Computed on every recompute
    proportional_cost = models.DecimalField(max_digits=14, decimal_places=4, default=Decimal("0"))
    wastage_cost = models.DecimalField(max_digits=14, decimal_places=4, default=Decimal("0"))
    total_material_cost = models.DecimalField(max_digits=14, decimal_places=4, default=Decimal("0"))
    cost_vat = models.DecimalField(max_digits=14, decimal_places=4, default=Decimal("0"))
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at"]
        verbose_name = _("Cost Item")
        verbose_name_plural = _("Cost Items")

    def __str__(self):
        return f"{self.description or self.get_kind_display()} ({self.total_material_cost})"

    def clean(self):
        if self.kind == CostItemKind.LINKED and self.material_id is None and self._state.adding:
            raise ValidationError({"material": _("Linked cost items need a material.")})
