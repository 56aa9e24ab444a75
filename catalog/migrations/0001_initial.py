import uuid
from decimal import Decimal

import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("materials", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="SaleCatalogItem",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=255, verbose_name="name")),
                ("sku", models.CharField(blank=True, max_length=64, verbose_name="SKU")),
                ("item_type", models.CharField(
                    choices=[("fixed", "Fixed price"), ("measured", "Measured (per length or area)")],
                    default="fixed", max_length=10, verbose_name="item type")),
                ("price", models.DecimalField(
                    decimal_places=4, default=Decimal("0"), max_digits=12,
                    help_text="Unit price for fixed items, or price per measurement unit for measured items.",
                    verbose_name="price")),
                ("measurement_unit", models.CharField(
                    blank=True,
                    choices=[
                        ("sq_m", "Square metre"), ("sq_ft", "Square foot"), ("sq_cm", "Square centimetre"),
                        ("sq_mm", "Square millimetre"), ("sq_in", "Square inch"), ("m", "Metre"),
                        ("cm", "Centimetre"), ("mm", "Millimetre"), ("ft", "Foot"), ("in", "Inch"),
                    ],
                    max_length=8, verbose_name="measurement unit")),
                ("min_price", models.DecimalField(
                    blank=True, decimal_places=2, max_digits=12, null=True,
                    help_text="Minimum charge for a measured line, before add-ons.", verbose_name="minimum price")),
                ("vat_rate", models.DecimalField(
                    blank=True, decimal_places=2, max_digits=5, null=True,
                    help_text="Leave blank to use the default VAT rate.",
                    validators=[
                        django.core.validators.MinValueValidator(Decimal("0")),
                        django.core.validators.MaxValueValidator(Decimal("100")),
                    ],
                    verbose_name="VAT rate (%)")),
                ("is_active", models.BooleanField(default=True, verbose_name="is active")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("parent", models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL,
                    related_name="variants", to="catalog.salecatalogitem", verbose_name="parent item")),
                ("linked_materials", models.ManyToManyField(
                    blank=True,
                    help_text="Materials costed automatically whenever this item is added to a job.",
                    related_name="sale_items", to="materials.suppliermaterialitem",
                    verbose_name="linked materials")),
            ],
            options={
                "verbose_name": "sale catalog item",
                "verbose_name_plural": "sale catalog items",
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="AddOnOption",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=120, verbose_name="name")),
                ("price", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=10, verbose_name="price")),
                ("item", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE, related_name="add_on_options",
                    to="catalog.salecatalogitem", verbose_name="item")),
            ],
            options={
                "verbose_name": "add-on option",
                "verbose_name_plural": "add-on options",
                "ordering": ["name"],
            },
        ),
    ]
