import uuid
from decimal import Decimal

import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models

UNIT_CHOICES = [
    ("sq_m", "Square metre"), ("sq_ft", "Square foot"), ("sq_cm", "Square centimetre"),
    ("sq_mm", "Square millimetre"), ("sq_in", "Square inch"), ("m", "Metre"),
    ("cm", "Centimetre"), ("mm", "Millimetre"), ("ft", "Foot"), ("in", "Inch"),
]
VAT_VALIDATORS = [
    django.core.validators.MinValueValidator(Decimal("0")),
    django.core.validators.MaxValueValidator(Decimal("100")),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("catalog", "0001_initial"),
        ("materials", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Job",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("job_number", models.CharField(blank=True, max_length=20, unique=True, verbose_name="Job Number")),
                ("customer_name", models.CharField(blank=True, max_length=200)),
                ("reference", models.CharField(blank=True, max_length=200)),
                ("issue_date", models.DateField(default=django.utils.timezone.localdate)),
                ("notes", models.TextField(blank=True)),
                ("tax_mode", models.CharField(
                    choices=[("exclusive", "Prices exclude VAT"), ("inclusive", "Prices include VAT"), ("none", "No VAT")],
                    default="exclusive", max_length=10)),
                ("status", models.CharField(
                    choices=[
                        ("draft", "Draft"), ("saved", "Saved"),
                        ("quoted", "Converted to quote"), ("invoiced", "Converted to invoice"),
                    ],
                    default="draft", max_length=10)),
                ("total_sale", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("total_cost", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("saved_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "Job",
                "verbose_name_plural": "Jobs",
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="JobLineItem",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("position", models.PositiveIntegerField(default=0)),
                ("description", models.TextField(blank=True)),
                ("quantity", models.PositiveIntegerField(
                    default=1, validators=[django.core.validators.MinValueValidator(1)])),
                ("unit_price", models.DecimalField(
                    blank=True, decimal_places=2, max_digits=12, null=True,
                    help_text="Manual unit price, used when no catalog item is selected.")),
                ("length", models.DecimalField(blank=True, decimal_places=3, max_digits=10, null=True)),
                ("width", models.DecimalField(blank=True, decimal_places=3, max_digits=10, null=True)),
                ("unit", models.CharField(blank=True, choices=UNIT_CHOICES, max_length=8)),
                ("discount_type", models.CharField(
                    choices=[("fixed", "Fixed amount"), ("percentage", "Percentage")],
                    default="fixed", max_length=10)),
                ("discount_value", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("vat_rate", models.DecimalField(
                    decimal_places=2, default=Decimal("20.00"), max_digits=5, validators=VAT_VALIDATORS)),
                ("selected_add_on_ids", models.JSONField(blank=True, default=list)),
                ("catalog_item", models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL,
                    related_name="job_lines", to="catalog.salecatalogitem")),
                ("job", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE, related_name="line_items", to="jobs.job")),
            ],
            options={
                "verbose_name": "Job Line Item",
                "verbose_name_plural": "Job Line Items",
                "ordering": ["position", "id"],
            },
        ),
        migrations.CreateModel(
            name="CostItem",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("kind", models.CharField(
                    choices=[("linked", "Linked material"), ("manual", "Manual cost")],
                    default="manual", max_length=8)),
                ("description", models.CharField(blank=True, max_length=255)),
                ("manual_cost", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ("cost_vat_rate", models.DecimalField(
                    blank=True, decimal_places=2, max_digits=5, null=True,
                    help_text="Blank: default VAT rate for linked materials, 0 for manual costs.",
                    validators=VAT_VALIDATORS)),
                ("proportional_cost", models.DecimalField(decimal_places=4, default=Decimal("0"), max_digits=14)),
                ("wastage_cost", models.DecimalField(decimal_places=4, default=Decimal("0"), max_digits=14)),
                ("total_material_cost", models.DecimalField(decimal_places=4, default=Decimal("0"), max_digits=14)),
                ("cost_vat", models.DecimalField(decimal_places=4, default=Decimal("0"), max_digits=14)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("line", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE, related_name="cost_items", to="jobs.joblineitem")),
                ("material", models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL,
                    related_name="cost_items", to="materials.suppliermaterialitem")),
            ],
            options={
                "verbose_name": "Cost Item",
                "verbose_name_plural": "Cost Items",
                "ordering": ["created_at"],
            },
        ),
    ]
