import uuid
from decimal import Decimal

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="SupplierMaterialItem",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=150, verbose_name="name")),
                ("supplier_name", models.CharField(blank=True, max_length=150, verbose_name="supplier")),
                ("item_code", models.CharField(blank=True, max_length=64, verbose_name="item code")),
                ("item_type", models.CharField(
                    choices=[("fixed", "Fixed price"), ("measured", "Measured (per length or area)")],
                    default="fixed", max_length=10, verbose_name="item type")),
                ("price", models.DecimalField(
                    decimal_places=4, default=Decimal("0"), max_digits=12,
                    help_text="Price per unit, or per stock sheet for measured materials.", verbose_name="price")),
                ("length", models.DecimalField(blank=True, decimal_places=3, max_digits=10, null=True, verbose_name="sheet length")),
                ("width", models.DecimalField(blank=True, decimal_places=3, max_digits=10, null=True, verbose_name="sheet width")),
                ("measurement_unit", models.CharField(
                    blank=True,
                    choices=[
                        ("sq_m", "Square metre"), ("sq_ft", "Square foot"), ("sq_cm", "Square centimetre"),
                        ("sq_mm", "Square millimetre"), ("sq_in", "Square inch"), ("m", "Metre"),
                        ("cm", "Centimetre"), ("mm", "Millimetre"), ("ft", "Foot"), ("in", "Inch"),
                    ],
                    help_text="Length unit the sheet dimensions are given in.",
                    max_length=8, verbose_name="sheet unit")),
                ("price_per_sq_m", models.DecimalField(
                    blank=True, decimal_places=4, max_digits=12, null=True,
                    help_text="Leave blank to derive it from the sheet price and size.", verbose_name="price per m²")),
                ("include_wastage", models.BooleanField(
                    default=True, help_text="Cost whole sheets, so offcuts are charged to the job.",
                    verbose_name="include wastage")),
            ],
            options={
                "verbose_name": "supplier material",
                "verbose_name_plural": "supplier materials",
                "ordering": ["name"],
            },
        ),
    ]
