from django.contrib import admin

from .models import SupplierMaterialItem


@admin.register(SupplierMaterialItem)
class SupplierMaterialItemAdmin(admin.ModelAdmin):
    """Admin configuration for supplier materials."""
    list_display = (
        "name",
        "supplier_name",
        "item_code",
        "item_type",
        "price",
        "length",
        "width",
        "measurement_unit",
        "display_price_per_sq_m",
        "include_wastage",
    )
    list_filter = ("item_type", "supplier_name", "include_wastage")
    search_fields = ("name", "supplier_name", "item_code")
    ordering = ("name",)
    readonly_fields = ("display_price_per_sq_m",)

    fieldsets = (
        (None, {
            "fields": ("name", "supplier_name", "item_code", "item_type")
        }),
        ("Price", {
            "fields": ("price", "price_per_sq_m", "display_price_per_sq_m")
        }),
        ("Stock sheet", {
            "description": "Sheet size used to work out offcut wastage for measured materials.",
            "fields": (("length", "width"), "measurement_unit", "include_wastage")
        }),
    )

    @admin.display(description="Price per m²")
    def display_price_per_sq_m(self, obj):
        value = obj.effective_price_per_sq_m
        if value is None:
            return "-"
        return f"{value:.4f}"
