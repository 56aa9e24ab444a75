from django.contrib import admin

from .models import AddOnOption, SaleCatalogItem


class AddOnOptionInline(admin.TabularInline):
    model = AddOnOption
    extra = 1  # Number of empty forms to display


@admin.register(SaleCatalogItem)
class SaleCatalogItemAdmin(admin.ModelAdmin):
    list_display = (
        "name",
        "sku",
        "item_type",
        "price",
        "measurement_unit",
        "min_price",
        "vat_rate",
        "parent",
        "is_active",
    )
    list_filter = ("item_type", "measurement_unit", "is_active")
    search_fields = ("name", "sku")
    ordering = ("name",)
    autocomplete_fields = ("parent",)
    filter_horizontal = ("linked_materials",)
    readonly_fields = ("created_at", "updated_at", "display_equivalent_prices")
    inlines = [AddOnOptionInline]

    fieldsets = (
        (None, {"fields": ("name", "sku", "parent", "is_active")}),
        ("Pricing", {
            "fields": (
                "item_type",
                ("price", "measurement_unit"),
                "min_price",
                "vat_rate",
                "display_equivalent_prices",
            )
        }),
        ("Materials", {"fields": ("linked_materials",)}),
        ("Timestamps", {"fields": ("created_at", "updated_at")}),
    )

    @admin.display(description="Price per area unit")
    def display_equivalent_prices(self, obj):
        prices = obj.equivalent_prices
        if not prices:
            return "-"
        return ", ".join(f"{price:.4f}/{unit}" for unit, price in prices.items())


@admin.register(AddOnOption)
class AddOnOptionAdmin(admin.ModelAdmin):
    list_display = ("name", "item", "price")
    list_filter = ("item",)
    search_fields = ("name", "item__name")
