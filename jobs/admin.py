from decimal import Decimal

from django.contrib import admin, messages
from django.core.exceptions import ValidationError
from django.utils.translation import gettext_lazy as _

from engine.services.context import job_costing_setting
from engine.services.summaries import format_currency, job_summary, line_summary
from engine.services.totals import recompute_line

from . import services
from .models import CostItem, Job, JobLineItem


# Line fields typed into the same form that selected a catalog item
SEED_KEEP_FIELDS = ("description", "unit_price", "length", "width", "unit", "vat_rate")


def _currency(amount) -> str:
    return format_currency(amount if amount is not None else Decimal("0.00"),
                           job_costing_setting("CURRENCY_SYMBOL"))


# -------------------------------------------------------------------
# INLINE — Cost Items on a line
# -------------------------------------------------------------------
class CostItemInline(admin.StackedInline):
    model = CostItem
    autocomplete_fields = ("material",)
    extra = 0

    fields = (
        "kind",
        "description",
        "material",
        "manual_cost",
        "cost_vat_rate",
        "display_total_cost",
    )
    readonly_fields = ("display_total_cost",)

    @admin.display(description="Total Material Cost")
    def display_total_cost(self, obj):
        return _currency(obj.total_material_cost)


# -------------------------------------------------------------------
# INLINE — Line Items in a Job
# -------------------------------------------------------------------
class JobLineItemInline(admin.TabularInline):
    model = JobLineItem
    fields = ("position", "catalog_item", "description", "quantity", "length", "width", "unit", "vat_rate")
    autocomplete_fields = ("catalog_item",)
    show_change_link = True
    extra = 0


# -------------------------------------------------------------------
# JOB ADMIN
# -------------------------------------------------------------------
@admin.register(Job)
class JobAdmin(admin.ModelAdmin):
    list_display = (
        "job_number",
        "customer_name",
        "reference",
        "status",
        "issue_date",
        "display_total_sale",
        "display_total_cost",
    )
    list_filter = ("status", "tax_mode")
    search_fields = ("job_number", "customer_name", "reference")
    ordering = ("-created_at",)
    readonly_fields = (
        "job_number",
        "status",
        "saved_at",
        "created_at",
        "display_total_sale",
        "display_total_cost",
        "display_summary",
    )
    inlines = [JobLineItemInline]
    actions = ["save_jobs", "convert_to_quote", "convert_to_invoice"]

    fieldsets = (
        (None, {"fields": ("job_number", "customer_name", "reference", "issue_date", "status")}),
        (_("Notes & Pricing"), {"fields": ("notes", "tax_mode", "display_total_sale", "display_total_cost")}),
        (_("Live Totals"), {"fields": ("display_summary",)}),
        (_("Timestamps"), {"fields": ("saved_at", "created_at")}),
    )

    @admin.display(description="Total Sale (snapshot)")
    def display_total_sale(self, obj):
        return _currency(obj.total_sale)

    @admin.display(description="Total Cost (snapshot)")
    def display_total_cost(self, obj):
        return _currency(obj.total_cost)

    @admin.display(description="Job Summary")
    def display_summary(self, obj):
        if obj.pk is None:
            return "-"
        _results, totals = services.current_totals(obj)
        return job_summary(totals, job_costing_setting("CURRENCY_SYMBOL"))

    def save_related(self, request, form, formsets, change):
        """Run every line through the line services once the inline lines are saved."""
        super().save_related(request, form, formsets, change)
        edited = {}
        for formset in formsets:
            for line_form in formset.forms:
                if line_form in formset.deleted_forms or not line_form.has_changed():
                    continue
                edited[line_form.instance.pk] = line_form.changed_data

        for line in form.instance.line_items.all():
            changed = edited.get(line.pk, ())
            services.sync_edited_line(
                line,
                item_changed="catalog_item" in changed,
                keep_fields=[name for name in SEED_KEEP_FIELDS if name in changed],
            )

    def _run(self, request, queryset, action, label):
        done = 0
        for job in queryset:
            try:
                action(job)
            except ValidationError as exc:
                self.message_user(request, f"{job.job_number}: {'; '.join(exc.messages)}", messages.ERROR)
            else:
                done += 1
        if done:
            self.message_user(request, f"{done} job(s) {label}.", messages.SUCCESS)

    @admin.action(description="Save selected jobs")
    def save_jobs(self, request, queryset):
        self._run(request, queryset, services.save_job, "saved")

    @admin.action(description="Convert selected jobs to quotes")
    def convert_to_quote(self, request, queryset):
        self._run(request, queryset, lambda job: services.convert_job(job, "quote"), "converted to quotes")

    @admin.action(description="Convert selected jobs to invoices")
    def convert_to_invoice(self, request, queryset):
        self._run(request, queryset, lambda job: services.convert_job(job, "invoice"), "converted to invoices")


# -------------------------------------------------------------------
# JOB LINE ITEM ADMIN
# -------------------------------------------------------------------
@admin.register(JobLineItem)
class JobLineItemAdmin(admin.ModelAdmin):
    list_display = ("description", "job", "quantity", "catalog_item", "vat_rate")
    search_fields = ("description", "job__job_number", "job__customer_name")
    autocomplete_fields = ("job", "catalog_item")
    readonly_fields = ("display_summary",)
    inlines = [CostItemInline]

    fieldsets = (
        ("Core Details", {"fields": ("job", "position", "catalog_item", "description", "quantity")}),
        ("Pricing", {"fields": ("unit_price", ("length", "width", "unit"), "selected_add_on_ids")}),
        ("Discount & VAT", {"fields": (("discount_type", "discount_value"), "vat_rate")}),
        ("Summary", {"fields": ("display_summary",)}),
    )

    @admin.display(description="Line Summary")
    def display_summary(self, obj):
        if obj.pk is None:
            return "-"
        context = services.build_context(obj.job, [obj])
        result = recompute_line(obj, context)
        return line_summary(result, context.currency_symbol, obj.description)

    def save_related(self, request, form, formsets, change):
        """Re-seed from a new catalog item, filter add-ons and recompute once the inlines are saved."""
        super().save_related(request, form, formsets, change)
        services.sync_edited_line(
            form.instance,
            item_changed="catalog_item" in form.changed_data,
            keep_fields=[name for name in SEED_KEEP_FIELDS if name in form.changed_data],
        )
