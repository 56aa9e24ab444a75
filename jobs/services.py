# jobs/services.py
import logging
from decimal import Decimal
from typing import Iterable, List, Optional, Tuple

from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from catalog.models import ItemType, MeasurementUnit, SaleCatalogItem
from engine.services.context import PricingContext
from engine.services.costs import CostResult
from engine.services.pricing import available_add_ons_for
from engine.services.summaries import money
from engine.services.totals import JobTotals, LineResult, aggregate_totals, recompute_line
from materials.models import SupplierMaterialItem

from .models import CostItem, CostItemKind, DiscountType, Job, JobLineItem

logger = logging.getLogger(__name__)

STORED_PLACES = Decimal("0.0001")
CONVERSION_TARGETS = {
    "quote": Job.Status.QUOTED,
    "invoice": Job.Status.INVOICED,
}


class JobValidationError(ValidationError):
    """Raised when a job is saved or converted without its required header fields."""


# -------------------------------------------------------------------
# CONTEXT
# -------------------------------------------------------------------
def _lines_of(job: Job) -> List[JobLineItem]:
    return list(job.line_items.all().prefetch_related("cost_items"))


def build_context(job: Job, lines: Optional[Iterable[JobLineItem]] = None) -> PricingContext:
    """
    Load the catalog items, their parents and the materials the job's lines
    refer to, plus the configured defaults, into a PricingContext.
    """
    lines = list(lines) if lines is not None else _lines_of(job)

    item_ids = {line.catalog_item_id for line in lines if line.catalog_item_id}
    items = list(SaleCatalogItem.objects.filter(pk__in=item_ids).prefetch_related("add_on_options"))
    parent_ids = {item.parent_id for item in items if item.parent_id} - item_ids
    if parent_ids:
        items += list(SaleCatalogItem.objects.filter(pk__in=parent_ids).prefetch_related("add_on_options"))

    material_ids = {
        ci.material_id for line in lines for ci in line.cost_items.all() if ci.material_id
    }
    materials = SupplierMaterialItem.objects.filter(pk__in=material_ids)

    return PricingContext.from_settings(items, materials, tax_mode=job.tax_mode)


# -------------------------------------------------------------------
# LINE MUTATIONS
# -------------------------------------------------------------------
def add_line(job: Job, **fields) -> JobLineItem:
    """Append a blank line carrying the default VAT rate and no discount."""
    context = PricingContext.from_settings(tax_mode=job.tax_mode)
    fields.setdefault("vat_rate", context.default_vat_rate)
    fields.setdefault("discount_type", DiscountType.FIXED)
    fields.setdefault("discount_value", Decimal("0.00"))
    fields.setdefault("quantity", 1)
    position = job.line_items.count()
    return JobLineItem.objects.create(job=job, position=position, **fields)


@transaction.atomic
def select_catalog_item(line: JobLineItem, item: SaleCatalogItem) -> JobLineItem:
    """
    Point a line at a catalog item: take its name and VAT rate, reset the
    dimensions and add-ons, and replace the cost items with one linked cost
    per material the item declares.
    """
    context = PricingContext.from_settings()

    line.catalog_item = item
    line.description = item.name
    line.unit_price = None
    line.vat_rate = item.vat_rate if item.vat_rate is not None else context.default_vat_rate
    line.selected_add_on_ids = []
    line.length = None
    line.width = None
    line.unit = ""
    if item.item_type == ItemType.MEASURED:
        line.unit = item.measurement_unit or MeasurementUnit.M
    line.save()

    line.cost_items.all().delete()
    for material in item.linked_materials.all():
        add_linked_cost_item(line, material)

    logger.debug("Line %s now sells %s", line.pk, item.pk)
    return line


def set_selected_add_ons(line: JobLineItem, add_on_ids, context: Optional[PricingContext] = None) -> List[str]:
    """Store the selection, keeping only ids the line can actually offer."""
    if context is None:
        context = build_context(line.job, [line])
    item = context.catalog_item(line.catalog_item_id)
    offered = {str(opt.id) for opt in available_add_ons_for(item, context)}

    selected = []
    for add_on_id in add_on_ids or ():
        key = str(add_on_id)
        if key in offered and key not in selected:
            selected.append(key)
        elif key not in offered:
            logger.debug("Dropping add-on %s not offered on line %s", key, line.pk)

    line.selected_add_on_ids = selected
    line.save(update_fields=["selected_add_on_ids"])
    return selected


def add_linked_cost_item(line: JobLineItem, material: SupplierMaterialItem) -> CostItem:
    return CostItem.objects.create(
        line=line,
        kind=CostItemKind.LINKED,
        description=material.name,
        material=material,
    )


def add_manual_cost_item(
    line: JobLineItem,
    description: str = "New Manual Cost",
    manual_cost=Decimal("0.00"),
    cost_vat_rate=None,
) -> CostItem:
    return CostItem.objects.create(
        line=line,
        kind=CostItemKind.MANUAL,
        description=description,
        manual_cost=manual_cost,
        cost_vat_rate=cost_vat_rate,
    )


# -------------------------------------------------------------------
# RECOMPUTE & COMMIT
# -------------------------------------------------------------------
def _stored(value) -> Decimal:
    return Decimal(value).quantize(STORED_PLACES)


def apply_cost_result(cost_item: CostItem, result: CostResult) -> bool:
    """
    Copy computed values onto a cost item. Returns True and saves only when
    a stored value actually changed.
    """
    changes = {
        "proportional_cost": _stored(result.proportional_cost),
        "wastage_cost": _stored(result.wastage_cost),
        "total_material_cost": _stored(result.total_material_cost),
        "cost_vat": _stored(result.cost_vat),
    }
    changed = [
        name for name, value in changes.items()
        if getattr(cost_item, name) is None or _stored(getattr(cost_item, name)) != value
    ]
    if not changed:
        return False
    for name in changed:
        setattr(cost_item, name, changes[name])
    cost_item.save(update_fields=changed)
    return True


def commit_line(line: JobLineItem, context: PricingContext) -> LineResult:
    """Recompute one line and write back whichever cost items moved."""
    result = recompute_line(line, context)
    by_id = {c.cost_item_id: c for c in result.cost_items}
    for cost_item in line.cost_items.all():
        cost_result = by_id.get(str(cost_item.pk))
        if cost_result is not None:
            apply_cost_result(cost_item, cost_result)
    return result


@transaction.atomic
def sync_edited_line(line: JobLineItem, item_changed: bool = False, keep_fields: Iterable[str] = ()) -> LineResult:
    """
    Bring a line whose fields were written directly (admin forms) back in
    step: re-seed it from a newly chosen catalog item, drop add-ons it can
    no longer offer, and commit its costs. Fields named in `keep_fields`
    survive the re-seed.
    """
    selection = list(line.selected_add_on_ids or [])
    if item_changed and line.catalog_item_id is not None:
        kept = {name: getattr(line, name) for name in keep_fields}
        select_catalog_item(line, line.catalog_item)
        if kept:
            for name, value in kept.items():
                setattr(line, name, value)
            line.save(update_fields=list(kept))

    context = build_context(line.job, [line])
    set_selected_add_ons(line, selection, context)
    return commit_line(line, context)


def current_totals(job: Job) -> Tuple[List[LineResult], JobTotals]:
    """Live totals from current catalog prices; nothing is written."""
    lines = _lines_of(job)
    context = build_context(job, lines)
    results = [recompute_line(line, context) for line in lines]
    return results, aggregate_totals(results)


# -------------------------------------------------------------------
# SAVE / CONVERT
# -------------------------------------------------------------------
def validate_job(job: Job) -> None:
    if not (job.customer_name or "").strip() or not (job.reference or "").strip():
        raise JobValidationError(
            "Customer and Reference must be filled in before saving or converting.",
            code="missing_header",
        )


@transaction.atomic
def save_job(job: Job, status: str = Job.Status.SAVED) -> JobTotals:
    """
    Recompute every line, commit cost items, and snapshot the job's
    totals as of now.
    """
    validate_job(job)
    lines = _lines_of(job)
    context = build_context(job, lines)
    results = [commit_line(line, context) for line in lines]
    totals = aggregate_totals(results)

    job.total_sale = money(totals.total_sale)
    job.total_cost = money(totals.total_cost)
    job.status = status
    job.saved_at = timezone.now()
    job.save()

    logger.info(
        "Saved job %s (%s): sale %s, cost %s",
        job.job_number, job.get_status_display(), job.total_sale, job.total_cost,
    )
    return totals


def convert_job(job: Job, target: str) -> JobTotals:
    """Snapshot the job and mark it converted to a quote or an invoice."""
    try:
        status = CONVERSION_TARGETS[target]
    except KeyError:
        raise ValueError(f"Cannot convert a job to {target!r}") from None
    totals = save_job(job, status=status)
    logger.info("Converted job %s to %s", job.job_number, target)
    return totals
