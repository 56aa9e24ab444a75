# services/context.py
"""
Read-only reference data a recomputation runs against.

The engine never looks anything up on its own: the caller collects the
sale catalog, the supplier materials and the job-level defaults into a
PricingContext and passes it explicitly to every compute call.
"""
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Iterable, Optional

from engine.services.units import to_rate

logger = logging.getLogger(__name__)

DEFAULTS = {
    "DEFAULT_VAT_RATE": "20",
    "CURRENCY_SYMBOL": "£",
    "CLAMP_NEGATIVE_PRICES": True,
}

TAX_MODES = ("exclusive", "inclusive", "none")


def job_costing_setting(name: str):
    """Read one key of settings.JOB_COSTING, falling back to DEFAULTS."""
    from django.conf import settings  # lazy: engine stays importable without a project

    configured = getattr(settings, "JOB_COSTING", None) or {}
    return configured.get(name, DEFAULTS.get(name))


def _key(value) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


def index_by_id(objects: Optional[Iterable[Any]]) -> Dict[str, Any]:
    """Map str(id) -> object for any iterable of objects carrying an `id`."""
    index = {}
    for obj in objects or ():
        key = _key(getattr(obj, "id", None))
        if key is not None:
            index[key] = obj
    return index


@dataclass(frozen=True)
class PricingContext:
    catalog: Dict[str, Any] = field(default_factory=dict)
    materials: Dict[str, Any] = field(default_factory=dict)
    default_vat_rate: Decimal = Decimal("20")
    tax_mode: str = "exclusive"
    clamp_negative: bool = True
    currency_symbol: str = "£"

    @classmethod
    def build(
        cls,
        catalog_items: Optional[Iterable[Any]] = None,
        material_items: Optional[Iterable[Any]] = None,
        *,
        default_vat_rate=Decimal("20"),
        tax_mode: str = "exclusive",
        clamp_negative: bool = True,
        currency_symbol: str = "£",
    ) -> "PricingContext":
        return cls(
            catalog=index_by_id(catalog_items),
            materials=index_by_id(material_items),
            default_vat_rate=to_rate(default_vat_rate),
            tax_mode=normalise_tax_mode(tax_mode),
            clamp_negative=bool(clamp_negative),
            currency_symbol=currency_symbol or "",
        )

    @classmethod
    def from_settings(
        cls,
        catalog_items: Optional[Iterable[Any]] = None,
        material_items: Optional[Iterable[Any]] = None,
        *,
        tax_mode: str = "exclusive",
    ) -> "PricingContext":
        return cls.build(
            catalog_items,
            material_items,
            default_vat_rate=job_costing_setting("DEFAULT_VAT_RATE"),
            tax_mode=tax_mode,
            clamp_negative=job_costing_setting("CLAMP_NEGATIVE_PRICES"),
            currency_symbol=job_costing_setting("CURRENCY_SYMBOL"),
        )

    # ---------------------------------------------------------------
    # Lookups: dangling references resolve to None, never raise
    # ---------------------------------------------------------------
    def catalog_item(self, item_id) -> Optional[Any]:
        key = _key(item_id)
        if key is None:
            return None
        item = self.catalog.get(key)
        if item is None:
            logger.debug("Catalog item %s not found", key)
        return item

    def material(self, material_id) -> Optional[Any]:
        key = _key(material_id)
        if key is None:
            return None
        material = self.materials.get(key)
        if material is None:
            logger.debug("Supplier material %s not found", key)
        return material

    def parent_of(self, item) -> Optional[Any]:
        return self.catalog_item(getattr(item, "parent_id", None))


def normalise_tax_mode(mode) -> str:
    code = str(mode or "").strip().lower()
    if code in TAX_MODES:
        return code
    logger.warning("Unknown tax mode %r, treating as exclusive", mode)
    return "exclusive"
