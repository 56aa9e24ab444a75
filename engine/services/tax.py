# services/tax.py
from dataclasses import dataclass
from decimal import Decimal

from engine.services.context import normalise_tax_mode
from engine.services.units import HUNDRED, ONE, ZERO, to_decimal, to_rate


@dataclass(frozen=True)
class TaxBreakdown:
    sale_ex_vat: Decimal
    vat_amount: Decimal
    gross_total: Decimal


def decompose(amount, vat_rate, tax_mode: str) -> TaxBreakdown:
    """
    Split a post-discount amount into ex-VAT sale, VAT and gross under the
    job's tax mode:

      exclusive  amount is ex VAT; VAT is added on top
      inclusive  amount already contains VAT; it is backed out
      none       no VAT whatever the line's stored rate
    """
    value = to_decimal(amount)
    mode = normalise_tax_mode(tax_mode)

    if mode == "none":
        return TaxBreakdown(sale_ex_vat=value, vat_amount=ZERO, gross_total=value)

    rate = to_rate(vat_rate)
    if mode == "inclusive":
        sale = value / (ONE + rate / HUNDRED)
        return TaxBreakdown(sale_ex_vat=sale, vat_amount=value - sale, gross_total=value)

    vat = value * rate / HUNDRED
    return TaxBreakdown(sale_ex_vat=value, vat_amount=vat, gross_total=value + vat)
