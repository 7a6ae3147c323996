"""
GST split for one posted line.

Pure function, no database access: the caller supplies the item's
rate and both state codes.
"""
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


@dataclass(frozen=True)
class LineTax:
    taxable_value: Decimal
    total_tax: Decimal
    cgst: Decimal
    sgst: Decimal
    igst: Decimal


def state_code_from_gstin(gstin):
    """Leading two characters of a GSTIN, or None when it is too short."""
    gstin = (gstin or "").strip()
    if len(gstin) >= 2:
        return gstin[:2].upper()
    return None


def is_intra_state(company_state, party_state):
    """Same state (both known and equal) → CGST + SGST, otherwise IGST."""
    return bool(company_state) and bool(party_state) and company_state == party_state


def compute_line_tax(quantity, rate, gst_rate, company_state=None, party_state=None):
    """
    taxable_value = quantity × rate
    total_tax     = taxable_value × gst_rate / 100   (rounded to paise)

    The intra-state split puts the odd paisa on SGST so that
    cgst + sgst == total_tax exactly.
    """
    taxable_value = Decimal(quantity) * Decimal(rate)
    total_tax = (taxable_value * Decimal(gst_rate or 0) / Decimal("100")).quantize(
        CENT, rounding=ROUND_HALF_UP
    )

    if is_intra_state(company_state, party_state):
        cgst = (total_tax / 2).quantize(CENT, rounding=ROUND_HALF_UP)
        return LineTax(taxable_value, total_tax, cgst, total_tax - cgst, ZERO)
    return LineTax(taxable_value, total_tax, ZERO, ZERO, total_tax)
