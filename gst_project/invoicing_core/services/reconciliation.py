"""
Check the stock ledger: for every item,

    stock == opening_stock + sum(direction × quantity) over its lines

A drift means stock was changed outside the posting engine (or a
bug slipped through). fix=True rewrites stock to the derived value.
"""
import logging
from dataclasses import dataclass

from django.db import transaction as db_transaction
from django.db.models import Case, F, IntegerField, Sum, Value, When

from ..models import Item, LineItem
from ..models.transaction import STOCK_IN_TYPES, STOCK_OUT_TYPES

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StockDrift:
    item_id: int
    name: str
    stock: int
    expected: int

    @property
    def difference(self):
        return self.stock - self.expected


def ledger_deltas(company):
    """{item_id: net stock movement} derived from the company's posted lines."""
    signed = Case(
        When(transaction__transaction_type__in=STOCK_OUT_TYPES, then=-F("quantity")),
        When(transaction__transaction_type__in=STOCK_IN_TYPES, then=F("quantity")),
        default=Value(0),
        output_field=IntegerField(),
    )
    rows = (
        LineItem.objects.for_company(company)
        .values("item_id")
        .annotate(delta=Sum(signed))
        .order_by()
    )
    return {row["item_id"]: row["delta"] or 0 for row in rows}


def reconcile_stock(company, fix=False):
    """Return the items whose stock drifted; with fix=True, correct them."""
    deltas = ledger_deltas(company)
    drifts = []

    with db_transaction.atomic():
        items = Item.objects.for_company(company).order_by("pk")
        if fix:
            items = items.select_for_update()
        for item in items:
            expected = item.opening_stock + deltas.get(item.pk, 0)
            if item.stock == expected:
                continue
            drift = StockDrift(item.pk, item.name, item.stock, expected)
            drifts.append(drift)
            logger.warning(
                "Stock drift for %s item %r: stock=%s expected=%s",
                company.code, item.name, item.stock, expected,
            )
            if fix:
                Item.objects.filter(pk=item.pk).update(stock=expected)

    if fix and drifts:
        logger.info("Corrected stock of %d item(s) for %s", len(drifts), company.code)
    return drifts
