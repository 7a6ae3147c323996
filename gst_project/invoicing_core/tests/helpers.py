"""Small builders shared by the engine tests."""
from decimal import Decimal

from ..domain import LineRequest, TransactionDetails, TransactionRequest
from ..models import Company, Item, Party
from ..scope import CompanyScope


def make_company(code="acme", state_code="27", **extra):
    return Company.objects.create(
        name=extra.pop("name", code.title()), code=code, state_code=state_code, **extra
    )


def make_scope(company, user=None):
    return CompanyScope(company=company, user=user)


def make_item(company, name="Widget", stock=0, gst_rate="18", **extra):
    return Item.objects.create(
        company=company,
        name=name,
        opening_stock=stock,
        stock=stock,
        gst_rate=Decimal(gst_rate),
        sale_price=Decimal(extra.pop("sale_price", "100")),
        **extra,
    )


def make_party(company, name="Local Traders", gstin="27ABCDE1234F1Z5", party_type="customer"):
    return Party.objects.create(
        company=company, name=name, gstin=gstin, party_type=party_type
    )


def line(item=None, quantity=1, rate="100", **extra):
    """LineRequest by item (model or id) or, with name=..., by name."""
    item_id = getattr(item, "pk", item)
    return LineRequest(item_id=item_id, quantity=quantity, rate=Decimal(rate), **extra)


def txn_request(transaction_type, number, lines=(), party=None, total="0", **details):
    return TransactionRequest(
        transaction_type=transaction_type,
        party_id=getattr(party, "pk", party),
        lines=tuple(lines),
        details=TransactionDetails(
            transaction_number=number,
            total_amount=None if total is None else Decimal(total),
            **details,
        ),
    )
