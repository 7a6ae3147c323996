import logging

from django.db import IntegrityError, transaction as db_transaction

from ..exceptions import ConflictError
from ..models import Item, Party
from .audit_helper import log_action
from .unit_of_work import unit_of_work

logger = logging.getLogger(__name__)

ITEM_FIELDS = (
    "name", "item_code", "unit", "sale_price", "purchase_price",
    "opening_stock", "gst_rate", "hsn_code",
)
PARTY_FIELDS = (
    "name", "party_type", "gstin", "email", "phone", "billing_address",
)


def _insert_unique(uow, model, label, data):
    # A taken (company, name) surfaces from the database as IntegrityError
    try:
        with db_transaction.atomic(using=uow.using):
            return model.objects.db_manager(uow.using).create(company=uow.company, **data)
    except IntegrityError as exc:
        raise ConflictError(f"{label} '{data.get('name')}' already exists.") from exc


# ---------- Items ----------
def create_item(scope, **data):
    """Register an item; its stock starts at opening_stock."""
    data = {k: v for k, v in data.items() if k in ITEM_FIELDS}
    data["name"] = (data.get("name") or "").strip()
    data["stock"] = data.get("opening_stock") or 0

    with unit_of_work(scope, "create item") as uow:
        item = _insert_unique(uow, Item, "Item", data)
        log_action(scope, action="create", instance=item,
                   changes={"name": item.name, "opening_stock": item.opening_stock})

    logger.info("Created item %r for %s", item.name, scope.company_code)
    return item


def list_items(scope):
    return Item.objects.for_company(scope.company).order_by("name")


# ---------- Parties ----------
def create_party(scope, **data):
    data = {k: v for k, v in data.items() if k in PARTY_FIELDS}
    data["name"] = (data.get("name") or "").strip()

    with unit_of_work(scope, "create party") as uow:
        party = _insert_unique(uow, Party, "Party", data)
        log_action(scope, action="create", instance=party,
                   changes={"name": party.name, "party_type": party.party_type})

    logger.info("Created party %r for %s", party.name, scope.company_code)
    return party


def list_parties(scope, party_type=None):
    qs = Party.objects.for_company(scope.company)
    if party_type:
        qs = qs.filter(party_type=party_type)
    return qs.order_by("name")
