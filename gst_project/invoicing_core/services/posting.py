import logging

from django.core.exceptions import ValidationError as ModelValidationError
from django.db import IntegrityError, transaction as db_transaction

from ..exceptions import ConflictError, NotFoundError, ValidationError
from ..models import Item, Party, Transaction
from .audit_helper import log_action
from .tax import compute_line_tax, state_code_from_gstin
from .unit_of_work import unit_of_work

logger = logging.getLogger(__name__)

# Header fields a PUT may replace
EDITABLE_FIELDS = (
    "transaction_number",
    "status",
    "party_id",
    "subtotal",
    "discount",
    "total_amount",
    "amount_paid",
    "balance_due",
    "transaction_date",
    "description",
)


# ----------------------------
# Building blocks
# ----------------------------
def get_party(uow, party_id):
    if party_id is None:
        return None
    try:
        return uow.parties.get(pk=party_id)
    except Party.DoesNotExist:
        raise NotFoundError(f"Party with ID {party_id} not found.")


def get_locked_transaction(uow, transaction_id):
    # Lock the row to avoid two deletes / conversions racing
    try:
        return uow.transactions.select_for_update().get(pk=transaction_id)
    except Transaction.DoesNotExist:
        raise NotFoundError(f"Transaction with ID {transaction_id} not found.")


def resolve_item(uow, line):
    """
    Item for one requested line:
      1. item id given → that item (NotFoundError if not in this company)
      2. name only → resolve-or-create by (company, name)
      3. neither → ValidationError
    """
    if line.item_id is not None:
        try:
            return uow.items.get(pk=line.item_id)
        except Item.DoesNotExist:
            raise NotFoundError(f"Item with ID {line.item_id} not found.")

    name = (line.name or "").strip()
    if name:
        # Seed values are used only if the item does not exist yet
        defaults = {
            "sale_price": line.rate,
            "purchase_price": line.rate,
            "gst_rate": line.gst_rate or 0,
            "hsn_code": line.hsn_code or "",
            "unit": line.unit or "",
            "item_code": line.item_code or "",
        }
        try:
            return uow.items.resolve_or_create(uow.company, name, defaults)
        except ModelValidationError as exc:
            raise ValidationError(f"Item '{name}': " + "; ".join(exc.messages)) from exc

    raise ValidationError(
        "Item data is malformed. It must have an existing item id "
        "or a name for a new item."
    )


def write_lines(uow, txn, line_requests):
    """Resolve, tax and insert every line of `txn` in request order."""
    party_state = state_code_from_gstin(txn.party_gstin)
    company_state = uow.scope.state_code

    lines = []
    for position, line in enumerate(line_requests):
        item = resolve_item(uow, line)
        tax = compute_line_tax(
            line.quantity, line.rate, item.gst_rate, company_state, party_state
        )
        lines.append(
            uow.lines.create(
                company=uow.company,
                transaction=txn,
                position=position,
                item=item,
                description=line.description or "",
                quantity=line.quantity,
                rate=line.rate,
                # snapshots: later edits to the item do not touch this line
                gst_rate=item.gst_rate,
                hsn_code=item.hsn_code,
                taxable_value=tax.taxable_value,
                cgst=tax.cgst,
                sgst=tax.sgst,
                igst=tax.igst,
            )
        )
    return lines


def retax_lines(uow, txn):
    """Recompute the GST split of the stored lines for txn's current party."""
    party_state = state_code_from_gstin(txn.party_gstin)
    company_state = uow.scope.state_code
    for line in txn.lines.all():
        tax = compute_line_tax(
            line.quantity, line.rate, line.gst_rate, company_state, party_state
        )
        line.taxable_value = tax.taxable_value
        line.cgst, line.sgst, line.igst = tax.cgst, tax.sgst, tax.igst
        line.save(using=uow.using, update_fields=["taxable_value", "cgst", "sgst", "igst"])


def insert_transaction(uow, **fields):
    """Insert the header; a taken (company, type, number) → ConflictError."""
    try:
        # Savepoint: the IntegrityError must not poison the outer block
        with db_transaction.atomic(using=uow.using):
            return uow.transactions.create(company=uow.company, **fields)
    except IntegrityError as exc:
        raise ConflictError(
            f"Transaction number {fields.get('transaction_number')} already "
            f"exists for {fields.get('transaction_type')}."
        ) from exc


def save_header(uow, txn):
    """Persist header edits; a taken (company, type, number) → ConflictError."""
    try:
        with db_transaction.atomic(using=uow.using):
            txn.save(using=uow.using)
    except IntegrityError as exc:
        raise ConflictError(
            f"Transaction number {txn.transaction_number} already "
            f"exists for {txn.transaction_type}."
        ) from exc


# ----------------------------
# Transaction workflows
# ----------------------------
def create_transaction(scope, request):
    """
    Post a transaction: resolve/create its items, compute GST per line,
    save it and apply its stock effect, all in one atomic unit.
    """
    request.validate()

    with unit_of_work(scope, f"post {request.transaction_type}") as uow:
        party = get_party(uow, request.party_id)
        txn = insert_transaction(
            uow,
            transaction_type=request.transaction_type,
            party=party,
            party_gstin=party.gstin if party else "",
            **request.details.as_fields(),
        )
        write_lines(uow, txn, request.lines)
        uow.add_stock(txn.stock_deltas())

        log_action(
            scope,
            action="create",
            instance=txn,
            changes={
                "type": txn.transaction_type,
                "number": txn.transaction_number,
                "total_amount": str(txn.total_amount),
                "stock": {str(k): v for k, v in uow.pending_stock.items()},
            },
        )

    logger.info(
        "Posted %s %s for %s (%d lines)",
        txn.transaction_type, txn.transaction_number,
        scope.company_code, len(request.lines),
    )
    return txn


def update_transaction(scope, transaction_id, changes, lines=None):
    """
    Replace the editable header fields in `changes`; when `lines` is
    given, also replace the lines, reversing the old stock effect and
    applying the new one inside the same unit.
    """
    changes = dict(changes)
    new_type = changes.pop("transaction_type", None)
    unknown = set(changes) - set(EDITABLE_FIELDS)
    if unknown:
        raise ValidationError(f"Fields not editable: {', '.join(sorted(unknown))}.")
    if "total_amount" in changes:
        if changes["total_amount"] is None:
            raise ValidationError("totalAmount cannot be empty.")
        if changes["total_amount"] < 0:
            raise ValidationError("totalAmount must be >= 0.")
    if "transaction_number" in changes and not str(changes["transaction_number"] or "").strip():
        raise ValidationError("transactionNumber cannot be empty.")
    for position, line in enumerate(lines or ()):
        line.validate(position)

    with unit_of_work(scope, "update transaction") as uow:
        txn = get_locked_transaction(uow, transaction_id)
        if new_type and new_type != txn.transaction_type:
            raise ValidationError("The type of a posted transaction cannot change.")
        # Invoiced is entered only by conversion and never left
        if "status" in changes and (
            (changes["status"] == "Invoiced") != (txn.status == "Invoiced")
        ):
            raise ValidationError(
                "Status 'Invoiced' is only set by converting an estimate."
            )

        old_state = state_code_from_gstin(txn.party_gstin)
        if "party_id" in changes:
            party = get_party(uow, changes["party_id"])
            txn.party = party
            txn.party_gstin = party.gstin if party else ""
        for field in EDITABLE_FIELDS:
            if field in changes and field != "party_id":
                setattr(txn, field, changes[field])
        save_header(uow, txn)

        if lines is not None:
            uow.add_stock(txn.stock_deltas(reverse=True))
            txn.lines.all().delete()
            write_lines(uow, txn, lines)
            uow.add_stock(txn.stock_deltas())
        elif state_code_from_gstin(txn.party_gstin) != old_state:
            retax_lines(uow, txn)

        log_action(
            scope,
            action="update",
            instance=txn,
            changes={
                "fields": sorted(changes),
                "lines_replaced": lines is not None,
            },
        )

    logger.info("Updated %s %s for %s", txn.transaction_type,
                txn.transaction_number, scope.company_code)
    return txn


def delete_transaction(scope, transaction_id):
    """Reverse the stock effect of a transaction, then delete it (atomically)."""
    with unit_of_work(scope, "delete transaction") as uow:
        txn = get_locked_transaction(uow, transaction_id)
        uow.add_stock(txn.stock_deltas(reverse=True))

        log_action(
            scope,
            action="delete",
            instance=txn,
            changes={
                "type": txn.transaction_type,
                "number": txn.transaction_number,
                "stock": {str(k): v for k, v in uow.pending_stock.items()},
            },
        )
        txn.delete()

    logger.info("Deleted transaction %s for %s", transaction_id, scope.company_code)
    return transaction_id
