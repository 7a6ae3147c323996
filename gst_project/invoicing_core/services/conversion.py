import logging

from django.utils import timezone

from ..exceptions import ConflictError, ValidationError
from .audit_helper import log_action
from .posting import get_locked_transaction, insert_transaction
from .sequence import next_number
from .unit_of_work import unit_of_work

logger = logging.getLogger(__name__)

# Header fields carried over from the estimate to the sale
COPIED_FIELDS = (
    "party",
    "party_gstin",
    "subtotal",
    "discount",
    "total_amount",
    "amount_paid",
    "balance_due",
    "description",
)


def convert_estimate(scope, transaction_id):
    """
    Turn an estimate into a sale.

    The sale gets a freshly issued sale number, copies of the estimate's
    lines (tax snapshots included) and the sale's stock decrement.
    The estimate is marked Invoiced so it cannot be converted twice.
    """
    with unit_of_work(scope, "convert estimate") as uow:
        estimate = get_locked_transaction(uow, transaction_id)

        if estimate.transaction_type != "estimate":
            raise ValidationError(
                f"Only estimates can be converted; this is a {estimate.transaction_type}."
            )
        if estimate.status == "Invoiced":
            raise ConflictError(
                f"Estimate {estimate.transaction_number} was already converted."
            )

        number = next_number(scope, "sale")
        # Skip numbers a client already posted by hand
        while uow.transactions.filter(
            transaction_type="sale", transaction_number=str(number)
        ).exists():
            number = next_number(scope, "sale")
        sale = insert_transaction(
            uow,
            transaction_type="sale",
            transaction_number=str(number),
            status="Draft",
            transaction_date=timezone.now(),
            converted_from=estimate,
            **{name: getattr(estimate, name) for name in COPIED_FIELDS},
        )

        for line in estimate.lines.all():
            uow.lines.create(
                company=uow.company,
                transaction=sale,
                position=line.position,
                item_id=line.item_id,
                description=line.description,
                quantity=line.quantity,
                rate=line.rate,
                gst_rate=line.gst_rate,
                hsn_code=line.hsn_code,
                taxable_value=line.taxable_value,
                cgst=line.cgst,
                sgst=line.sgst,
                igst=line.igst,
            )
        uow.add_stock(sale.stock_deltas())

        estimate.status = "Invoiced"
        estimate.save(update_fields=["status", "updated_at"])

        log_action(
            scope,
            action="convert",
            instance=estimate,
            changes={"sale_id": sale.pk, "sale_number": sale.transaction_number},
        )

    logger.info(
        "Converted estimate %s into sale %s for %s",
        estimate.transaction_number, sale.transaction_number, scope.company_code,
    )
    return sale
