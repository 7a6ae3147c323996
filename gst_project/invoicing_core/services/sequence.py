import logging

from django.db import DatabaseError, transaction as db_transaction
from django.db.models import F

from ..exceptions import StoreError, ValidationError
from ..models import SequenceCounter
from ..models.sequence import sequence_key
from ..models.transaction import TRANSACTION_TYPES

logger = logging.getLogger(__name__)


def _check_type(transaction_type):
    if transaction_type not in TRANSACTION_TYPES:
        raise ValidationError(f"Unknown transaction type '{transaction_type}'.")


def next_number(scope, transaction_type) -> int:
    """
    Issue the next number for (transaction_type, company).

    Create-if-absent on the unique key, then one atomic
    UPDATE value = value + 1 read back inside the same transaction.
    The row lock taken by the UPDATE is held until commit, so no two
    callers can read the same value. Numbers of rolled back callers
    are never seen; numbers issued but never used leave gaps.
    """
    _check_type(transaction_type)
    key = sequence_key(transaction_type, scope.company_code)
    try:
        with db_transaction.atomic():
            counter, _ = SequenceCounter.objects.get_or_create(
                key=key, defaults={"company": scope.company}
            )
            SequenceCounter.objects.filter(pk=counter.pk).update(value=F("value") + 1)
            counter.refresh_from_db(fields=["value"])
    except DatabaseError as exc:
        logger.exception("Sequence %s could not be advanced", key)
        raise StoreError(f"Could not allocate a number for {transaction_type}.") from exc

    logger.debug("Sequence %s issued %s", key, counter.value)
    return counter.value


def current_number(scope, transaction_type) -> int:
    """Last number issued for (transaction_type, company); 0 if none."""
    _check_type(transaction_type)
    key = sequence_key(transaction_type, scope.company_code)
    return (
        SequenceCounter.objects.filter(key=key)
        .values_list("value", flat=True)
        .first()
    ) or 0
