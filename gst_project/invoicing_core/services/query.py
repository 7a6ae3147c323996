from django.db.models import Prefetch

from ..exceptions import NotFoundError, ValidationError
from ..models import LineItem, Transaction
from ..models.transaction import TRANSACTION_TYPES


def _split_types(types):
    # "sale,purchase" or ["sale", "purchase"]
    if not types:
        return []
    if isinstance(types, str):
        types = types.split(",")
    types = [t.strip() for t in types if t and t.strip()]
    unknown = [t for t in types if t not in TRANSACTION_TYPES]
    if unknown:
        raise ValidationError(f"Unknown transaction type(s): {', '.join(unknown)}.")
    return types


def _with_details(qs):
    lines = Prefetch(
        "lines", queryset=LineItem.objects.select_related("item").order_by("position", "id")
    )
    return qs.select_related("party").prefetch_related(lines)


def list_transactions(scope, types=None, party_id=None, start_date=None, end_date=None):
    """
    Company transactions, newest first.

    Filters combine with AND; start/end dates are inclusive calendar days
    in the active time zone.
    """
    qs = Transaction.objects.for_company(scope.company)

    types = _split_types(types)
    if types:
        qs = qs.filter(transaction_type__in=types)
    if party_id is not None:
        qs = qs.filter(party_id=party_id)
    if start_date is not None:
        qs = qs.filter(transaction_date__date__gte=start_date)
    if end_date is not None:
        qs = qs.filter(transaction_date__date__lte=end_date)

    return _with_details(qs).order_by("-transaction_date", "-created_at")


def get_transaction(scope, transaction_id):
    qs = _with_details(Transaction.objects.for_company(scope.company))
    try:
        return qs.get(pk=transaction_id)
    except Transaction.DoesNotExist:
        raise NotFoundError(f"Transaction with ID {transaction_id} not found.")
