import logging
from collections import defaultdict
from contextlib import contextmanager

from django.core.exceptions import ValidationError as ModelValidationError
from django.db import DEFAULT_DB_ALIAS, DatabaseError, transaction as db_transaction

from ..exceptions import PostingError, StoreError, ValidationError
from ..models import Item, LineItem, Party, Transaction

logger = logging.getLogger(__name__)


class UnitOfWork:
    """
    One all-or-nothing engine operation for one company.

    Handed to every helper that touches the database during the
    operation. Stock deltas are collected with add_stock() and written
    as atomic increments just before the block commits.
    """

    def __init__(self, scope, action, using=DEFAULT_DB_ALIAS):
        self.scope = scope
        self.action = action
        self.using = using
        self._stock = defaultdict(int)

    @property
    def company(self):
        return self.scope.company

    # Company scoped querysets bound to this unit's database
    @property
    def items(self):
        return Item.objects.db_manager(self.using).for_company(self.company)

    @property
    def parties(self):
        return Party.objects.db_manager(self.using).for_company(self.company)

    @property
    def transactions(self):
        return Transaction.objects.db_manager(self.using).for_company(self.company)

    @property
    def lines(self):
        return LineItem.objects.db_manager(self.using).for_company(self.company)

    def add_stock(self, deltas):
        for item_id, delta in deltas.items():
            self._stock[item_id] += delta

    @property
    def pending_stock(self):
        return {k: v for k, v in self._stock.items() if v}

    def flush_stock(self):
        deltas = self.pending_stock
        if not deltas:
            return
        updated = self.items.adjust_stock(self.company, deltas)
        if updated != len(deltas):
            # An item vanished between resolution and the increment
            raise StoreError(
                f"Stock update touched {updated} of {len(deltas)} items."
            )
        self._stock.clear()

    def on_commit(self, func):
        db_transaction.on_commit(func, using=self.using)


@contextmanager
def unit_of_work(scope, action, using=DEFAULT_DB_ALIAS):
    """
    with unit_of_work(scope, "post sale") as uow:
        ...

    Commits when the block exits normally (after flushing stock),
    rolls everything back otherwise. Errors leave as PostingError
    subclasses: model validation → ValidationError, any other
    database failure → StoreError.
    """
    try:
        with db_transaction.atomic(using=using):
            uow = UnitOfWork(scope, action, using=using)
            yield uow
            uow.flush_stock()
    except PostingError:
        raise
    except ModelValidationError as exc:
        raise ValidationError("; ".join(exc.messages)) from exc
    except DatabaseError as exc:
        logger.exception("%s failed for %s; rolled back", action, scope.company_code)
        raise StoreError(f"Could not {action}; nothing was saved.") from exc
