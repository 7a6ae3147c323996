from django.db import models
from django.db.models import F
from django.utils import timezone

# -----------------------------------------
# Enforce tenant scoping across all models
# that belong to a company
# -----------------------------------------
# Define subclass of Django’s QuerySet
class TenantQuerySet(models.QuerySet):
    def for_company(self, company):         # Add queryset helper
        return self.filter(company=company) # Apply filter

    # Enables query:
    # Transaction.objects.for_company(scope.company)


# Attach TenantQuerySet to .objects
class TenantManager(models.Manager):

    def get_queryset(self): # ensure every model gets TenantQuerySet(so .for_company() is always available)
        return TenantQuerySet(self.model, using=self._db)

    def for_company(self, company): # can call for_company() directly on objects
        return self.get_queryset().for_company(company)


# -----------------------------------------
# Item registry: the two concurrency-sensitive writes
# -----------------------------------------
class ItemQuerySet(TenantQuerySet):

    def resolve_or_create(self, company, name, defaults=None):
        """
        Return the company's item called `name`, inserting it first if absent.

        The insert is a single conditional statement
        (INSERT ... ON CONFLICT DO NOTHING on the (company, name) unique
        constraint), so two concurrent callers can never create two items
        and an existing item is never modified.
        """
        candidate = self.model(company=company, name=name, **(defaults or {}))
        # bulk_create skips save(), so validate field values here.
        # Uniqueness is left to the database constraint.
        candidate.full_clean(validate_unique=False, validate_constraints=False)
        self.bulk_create([candidate], ignore_conflicts=True)
        return self.get(company=company, name=name)

    def adjust_stock(self, company, deltas):
        """
        Apply {item_id: delta} as atomic increments (UPDATE ... SET stock = stock + delta).

        Rows are touched in id order so concurrent postings lock items
        in the same sequence. Returns the number of rows updated.
        """
        now = timezone.now()
        updated = 0
        for item_id in sorted(deltas):
            delta = deltas[item_id]
            if not delta:
                continue
            updated += self.filter(company=company, pk=item_id).update(
                stock=F("stock") + delta,
                updated_at=now,  # .update() bypasses auto_now
            )
        return updated


# Manager exposing ItemQuerySet methods on Item.objects
class ItemManager(models.Manager.from_queryset(ItemQuerySet)):
    pass
