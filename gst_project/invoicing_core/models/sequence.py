from django.db import models
from ..managers import TenantManager
from .entitymembership import Company


def sequence_key(transaction_type, company_code):
    """Counter key for one (transaction type, company) pair, e.g. "sale_acme"."""
    return f"{transaction_type}_{company_code}"


# ---------- Sequence counter ----------
class SequenceCounter(models.Model):
    """
    Last number issued for one (transaction type, company) pair.

    The row is the only source of truth for the next number: it is
    advanced with a single UPDATE ... SET value = value + 1, never by
    scanning the latest transaction.
    """
    key = models.CharField(max_length=120, unique=True)

    # Tenant owning the counter (the key already embeds its code)
    company = models.ForeignKey(
        Company, on_delete=models.CASCADE, related_name="sequence_counters")

    # Last value handed out; 0 means none yet
    value = models.BigIntegerField(default=0)

    updated_at = models.DateTimeField(auto_now=True)

    # Enforce tenant scoping
    objects = TenantManager()

    def __str__(self):
        return f"{self.key} = {self.value}"
