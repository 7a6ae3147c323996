from django.db import \
    models  # ORM base classes to define database tables as Python classes

from ..managers import TenantManager
from .entitymembership import Company

PARTY_TYPE_CHOICES = [
    ("customer", "Customer"),  # receives sale invoices
    ("supplier", "Supplier"),  # sends purchase bills
]


# ---------- Party ----------
# A customer or supplier the company trades with
class Party(models.Model):
    # Multi-tenant: every party belongs to a single company.
    company = models.ForeignKey(
        Company, on_delete=models.CASCADE, related_name="parties")
    """ Example:
        Company A can have its own customers separate from Company B.
    """

    # The party’s legal or trade name
    name = models.CharField(max_length=200)

    party_type = models.CharField(max_length=10, choices=PARTY_TYPE_CHOICES)

    # GST identification number (15 chars); blank for unregistered parties
    """ Its first two characters are the state code that decides
        between CGST+SGST and IGST on posted lines. """
    gstin = models.CharField(max_length=15, blank=True, default="")

    # Optional contact details for billing/communication
    email = models.EmailField(blank=True, default="")
    phone = models.CharField(max_length=32, blank=True, default="")
    billing_address = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    # Enforce tenant scoping
    objects = TenantManager()

    class Meta:
        verbose_name_plural = "parties"

        indexes = [
            models.Index(fields=["company", "party_type"], name="party_company_type_idx"),
        ]

        # Enforce uniqueness per tenant
        constraints = [
            models.UniqueConstraint(
                fields=["company", "name"], name="uq_company_party_name"
            ),
        ]

    # Display party name in admin/UI
    def __str__(self):
        return self.name

    def save(self, *args, **kwargs):
        self.gstin = (self.gstin or "").strip().upper()
        self.full_clean(validate_unique=False, validate_constraints=False)
        return super().save(*args, **kwargs)
