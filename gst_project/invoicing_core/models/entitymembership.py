from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import RegexValidator
from django.db import models
from ..managers import TenantManager


state_code_validator = RegexValidator(
    r"^[0-9A-Z]{2}$", "State code must be two characters, e.g. '27'."
)


# ---------- Tenant / Company ----------
class Company(models.Model):

    """Tenant / Organization"""
    # Store company’s full display name
    name = models.CharField(max_length=200)

    # The company_code every scoped record hangs off
    code = models.SlugField(  # A URL-friendly identifier
        max_length=80, unique=True  # no two companies can have the same code
    )

    # GST state code of the company's registration (first two GSTIN chars)
    """ Decides CGST+SGST (same state as the party)
        vs IGST (different state) on every posted line.
        Falls back to settings.COMPANY_STATE_CODE when blank. """
    state_code = models.CharField(
        max_length=2, blank=True, default="",
        validators=[state_code_validator],
    )

    # The company's own GSTIN, printed on invoices
    gstin = models.CharField(max_length=15, blank=True, default="")

    # Store timestamp when the record is first created
    created_at = models.DateTimeField(auto_now_add=True)

    # Meta options
    class Meta:
        verbose_name_plural = "companies"

    # String Representation
    def __str__(self):
        return self.name


# ---------- EntityMembership ----------
class EntityMembership(
    models.Model
):  # Bridge table (or a "join model") between User and Company

    # Limit roles to predefined values
    # Django admin / forms will show a dropdown with these choices
    ROLE_CHOICES = [
        # full control (e.g., the person who created the company)
        ("owner", "Owner"),
        # can manage settings & users
        ("admin", "Admin"),
        (
            "accountant",
            "Accountant",
        ),  # can post sales, purchases, returns
        ("viewer", "Viewer"),  # read-only access
    ]

    # Link to the configured user model
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        # If user is deleted, their memberships go too
        on_delete=models.CASCADE,
        related_name="memberships",  # See all companies users belong to
    )

    # Links to a Company record
    company = models.ForeignKey(
        "Company", on_delete=models.CASCADE, related_name="memberships"
    )

    # Store user’s role in the company
    role = models.CharField(
        max_length=20,
        choices=ROLE_CHOICES,
        default="viewer",  # Defaults to "viewer" (safe, read-only)
    )

    # Company picked when the session has not chosen one
    is_default = models.BooleanField(default=False)

    # Suspend someone’s access without deleting the record
    is_active = models.BooleanField(default=True)

    # Automatically record when membership was created
    created_at = models.DateTimeField(auto_now_add=True)

    # Enforce tenant scoping
    objects = TenantManager()

    class Meta:
        # one user can only have one membership per company
        # (prevents duplicates)
        constraints = [
            models.UniqueConstraint(
                fields=["user", "company"], name="uq_user_company_membership"
            ),
        ]

        # make lookups fast
        # (important since almost every request resolves a company)
        indexes = [
            models.Index(fields=["company", "user"], name="membership_company_user_idx"),
        ]

    def __str__(self):
        # Make debugging/admin easier
        return f"{self.user} @ {self.company} ({self.role})"

    def clean(self):
        """A user has at most one default company."""
        if self.is_default and self.user_id:
            others = EntityMembership.objects.filter(
                user_id=self.user_id, is_default=True
            ).exclude(pk=self.pk)
            if others.exists():
                raise ValidationError(
                    f"{self.user} already has a default company."
                )

    def save(self, *args, **kwargs):
        self.full_clean(validate_constraints=False)  # run validations before saving
        return super().save(*args, **kwargs)
