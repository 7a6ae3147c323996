from decimal import Decimal
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from ..managers import ItemManager
from .entitymembership import Company


# ---------- Items (goods a company sells & purchases) ----------
class Item(models.Model):

    # Multi-tenant: each item belongs to a company
    company = models.ForeignKey(
        Company,
        # If the company is deleted, its items are deleted too (CASCADE)
        on_delete=models.CASCADE,
        related_name="items",
    )

    # Required human-readable name, the natural key within a company
    name = models.CharField(max_length=200)

    # Optional internal code (SKU / barcode)
    item_code = models.CharField(max_length=80, blank=True, default="")

    # Unit of measure printed on invoices ("pcs", "kg", ...)
    unit = models.CharField(max_length=20, blank=True, default="")

    # Default prices offered on new sale / purchase lines
    sale_price = models.DecimalField(
        max_digits=18, decimal_places=4, default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0"))],
    )
    purchase_price = models.DecimalField(
        max_digits=18, decimal_places=4, default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0"))],
    )

    # Stock the item was created with
    """ stock == opening_stock + sum of the stock deltas of every
        transaction that references this item (see reconcile_stock). """
    opening_stock = models.IntegerField(default=0)

    # Current stock level of the item (may go negative on oversell)
    # Only ever changed by Item.objects.adjust_stock()
    stock = models.IntegerField(default=0)

    # GST rate in percent, e.g. 18 for 18%
    gst_rate = models.DecimalField(
        max_digits=5, decimal_places=2, default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0")),
                    MaxValueValidator(Decimal("100"))],
    )

    # HSN/SAC classification code
    hsn_code = models.CharField(max_length=20, blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    # Enforce tenant scoping + resolve_or_create / adjust_stock
    objects = ItemManager()

    class Meta:
        # for fast lookups
        indexes = [
            models.Index(fields=["company", "item_code"], name="item_company_code_idx"),
        ]

        constraints = [
            # Ensure each name is unique within a company
            # Across companies, duplicates are allowed
            models.UniqueConstraint(
                fields=["company", "name"], name="uq_company_item_name"
            ),
            models.CheckConstraint(
                condition=models.Q(gst_rate__gte=0) & models.Q(gst_rate__lte=100),
                name="item_gst_rate_range",
            ),
        ]

    def __str__(self):
        return self.name

    def save(self, *args, **kwargs):
        # Field validation only: the (company, name) constraint is enforced
        # by the database and reported as ConflictError by the services
        self.full_clean(validate_unique=False, validate_constraints=False)
        return super().save(*args, **kwargs)
