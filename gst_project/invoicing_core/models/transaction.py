from collections import defaultdict
from decimal import Decimal
from django.core.exceptions import ValidationError
from django.core.validators import (MaxValueValidator, MinValueValidator)
from django.db import models
from django.utils import timezone
from ..managers import TenantManager
from .entitymembership import Company
from .item import Item
from .party import Party

TRANSACTION_TYPE_CHOICES = [
    ("sale", "Sale"),
    ("purchase", "Purchase"),
    ("saleReturn", "Sale return"),
    ("purchaseReturn", "Purchase return"),
    ("estimate", "Estimate / quotation"),
    ("saleOrder", "Sale order"),
    ("purchaseOrder", "Purchase order"),
    ("paymentIn", "Payment in"),
    ("paymentOut", "Payment out"),
    ("expense", "Expense"),
]
TRANSACTION_TYPES = frozenset(code for code, _ in TRANSACTION_TYPE_CHOICES)

STATUS_CHOICES = [
    ("Draft", "Draft"),
    ("Sent", "Sent"),
    ("Viewed", "Viewed"),
    ("Accepted", "Accepted"),
    ("Rejected", "Rejected"),
    ("Invoiced", "Invoiced"),
]
""" Workflow:
    Draft → Sent → Viewed → Accepted / Rejected are set by the client.
    Invoiced is terminal and only reached by converting an estimate. """

# Goods leave the shelf
STOCK_OUT_TYPES = frozenset({"sale", "purchaseReturn"})
# Goods come back onto the shelf
STOCK_IN_TYPES = frozenset({"purchase", "saleReturn"})
# Everything else (estimates, orders, payments, expenses) leaves stock alone


def stock_direction(transaction_type):
    """-1, +1 or 0: sign applied to each line quantity when posting."""
    if transaction_type in STOCK_OUT_TYPES:
        return -1
    if transaction_type in STOCK_IN_TYPES:
        return 1
    return 0


class Transaction(models.Model):  # A sale, purchase, return, estimate, order, payment or expense

    # Transaction belongs to one company (multi-tenant)
    company = models.ForeignKey(
        Company, on_delete=models.CASCADE, related_name="transactions")

    transaction_type = models.CharField(
        max_length=20, choices=TRANSACTION_TYPE_CHOICES)

    status = models.CharField(
        max_length=10, choices=STATUS_CHOICES, default="Draft"
    )

    # human-readable, unique per (company, type), e.g. "42"
    transaction_number = models.CharField(max_length=64)

    # Optionally linked to a Party
    party = models.ForeignKey(
        Party,
        null=True,
        blank=True,
        # prevent deleting a party who has transactions
        on_delete=models.PROTECT,
        related_name="transactions",
    )
    # Party GSTIN as it was when the transaction was posted
    party_gstin = models.CharField(max_length=15, blank=True, default="")

    # Amounts as supplied by the client
    subtotal = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))
    discount = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))
    total_amount = models.DecimalField(
        max_digits=18, decimal_places=2,
        validators=[MinValueValidator(Decimal("0"))],
    )
    amount_paid = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))
    balance_due = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))

    transaction_date = models.DateTimeField(default=timezone.now)
    description = models.TextField(blank=True, default="")

    # Estimate this sale was converted from
    converted_from = models.ForeignKey(
        "self",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="conversions",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    # Enforce tenant scoping
    objects = TenantManager()

    class Meta:
        ordering = ["-transaction_date", "-created_at"]
        indexes = [
            models.Index(fields=["company", "transaction_type"], name="txn_company_type_idx"),
            models.Index(fields=["company", "party"], name="txn_company_party_idx"),
            models.Index(fields=["company", "transaction_date"], name="txn_company_date_idx"),
        ]

        constraints = [
            # Within one company, each number is unique per transaction type
            # Across companies, duplicates are allowed
            models.UniqueConstraint(
                fields=["company", "transaction_type", "transaction_number"],
                name="uq_txn_company_type_number",
            ),
            models.CheckConstraint(
                condition=models.Q(total_amount__gte=0),
                name="txn_non_negative_total",
            ),
        ]

    def __str__(self):
        return f"{self.get_transaction_type_display()} {self.transaction_number}"

    @property
    def stock_direction(self):
        return stock_direction(self.transaction_type)

    def stock_deltas(self, reverse=False):
        """{item_id: signed quantity} this transaction applies to stock."""
        sign = self.stock_direction * (-1 if reverse else 1)
        deltas = defaultdict(int)
        if not sign:
            return {}
        for line in self.lines.all():
            deltas[line.item_id] += sign * line.quantity
        return dict(deltas)

    def clean(self):
        # Ensure party chosen belongs to the same company
        if self.party_id and self.party.company_id != self.company_id:
            raise ValidationError("Party must belong to the same company.")

    def save(self, *args, **kwargs):
        # (company, type, number) uniqueness is left to the database
        self.full_clean(validate_unique=False, validate_constraints=False)
        return super().save(*args, **kwargs)


class LineItem(
    models.Model
):  # Each line describes a good sold / bought on the transaction

    # Line belongs to both company and parent transaction
    company = models.ForeignKey(Company, on_delete=models.CASCADE)
    transaction = models.ForeignKey(
        Transaction, on_delete=models.CASCADE, related_name="lines")

    # Keeps the order the lines were submitted in
    position = models.PositiveIntegerField(default=0)

    item = models.ForeignKey(
        Item,
        # Prevent deleting item which has been invoiced
        on_delete=models.PROTECT,
        related_name="line_items",
    )
    description = models.TextField(blank=True, default="")

    # Core pricing logic: quantity × rate = taxable_value
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    rate = models.DecimalField(
        max_digits=18, decimal_places=4,
        validators=[MinValueValidator(Decimal("0"))],
    )

    # Snapshots copied from the Item at posting time
    """ A later change to Item.gst_rate / hsn_code must not
        rewrite the tax of invoices that were already issued. """
    gst_rate = models.DecimalField(
        max_digits=5, decimal_places=2, default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0")),
                    MaxValueValidator(Decimal("100"))],
    )
    hsn_code = models.CharField(max_length=20, blank=True, default="")

    # Computed by services.tax.compute_line_tax
    taxable_value = models.DecimalField(
        max_digits=18, decimal_places=4, default=Decimal("0.00"))
    cgst = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))
    sgst = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))
    igst = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))

    # Enforce tenant scoping
    objects = TenantManager()

    class Meta:
        ordering = ["position", "id"]
        indexes = [
            models.Index(fields=["company", "transaction"], name="line_company_txn_idx"),
            models.Index(fields=["company", "item"], name="line_company_item_idx"),
        ]

        # Ensure quantity & rate are never negative
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1) &
                models.Q(rate__gte=0),
                name="line_positive_quantity_rate",
            ),
        ]

    def __str__(self):
        return f"{self.transaction} - {self.item} x {self.quantity}"

    @property
    def total_tax(self):
        return self.cgst + self.sgst + self.igst

    def clean(self):
        # Tenant safety: line, transaction and item share one company
        if self.transaction_id and self.transaction.company_id != self.company_id:
            raise ValidationError(
                "LineItem.company must match Transaction.company")
        if self.item_id and self.item.company_id != self.company_id:
            raise ValidationError(
                "LineItem.company must match Item.company")

    def save(self, *args, **kwargs):
        self.full_clean(validate_constraints=False)
        return super().save(*args, **kwargs)
