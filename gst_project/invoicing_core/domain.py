"""
Request objects accepted by the posting engine.

The HTTP layer builds these from validated JSON; tests and management
commands build them directly. Only the fields declared here reach the
database: nothing from the request body is merged in opaquely.
"""
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional, Sequence

from .exceptions import ValidationError
from .models.transaction import TRANSACTION_TYPES

_HUNDRED = Decimal("100")


@dataclass(frozen=True)
class LineRequest:
    """One requested line: an existing item id, or a name to resolve-or-create."""
    quantity: int
    rate: Decimal
    item_id: Optional[int] = None
    name: Optional[str] = None
    # Only used to seed an item that does not exist yet
    gst_rate: Optional[Decimal] = None
    hsn_code: str = ""
    unit: str = ""
    item_code: str = ""
    description: str = ""

    def validate(self, position: int) -> None:
        label = f"Line {position + 1}"
        if self.item_id is None and not (self.name or "").strip():
            raise ValidationError(
                f"{label}: malformed line item; it must have an existing "
                "item id or a name for a new item."
            )
        if self.quantity is None or int(self.quantity) != self.quantity or self.quantity < 1:
            raise ValidationError(f"{label}: quantity must be a whole number >= 1.")
        if self.rate is None or Decimal(self.rate) < 0:
            raise ValidationError(f"{label}: rate must be >= 0.")
        if self.gst_rate is not None and not (0 <= Decimal(self.gst_rate) <= _HUNDRED):
            raise ValidationError(f"{label}: gstRate must be between 0 and 100.")


@dataclass(frozen=True)
class TransactionDetails:
    """The "other details" of a transaction: number, amounts, dates."""
    transaction_number: Optional[str] = None
    total_amount: Optional[Decimal] = None
    subtotal: Decimal = Decimal("0.00")
    discount: Decimal = Decimal("0.00")
    amount_paid: Decimal = Decimal("0.00")
    balance_due: Decimal = Decimal("0.00")
    transaction_date: Optional[datetime] = None
    description: str = ""
    status: str = "Draft"

    def as_fields(self) -> dict:
        fields = {
            "transaction_number": str(self.transaction_number).strip(),
            "total_amount": self.total_amount,
            "subtotal": self.subtotal,
            "discount": self.discount,
            "amount_paid": self.amount_paid,
            "balance_due": self.balance_due,
            "description": self.description,
            "status": self.status,
        }
        if self.transaction_date is not None:
            fields["transaction_date"] = self.transaction_date
        return fields


@dataclass(frozen=True)
class TransactionRequest:
    transaction_type: Optional[str]
    details: TransactionDetails
    party_id: Optional[int] = None
    lines: Sequence[LineRequest] = field(default_factory=tuple)

    def validate(self) -> None:
        """Checked before any write starts."""
        missing = []
        if not self.transaction_type:
            missing.append("type")
        if self.details.total_amount is None:
            missing.append("totalAmount")
        if not str(self.details.transaction_number or "").strip():
            missing.append("transactionNumber")
        if missing:
            raise ValidationError(
                "Missing required fields: " + ", ".join(missing) + "."
            )
        if self.transaction_type not in TRANSACTION_TYPES:
            raise ValidationError(
                f"Unknown transaction type '{self.transaction_type}'."
            )
        if Decimal(self.details.total_amount) < 0:
            raise ValidationError("totalAmount must be >= 0.")
        if self.details.status == "Invoiced":
            raise ValidationError(
                "Status 'Invoiced' is only set by converting an estimate."
            )
        for position, line in enumerate(self.lines):
            line.validate(position)
