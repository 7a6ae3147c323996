from rest_framework import serializers

from .domain import LineRequest, TransactionDetails, TransactionRequest
from .models import Item, LineItem, Party, Transaction
from .models.party import PARTY_TYPE_CHOICES
from .models.transaction import STATUS_CHOICES


# ---------- Read side (camelCase projections) ----------
class ItemSerializer(serializers.ModelSerializer):
    """Serializer for the Item model. Stock is read-only: only postings move it."""
    itemCode = serializers.CharField(source="item_code", required=False, allow_blank=True)
    salePrice = serializers.DecimalField(
        source="sale_price", max_digits=18, decimal_places=4, min_value=0, required=False)
    purchasePrice = serializers.DecimalField(
        source="purchase_price", max_digits=18, decimal_places=4, min_value=0, required=False)
    openingStock = serializers.IntegerField(source="opening_stock", required=False)
    gstRate = serializers.DecimalField(
        source="gst_rate", max_digits=5, decimal_places=2,
        min_value=0, max_value=100, required=False)
    hsnCode = serializers.CharField(source="hsn_code", required=False, allow_blank=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)

    class Meta:
        model = Item
        fields = [
            "id", "name", "itemCode", "unit", "salePrice", "purchasePrice",
            "openingStock", "stock", "gstRate", "hsnCode", "createdAt", "updatedAt",
        ]
        read_only_fields = ["id", "stock"]
        # (company, name) uniqueness is reported by the service as a conflict
        validators = []


class PartySerializer(serializers.ModelSerializer):
    type = serializers.ChoiceField(source="party_type", choices=PARTY_TYPE_CHOICES)
    billingAddress = serializers.CharField(
        source="billing_address", required=False, allow_blank=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)

    class Meta:
        model = Party
        fields = ["id", "name", "type", "gstin", "email", "phone", "billingAddress", "createdAt"]
        read_only_fields = ["id"]
        validators = []


class PartyRefSerializer(serializers.ModelSerializer):
    class Meta:
        model = Party
        fields = ["id", "name", "gstin"]


class ItemRefSerializer(serializers.ModelSerializer):
    hsnCode = serializers.CharField(source="hsn_code")
    gstRate = serializers.DecimalField(source="gst_rate", max_digits=5, decimal_places=2)

    class Meta:
        model = Item
        fields = ["id", "name", "hsnCode", "gstRate"]


class LineItemSerializer(serializers.ModelSerializer):
    item = ItemRefSerializer()
    gstRate = serializers.DecimalField(source="gst_rate", max_digits=5, decimal_places=2)
    hsnCode = serializers.CharField(source="hsn_code")
    taxableValue = serializers.DecimalField(
        source="taxable_value", max_digits=18, decimal_places=4)

    class Meta:
        model = LineItem
        fields = [
            "id", "item", "description", "quantity", "rate", "gstRate", "hsnCode",
            "taxableValue", "cgst", "sgst", "igst",
        ]


class TransactionSerializer(serializers.ModelSerializer):
    type = serializers.CharField(source="transaction_type")
    transactionNumber = serializers.CharField(source="transaction_number")
    party = PartyRefSerializer(allow_null=True)
    partyGstin = serializers.CharField(source="party_gstin")
    items = LineItemSerializer(source="lines", many=True)
    totalAmount = serializers.DecimalField(source="total_amount", max_digits=18, decimal_places=2)
    amountPaid = serializers.DecimalField(source="amount_paid", max_digits=18, decimal_places=2)
    balanceDue = serializers.DecimalField(source="balance_due", max_digits=18, decimal_places=2)
    transactionDate = serializers.DateTimeField(source="transaction_date")
    convertedFrom = serializers.PrimaryKeyRelatedField(source="converted_from", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at")
    updatedAt = serializers.DateTimeField(source="updated_at")

    class Meta:
        model = Transaction
        fields = [
            "id", "type", "status", "transactionNumber", "party", "partyGstin",
            "items", "subtotal", "discount", "totalAmount", "amountPaid",
            "balanceDue", "transactionDate", "description", "convertedFrom",
            "createdAt", "updatedAt",
        ]


# ---------- Write side (explicit allow-list; unknown keys are dropped) ----------
class LineInputSerializer(serializers.Serializer):
    item = serializers.IntegerField(source="item_id", required=False, allow_null=True)
    name = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    quantity = serializers.IntegerField(min_value=1)
    rate = serializers.DecimalField(max_digits=18, decimal_places=4, min_value=0)
    gstRate = serializers.DecimalField(
        source="gst_rate", max_digits=5, decimal_places=2,
        min_value=0, max_value=100, required=False, allow_null=True)
    hsnCode = serializers.CharField(source="hsn_code", required=False, allow_blank=True)
    unit = serializers.CharField(required=False, allow_blank=True)
    itemCode = serializers.CharField(source="item_code", required=False, allow_blank=True)
    description = serializers.CharField(required=False, allow_blank=True)


class TransactionInputSerializer(serializers.Serializer):
    """
    Body of POST/PUT /transactions/.

    type, totalAmount and transactionNumber are checked by the engine
    so the missing-field error names all of them at once.
    """
    type = serializers.CharField(source="transaction_type", required=False, allow_null=True)
    partyId = serializers.IntegerField(source="party_id", required=False, allow_null=True)
    items = LineInputSerializer(source="lines", many=True, required=False)
    transactionNumber = serializers.CharField(
        source="transaction_number", required=False, allow_null=True, allow_blank=True)
    totalAmount = serializers.DecimalField(
        source="total_amount", max_digits=18, decimal_places=2,
        required=False, allow_null=True)
    subtotal = serializers.DecimalField(max_digits=18, decimal_places=2, required=False)
    discount = serializers.DecimalField(max_digits=18, decimal_places=2, required=False)
    amountPaid = serializers.DecimalField(
        source="amount_paid", max_digits=18, decimal_places=2, required=False)
    balanceDue = serializers.DecimalField(
        source="balance_due", max_digits=18, decimal_places=2, required=False)
    transactionDate = serializers.DateTimeField(source="transaction_date", required=False)
    description = serializers.CharField(required=False, allow_blank=True)
    status = serializers.ChoiceField(choices=STATUS_CHOICES, required=False)

    def to_request(self):
        data = dict(self.validated_data)
        lines = [LineRequest(**line) for line in data.pop("lines", [])]
        transaction_type = data.pop("transaction_type", None)
        party_id = data.pop("party_id", None)
        return TransactionRequest(
            transaction_type=transaction_type,
            party_id=party_id,
            lines=tuple(lines),
            details=TransactionDetails(**data),
        )

    def to_changes(self):
        """(changes, lines) for update_transaction; lines is None when absent."""
        data = dict(self.validated_data)
        lines = data.pop("lines", None)
        if lines is not None:
            lines = [LineRequest(**line) for line in lines]
        return data, lines


class TransactionQuerySerializer(serializers.Serializer):
    type = serializers.CharField(required=False, allow_blank=True)
    partyId = serializers.IntegerField(source="party_id", required=False)
    startDate = serializers.DateField(source="start_date", required=False)
    endDate = serializers.DateField(source="end_date", required=False)
