from django.contrib import admin, messages
from django.db.models import Prefetch
from invoicing_core.exceptions import PostingError
from invoicing_core.models import LineItem, Transaction
from ..services import convert_estimate, delete_transaction
from .mixins import TenantAdminMixin


class LineItemInline(admin.TabularInline):
    """Shows posted lines (with their tax snapshots) under a Transaction page"""

    model = LineItem
    extra = 0
    fields = (
        "position", "item", "description", "quantity", "rate",
        "gst_rate", "hsn_code", "taxable_value", "cgst", "sgst", "igst",
    )
    readonly_fields = fields
    can_delete = False
    ordering = ("position", "id")

    def has_add_permission(self, request, obj=None):
        return False


# Register `Transaction` model
@admin.register(Transaction)
class TransactionAdmin(TenantAdminMixin, admin.ModelAdmin):
    """
    Browse postings. Lines and stock are only changed through the
    posting engine, so the admin never edits them directly; deleting
    goes through delete_transaction() to reverse stock.
    """
    list_display = (
        "id",
        "company",
        "transaction_type",
        "transaction_number",
        "party",
        "transaction_date",
        "status",
        "total_amount",
    )
    list_filter = ("company", "transaction_type", "status")
    search_fields = ("transaction_number", "party__name", "party_gstin")
    date_hierarchy = "transaction_date"
    inlines = [LineItemInline]
    actions = ["convert_selected_estimates"]

    def has_add_permission(self, request):
        # Posting requires line resolution + stock; use the API
        return False

    def get_readonly_fields(self, request, obj=None):
        # Only the workflow status and notes stay editable here
        return [
            f.name for f in self.model._meta.fields
            if f.name not in ("status", "description")
        ]

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        return qs.select_related("company", "party").prefetch_related(
            Prefetch("lines", queryset=LineItem.objects.select_related("item"))
        )

    def save_model(self, request, obj, form, change):
        # Invoiced is entered only by conversion and never left
        if (obj.status == "Invoiced") != (form.initial.get("status") == "Invoiced"):
            messages.error(request, "Only converting an estimate sets status Invoiced.")
            return
        super().save_model(request, obj, form, change)

    def delete_model(self, request, obj):
        delete_transaction(self._get_scope(request, obj), obj.pk)

    def delete_queryset(self, request, queryset):
        # Each row is its own unit; a failed row is reported and skipped
        for txn in queryset.select_related("company"):
            try:
                delete_transaction(self._get_scope(request, txn), txn.pk)
            except PostingError as exc:
                self.message_user(request, f"{txn}: {exc.detail}", level=messages.ERROR)

    @admin.action(description="Convert selected estimates into sales")
    def convert_selected_estimates(self, request, queryset):
        converted = 0
        for txn in queryset.select_related("company"):
            try:
                sale = convert_estimate(self._get_scope(request, txn), txn.pk)
            except PostingError as exc:
                self.message_user(
                    request,
                    f"{txn}: {exc.detail}",
                    level=messages.ERROR,
                )
                continue
            converted += 1
            self.message_user(request, f"{txn} → sale {sale.transaction_number}")
        self.message_user(
            request,
            f"Converted {converted} of {queryset.count()} estimates.",
            level=messages.SUCCESS,
        )
