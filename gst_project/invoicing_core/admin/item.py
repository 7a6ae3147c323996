from django.contrib import admin, messages
from invoicing_core.models import Item, Party
from ..services.reconciliation import reconcile_stock
from .mixins import TenantAdminMixin


# Register `Item` model
@admin.register(Item)
class ItemAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = (
        "id", "company", "name", "item_code", "unit",
        "sale_price", "gst_rate", "hsn_code", "stock",
    )
    search_fields = ("name", "item_code", "hsn_code")
    list_filter = ("company",)
    # stock only moves through postings (and reconciliation)
    readonly_fields = ("stock", "created_at", "updated_at")
    actions = ["reconcile_selected_companies"]

    def get_readonly_fields(self, request, obj=None):
        if obj is not None:
            # opening stock is part of the ledger once transactions exist
            return self.readonly_fields + ("opening_stock",)
        return self.readonly_fields

    def save_model(self, request, obj, form, change):
        if not change:
            obj.stock = obj.opening_stock
        super().save_model(request, obj, form, change)

    @admin.action(description="Check stock of the selected items' companies")
    def reconcile_selected_companies(self, request, queryset):
        companies = {item.company for item in queryset.select_related("company")}
        for company in companies:
            drifts = reconcile_stock(company)
            if drifts:
                names = ", ".join(d.name for d in drifts)
                messages.warning(request, f"{company}: stock drift on {names}.")
            else:
                messages.success(request, f"{company}: stock matches the ledger.")


# Register `Party` model
@admin.register(Party)
class PartyAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = ("id", "company", "name", "party_type", "gstin", "email", "phone")
    search_fields = ("name", "gstin", "email")
    list_filter = ("company", "party_type")

    # Fetch everything in one SQL join
    def get_queryset(self, request):
        qs = super().get_queryset(request)
        return qs.select_related("company")
