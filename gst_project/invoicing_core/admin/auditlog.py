from django.contrib import admin

from invoicing_core.models import AuditLog, SequenceCounter

from .mixins import TenantAdminMixin
from .ReadOnly import ReadOnlyAdmin


# Register `AuditLog` model
@admin.register(AuditLog)
class AuditLogAdmin(TenantAdminMixin, ReadOnlyAdmin):
    list_display = (
        "id",
        "company",
        "user",
        "action",
        "object_type",
        "object_id",
        "created_at",
    )
    search_fields = ("object_type", "object_id", "user__username")
    list_filter = ("company", "action", "created_at")

    # Fetch everything in one SQL join
    def get_queryset(self, request):
        qs = super().get_queryset(request)
        return qs.select_related("company", "user")


# Register `SequenceCounter` model
@admin.register(SequenceCounter)
class SequenceCounterAdmin(TenantAdminMixin, ReadOnlyAdmin):
    list_display = ("key", "company", "value", "updated_at")
    search_fields = ("key",)
    list_filter = ("company",)
