from django.contrib import admin
from invoicing_core.models import Company, EntityMembership
from .mixins import TenantAdminMixin


# Register `Company` model in admin with this custom config
@admin.register(Company)
class CompanyAdmin(admin.ModelAdmin):
    """a clean admin table for browsing companies"""

    # columns shown in company list view
    list_display = ("id", "name", "code", "state_code", "gstin", "created_at")
    search_fields = ("name", "code", "gstin")  # enable search by name and code
    ordering = ("name",)  # sort companies alphabetically by default

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        if request.user.is_superuser:
            return qs
        # Non-superusers only see companies they belong to
        return qs.filter(memberships__user=request.user).distinct()


# Register EntityMembership model
@admin.register(EntityMembership)
class EntityMembershipAdmin(TenantAdminMixin, admin.ModelAdmin):
    # Show memberships
    list_display = ("user", "company", "role", "is_default", "is_active", "created_at")
    list_filter = ("role", "is_active", "company")
    search_fields = ("user__username", "user__email", "company__name")
    readonly_fields = ("created_at",)  # prevent tampering with creation date
    ordering = ("company__name", "user__username")

    # Scope querysets by company
    # prevents someone from snooping into memberships of other companies
    def get_queryset(self, request):
        qs = super().get_queryset(request)
        return qs.select_related("company", "user")

    def _managed_company_ids(self, request):
        # Companies where current user has owner/admin role
        return set(
            request.user.memberships.filter(
                role__in=("owner", "admin")).values_list("company_id", flat=True)
        )

    # To modify memberships
    def has_change_permission(self, request, obj=None):
        if request.user.is_superuser:
            return True
        company_ids = self._managed_company_ids(request)
        if obj is None:
            # change list: Owner/Admin in at least one company
            return bool(company_ids)
        return obj.company_id in company_ids

    # To delete memberships
    def has_delete_permission(self, request, obj=None):
        return self.has_change_permission(request, obj)

    # To add memberships
    def has_add_permission(self, request):
        if request.user.is_superuser:
            return True
        return bool(self._managed_company_ids(request))
