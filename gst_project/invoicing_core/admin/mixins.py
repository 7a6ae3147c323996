from ..scope import CompanyScope


class TenantAdminMixin:
    """
    Enforce tenant isolation in Django admin.
    Uses request.company (set by CurrentCompanyMiddleware).
    """

    def _get_request_company(self, request):
        return getattr(request, "company", None)

    def _get_scope(self, request, obj=None):
        # Superusers act on behalf of the object's own company
        company = getattr(obj, "company", None) or self._get_request_company(request)
        return CompanyScope(company=company, user=request.user)

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        company = self._get_request_company(request)

        # If superuser, show everything;
        # otherwise restrict to company if available
        if request.user.is_superuser:
            return qs
        if company is None:
            # If no company available in request, return none
            return qs.none()
        return qs.filter(company=company)

    def formfield_for_foreignkey(self, db_field, request, **kwargs):
        """
        Restrict foreignkey dropdowns to the current company where appropriate.
        Example: company field, party field, item field.
        """
        company = self._get_request_company(request)

        if not request.user.is_superuser:
            rel_model = db_field.related_model
            if db_field.name == "company":
                kwargs["queryset"] = rel_model.objects.filter(
                    pk=getattr(company, "pk", None))
            # if related model has a `company` field,
            # restrict it to request's company
            elif any(f.name == "company" for f in rel_model._meta.fields):
                kwargs["queryset"] = rel_model.objects.filter(company=company)

        return super().formfield_for_foreignkey(db_field, request, **kwargs)

    def save_model(self, request, obj, form, change):
        # Ensure object is always owned by company on save (unless superuser)
        if not request.user.is_superuser:
            company = self._get_request_company(request)
            if company is not None:
                obj.company = company
        super().save_model(request, obj, form, change)
