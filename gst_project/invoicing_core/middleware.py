from django.utils.deprecation import MiddlewareMixin
from .models import EntityMembership
from .scope import CompanyScope


class CurrentCompanyMiddleware(MiddlewareMixin):
    # Run on every request and
    # attach .company and .scope to the request, based on the logged-in user
    def process_request(self, request):
        request.company = None
        request.scope = None

        if not request.user.is_authenticated:  # Unauthenticated users
            return

        # If user switched companies,
        # choice is stored in the session as "active_company_id"
        company_id = request.session.get("active_company_id")
        memberships = EntityMembership.objects.select_related("company").filter(
            user=request.user, is_active=True
        )
        if company_id:
            # ensure security: user must be a member of that company
            # prevent someone from tampering with their session and
            # "jumping" into another company.
            membership = memberships.filter(company_id=company_id).first()
        else:
            # Default company fallback (from EntityMembership.is_default)
            membership = memberships.filter(is_default=True).first()
        company = membership.company if membership else None

        if company is not None:
            request.company = company
            request.scope = CompanyScope(
                company=company, user=request.user, role=membership.role
            )
