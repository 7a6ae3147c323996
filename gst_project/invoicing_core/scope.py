from dataclasses import dataclass
from typing import Any, Optional

from django.conf import settings

from .models import Company
from .services.tax import state_code_from_gstin

# Membership roles allowed to read but not to post
READ_ONLY_ROLES = ("viewer",)


@dataclass(frozen=True)
class CompanyScope:
    """
    The company (and acting user) every engine call runs for.

    Built once per request by CurrentCompanyMiddleware and passed
    explicitly into each service function.
    """
    company: Company
    user: Optional[Any] = None
    role: Optional[str] = None

    @property
    def company_code(self) -> str:
        return self.company.code

    @property
    def can_write(self) -> bool:
        return self.role not in READ_ONLY_ROLES

    @property
    def state_code(self) -> Optional[str]:
        # Explicit state code, then the company's GSTIN, then the deployment default
        return (
            self.company.state_code
            or state_code_from_gstin(self.company.gstin)
            or getattr(settings, "COMPANY_STATE_CODE", None)
        )
