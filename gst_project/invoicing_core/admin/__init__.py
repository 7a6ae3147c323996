from .auditlog import AuditLogAdmin, SequenceCounterAdmin
from .item import ItemAdmin, PartyAdmin
from .membership import CompanyAdmin, EntityMembershipAdmin
from .mixins import TenantAdminMixin
from .ReadOnly import ReadOnlyAdmin
from .transaction import LineItemInline, TransactionAdmin
