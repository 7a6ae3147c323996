from .auditlog import AuditLog
from .entitymembership import Company, EntityMembership
from .item import Item
from .party import Party
from .sequence import SequenceCounter
from .transaction import LineItem, Transaction
