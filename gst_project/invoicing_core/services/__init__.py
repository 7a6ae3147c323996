from .catalog import create_item, create_party, list_items, list_parties
from .conversion import convert_estimate
from .posting import create_transaction, delete_transaction, update_transaction
from .query import get_transaction, list_transactions
from .reconciliation import reconcile_stock
from .sequence import current_number, next_number
from .tax import compute_line_tax

__all__ = [
    "compute_line_tax",
    "convert_estimate",
    "create_item",
    "create_party",
    "create_transaction",
    "current_number",
    "delete_transaction",
    "get_transaction",
    "list_items",
    "list_parties",
    "list_transactions",
    "next_number",
    "reconcile_stock",
    "update_transaction",
]
