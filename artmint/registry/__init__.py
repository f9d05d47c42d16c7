# artmint/registry/__init__.py
"""
Core registry state.

Three pieces that always move together:
- IdAllocator: sequential, never-reused item ids
- OwnershipLedger: owner and content pointer per live item, plus the
  per-owner index used for enumeration
- AuthorizationGate: who may destroy, transfer or approve an item

Example:
    ledger = OwnershipLedger()
    item_id = ledger.create("alice", "ipfs://bafy...")
    ledger.owner_of(item_id)         # "alice"
    ledger.items_owned_by("alice")   # {item_id}
"""

from .allocator import IdAllocator
from .ledger import Item, LedgerSnapshot, OwnershipLedger
from .gate import AuthorizationGate

__all__ = ["IdAllocator", "Item", "LedgerSnapshot", "OwnershipLedger", "AuthorizationGate"]
