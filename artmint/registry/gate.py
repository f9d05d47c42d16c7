# artmint/registry/gate.py
"""
Authorization rules for mutating operations.

Creation is permissionless. Destruction is allowed to the owner, to an
approved operator, and to the collection administrator. Transfer and
approval follow the usual owner/operator rules with no administrator
override.
"""

from ..approvals import ApprovalRegistry
from .ledger import OwnershipLedger


class AuthorizationGate:
    """Decides whether a caller may mutate a given item."""

    def __init__(self, ledger: OwnershipLedger, approvals: ApprovalRegistry, admin: str):
        self.ledger = ledger
        self.approvals = approvals
        self.admin = admin

    def may_destroy(self, caller: str, item_id: int) -> bool:
        """
        Check destroy permission.

        Raises NotFound for an item that is not live, so callers can tell
        "no such item" apart from "not authorized".
        """
        owner = self.ledger.owner_of(item_id)
        if caller == owner or caller == self.admin:
            return True
        return self.approvals.is_approved(caller, item_id, owner)

    def may_transfer(self, caller: str, item_id: int) -> bool:
        owner = self.ledger.owner_of(item_id)
        if caller == owner:
            return True
        return self.approvals.is_approved(caller, item_id, owner)

    def may_approve(self, caller: str, item_id: int) -> bool:
        owner = self.ledger.owner_of(item_id)
        return caller == owner or self.approvals.is_approved_for_all(owner, caller)
