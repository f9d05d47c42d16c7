# artmint/approvals.py
"""
Operator approvals.

Two kinds of delegation, as in ERC-721:
- a single operator approved for one item
- operators approved for every item of an owner
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Set


@dataclass
class ApprovalSnapshot:
    item_approvals: Dict[int, str]
    operators: Dict[str, Set[str]]


class ApprovalRegistry:
    """Records which identities may act on an item or on an owner's behalf."""

    def __init__(self):
        self._item_approvals: Dict[int, str] = {}
        self._operators: Dict[str, Set[str]] = {}

    def approve(self, item_id: int, operator: Optional[str]) -> None:
        """Approve one operator for an item. None clears the approval."""
        if operator:
            self._item_approvals[item_id] = operator
        else:
            self._item_approvals.pop(item_id, None)

    def get_approved(self, item_id: int) -> Optional[str]:
        return self._item_approvals.get(item_id)

    def clear_item(self, item_id: int) -> None:
        self._item_approvals.pop(item_id, None)

    def set_approval_for_all(self, owner: str, operator: str, approved: bool) -> None:
        if approved:
            self._operators.setdefault(owner, set()).add(operator)
            return
        operators = self._operators.get(owner)
        if operators is not None:
            operators.discard(operator)
            if not operators:
                del self._operators[owner]

    def is_approved_for_all(self, owner: str, operator: str) -> bool:
        return operator in self._operators.get(owner, ())

    def is_approved(self, caller: str, item_id: int, owner: str) -> bool:
        """Caller holds either the item approval or blanket approval from owner."""
        if self._item_approvals.get(item_id) == caller:
            return True
        return self.is_approved_for_all(owner, caller)

    def snapshot(self) -> ApprovalSnapshot:
        return ApprovalSnapshot(
            item_approvals=dict(self._item_approvals),
            operators={k: set(v) for k, v in self._operators.items()},
        )

    def restore(self, snapshot: ApprovalSnapshot) -> None:
        self._item_approvals = dict(snapshot.item_approvals)
        self._operators = {k: set(v) for k, v in snapshot.operators.items()}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "items": {str(k): v for k, v in sorted(self._item_approvals.items())},
            "operators": {k: sorted(v) for k, v in sorted(self._operators.items())},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ApprovalRegistry":
        registry = cls()
        registry._item_approvals = {
            int(k): v for k, v in data.get("items", {}).items()
        }
        registry._operators = {
            k: set(v) for k, v in data.get("operators", {}).items() if v
        }
        return registry
