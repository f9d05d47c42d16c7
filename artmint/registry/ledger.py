# artmint/registry/ledger.py
"""
Ownership ledger for minted items.

Tracks, for every live item, its owner and content pointer, plus a
per-owner index so "items owned by X" costs O(owned count) rather than a
scan of the whole collection.
"""

import logging
import time
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterator, List, Optional, Set

from ..errors import InvalidArgument, NotFound
from .allocator import IdAllocator

logger = logging.getLogger(__name__)


@dataclass
class Item:
    """
    A live item in the ledger.

    Attributes:
        item_id: Sequential identifier, never reused
        owner: Identity currently owning the item
        content_pointer: Opaque reference to off-registry content
        created_at: Timestamp of creation
    """
    item_id: int
    owner: str
    content_pointer: str
    created_at: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "item_id": self.item_id,
            "owner": self.owner,
            "content_pointer": self.content_pointer,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Item":
        return cls(
            item_id=int(data["item_id"]),
            owner=data["owner"],
            content_pointer=data["content_pointer"],
            created_at=data.get("created_at", time.time()),
        )


@dataclass
class LedgerSnapshot:
    """Frozen copy of the ledger state, used to roll back a failed invocation."""
    next_id: int
    items: Dict[int, Item]
    owned: Dict[str, Set[int]]


class OwnershipLedger:
    """
    Maps item ids to owners and content pointers.

    Both lookups come from a single Item record per id, so an item is
    either fully present or fully absent. The owner index is updated in
    the same step as the record itself.
    """

    def __init__(self, allocator: Optional[IdAllocator] = None):
        self._allocator = allocator or IdAllocator()
        self._items: Dict[int, Item] = {}
        self._owned: Dict[str, Set[int]] = {}

    @property
    def next_id(self) -> int:
        return self._allocator.next_id

    def _require(self, item_id: int) -> Item:
        if isinstance(item_id, bool) or not isinstance(item_id, int):
            raise InvalidArgument(f"Item id must be an integer, got {item_id!r}")
        item = self._items.get(item_id)
        if item is None:
            raise NotFound(item_id)
        return item

    def create(self, owner: str, content_pointer: str) -> int:
        """
        Mint a new item.

        Args:
            owner: Identity receiving the item
            content_pointer: Opaque content reference, stored as given

        Returns:
            The newly allocated item id
        """
        if not owner:
            raise InvalidArgument("Owner identity must not be empty")

        item_id = self._allocator.allocate()
        self._items[item_id] = Item(
            item_id=item_id,
            owner=owner,
            content_pointer=content_pointer,
        )
        self._owned.setdefault(owner, set()).add(item_id)
        logger.debug(f"Created item {item_id} for {owner}")
        return item_id

    def destroy(self, item_id: int) -> Item:
        """Remove a live item. Returns the removed record."""
        item = self._require(item_id)
        del self._items[item_id]
        self._unindex(item.owner, item_id)
        logger.debug(f"Destroyed item {item_id} (owner {item.owner})")
        return item

    def reassign(self, item_id: int, new_owner: str) -> str:
        """Move a live item to another owner. Returns the previous owner."""
        if not new_owner:
            raise InvalidArgument("Owner identity must not be empty")
        item = self._require(item_id)
        previous = item.owner
        self._unindex(previous, item_id)
        item.owner = new_owner
        self._owned.setdefault(new_owner, set()).add(item_id)
        logger.debug(f"Reassigned item {item_id}: {previous} -> {new_owner}")
        return previous

    def _unindex(self, owner: str, item_id: int) -> None:
        owned = self._owned.get(owner)
        if owned is None:
            return
        owned.discard(item_id)
        if not owned:
            del self._owned[owner]

    def owner_of(self, item_id: int) -> str:
        return self._require(item_id).owner

    def content_pointer_of(self, item_id: int) -> str:
        return self._require(item_id).content_pointer

    def items_owned_by(self, identity: str) -> Set[int]:
        return set(self._owned.get(identity, ()))

    def all_items(self) -> List[int]:
        """Every live item id, ascending."""
        return sorted(self._items)

    def total_live_count(self) -> int:
        return len(self._items)

    def get(self, item_id: int) -> Optional[Item]:
        return self._items.get(item_id)

    def snapshot(self) -> LedgerSnapshot:
        return LedgerSnapshot(
            next_id=self._allocator.next_id,
            items={k: replace(v) for k, v in self._items.items()},
            owned={k: set(v) for k, v in self._owned.items()},
        )

    def restore(self, snapshot: LedgerSnapshot) -> None:
        """Reinstate a snapshot taken earlier from this ledger."""
        self._allocator._reset(snapshot.next_id)
        self._items = {k: replace(v) for k, v in snapshot.items.items()}
        self._owned = {k: set(v) for k, v in snapshot.owned.items()}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "next_id": self._allocator.next_id,
            "items": [self._items[k].to_dict() for k in sorted(self._items)],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OwnershipLedger":
        items = [Item.from_dict(d) for d in data.get("items", [])]
        next_id = data.get("next_id", 1)
        highest = max((i.item_id for i in items), default=0)
        if next_id <= highest:
            raise InvalidArgument(
                f"Corrupt ledger: next_id {next_id} does not exceed item {highest}"
            )

        ledger = cls(IdAllocator(next_id))
        for item in items:
            ledger._items[item.item_id] = item
            ledger._owned.setdefault(item.owner, set()).add(item.item_id)
        return ledger

    def __contains__(self, item_id: int) -> bool:
        return item_id in self._items

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Item]:
        return iter(self._items.values())
