# artmint/collection.py
"""
A minted collection: the registry facade.

Each exposed operation runs as one invocation. The ledger, allocator and
approvals are snapshotted on entry; if anything raises, the snapshot is
restored and no notification is published. On success the state file
and the event log are committed together, then the notifications are
handed to subscribers in operation order.

Structure:
    store_dir/
        collection.json   # Admin, name/symbol, ledger and approvals
        events/
            events.json   # Append-only notification log
"""

import json
import logging
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Set

from .approvals import ApprovalRegistry
from .errors import InvalidArgument, Unauthorized
from .events import EventLog, Notification
from .identity import Identity
from .registry import AuthorizationGate, OwnershipLedger
from .signatures import sign_notification

logger = logging.getLogger(__name__)

Observer = Callable[[Notification], None]


class Collection:
    """
    An NFT collection with a single administrator.

    Usage:
        collection = Collection("/tmp/gallery", admin="giles", name="Gallery", symbol="GAL")
        item_id = collection.create("giles", "alice", "ipfs://bafy...")
        collection.destroy("alice", item_id)
    """

    def __init__(
        self,
        store_dir: Path | str,
        admin: str = None,
        name: str = "",
        symbol: str = "",
        signer: Optional[Identity] = None,
    ):
        """
        Open or create a collection.

        Args:
            store_dir: Directory holding the collection state
            admin: Identity constructing the collection. Required for a new
                store; for an existing one it must match the stored admin.
            name: Collection name (new stores only)
            symbol: Collection symbol (new stores only)
            signer: Identity whose key signs notifications; its id must be
                the administrator
        """
        self.store_dir = Path(store_dir)
        self.store_dir.mkdir(parents=True, exist_ok=True)
        self.name = name
        self.symbol = symbol
        self._admin: Optional[str] = None
        self.ledger = OwnershipLedger()
        self.approvals = ApprovalRegistry()

        if self._load():
            if admin and admin != self._admin:
                raise InvalidArgument(
                    f"Collection at {self.store_dir} is administered by {self._admin}, not {admin}"
                )
            logger.info(f"Opened collection {self.name!r} ({len(self.ledger)} live items)")
        else:
            if not admin:
                raise InvalidArgument("A new collection requires an administrator")
            self._admin = admin

        if signer is not None and signer.id != self._admin:
            raise InvalidArgument(f"Signer {signer.id} is not the administrator")
        if signer is not None and not signer.can_sign:
            raise InvalidArgument(f"Signer {signer.id} has no private key")
        if not self._state_path().exists():
            self._save()
            logger.info(f"Created collection {self.name!r} administered by {admin}")
        self.signer = signer

        self.gate = AuthorizationGate(self.ledger, self.approvals, self._admin)
        self.events = EventLog(self.store_dir / "events")
        self._observers: List[Observer] = []
        self._pending: Optional[List[Notification]] = None

    @property
    def admin(self) -> str:
        return self._admin

    def _state_path(self) -> Path:
        return self.store_dir / "collection.json"

    def _staging_path(self) -> Path:
        return self.store_dir / "collection.json.tmp"

    def _load(self) -> bool:
        """Load collection state from disk. Returns False for a fresh store."""
        state_path = self._state_path()
        if not state_path.exists():
            return False
        with open(state_path) as f:
            data = json.load(f)
        self._admin = data["admin"]
        self.name = data.get("name", "")
        self.symbol = data.get("symbol", "")
        self.ledger = OwnershipLedger.from_dict(data.get("ledger", {}))
        self.approvals = ApprovalRegistry.from_dict(data.get("approvals", {}))
        return True

    def _stage(self) -> Path:
        """Write collection state next to the live file. Returns the staged path."""
        data = {
            "version": "1.0",
            "name": self.name,
            "symbol": self.symbol,
            "admin": self._admin,
            "ledger": self.ledger.to_dict(),
            "approvals": self.approvals.to_dict(),
        }
        tmp_path = self._staging_path()
        with open(tmp_path, "w") as f:
            json.dump(data, f, indent=2)
        return tmp_path

    def _save(self):
        os.replace(self._stage(), self._state_path())

    @contextmanager
    def _invocation(self, operation: str):
        """Run one all-or-nothing invocation."""
        if self._pending is not None:
            raise RuntimeError(f"{operation} started inside another invocation")

        ledger_snapshot = self.ledger.snapshot()
        approval_snapshot = self.approvals.snapshot()
        events_mark = len(self.events)
        self._pending = []
        try:
            yield
            # State and event log commit together: stage the state, append
            # the events, then swap the state file in.
            staged = self._stage()
            self.events.extend(self._pending)
            os.replace(staged, self._state_path())
        except BaseException as e:
            self.ledger.restore(ledger_snapshot)
            self.approvals.restore(approval_snapshot)
            self._staging_path().unlink(missing_ok=True)
            self.events.truncate(events_mark)
            logger.warning(f"{operation} rolled back: {e!r}")
            raise
        finally:
            pending, self._pending = self._pending, None

        self._notify(pending)

    def _emit(self, notification: Notification) -> None:
        if self.signer is not None:
            sign_notification(notification, self.signer)
        self._pending.append(notification)

    def _notify(self, notifications: List[Notification]) -> None:
        for notification in notifications:
            for observer in self._observers:
                try:
                    observer(notification)
                except Exception as e:
                    logger.warning(f"Observer error on {notification.event_type}: {e}")

    def subscribe(self, observer: Observer) -> None:
        """Receive every committed notification."""
        self._observers.append(observer)

    # Mutations

    def create(self, caller: str, destination: str, content_pointer: str) -> int:
        """Mint one item to destination. Anyone may call."""
        with self._invocation("create"):
            item_id = self._create_one(destination, content_pointer)
        return item_id

    def create_batch(self, caller: str, destination: str, content_pointers: Iterable[str]) -> List[int]:
        """
        Mint one item per content pointer, in order.

        Raises:
            InvalidArgument: if no content pointers are given
        """
        content_pointers = list(content_pointers)
        with self._invocation("create_batch"):
            if not content_pointers:
                raise InvalidArgument("create_batch requires at least one content pointer")
            item_ids = [self._create_one(destination, p) for p in content_pointers]
        logger.info(f"{caller} created {len(item_ids)} items for {destination}")
        return item_ids

    def _create_one(self, destination: str, content_pointer: str) -> int:
        item_id = self.ledger.create(destination, content_pointer)
        self._emit(Notification.created(destination, item_id, content_pointer))
        return item_id

    def destroy(self, caller: str, item_id: int) -> None:
        """
        Burn an item.

        Raises:
            NotFound: if the item is not live
            Unauthorized: if caller is not owner, approved or administrator
        """
        with self._invocation("destroy"):
            self._destroy_one(caller, item_id)

    def destroy_batch(self, caller: str, item_ids: Iterable[int]) -> None:
        """
        Burn several items, checking authorization for each in order.

        The first item that is missing or not authorized aborts the whole
        batch; none of the items are destroyed.
        """
        item_ids = list(item_ids)
        with self._invocation("destroy_batch"):
            if not item_ids:
                raise InvalidArgument("destroy_batch requires at least one item id")
            for item_id in item_ids:
                self._destroy_one(caller, item_id)
        logger.info(f"{caller} destroyed {len(item_ids)} items")

    def _destroy_one(self, caller: str, item_id: int) -> None:
        if not self.gate.may_destroy(caller, item_id):
            raise Unauthorized(caller, item_id, "destroy")
        item = self.ledger.destroy(item_id)
        self.approvals.clear_item(item_id)
        self._emit(Notification.destroyed(item.owner, item_id))

    def transfer(self, caller: str, item_id: int, destination: str) -> None:
        """Move an item to destination. Owner or approved operator only."""
        with self._invocation("transfer"):
            if not self.gate.may_transfer(caller, item_id):
                raise Unauthorized(caller, item_id, "transfer")
            previous = self.ledger.reassign(item_id, destination)
            self.approvals.clear_item(item_id)
            self._emit(Notification.transferred(previous, destination, item_id))

    def approve(self, caller: str, item_id: int, operator: Optional[str]) -> None:
        """Approve operator for a single item; None clears the approval."""
        with self._invocation("approve"):
            if not self.gate.may_approve(caller, item_id):
                raise Unauthorized(caller, item_id, "approve")
            owner = self.ledger.owner_of(item_id)
            if operator == owner:
                raise InvalidArgument("Cannot approve the current owner")
            self.approvals.approve(item_id, operator)
            self._emit(Notification.approval(owner, operator, item_id))

    def set_approval_for_all(self, caller: str, operator: str, approved: bool) -> None:
        """Grant or revoke operator rights over all of caller's items."""
        with self._invocation("set_approval_for_all"):
            if not operator or operator == caller:
                raise InvalidArgument("Operator must be another identity")
            self.approvals.set_approval_for_all(caller, operator, approved)
            self._emit(Notification.approval_for_all(caller, operator, approved))

    # Reads

    def owner_of(self, item_id: int) -> str:
        return self.ledger.owner_of(item_id)

    def items_owned_by(self, identity: str) -> Set[int]:
        return self.ledger.items_owned_by(identity)

    def all_items(self) -> List[int]:
        return self.ledger.all_items()

    def content_pointer_of(self, item_id: int) -> str:
        return self.ledger.content_pointer_of(item_id)

    def total_live_count(self) -> int:
        return self.ledger.total_live_count()

    def get_approved(self, item_id: int) -> Optional[str]:
        self.ledger.owner_of(item_id)  # NotFound for dead items
        return self.approvals.get_approved(item_id)

    def is_approved_for_all(self, owner: str, operator: str) -> bool:
        return self.approvals.is_approved_for_all(owner, operator)

    def may_destroy(self, caller: str, item_id: int) -> bool:
        return self.gate.may_destroy(caller, item_id)

    def __contains__(self, item_id: int) -> bool:
        return item_id in self.ledger

    def __len__(self) -> int:
        return self.ledger.total_live_count()
