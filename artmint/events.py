# artmint/events.py
"""
Registry notifications.

Every committed state change produces a notification for external
observers:
- Created: an item was minted to a destination
- Destroyed: an item was burned
- Transferred: an item changed owner
- Approval / ApprovalForAll: delegation changed
"""

import json
import logging
import os
import time
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

CREATED = "Created"
DESTROYED = "Destroyed"
TRANSFERRED = "Transferred"
APPROVAL = "Approval"
APPROVAL_FOR_ALL = "ApprovalForAll"


def _generate_id() -> str:
    """Generate unique event ID."""
    return str(uuid.uuid4())


def _now() -> str:
    return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())


@dataclass
class Notification:
    """
    A single registry event.

    Attributes:
        event_id: Unique identifier
        event_type: Created, Destroyed, Transferred, Approval, ApprovalForAll
        payload: Event fields (identities, item id, content pointer)
        published: ISO timestamp
        signature: Signature block, present once signed
    """
    event_id: str
    event_type: str
    payload: Dict[str, Any]
    published: str = field(default_factory=_now)
    signature: Optional[Dict[str, Any]] = None

    @property
    def item_id(self) -> Optional[int]:
        return self.payload.get("item_id")

    @property
    def identities(self) -> List[str]:
        """Identities named by the event, in payload order."""
        keys = ("from", "to", "owner", "operator")
        return [self.payload[k] for k in keys if self.payload.get(k)]

    def to_document(self) -> Dict[str, Any]:
        """Representation covered by the signature."""
        document = {
            "type": self.event_type,
            "id": self.event_id,
            "object": self.payload,
            "published": self.published,
        }
        if self.signature:
            document["signature"] = self.signature
        return document

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for storage."""
        return {
            "event_id": self.event_id,
            "event_type": self.event_type,
            "payload": self.payload,
            "published": self.published,
            "signature": self.signature,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Notification":
        """Deserialize from storage."""
        return cls(
            event_id=data["event_id"],
            event_type=data["event_type"],
            payload=data["payload"],
            published=data.get("published", ""),
            signature=data.get("signature"),
        )

    @classmethod
    def created(cls, destination: str, item_id: int, content_pointer: str) -> "Notification":
        return cls(
            event_id=_generate_id(),
            event_type=CREATED,
            payload={"to": destination, "item_id": item_id, "content_pointer": content_pointer},
        )

    @classmethod
    def destroyed(cls, previous_owner: str, item_id: int) -> "Notification":
        return cls(
            event_id=_generate_id(),
            event_type=DESTROYED,
            payload={"from": previous_owner, "item_id": item_id},
        )

    @classmethod
    def transferred(cls, previous_owner: str, destination: str, item_id: int) -> "Notification":
        return cls(
            event_id=_generate_id(),
            event_type=TRANSFERRED,
            payload={"from": previous_owner, "to": destination, "item_id": item_id},
        )

    @classmethod
    def approval(cls, owner: str, operator: Optional[str], item_id: int) -> "Notification":
        return cls(
            event_id=_generate_id(),
            event_type=APPROVAL,
            payload={"owner": owner, "operator": operator, "item_id": item_id},
        )

    @classmethod
    def approval_for_all(cls, owner: str, operator: str, approved: bool) -> "Notification":
        return cls(
            event_id=_generate_id(),
            event_type=APPROVAL_FOR_ALL,
            payload={"owner": owner, "operator": operator, "approved": approved},
        )


class EventLog:
    """
    Persistent storage for notifications.

    Stored as an append-only log for auditability.
    """

    def __init__(self, store_dir: Path | str):
        self.store_dir = Path(store_dir)
        self.store_dir.mkdir(parents=True, exist_ok=True)
        self._events: List[Notification] = []
        self._load()

    def _log_path(self) -> Path:
        return self.store_dir / "events.json"

    def _load(self):
        """Load events from disk."""
        log_path = self._log_path()
        if log_path.exists():
            try:
                with open(log_path) as f:
                    data = json.load(f)
                self._events = [
                    Notification.from_dict(e) for e in data.get("events", [])
                ]
            except (json.JSONDecodeError, KeyError) as e:
                logger.warning(f"Failed to load event log: {e}")
                self._events = []

    def _save(self):
        """Save events to disk; the previous log stays intact until the write completes."""
        data = {
            "version": "1.0",
            "events": [e.to_dict() for e in self._events],
        }
        log_path = self._log_path()
        tmp_path = log_path.with_suffix(".json.tmp")
        try:
            with open(tmp_path, "w") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_path, log_path)
        finally:
            tmp_path.unlink(missing_ok=True)

    def add(self, notification: Notification) -> None:
        """Append one notification."""
        self.extend([notification])

    def extend(self, notifications: List[Notification]) -> None:
        """
        Append several notifications with a single write.

        If the write fails the in-memory log is left as it was.
        """
        if not notifications:
            return
        mark = len(self._events)
        self._events.extend(notifications)
        try:
            self._save()
        except BaseException:
            del self._events[mark:]
            raise

    def truncate(self, length: int) -> None:
        """Drop every notification after the first length entries."""
        if length >= len(self._events):
            return
        del self._events[length:]
        self._save()

    def get(self, event_id: str) -> Optional[Notification]:
        for e in self._events:
            if e.event_id == event_id:
                return e
        return None

    def list(self) -> List[Notification]:
        """List all notifications in publication order."""
        return list(self._events)

    def find_by_item(self, item_id: int) -> List[Notification]:
        return [e for e in self._events if e.item_id == item_id]

    def find_by_identity(self, identity: str) -> List[Notification]:
        return [e for e in self._events if identity in e.identities]

    def find_by_type(self, event_type: str) -> List[Notification]:
        return [e for e in self._events if e.event_type == event_type]

    def __len__(self) -> int:
        return len(self._events)
