# artmint - Minimal NFT registry for art assets
#
# Assigns sequential ids to minted items, records who owns each one and
# which content it points at, and lets owners, approved operators or the
# collection administrator burn them.
#
# Core concepts:
# - Item: a live token with an owner and a content pointer
# - OwnershipLedger: owner and content lookups plus per-owner enumeration
# - AuthorizationGate: who may destroy, transfer or approve an item
# - Collection: atomic invocations over the ledger, with notifications

from .errors import RegistryError, InvalidArgument, NotFound, Unauthorized
from .registry import IdAllocator, Item, OwnershipLedger, AuthorizationGate
from .approvals import ApprovalRegistry
from .events import Notification, EventLog
from .identity import Identity, IdentityStore
from .signatures import sign_notification, verify_notification, verify_notification_origin
from .collection import Collection
from .config import CollectionConfig

__all__ = [
    # Errors
    "RegistryError",
    "InvalidArgument",
    "NotFound",
    "Unauthorized",
    # Core
    "IdAllocator",
    "Item",
    "OwnershipLedger",
    "AuthorizationGate",
    "ApprovalRegistry",
    "Collection",
    # Notifications
    "Notification",
    "EventLog",
    "Identity",
    "IdentityStore",
    "sign_notification",
    "verify_notification",
    "verify_notification_origin",
    "CollectionConfig",
]

__version__ = "0.1.0"
