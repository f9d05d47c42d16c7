# artmint/signatures.py
"""
Cryptographic signatures for registry notifications.

RSA-SHA256 over canonical JSON, in the style of Linked Data Signatures
(RsaSignature2017): the signed bytes are the hash of the signature options
followed by the hash of the document.
"""

import base64
import hashlib
import json
import time
from typing import Any, Dict

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding

from .events import Notification
from .identity import Identity

SIGNATURE_TYPE = "RsaSignature2017"


def _canonicalize(data: Dict[str, Any]) -> str:
    """Sorted keys, no whitespace."""
    return json.dumps(data, sort_keys=True, separators=(",", ":"))


def _hash_sha256(data: str) -> bytes:
    return hashlib.sha256(data.encode()).digest()


def _signed_bytes(notification: Notification, options: Dict[str, Any]) -> bytes:
    document = notification.to_document()
    document.pop("signature", None)
    return _hash_sha256(_canonicalize(options)) + _hash_sha256(_canonicalize(document))


def sign_notification(notification: Notification, identity: Identity) -> Notification:
    """
    Sign a notification with the identity's private key.

    Args:
        notification: The notification to sign
        identity: The identity whose key signs it

    Returns:
        The same notification with its signature attached
    """
    private_key = serialization.load_pem_private_key(
        identity.private_key,
        password=None,
    )

    created = time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())
    options = {
        "type": SIGNATURE_TYPE,
        "creator": identity.key_id,
        "created": created,
    }

    signature_bytes = private_key.sign(
        _signed_bytes(notification, options),
        padding.PKCS1v15(),
        hashes.SHA256(),
    )

    notification.signature = {
        **options,
        "signatureValue": base64.b64encode(signature_bytes).decode("utf-8"),
    }
    return notification


def verify_notification(notification: Notification, public_key_pem: bytes) -> bool:
    """
    Verify a notification's signature.

    Returns:
        True if the signature is present and valid for the key
    """
    if not notification.signature:
        return False

    try:
        public_key = serialization.load_pem_public_key(public_key_pem)

        options = {
            "type": notification.signature["type"],
            "creator": notification.signature["creator"],
            "created": notification.signature["created"],
        }
        signature_bytes = base64.b64decode(notification.signature["signatureValue"])
        public_key.verify(
            signature_bytes,
            _signed_bytes(notification, options),
            padding.PKCS1v15(),
            hashes.SHA256(),
        )
        return True

    except (InvalidSignature, KeyError, ValueError):
        return False


def verify_notification_origin(notification: Notification, identity: Identity) -> bool:
    """Verify that a notification was signed by the claimed identity."""
    if not notification.signature:
        return False

    if notification.signature.get("creator") != identity.key_id:
        return False

    return verify_notification(notification, identity.public_key)
