# artmint/identity.py
"""
Identities and their signing keys.

The registry itself only stores identity strings. An identity known to
the IdentityStore also has an RSA key pair, so the administrator can sign
the notifications a collection publishes and anyone with the public
record can check them.

Structure:
    store_dir/
        identities.json     # Public records: display name, public key
        keys/
            <username>.pem  # Private key, mode 600
"""

import hashlib
import json
import os
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

ID_PREFIX = "artmint:"


def _new_private_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


def _private_pem(private_key: rsa.RSAPrivateKey) -> bytes:
    return private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )


def _public_pem(private_key: rsa.RSAPrivateKey) -> bytes:
    return private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )


@dataclass
class Identity:
    """
    A principal with a key pair.

    private_key is None for identities loaded without their key file;
    those can verify but not sign.
    """
    username: str
    public_key: bytes
    private_key: Optional[bytes] = None
    display_name: str = ""
    created_at: float = field(default_factory=time.time)

    @property
    def id(self) -> str:
        """Identity string used as owner and caller in the registry."""
        return f"{ID_PREFIX}{self.username}"

    @property
    def fingerprint(self) -> str:
        return hashlib.sha256(self.public_key).hexdigest()[:16]

    @property
    def key_id(self) -> str:
        """Recorded as the creator of every signature made with this key."""
        return f"{self.id}#{self.fingerprint}"

    @property
    def can_sign(self) -> bool:
        return self.private_key is not None

    def public_record(self) -> Dict[str, Any]:
        return {
            "display_name": self.display_name,
            "public_key": self.public_key.decode("utf-8"),
            "created_at": self.created_at,
        }

    @classmethod
    def generate(cls, username: str, display_name: str = None) -> "Identity":
        """New identity with a fresh RSA-2048 key pair."""
        private_key = _new_private_key()
        return cls(
            username=username,
            public_key=_public_pem(private_key),
            private_key=_private_pem(private_key),
            display_name=display_name or username,
        )


class IdentityStore:
    """
    Named identities with their keys on disk.

    Usernames known here resolve to their identity string; anything else
    passes through unchanged, so plain strings still work as owners.
    """

    def __init__(self, store_dir: Path | str):
        self.store_dir = Path(store_dir)
        self.keys_dir = self.store_dir / "keys"
        self.keys_dir.mkdir(parents=True, exist_ok=True)
        self._records: Dict[str, Dict[str, Any]] = {}

        index_path = self._index_path()
        if index_path.exists():
            self._records = json.loads(index_path.read_text()).get("identities", {})

    def _index_path(self) -> Path:
        return self.store_dir / "identities.json"

    def _key_path(self, username: str) -> Path:
        return self.keys_dir / f"{username}.pem"

    def create(self, username: str, display_name: str = None) -> Identity:
        """Generate an identity, writing its private key with owner-only permissions."""
        key_path = self._key_path(username)
        if username in self._records or key_path.exists():
            raise ValueError(f"Identity {username} already exists")

        identity = Identity.generate(username, display_name)
        key_path.write_bytes(identity.private_key)
        os.chmod(key_path, 0o600)

        self._records[username] = identity.public_record()
        self._index_path().write_text(
            json.dumps({"version": "1.0", "identities": self._records}, indent=2)
        )
        return identity

    def get(self, username: str) -> Optional[Identity]:
        """Load an identity; the private key is attached when its file exists."""
        record = self._records.get(username)
        if record is None:
            return None
        key_path = self._key_path(username)
        return Identity(
            username=username,
            public_key=record["public_key"].encode("utf-8"),
            private_key=key_path.read_bytes() if key_path.exists() else None,
            display_name=record.get("display_name", username),
            created_at=record.get("created_at", 0.0),
        )

    def find_by_key_id(self, key_id: str) -> Optional[Identity]:
        """Identity whose current key produced signatures with this creator id."""
        identity_id = key_id.split("#", 1)[0]
        if not identity_id.startswith(ID_PREFIX):
            return None
        identity = self.get(identity_id[len(ID_PREFIX):])
        if identity is None or identity.key_id != key_id:
            return None
        return identity

    def resolve(self, name: str) -> str:
        return f"{ID_PREFIX}{name}" if name in self._records else name

    def list(self) -> List[Identity]:
        return [self.get(username) for username in sorted(self._records)]

    def __contains__(self, username: str) -> bool:
        return username in self._records

    def __len__(self) -> int:
        return len(self._records)
