# artmint/errors.py
"""
Error taxonomy for the registry.

Every error aborts the current invocation; the collection restores its
state before the exception reaches the caller.
"""

from typing import Optional


class RegistryError(Exception):
    """Base class for registry failures."""


class InvalidArgument(RegistryError, ValueError):
    """Empty batch, null identity or otherwise malformed input."""


class NotFound(RegistryError, LookupError):
    """The referenced item is not live."""

    def __init__(self, item_id: int, message: Optional[str] = None):
        self.item_id = item_id
        super().__init__(message or f"Item {item_id} not found")


class Unauthorized(RegistryError):
    """The caller may not perform the operation on the item."""

    def __init__(self, caller: str, item_id: int, action: str = "destroy"):
        self.caller = caller
        self.item_id = item_id
        self.action = action
        super().__init__(f"{caller} may not {action} item {item_id}")
