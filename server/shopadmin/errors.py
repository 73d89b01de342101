"""
Error taxonomy shared by the stores and the HTTP layer.

- ValidationError     -> 400, message names the violated field/rule
- NotFoundError       -> 404
- PersistenceFailure  -> 500, underlying cause kept for logs and `details`
- CapabilityUnavailable: the hashing primitive is missing
"""

from typing import Optional


class ShopAdminError(Exception):
    """Base class for all errors raised by the store admin server."""


class ValidationError(ShopAdminError):
    """Malformed or missing input, detected before any state mutation."""

    code = "ValidationError"

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code


# --- Order submission rejections (checked in this order) ---


class MissingCustomer(ValidationError):
    code = "MissingCustomer"

    def __init__(self, message: str = "Customer ID is required"):
        super().__init__(message)


class EmptyOrder(ValidationError):
    code = "EmptyOrder"

    def __init__(self, message: str = "Order items are required and must be a non-empty array"):
        super().__init__(message)


class MalformedItem(ValidationError):
    code = "MalformedItem"

    def __init__(self, message: str = "Each item must have productId, quantity, and price"):
        super().__init__(message)


class InvalidQuantity(ValidationError):
    code = "InvalidQuantity"

    def __init__(self, message: str = "Item quantity must be greater than 0"):
        super().__init__(message)


class InvalidPrice(ValidationError):
    code = "InvalidPrice"

    def __init__(self, message: str = "Item price cannot be negative"):
        super().__init__(message)


class NotFoundError(ShopAdminError):
    """Identifier does not resolve."""

    def __init__(self, kind: str, identifier: str):
        super().__init__(f"{kind.capitalize()} not found")
        self.kind = kind
        self.identifier = identifier


class PersistenceFailure(ShopAdminError):
    """Backing store unreachable or rejected the operation."""

    def __init__(self, kind: str, operation: str, cause: BaseException):
        super().__init__(f"Failed to {operation} {kind} in database")
        self.kind = kind
        self.operation = operation
        self.cause = cause

    @property
    def details(self) -> str:
        return str(self.cause) or type(self.cause).__name__


class CapabilityUnavailable(ShopAdminError):
    """Password hashing library is not installed."""
