"""Marketplace error taxonomy.

Business-rule failures are raised as subclasses of ``MarketplaceError``. Each
class carries a stable ``kind`` (the broad category the HTTP layer maps to a
status code) and its own class name as a specific ``code``. Messages are meant
for end users and never include stack traces or storage identifiers.
"""


class MarketplaceError(Exception):
    """Base class for every error the marketplace surfaces to callers."""

    kind = "Internal"
    status_code = 500
    default_message = "Something went wrong"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def code(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict:
        return {"success": False, "error": self.message, "kind": self.kind, "code": self.code}


class InternalError(MarketplaceError):
    """An unexpected persistence or infrastructure failure."""


# ---------------------------------------------------------------------------
# Not found
# ---------------------------------------------------------------------------
class NotFound(MarketplaceError):
    kind = "NotFound"
    status_code = 404
    default_message = "Resource not found"


class ProductNotFound(NotFound):
    default_message = "Product not found"


class OrderNotFound(NotFound):
    default_message = "Order not found"


# ---------------------------------------------------------------------------
# Authorization
# ---------------------------------------------------------------------------
class Unauthenticated(MarketplaceError):
    kind = "Unauthenticated"
    status_code = 401
    default_message = "Not authorized to access this route"


class Forbidden(MarketplaceError):
    kind = "Forbidden"
    status_code = 403
    default_message = "Not authorized to perform this action"


# ---------------------------------------------------------------------------
# Invalid input
# ---------------------------------------------------------------------------
class InvalidInput(MarketplaceError):
    kind = "InvalidInput"
    status_code = 400
    default_message = "Invalid input"


class EmptyCart(InvalidInput):
    default_message = "No order items"


class InvalidStatus(InvalidInput):
    default_message = "Invalid status"


class MultiSellerCart(InvalidInput):
    default_message = "All items in an order must be from the same farmer"


class InvalidTransition(InvalidInput):
    default_message = "Order cannot be moved to that status"


class InvalidQuantity(InvalidInput):
    default_message = "Quantity must be at least 1"


class InvalidDeliveryAddress(InvalidInput):
    default_message = "Delivery address is incomplete"


# ---------------------------------------------------------------------------
# Conflict
# ---------------------------------------------------------------------------
class Conflict(MarketplaceError):
    kind = "Conflict"
    status_code = 409
    default_message = "The request conflicts with the current state"


class InsufficientStock(Conflict):
    default_message = "Insufficient stock"


class ProductUnavailable(Conflict):
    default_message = "Product is not available"


class StockContention(Conflict):
    default_message = "Stock is being updated by other orders, please retry"
