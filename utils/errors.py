"""Exceptions raised by the order, payment and storefront services."""


class StorefrontError(Exception):
    """Base exception for all storefront errors."""

    pass


class ValidationError(StorefrontError):
    """Raised when input is malformed or incomplete."""

    pass


class InvalidAmountError(ValidationError):
    """Raised when a payment amount is below the smallest chargeable unit."""

    def __init__(self, amount):
        self.amount = amount
        super().__init__(f"Invalid amount: {amount}")


class NotFoundError(StorefrontError):
    """Raised when an order, product, user or review id does not resolve."""

    def __init__(self, kind: str, ident: str):
        self.kind = kind
        self.ident = ident
        super().__init__(f"{kind} not found: {ident}")


class ForbiddenError(StorefrontError):
    """Raised when the actor lacks ownership or admin privilege."""

    def __init__(self, reason: str = "Not authorized"):
        super().__init__(reason)


class AuthenticationError(StorefrontError):
    """Raised when credentials are missing, invalid or expired."""

    pass


class InvalidTransitionError(StorefrontError):
    """Raised when an order status change is not permitted."""

    def __init__(self, current, requested, reason: str | None = None):
        self.current = current
        self.requested = requested
        msg = f"Cannot move order from {current} to {requested}"
        if reason:
            msg = f"{msg} ({reason})"
        super().__init__(msg)


class SignatureMismatchError(StorefrontError):
    """Raised when a gateway payment signature does not verify."""

    def __init__(self):
        super().__init__("Invalid payment signature")


class ConflictError(StorefrontError):
    """Raised when a record already exists or was already settled."""

    pass


class ConcurrentModificationError(ConflictError):
    """Raised when an order changed between read and conditional write."""

    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__(f"Order {order_id} was modified concurrently, retry the request")


class UpstreamFailureError(StorefrontError):
    """Raised when the payment gateway or the database fails."""

    pass


class GatewayUnavailableError(UpstreamFailureError):
    """Raised when gateway credentials are not configured."""

    def __init__(self):
        super().__init__("Payment gateway is not configured")
