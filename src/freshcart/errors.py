"""Error kinds raised by the order engine.

Validation-type failures subclass Protean's ``ValidationError`` so the
standard FastAPI handlers and existing ``except ValidationError`` clauses keep
working. Each carries a stable ``code`` the API layer surfaces to clients.
"""

from protean.exceptions import ObjectNotFoundError, ValidationError

# Re-exported so callers can catch every engine error from one module
NotFound = ObjectNotFoundError


class InvalidTransition(ValidationError):
    code = "invalid_transition"


class InvalidQuantity(ValidationError):
    code = "invalid_quantity"


class SlotFull(ValidationError):
    code = "slot_full"


class SlotUnavailable(ValidationError):
    code = "slot_unavailable"


class RefundExceedsOrderTotal(ValidationError):
    code = "refund_exceeds_order_total"


class IncompleteItems(ValidationError):
    code = "incomplete_items"


class PermissionDenied(Exception):
    """The acting user lacks the role an operation requires."""

    code = "permission_denied"

    def __init__(self, message: str, actor_role: str | None = None):
        super().__init__(message)
        self.message = message
        self.actor_role = actor_role


def require_admin(actor_role: str | None, action: str) -> None:
    if actor_role != "admin":
        raise PermissionDenied(f"Only administrators may {action}", actor_role=actor_role)
