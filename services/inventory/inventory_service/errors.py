"""
Domain errors raised by the Inventory service.

Every error carries the HTTP status it maps to and a JSON-ready payload, so
the API layer can translate them with a single exception handler.
"""
from typing import Any, Dict, Optional


class LedgerError(Exception):
    """Base class for caller-correctable inventory errors."""
    status_code = 400
    code = "ledger_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.code, "detail": self.message}


class ValidationError(LedgerError):
    """Raised when an input field violates a business rule."""
    code = "validation_error"

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload["field"] = self.field
        return payload


class InsufficientInventoryError(LedgerError):
    """Raised when a sale asks for more units than the item has on hand."""
    code = "insufficient_inventory"

    def __init__(self, available: int, requested: int):
        super().__init__(f"Insufficient inventory. Available: {available}, Requested: {requested}")
        self.available = available
        self.requested = requested

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload["available"] = self.available
        payload["requested"] = self.requested
        return payload


class NotFoundError(LedgerError):
    """
    Raised when a record does not exist or is not owned by the caller.

    The two cases are deliberately reported the same way.
    """
    status_code = 404
    code = "not_found"

    def __init__(self, resource: str, identifier: Optional[Any] = None):
        super().__init__(f"{resource} not found")
        self.resource = resource
        self.identifier = identifier


class InvalidKindError(LedgerError):
    """Raised when a transaction kind is neither BUY nor SELL."""
    code = "invalid_kind"

    def __init__(self, kind: Any):
        super().__init__(f"Invalid transaction type: {kind}. Must be BUY or SELL")
        self.kind = kind


class ConcurrentUpdateError(LedgerError):
    """Raised when an item kept changing underneath a transaction."""
    status_code = 409
    code = "concurrent_update"

    def __init__(self, item_id: int):
        super().__init__(f"Item {item_id} was modified concurrently, please retry")
        self.item_id = item_id
