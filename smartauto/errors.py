"""Error types shared by the storefront, relay and owner layers.

Every error carries a user-facing ``message`` and the HTTP ``status_code``
the route layer answers with when it converts the error at the boundary.
"""

from typing import Any, Dict, Iterable, Optional


class SmartAutoError(Exception):
    """Base error with a user-facing message and an HTTP status code."""

    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class SubmissionError(SmartAutoError):
    """A submission was rejected before anything was written."""

    status_code = 400


class NotAuthenticated(SubmissionError):
    status_code = 401

    def __init__(self, message: str = "You must be logged in") -> None:
        super().__init__(message)


class MissingFields(SubmissionError):
    def __init__(self, fields: Iterable[str]) -> None:
        self.fields = list(fields)
        super().__init__("Please fill in all required fields")


class UnknownProduct(SubmissionError):
    status_code = 404

    def __init__(self, product_id: str) -> None:
        self.product_id = product_id
        super().__init__("Please select a product")


class InsufficientStock(SubmissionError):
    status_code = 409

    def __init__(self, available: int) -> None:
        self.available = available
        super().__init__(f"Only {available} units available")


class NotificationFailed(SubmissionError):
    """The record was stored but the relay did not accept the notification."""

    status_code = 502

    def __init__(self, kind: str, record: Dict[str, Any], reason: str) -> None:
        self.kind = kind
        self.record = record
        self.reason = reason
        super().__init__(f"Failed to submit {kind}: {reason}")


class StoreError(SmartAutoError):
    """The store rejected a write. ``message`` is the store's own text."""


class DuplicateOrderId(StoreError):
    def __init__(self, order_id: str) -> None:
        self.order_id = order_id
        super().__init__(f"Order id {order_id} already exists", status_code=409)


class RelayError(SmartAutoError):
    status_code = 502


class InvalidToken(SmartAutoError):
    status_code = 401

    def __init__(self, message: str = "Invalid token") -> None:
        super().__init__(message)
