# Overview: Domain error taxonomy shared by services and routes.

"""
Every error carries an HTTP status hint so routes can answer with a stable
code. Services never format user-facing responses; they raise one of these
and let the route translate it.
"""


class DomainError(Exception):
    """Base for errors raised by the service layer."""
    status_code = 400

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}

    def to_dict(self) -> dict:
        body = {"error": str(self)}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(DomainError, ValueError):
    """400-level input problem."""
    status_code = 400


class ConflictError(DomainError, ValueError):
    """409-level business rule conflict (e.g., duplicate SKU)."""
    status_code = 409


class NotFoundError(DomainError):
    status_code = 404


class InsufficientStockError(DomainError):
    """An OUT movement would drive Product.stock below zero."""
    status_code = 409

    def __init__(self, product_id: int, requested: int, available: int | None):
        super().__init__(
            f"Insufficient stock for product {product_id}",
            details={
                "product_id": product_id,
                "requested_quantity": requested,
                "available": available,
            },
        )
        self.product_id = product_id
        self.requested = requested
        self.available = available


class AlreadyPaidError(DomainError):
    status_code = 409


class InvalidTransitionError(DomainError):
    """Status change not allowed by the account state machine."""
    status_code = 409


class StorageError(DomainError):
    """Persistence failure surfaced after rollback."""
    status_code = 500


class AuthError(DomainError):
    status_code = 401


class PermissionDenied(DomainError):
    status_code = 403
