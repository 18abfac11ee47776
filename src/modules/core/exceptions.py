"""Domain error taxonomy shared by every module.

Services raise these (or module-specific subclasses); the API boundary
translates them into a structured JSON error through
``modules.core.exception_handler``.  ``kind`` is the stable identifier
clients switch on; ``status_code`` is the HTTP status used at the boundary.
"""

from __future__ import annotations


class DomainError(Exception):
    """Base class for errors raised by the service layer."""

    kind: str = "domain_error"
    status_code: int = 400
    default_message: str = "Request could not be processed."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(DomainError):
    """Input is well-formed but violates a business precondition."""

    kind = "validation_error"
    status_code = 400
    default_message = "Invalid request."


class NotFoundError(DomainError):
    kind = "not_found"
    status_code = 404
    default_message = "Resource not found."


class AuthorizationError(DomainError):
    """Role, ownership or account-status check failed."""

    kind = "authorization_error"
    status_code = 403
    default_message = "Not authorized to perform this action."


class StateError(DomainError):
    """The requested transition is illegal for the current status."""

    kind = "state_error"
    status_code = 400
    default_message = "Operation not allowed in the current state."


class ConflictError(DomainError):
    """A concurrent write changed the data this operation depended on."""

    kind = "conflict"
    status_code = 409
    default_message = "Resource was modified concurrently."


class SignatureError(DomainError):
    kind = "signature_error"
    status_code = 400
    default_message = "Invalid signature."


class PaymentNotCompleteError(DomainError):
    kind = "payment_not_complete"
    status_code = 400
    default_message = "Payment not successful."


class UpstreamError(DomainError):
    """An external collaborator (gateway, identity provider) failed."""

    kind = "upstream_error"
    status_code = 502
    default_message = "Upstream service unavailable."
