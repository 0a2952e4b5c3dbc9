"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class ConfigurationError(DomainException):
    """Required configuration is missing or unusable at startup"""

    pass


class InvalidArgumentError(DomainException):
    """A required field is missing or a value is out of range"""

    pass


class ReceivableNotFoundError(DomainException):
    """No receivable exists with the requested id"""

    def __init__(self, receivable_id):
        super().__init__(f"Receivable not found with ID: {receivable_id}")
        self.receivable_id = receivable_id


class DuplicateInvoiceReferenceError(DomainException):
    """Another receivable already uses the invoice reference"""

    def __init__(self, invoice_reference: str):
        super().__init__(f"Invoice reference already in use: {invoice_reference}")
        self.invoice_reference = invoice_reference


class AuthenticationError(DomainException):
    """Caller identity could not be established"""

    pass


class InvalidTokenError(AuthenticationError):
    """Bearer token failed signature, structure or expiry checks"""

    def __init__(self, reason: str, message: str = ""):
        super().__init__(message or f"Invalid token: {reason}")
        self.reason = reason


class UserNotFoundError(AuthenticationError):
    """Auth service has no user for the token subject"""

    pass


class AuthServiceUnavailableError(AuthenticationError):
    """Auth service call failed for a reason other than not-found"""

    def __init__(self, message: str, status_code: int | None = None, body: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class AccessDeniedError(DomainException):
    """Authenticated identity lacks a role required for the request"""

    pass
