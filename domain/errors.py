class DomainError(Exception):
    """Base error for the operation layer. Carries the HTTP status to render."""

    status_code = 400

    def __init__(self, message: str, details=None):
        super().__init__(message)
        self.message = message
        self.details = list(details or [])

    def to_dict(self) -> dict:
        body = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(DomainError):
    status_code = 400


class PermissionDenied(DomainError):
    status_code = 403


class NotFoundError(DomainError):
    status_code = 404


class ConflictError(DomainError):
    status_code = 409


class InvalidStatusTransition(ConflictError):
    def __init__(self, current: str, requested: str):
        super().__init__(f"Cannot move booking from {current} to {requested}")
        self.current = current
        self.requested = requested
