"""
Exceptions raised by the service layer and mapped to HTTP responses in security.py.
"""


class ServiceError(Exception):
    """Base class for errors that carry a user-facing message."""
    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NotFoundError(ServiceError):
    status_code = 404

    def __init__(self, entity: str):
        super().__init__(f"{entity} not found")
        self.entity = entity


class ConflictError(ServiceError):
    status_code = 409


class AuthenticationError(ServiceError):
    status_code = 401


class PermissionDeniedError(ServiceError):
    status_code = 403


class MessagingError(ServiceError):
    """Outbound message could not be delivered."""
    status_code = 500
