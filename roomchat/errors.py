"""Error taxonomy shared by repositories, services and the HTTP layer."""


class ChatError(Exception):
    """Base error; carries the HTTP status it maps to."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ChatError):
    """Malformed or missing required fields."""

    status_code = 400


class NotFoundError(ChatError):
    """Unknown room or user."""

    status_code = 404


class DuplicateError(ChatError):
    """Room id or username already taken."""

    status_code = 400


class AuthorizationError(ChatError):
    """Caller is not allowed to perform the operation."""

    status_code = 403


class InternalError(ChatError):
    """A store operation failed unexpectedly."""

    status_code = 500
