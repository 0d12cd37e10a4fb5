from abc import ABC


class UserError(ABC, Exception):
    """Base class for user-related errors.

    All errors that inherit from UserError will have their messages
    displayed to the user. These errors should not contain any
    sensitive information.
    """


class NotFoundError(UserError):
    """Raised when a requested resource is not found."""

    def __init__(self, message: str = "Document not found") -> None:
        super().__init__(message)


class AuthenticationError(UserError):
    """Raised when authentication fails."""

    def __init__(self, message: str = "Authentication failed") -> None:
        super().__init__(message)


class InvalidCredentialsError(AuthenticationError):
    """Raised for any bad username/password combination.

    The message is identical for unknown users and wrong passwords.
    """

    def __init__(self) -> None:
        super().__init__("Invalid username or password")


class SessionInvalidError(AuthenticationError):
    """Raised when a session token is missing, unknown, expired or revoked."""

    def __init__(self) -> None:
        super().__init__("Not authenticated")


class AccessDeniedError(UserError):
    """Raised when a user tries to access a resource they do not have permission for."""


class ValidationError(UserError):
    """Raised when user input fails validation."""


class DuplicateIdentityError(ValidationError):
    """Raised when a username or account ID is already taken."""


class ResourceExhaustionError(Exception):
    """Raised when key derivation or storage fails for lack of resources.

    Not a UserError: the details stay in the server logs.
    """
