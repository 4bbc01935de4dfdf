"""Exceptions for accounts app."""

from server.common.exceptions import ApplicationError


class TokenError(ApplicationError):
    """Base class for every bearer verification failure."""


class MalformedTokenError(TokenError):
    """Raised when a bearer is not `<tokenId>|<secret>`."""


class TokenNotFoundError(TokenError):
    """Raised when no token exists for the presented token id."""


class TokenMismatchError(TokenError):
    """Raised when the presented secret does not match the stored digest."""


class DuplicateEmailError(ApplicationError):
    """Raised when registering an email that is already claimed."""

    def __init__(self, email: str) -> None:
        """Initialize DuplicateEmailError.

        Args:
            email: The email that is already in use.
        """
        self.email = email
        super().__init__(f'Email already registered: {email}')


class InvalidCredentialsError(ApplicationError):
    """Raised when an email/password pair does not authenticate.

    Unknown email and wrong password both raise this error with the
    same message, so callers cannot enumerate accounts.
    """

    def __init__(self) -> None:
        """Initialize InvalidCredentialsError."""
        super().__init__('Invalid credentials')


class IdentityNotFoundError(ApplicationError):
    """Raised when an operation names an identity that does not exist."""

    def __init__(self, identity_id: str) -> None:
        """Initialize IdentityNotFoundError.

        Args:
            identity_id: The missing identity id.
        """
        self.identity_id = identity_id
        super().__init__(f'Identity not found: {identity_id}')
