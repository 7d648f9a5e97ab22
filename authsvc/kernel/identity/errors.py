"""
Error kinds surfaced by the identity core.

Every failure of register/login/verify_token is an AuthError carrying exactly
one AuthErrorKind. Store adapters raise AccountStoreError subclasses, which
AuthService translates before anything leaves the core.
"""

from enum import Enum


class AuthErrorKind(str, Enum):
    """Closed set of failure kinds exposed to the transport layer."""

    DUPLICATE_USER = "duplicate_user"
    INVALID_CREDENTIALS = "invalid_credentials"
    INVALID_TOKEN = "invalid_token"
    HASHING_FAILURE = "hashing_failure"
    SIGNING_FAILURE = "signing_failure"
    STORE_FAILURE = "store_failure"


class AuthError(Exception):
    """Base class for identity core failures."""

    kind: AuthErrorKind
    default_message = "authentication error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class DuplicateUserError(AuthError):
    kind = AuthErrorKind.DUPLICATE_USER
    default_message = "user already exists"


class InvalidCredentialsError(AuthError):
    """Unknown username or wrong password. The two are never distinguished."""

    kind = AuthErrorKind.INVALID_CREDENTIALS
    default_message = "invalid credentials"


class InvalidTokenError(AuthError):
    """Malformed, wrong-algorithm, badly signed or expired token."""

    kind = AuthErrorKind.INVALID_TOKEN
    default_message = "invalid token"


class HashingError(AuthError):
    kind = AuthErrorKind.HASHING_FAILURE
    default_message = "could not hash credential"


class SigningError(AuthError):
    kind = AuthErrorKind.SIGNING_FAILURE
    default_message = "could not sign token"


class StoreError(AuthError):
    """Transient persistence or connectivity problem, including timeouts."""

    kind = AuthErrorKind.STORE_FAILURE
    default_message = "account store unavailable"


# Store-layer errors. These never cross the AuthService boundary.

class AccountStoreError(Exception):
    """Base class for errors raised by AccountStore implementations."""


class DuplicateUsernameError(AccountStoreError):
    """An insert would duplicate an existing username."""


class AccountNotFoundError(AccountStoreError):
    """No account matches the lookup key."""


class StoreUnavailableError(AccountStoreError):
    """The backing store failed or could not be reached."""
