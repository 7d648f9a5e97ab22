"""
Identity Core - credential hashing, token issuance and the auth service.
"""

from authsvc.kernel.identity.errors import (
    AuthError,
    AuthErrorKind,
    DuplicateUserError,
    InvalidCredentialsError,
    InvalidTokenError,
    HashingError,
    SigningError,
    StoreError,
    AccountStoreError,
    DuplicateUsernameError,
    AccountNotFoundError,
    StoreUnavailableError,
)
from authsvc.kernel.identity.interfaces import Account, AccountStore, Authenticator
from authsvc.kernel.identity.password import PasswordHasher
from authsvc.kernel.identity.tokens import IdentityClaims, TokenCodec
from authsvc.kernel.identity.identity_service import AuthService
from authsvc.kernel.identity.memory_store import InMemoryAccountStore
from authsvc.kernel.identity.sql_store import SqlAccountStore
from authsvc.kernel.identity.factory import build_auth_service

__all__ = [
    # Errors
    "AuthError",
    "AuthErrorKind",
    "DuplicateUserError",
    "InvalidCredentialsError",
    "InvalidTokenError",
    "HashingError",
    "SigningError",
    "StoreError",
    "AccountStoreError",
    "DuplicateUsernameError",
    "AccountNotFoundError",
    "StoreUnavailableError",
    # Contracts
    "Account",
    "AccountStore",
    "Authenticator",
    # Components
    "PasswordHasher",
    "IdentityClaims",
    "TokenCodec",
    "AuthService",
    "InMemoryAccountStore",
    "SqlAccountStore",
    "build_auth_service",
]
