"""
Auth service: registration, login and token verification.
"""

import asyncio
import secrets
from typing import Awaitable, Optional, TypeVar

from authsvc.kernel.identity.errors import (
    AccountNotFoundError,
    DuplicateUserError,
    DuplicateUsernameError,
    InvalidCredentialsError,
    StoreError,
    StoreUnavailableError,
)
from authsvc.kernel.identity.interfaces import Account, AccountStore
from authsvc.kernel.identity.password import PasswordHasher
from authsvc.kernel.identity.tokens import TokenCodec
from authsvc.logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class AuthService:
    """
    Orchestrates the credential hasher, token codec and account store.

    Holds no mutable state of its own; one instance serves all requests.
    Store errors are translated into AuthError kinds here and nowhere else.
    """

    def __init__(
        self,
        store: AccountStore,
        codec: TokenCodec,
        hasher: PasswordHasher,
        store_timeout: Optional[float] = None,
    ):
        self.store = store
        self.codec = codec
        self.hasher = hasher
        self.store_timeout = store_timeout
        # Checked against when the username is unknown, so a miss costs the
        # same bcrypt run as a wrong password
        self._decoy_hash = hasher.hash(secrets.token_urlsafe(32))

    async def register(
        self,
        username: str,
        password: str,
        *,
        timeout: Optional[float] = None,
    ) -> tuple[Account, str]:
        """
        Register a new account and issue its first token.

        Uniqueness is left entirely to the store: there is no lookup before
        the insert, so two racing registrations cannot both pass a check.

        Args:
            username: Requested username (validated by the caller)
            password: Plain text password
            timeout: Deadline in seconds for the store call

        Returns:
            Tuple of (Account, token)

        Raises:
            DuplicateUserError: If the username is taken
            HashingError: If the password cannot be hashed
            StoreError: If the store fails or misses the deadline
            SigningError: If the token cannot be issued; the account exists
                and the caller can log in later
        """
        password_hash = await asyncio.to_thread(self.hasher.hash, password)

        try:
            account = await self._call_store(
                self.store.create_account(username, password_hash),
                timeout,
            )
        except DuplicateUsernameError as exc:
            logger.info("Registration rejected: username taken")
            raise DuplicateUserError() from exc

        logger.info("Account registered", extra={"account_id": str(account.id)})

        token = self.codec.generate(account.id, account.username)
        return account, token

    async def login(
        self,
        username: str,
        password: str,
        *,
        timeout: Optional[float] = None,
    ) -> tuple[Account, str]:
        """
        Authenticate with username and password and issue a fresh token.

        Unknown usernames and wrong passwords raise the same
        InvalidCredentialsError.

        Returns:
            Tuple of (Account, token)

        Raises:
            InvalidCredentialsError: On unknown username or wrong password
            StoreError: If the store fails or misses the deadline
            HashingError: If the stored hash is malformed
            SigningError: If the token cannot be issued
        """
        try:
            account, stored_hash = await self._call_store(
                self.store.find_credential_by_username(username),
                timeout,
            )
        except AccountNotFoundError:
            await asyncio.to_thread(self.hasher.verify, self._decoy_hash, password)
            logger.info("Login rejected", extra={"reason": "unknown_username"})
            raise InvalidCredentialsError() from None

        matched = await asyncio.to_thread(self.hasher.verify, stored_hash, password)
        if not matched:
            logger.info(
                "Login rejected",
                extra={"reason": "password_mismatch", "account_id": str(account.id)},
            )
            raise InvalidCredentialsError()

        if self.hasher.needs_rehash(stored_hash):
            logger.debug(
                "Stored hash uses a different cost factor",
                extra={"account_id": str(account.id)},
            )

        logger.info("Login succeeded", extra={"account_id": str(account.id)})
        token = self.codec.generate(account.id, account.username)
        return account, token

    def verify_token(self, token: str) -> Account:
        """
        Resolve a bearer token to the account it was issued for.

        No store lookup happens: an account removed after issuance stays
        authenticatable until its token expires.

        Raises:
            InvalidTokenError: If the token is not valid right now
        """
        claims = self.codec.verify(token)
        return Account(id=claims.account_id, username=claims.username)

    async def _call_store(self, call: Awaitable[T], timeout: Optional[float]) -> T:
        deadline = timeout if timeout is not None else self.store_timeout
        try:
            return await asyncio.wait_for(call, deadline)
        except asyncio.TimeoutError as exc:
            logger.warning("Account store call timed out", extra={"timeout_s": deadline})
            raise StoreError("account store timed out") from exc
        except StoreUnavailableError as exc:
            raise StoreError() from exc
