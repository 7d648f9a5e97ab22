"""
Identity contracts: the Account value and the capability interfaces around it.

AccountStore is what the core requires of persistence; Authenticator is what
the core offers the transport layer.
"""

import uuid
from typing import Optional, Protocol

from pydantic import BaseModel, ConfigDict


class Account(BaseModel):
    """A registered account as seen by callers of the identity core."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: uuid.UUID
    username: str


class AccountStore(Protocol):
    """
    Durable record of accounts keyed by unique username.

    Implementations raise only AccountStoreError subclasses.
    """

    async def create_account(self, username: str, password_hash: str) -> Account:
        """
        Atomically create an account.

        Raises:
            DuplicateUsernameError: If the username is already taken
            StoreUnavailableError: On any persistence failure
        """
        ...

    async def find_credential_by_username(self, username: str) -> tuple[Account, str]:
        """
        Return the account and its stored password hash.

        Raises:
            AccountNotFoundError: If no account has this username
            StoreUnavailableError: On any persistence failure
        """
        ...

    async def find_account_by_id(self, account_id: uuid.UUID) -> Account:
        """
        Return the account with the given id.

        Raises:
            AccountNotFoundError: If no account has this id
            StoreUnavailableError: On any persistence failure
        """
        ...


class Authenticator(Protocol):
    """The three operations the transport layer may invoke."""

    async def register(
        self,
        username: str,
        password: str,
        *,
        timeout: Optional[float] = None,
    ) -> tuple[Account, str]:
        ...

    async def login(
        self,
        username: str,
        password: str,
        *,
        timeout: Optional[float] = None,
    ) -> tuple[Account, str]:
        ...

    def verify_token(self, token: str) -> Account:
        ...
