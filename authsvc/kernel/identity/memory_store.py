"""
In-process AccountStore, for tests and local experiments.
"""

import threading
import uuid

from authsvc.kernel.identity.errors import AccountNotFoundError, DuplicateUsernameError
from authsvc.kernel.identity.interfaces import Account


class InMemoryAccountStore:
    """
    Dict-backed account store with the same uniqueness guarantee as the SQL one.

    Check-and-insert happens under a lock, so concurrent creates of one
    username from any mix of threads and tasks let exactly one through.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._by_username: dict[str, tuple[Account, str]] = {}
        self._by_id: dict[uuid.UUID, Account] = {}

    async def create_account(self, username: str, password_hash: str) -> Account:
        with self._lock:
            if username in self._by_username:
                raise DuplicateUsernameError(username)
            account = Account(id=uuid.uuid4(), username=username)
            self._by_username[username] = (account, password_hash)
            self._by_id[account.id] = account
        return account

    async def find_credential_by_username(self, username: str) -> tuple[Account, str]:
        with self._lock:
            try:
                return self._by_username[username]
            except KeyError:
                raise AccountNotFoundError(username) from None

    async def find_account_by_id(self, account_id: uuid.UUID) -> Account:
        with self._lock:
            try:
                return self._by_id[account_id]
            except KeyError:
                raise AccountNotFoundError(str(account_id)) from None

    def delete_account(self, username: str) -> None:
        """Administrative removal; not part of the AccountStore contract."""
        with self._lock:
            account, _ = self._by_username.pop(username)
            del self._by_id[account.id]

    def __len__(self) -> int:
        return len(self._by_username)
