"""
AccountStore backed by SQLAlchemy 2.0 async sessions.
"""

import uuid

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from authsvc.kernel.identity.errors import (
    AccountNotFoundError,
    DuplicateUsernameError,
    StoreUnavailableError,
)
from authsvc.kernel.identity.interfaces import Account
from authsvc.kernel.models.account import AccountRecord
from authsvc.logging_config import get_logger

logger = get_logger(__name__)


class SqlAccountStore:
    """
    Account store over the ``accounts`` table.

    Every call runs in its own session and transaction, so the store can be
    shared by concurrent requests.
    """

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self.session_maker = session_maker

    async def create_account(self, username: str, password_hash: str) -> Account:
        record = AccountRecord(username=username, password_hash=password_hash)
        try:
            async with self.session_maker() as session:
                async with session.begin():
                    session.add(record)
                    await session.flush()
                    account = Account.model_validate(record)
        except IntegrityError as exc:
            # id is a fresh uuid4, so the username index is the only
            # constraint an insert can violate
            raise DuplicateUsernameError(username) from exc
        except (SQLAlchemyError, OSError, UnicodeError) as exc:
            logger.warning("Account insert failed", exc_info=True)
            raise StoreUnavailableError(str(exc)) from exc
        return account

    async def find_credential_by_username(self, username: str) -> tuple[Account, str]:
        query = select(AccountRecord).where(AccountRecord.username == username)
        record = await self._fetch_one(query)
        if record is None:
            raise AccountNotFoundError(username)
        return Account.model_validate(record), record.password_hash

    async def find_account_by_id(self, account_id: uuid.UUID) -> Account:
        query = select(AccountRecord).where(AccountRecord.id == account_id)
        record = await self._fetch_one(query)
        if record is None:
            raise AccountNotFoundError(str(account_id))
        return Account.model_validate(record)

    async def _fetch_one(self, query) -> AccountRecord | None:
        try:
            async with self.session_maker() as session:
                result = await session.execute(query)
                return result.scalar_one_or_none()
        except (SQLAlchemyError, OSError, UnicodeError) as exc:
            logger.warning("Account lookup failed", exc_info=True)
            raise StoreUnavailableError(str(exc)) from exc
