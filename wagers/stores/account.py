import dataclasses
import logging
import threading
from contextlib import contextmanager
from typing import Dict, Iterator
from uuid import UUID

from wagers.exceptions import AccountNotFoundError
from wagers.models import Account

logger = logging.getLogger(__name__)


class AccountStore:
    """
    In-memory owner of every Account.

    Each account gets its own re-entrant lock; holding it is the only way to
    reach the live, mutable Account (see ``locked``). The registry lock guards
    the two dicts and is released before any account lock is taken, so
    operations on different accounts never wait on each other.
    """

    def __init__(self):
        self._accounts: Dict[UUID, Account] = {}
        self._locks: Dict[UUID, threading.RLock] = {}
        self._registry_lock = threading.Lock()

    def __len__(self):
        with self._registry_lock:
            return len(self._accounts)

    def add(self, account: Account) -> Account:
        with self._registry_lock:
            if account.uuid in self._accounts:
                raise ValueError(f"Account {account.uuid} already exists.")
            self._accounts[account.uuid] = account
            self._locks[account.uuid] = threading.RLock()
        logger.debug("Account registered: account=%s", account.uuid)
        return dataclasses.replace(account)

    def _entry(self, account_id):
        key = as_account_id(account_id)
        with self._registry_lock:
            try:
                return self._accounts[key], self._locks[key]
            except KeyError:
                raise AccountNotFoundError(account_id=str(account_id)) from None

    @contextmanager
    def locked(self, account_id) -> Iterator[Account]:
        """
        Hold the account's lock and yield the live Account.

        Everything done inside the ``with`` block is one indivisible step as
        far as other callers on the same account are concerned.

        Raises:
            AccountNotFoundError: If no account has this id.
        """
        account, lock = self._entry(account_id)
        with lock:
            yield account

    def get(self, account_id) -> Account:
        """Return a consistent copy of the account."""
        with self.locked(account_id) as account:
            return dataclasses.replace(account)


def as_account_id(account_id) -> UUID:
    if isinstance(account_id, UUID):
        return account_id
    try:
        return UUID(str(account_id))
    except ValueError:
        raise AccountNotFoundError(account_id=str(account_id)) from None
