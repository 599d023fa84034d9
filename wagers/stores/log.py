import logging
import threading
from collections import defaultdict, deque
from operator import attrgetter
from typing import Dict, List, Optional
from uuid import UUID

from wagers.exceptions import (
    RecordedButUnloggedError,
    RecordNotFoundError,
    StorageFailureError,
)
from wagers.models import TransactionRecord
from wagers.stores.account import as_account_id

logger = logging.getLogger(__name__)


class RecordLog:
    """
    Append-only, account-indexed log of immutable records.

    Records are never changed or removed. ``capacity`` bounds the total
    number of records; once reached, ``append`` raises StorageFailureError.
    """

    record_name = "record"

    def __init__(self, capacity: Optional[int] = None):
        self.capacity = capacity
        self._by_account: Dict[UUID, list] = defaultdict(list)
        self._size = 0
        self._lock = threading.Lock()

    def __len__(self):
        with self._lock:
            return self._size

    def append(self, record):
        with self._lock:
            if self.capacity is not None and self._size >= self.capacity:
                logger.warning(
                    "%s log full: capacity=%d dropped=%s",
                    self.record_name,
                    self.capacity,
                    record.id,
                )
                raise StorageFailureError(
                    f"The {self.record_name} log is full.",
                    capacity=self.capacity,
                )
            self._by_account[record.account_id].append(record)
            self._size += 1
        return record

    def history_for(self, account_id, limit: Optional[int] = None) -> list:
        """
        Return the account's records, newest first.

        Ordered by ``created_at`` descending; records with the same timestamp
        keep the most recently appended first. ``limit`` caps the result.
        """
        key = as_account_id(account_id)
        with self._lock:
            records = list(self._by_account.get(key, ()))
        # reversed() + stable sort keeps later appends ahead on equal timestamps
        records = sorted(reversed(records), key=attrgetter("created_at"), reverse=True)
        if limit is not None:
            records = records[: max(limit, 0)]
        return records

    def get(self, account_id, record_id):
        """Return one record, only if it belongs to ``account_id``."""
        key = as_account_id(account_id)
        with self._lock:
            for record in self._by_account.get(key, ()):
                if str(record.id) == str(record_id):
                    return record
        raise RecordNotFoundError(
            f"{self.record_name.capitalize()} not found.", record_id=str(record_id)
        )


class ReconciliationQueue:
    """
    Records whose ledger change was applied but whose log append failed.

    ``drain`` retries them in arrival order and stops at the first log that
    still refuses, keeping the rest queued.
    """

    def __init__(self):
        self._pending = deque()
        self._lock = threading.Lock()

    def __len__(self):
        with self._lock:
            return len(self._pending)

    def append_or_hold(self, log: RecordLog, record, outcome):
        """
        Append ``record`` to ``log``; on failure queue it and raise.

        Raises:
            RecordedButUnloggedError: The append failed. ``outcome`` is
                attached so the caller still learns what was settled.
        """
        try:
            return log.append(record)
        except StorageFailureError as exc:
            with self._lock:
                self._pending.append((log, record))
            logger.error(
                "Ledger updated but %s not logged, queued for reconciliation: "
                "account=%s record=%s error=%s",
                log.record_name,
                record.account_id,
                record.id,
                exc.message,
            )
            raise RecordedButUnloggedError(outcome, record) from exc

    def drain(self) -> int:
        appended = 0
        with self._lock:
            while self._pending:
                log, record = self._pending[0]
                try:
                    log.append(record)
                except StorageFailureError:
                    logger.warning(
                        "Reconciliation stalled: %d record(s) still pending.",
                        len(self._pending),
                    )
                    break
                self._pending.popleft()
                appended += 1
        if appended:
            logger.info("Reconciled %d unlogged record(s).", appended)
        return appended


class BetLog(RecordLog):
    record_name = "bet"


class TransactionLog(RecordLog):
    record_name = "transaction"

    def history_for(
        self,
        account_id,
        transaction_type: Optional[str] = None,
        status: Optional[str] = None,
    ) -> List[TransactionRecord]:
        records = super().history_for(account_id)
        if transaction_type:
            records = [r for r in records if r.transaction_type == transaction_type.upper()]
        if status:
            records = [r for r in records if r.status == status.upper()]
        return records
