from wagers.stores.account import AccountStore
from wagers.stores.log import BetLog, ReconciliationQueue, RecordLog, TransactionLog

__all__ = ["AccountStore", "RecordLog", "BetLog", "TransactionLog", "ReconciliationQueue"]
