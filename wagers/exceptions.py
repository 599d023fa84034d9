"""
Error taxonomy for the wager engine.

Every business failure is a ``WagerError`` subclass carrying a stable
``code`` and the HTTP status the API layer answers with. Views catch
``WagerError`` and render it; anything else is a bug.
"""


class WagerError(Exception):
    code = "WAGER_ERROR"
    status_code = 400
    default_message = "Wager request could not be processed."

    def __init__(self, message=None, **context):
        self.message = message or self.default_message
        self.context = context
        super().__init__(self.message)

    def as_dict(self) -> dict:
        error = {"error": self.message, "code": self.code}
        if self.context:
            error["context"] = self.context
        return error


class InvalidInputError(WagerError):
    """Game-specific or transaction data has the wrong shape or range."""

    code = "INVALID_INPUT"
    default_message = "Invalid input."


class MissingDestinationError(InvalidInputError):
    code = "MISSING_DESTINATION"
    default_message = "IBAN and account holder name are required."


class InvalidGameError(WagerError):
    code = "INVALID_GAME"
    default_message = "Invalid game."


class BelowMinimumError(WagerError):
    code = "BELOW_MINIMUM"
    default_message = "Amount is below the minimum."


class InsufficientBalanceError(WagerError):
    code = "INSUFFICIENT_BALANCE"
    default_message = "Insufficient balance."


class AccountNotFoundError(WagerError):
    code = "ACCOUNT_NOT_FOUND"
    status_code = 404
    default_message = "Account not found."


class AccountInactiveError(WagerError):
    code = "ACCOUNT_INACTIVE"
    status_code = 403
    default_message = "Account is inactive."


class RecordNotFoundError(WagerError):
    code = "RECORD_NOT_FOUND"
    status_code = 404
    default_message = "Record not found."


class StorageFailureError(WagerError):
    """An append-only log refused a record."""

    code = "STORAGE_FAILURE"
    status_code = 500
    default_message = "Record could not be stored."


class RecordedButUnloggedError(StorageFailureError):
    """
    The ledger was mutated but the matching record could not be appended.

    ``outcome`` is what the caller would have received on success, and
    ``record`` the record waiting in the reconciliation queue. The balance
    change is real; callers must not resubmit.
    """

    code = "RECORDED_BUT_UNLOGGED"
    default_message = "Balance updated but the record is pending reconciliation."

    def __init__(self, outcome, record, message=None, **context):
        self.outcome = outcome
        self.record = record
        super().__init__(message, record_id=str(record.id), **context)
