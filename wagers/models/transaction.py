from dataclasses import dataclass, field
from typing import Optional
from uuid import UUID, uuid4

from django.db import models

from wagers.models.base import BaseRecord


@dataclass(frozen=True)
class PayoutDestination:
    """Bank account a withdrawal is paid out to."""

    iban: str
    account_name: str

    def as_dict(self) -> dict:
        return {"iban": self.iban, "account_name": self.account_name}


@dataclass(frozen=True, kw_only=True)
class TransactionRecord(BaseRecord):
    """
    Records every deposit or withdrawal against an account.

    Deposits are credited immediately and created COMPLETED. Withdrawals are
    debited immediately and created PENDING until paid out by the bank;
    moving them on from PENDING happens outside this service.
    """

    class TransactionType(models.TextChoices):
        DEPOSIT = "DEPOSIT", "Deposit"
        WITHDRAWAL = "WITHDRAWAL", "Withdrawal"

    class Status(models.TextChoices):
        PENDING = "PENDING", "Pending"
        COMPLETED = "COMPLETED", "Completed"
        REJECTED = "REJECTED", "Rejected"

    id: UUID = field(default_factory=uuid4)
    account_id: UUID
    transaction_type: "TransactionRecord.TransactionType"
    amount: int
    status: "TransactionRecord.Status"
    destination: Optional[PayoutDestination] = None

    def __str__(self):
        return (
            f"Transaction {self.id} | {self.transaction_type} | "
            f"{self.amount} | {self.status}"
        )
