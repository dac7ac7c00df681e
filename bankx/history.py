"""
History Recorder Module

Append-only store of Transaction and Notification records. Records are
immutable once written and are listed per customer in insertion order,
which is also chronological order.
"""

from decimal import Decimal
from datetime import datetime, timezone
from dataclasses import dataclass
from typing import Dict, List, Optional
from enum import Enum
import uuid

from .money import Money
from .storage import StorageInterface, StorageRecord
from .logging_config import get_logger


class TransactionKind(Enum):
    """Operation kinds recorded in the transaction history"""
    PAYMENT = "payment"
    DEPOSIT = "deposit"
    TRANSFER_TO_SAVINGS = "transfer_to_savings"
    TRANSFER_OUT = "transfer_out"
    TRANSFER_IN = "transfer_in"
    INTEREST_APPLIED = "interest_applied"


# Fixed labels; transfers between customers carry the peer name instead
TRANSACTION_LABELS = {
    TransactionKind.PAYMENT: "Payment",
    TransactionKind.DEPOSIT: "Deposit",
    TransactionKind.TRANSFER_TO_SAVINGS: "Transfer to Savings",
    TransactionKind.INTEREST_APPLIED: "Interest Applied",
}


@dataclass(frozen=True)
class Transaction(StorageRecord):
    """Audit record of one balance-affecting operation; frozen once written"""
    customer_id: str
    kind: TransactionKind
    label: str
    amount: Money
    fee: Money

    @property
    def timestamp(self) -> datetime:
        return self.created_at


@dataclass(frozen=True)
class Notification(StorageRecord):
    """Human-readable message sent to a customer; frozen once written"""
    customer_id: str
    message: str

    @property
    def timestamp(self) -> datetime:
        return self.created_at


class HistoryRecorder:
    """Appends and lists transactions and notifications"""

    def __init__(self, storage: StorageInterface):
        self.storage = storage
        self.transactions_table = "transactions"
        self.notifications_table = "notifications"
        self.logger = get_logger("bankx.history")

    def record_transaction(
        self,
        customer_id: str,
        kind: TransactionKind,
        amount: Money,
        fee: Optional[Money] = None,
        label: Optional[str] = None
    ) -> Transaction:
        """
        Append a transaction record

        Args:
            customer_id: Owning customer
            kind: Operation kind
            amount: Principal amount
            fee: Fee charged (zero if not provided)
            label: Display label; defaults to the fixed label of ``kind``

        Returns:
            The stored Transaction
        """
        now = datetime.now(timezone.utc)
        transaction = Transaction(
            id=str(uuid.uuid4()),
            created_at=now,
            updated_at=now,
            customer_id=customer_id,
            kind=kind,
            label=label or TRANSACTION_LABELS[kind],
            amount=amount,
            fee=fee or Money.zero()
        )
        self.storage.save(self.transactions_table, transaction.id, self._transaction_to_dict(transaction))
        self.logger.debug(f"Recorded {transaction.label} for customer {customer_id}")
        return transaction

    def send_notification(self, customer_id: str, message: str) -> Notification:
        """Append a notification for a customer"""
        now = datetime.now(timezone.utc)
        notification = Notification(
            id=str(uuid.uuid4()),
            created_at=now,
            updated_at=now,
            customer_id=customer_id,
            message=message
        )
        self.storage.save(self.notifications_table, notification.id, notification.to_dict())
        return notification

    def list_transactions(self, customer_id: str) -> List[Transaction]:
        """Transactions of a customer, oldest first; empty list if none"""
        records = self.storage.find(self.transactions_table, {"customer_id": customer_id})
        return [self._transaction_from_dict(data) for data in records]

    def list_notifications(self, customer_id: str) -> List[Notification]:
        """Notifications of a customer, oldest first; empty list if none"""
        records = self.storage.find(self.notifications_table, {"customer_id": customer_id})
        return [self._notification_from_dict(data) for data in records]

    def purge_customer(self, customer_id: str) -> Dict[str, int]:
        """Remove all history of a customer (administrative purge only)"""
        return {
            "transactions": self.storage.delete_where(self.transactions_table, {"customer_id": customer_id}),
            "notifications": self.storage.delete_where(self.notifications_table, {"customer_id": customer_id})
        }

    # Serialization

    def _transaction_to_dict(self, transaction: Transaction) -> Dict:
        result = transaction.to_dict()
        result['kind'] = transaction.kind.value
        result['amount'] = str(transaction.amount.amount)
        result['fee'] = str(transaction.fee.amount)
        return result

    def _transaction_from_dict(self, data: Dict) -> Transaction:
        return Transaction(
            id=data['id'],
            created_at=datetime.fromisoformat(data['created_at']),
            updated_at=datetime.fromisoformat(data['updated_at']),
            customer_id=data['customer_id'],
            kind=TransactionKind(data['kind']),
            label=data['label'],
            amount=Money(Decimal(data['amount'])),
            fee=Money(Decimal(data['fee']))
        )

    def _notification_from_dict(self, data: Dict) -> Notification:
        return Notification(
            id=data['id'],
            created_at=datetime.fromisoformat(data['created_at']),
            updated_at=datetime.fromisoformat(data['updated_at']),
            customer_id=data['customer_id'],
            message=data['message']
        )
