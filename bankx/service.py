"""
Banking Service

Caller-facing contract of the ledger core. Wraps the Ledger Engine so a
request layer gets a discriminated result for every money movement: a
success payload with the resulting balance, or a typed business failure.
Infrastructure faults (lock timeouts, storage errors) are raised, never
folded into a result.
"""

from typing import Callable, List, Optional

from pydantic import BaseModel, Field

from .config import BankXConfig, get_config
from .storage import StorageInterface, create_storage
from .accounts import AccountStore, AccountType
from .customers import Customer, CustomerDirectory
from .history import HistoryRecorder, Notification, Transaction
from .ledger import LedgerEngine, LedgerReceipt
from .money import AmountLike
from .errors import AccountLockTimeout, BankXError
from .logging_config import setup_logging


class AccountView(BaseModel):
    id: str
    account_type: str = Field(..., description="savings or current")
    balance: str = Field(..., description="Decimal amount as string")


class CustomerView(BaseModel):
    id: str
    name: str
    created_at: str
    accounts: List[AccountView] = Field(default_factory=list)


class TransactionView(BaseModel):
    id: str
    customer_id: str
    transaction_type: str = Field(..., description="Label shown to the customer")
    kind: str
    amount: str
    fee: str
    timestamp: str

    @classmethod
    def from_transaction(cls, transaction: Transaction) -> 'TransactionView':
        return cls(
            id=transaction.id,
            customer_id=transaction.customer_id,
            transaction_type=transaction.label,
            kind=transaction.kind.value,
            amount=str(transaction.amount.amount),
            fee=str(transaction.fee.amount),
            timestamp=transaction.timestamp.isoformat()
        )


class NotificationView(BaseModel):
    id: str
    customer_id: str
    message: str
    timestamp: str

    @classmethod
    def from_notification(cls, notification: Notification) -> 'NotificationView':
        return cls(
            id=notification.id,
            customer_id=notification.customer_id,
            message=notification.message,
            timestamp=notification.timestamp.isoformat()
        )


class OperationResult(BaseModel):
    """Success payload or typed business failure"""
    success: bool
    message: str
    error_kind: Optional[str] = None
    balance: Optional[str] = None
    amount: Optional[str] = None
    fee: Optional[str] = None
    interest: Optional[str] = None

    @classmethod
    def ok(cls, message: str, receipt: LedgerReceipt) -> 'OperationResult':
        return cls(
            success=True,
            message=message,
            balance=str(receipt.balance.amount),
            amount=str(receipt.amount.amount),
            fee=str(receipt.fee.amount),
            interest=str(receipt.interest.amount)
        )

    @classmethod
    def failure(cls, error: BankXError) -> 'OperationResult':
        return cls(success=False, message=error.message, error_kind=error.kind.value)


class BankingService:
    """Request-layer facing operations of the ledger core"""

    def __init__(self, ledger: LedgerEngine):
        self.ledger = ledger
        self.directory = ledger.directory
        self.history = ledger.history

    def _run(self, operation: Callable[[], LedgerReceipt], describe: Callable[[LedgerReceipt], str]) -> OperationResult:
        try:
            receipt = operation()
        except AccountLockTimeout:
            raise
        except BankXError as e:
            return OperationResult.failure(e)
        return OperationResult.ok(describe(receipt), receipt)

    # Customers

    def create_customer(self, name: str) -> CustomerView:
        """Onboard a customer; raises InvalidCustomer for a blank name"""
        customer = self.directory.onboard(name)
        return self._customer_view(customer)

    def get_customer(self, customer_id: str) -> Optional[CustomerView]:
        customer = self.directory.get_customer(customer_id)
        if customer is None:
            return None
        return self._customer_view(customer)

    def delete_customer(self, customer_id: str) -> OperationResult:
        """Administrative purge of a customer and everything it owns"""
        try:
            self.ledger.purge_customer(customer_id)
        except AccountLockTimeout:
            raise
        except BankXError as e:
            return OperationResult.failure(e)
        return OperationResult(success=True, message=f"Customer {customer_id} deleted")

    # Money movements

    def pay(self, customer_id: str, amount: AmountLike) -> OperationResult:
        return self._run(
            lambda: self.ledger.pay(customer_id, amount),
            lambda r: (
                f"Payment Successful for the Amount: {r.amount.to_string()} processed with fee: "
                f"{r.fee.to_string()}. Available Balance in your Current account is: {r.balance.to_string()}"
            )
        )

    def deposit(self, customer_id: str, amount: AmountLike) -> OperationResult:
        return self._run(
            lambda: self.ledger.deposit(customer_id, amount),
            lambda r: (
                f"{r.amount.to_string()} Deposited to your Current Account. "
                f"Your Updated Current Account Balance is: {r.balance.to_string()}"
            )
        )

    def transfer_to_savings(self, customer_id: str, amount: AmountLike) -> OperationResult:
        return self._run(
            lambda: self.ledger.transfer_to_savings(customer_id, amount),
            lambda r: (
                f"{r.amount.to_string()} Transferred Successfully with Interest to the Savings Account. "
                f"Updated Savings Account Balance is: {r.balance.to_string()}"
            )
        )

    def transfer_to_customer(self, sender_id: str, receiver_id: str, amount: AmountLike) -> OperationResult:
        return self._run(
            lambda: self.ledger.transfer_to_customer(sender_id, receiver_id, amount),
            lambda r: (
                f"{r.amount.to_string()} Successfully Transferred to Customer {receiver_id} "
                f"With a Transaction Fee of: {r.fee.to_string()}. "
                f"Your Updated Current Account Balance is: {r.balance.to_string()}"
            )
        )

    def apply_interest(self, customer_id: str) -> OperationResult:
        return self._run(
            lambda: self.ledger.apply_interest(customer_id),
            lambda r: (
                f"Interest of {r.interest.to_string()} credited. "
                f"Updated Savings Account Balance is: {r.balance.to_string()}"
            )
        )

    # History

    def get_transactions(self, customer_id: str) -> List[TransactionView]:
        """Ordered transactions; empty list when there are none"""
        return [TransactionView.from_transaction(t) for t in self.history.list_transactions(customer_id)]

    def get_notifications(self, customer_id: str) -> List[NotificationView]:
        """Ordered notifications; empty list when there are none"""
        return [NotificationView.from_notification(n) for n in self.history.list_notifications(customer_id)]

    def _customer_view(self, customer: Customer) -> CustomerView:
        accounts = sorted(
            self.ledger.accounts.get_customer_accounts(customer.id),
            key=lambda a: list(AccountType).index(a.account_type)
        )
        return CustomerView(
            id=customer.id,
            name=customer.name,
            created_at=customer.created_at.isoformat(),
            accounts=[
                AccountView(id=a.id, account_type=a.account_type.value, balance=str(a.balance.amount))
                for a in accounts
            ]
        )


def build_banking_service(
    config: Optional[BankXConfig] = None,
    storage: Optional[StorageInterface] = None,
    configure_logging: bool = False
) -> BankingService:
    """
    Wire storage, account store, directory, history and ledger together

    Args:
        config: Settings to use (global configuration if omitted)
        storage: Pre-built storage backend (built from ``config.database_url`` if omitted)
        configure_logging: Install the bankx log handler from the config

    Returns:
        Ready-to-use BankingService
    """
    config = config or get_config()

    if configure_logging:
        setup_logging(config.log_level, "bankx", config.log_format, config.log_file)

    storage = storage or create_storage(config.database_url)
    account_store = AccountStore(storage, lock_timeout=config.lock_timeout_seconds)
    directory = CustomerDirectory(storage, account_store, onboarding_bonus=config.onboarding_bonus_decimal)
    history = HistoryRecorder(storage)
    ledger = LedgerEngine(
        account_store,
        directory,
        history,
        fee_rate=config.fee_rate_decimal,
        interest_rate=config.interest_rate_decimal,
        allow_zero_amount=config.allow_zero_amount
    )
    return BankingService(ledger)
