"""
Ledger Engine

Money-movement operations over customer accounts. Every operation resolves
its accounts, takes their locks in a fixed order, checks sufficiency,
mutates balances and appends its Transaction and Notification records in a
single unit of work: either everything commits or nothing is persisted.
"""

from decimal import Decimal
from dataclasses import dataclass, field
from typing import List

from .money import (
    Money, AmountLike, DEFAULT_FEE_RATE, DEFAULT_INTEREST_RATE,
    calculate_fee, calculate_interest, parse_amount
)
from .accounts import Account, AccountStore, AccountType
from .customers import CustomerDirectory
from .history import HistoryRecorder, Transaction, TransactionKind
from .errors import AccountNotFound, BankXError, InvalidAmount
from .logging_config import get_logger, log_action


def _percent(rate: Decimal) -> str:
    return f"{(rate * 100).normalize():f}%"


@dataclass
class LedgerReceipt:
    """Outcome of a committed ledger operation"""
    operation: str
    customer_id: str
    amount: Money
    fee: Money
    interest: Money
    balance: Money  # resulting balance of the account the caller cares about
    transactions: List[Transaction] = field(default_factory=list)


class LedgerEngine:
    """
    Atomic balance-mutation engine

    Collaborators are passed in explicitly; the engine holds no global state.
    """

    def __init__(
        self,
        account_store: AccountStore,
        directory: CustomerDirectory,
        history: HistoryRecorder,
        fee_rate: Decimal = DEFAULT_FEE_RATE,
        interest_rate: Decimal = DEFAULT_INTEREST_RATE,
        allow_zero_amount: bool = False
    ):
        self.accounts = account_store
        self.directory = directory
        self.history = history
        self.fee_rate = fee_rate
        self.interest_rate = interest_rate
        self.allow_zero_amount = allow_zero_amount
        self.logger = get_logger("bankx.ledger")

    def fee(self, amount: Money) -> Money:
        return calculate_fee(amount, self.fee_rate)

    def interest(self, amount: Money) -> Money:
        return calculate_interest(amount, self.interest_rate)

    def _validate_amount(self, value: AmountLike) -> Money:
        amount = parse_amount(value)
        if amount.is_negative():
            raise InvalidAmount(value, "amount must not be negative")
        if amount.is_zero() and not self.allow_zero_amount:
            raise InvalidAmount(value, "amount must be greater than zero")
        return amount

    def _recheck(self, customer_id: str, account: Account) -> None:
        """
        Resolve an account again once its lock is held

        A purge may commit between resolution and locking; the operation then
        fails with CustomerNotFound or AccountNotFound instead of touching a
        deleted account.
        """
        resolved = self.directory.resolve_account(customer_id, account.account_type)
        if resolved.id != account.id:
            raise AccountNotFound(customer_id, account.account_type)

    def _log_failure(self, operation: str, customer_id: str, error: BankXError) -> None:
        log_action(
            self.logger, "warning", f"{operation} rejected: {error.message}",
            action=operation, resource=f"customer:{customer_id}",
            extra={"error_kind": error.kind.value}
        )

    def pay(self, customer_id: str, amount: AmountLike) -> LedgerReceipt:
        """
        External payment from the Current account

        Debits amount + fee; the fee is part of the sufficiency check.

        Raises:
            InvalidAmount, CustomerNotFound, AccountNotFound, InsufficientFunds
        """
        try:
            amount = self._validate_amount(amount)
            current = self.directory.resolve_account(customer_id, AccountType.CURRENT)
            fee = self.fee(amount)

            with self.accounts.unit_of_work([current.id]):
                self._recheck(customer_id, current)
                balance = self.accounts.apply_delta(current.id, -(amount + fee))
                transaction = self.history.record_transaction(
                    customer_id, TransactionKind.PAYMENT, amount, fee
                )
                self.history.send_notification(
                    customer_id,
                    f"Payment of {amount.to_string()} processed with fee: {fee.to_string()}"
                )
        except BankXError as e:
            self._log_failure("pay", customer_id, e)
            raise

        log_action(
            self.logger, "info", "Payment processed",
            action="pay", resource=f"customer:{customer_id}",
            extra={"amount": amount.to_string(), "fee": fee.to_string(), "balance": balance.to_string()}
        )
        return LedgerReceipt("pay", customer_id, amount, fee, Money.zero(), balance, [transaction])

    def deposit(self, customer_id: str, amount: AmountLike) -> LedgerReceipt:
        """
        Credit the Current account

        Raises:
            InvalidAmount, CustomerNotFound, AccountNotFound
        """
        try:
            amount = self._validate_amount(amount)
            current = self.directory.resolve_account(customer_id, AccountType.CURRENT)

            with self.accounts.unit_of_work([current.id]):
                self._recheck(customer_id, current)
                balance = self.accounts.apply_delta(current.id, amount)
                transaction = self.history.record_transaction(
                    customer_id, TransactionKind.DEPOSIT, amount
                )
                self.history.send_notification(
                    customer_id, f"Deposited {amount.to_string()} to your Current Account"
                )
        except BankXError as e:
            self._log_failure("deposit", customer_id, e)
            raise

        log_action(
            self.logger, "info", "Deposit processed",
            action="deposit", resource=f"customer:{customer_id}",
            extra={"amount": amount.to_string(), "balance": balance.to_string()}
        )
        return LedgerReceipt("deposit", customer_id, amount, Money.zero(), Money.zero(), balance, [transaction])

    def transfer_to_savings(self, customer_id: str, amount: AmountLike) -> LedgerReceipt:
        """
        Move money from Current to Savings with a 0.5% interest bonus

        Current is debited by amount; Savings is credited by amount + interest.
        A single transaction of amount + interest is recorded.

        Raises:
            InvalidAmount, CustomerNotFound, AccountNotFound, InsufficientFunds
        """
        try:
            amount = self._validate_amount(amount)
            current = self.directory.resolve_account(customer_id, AccountType.CURRENT)
            savings = self.directory.resolve_account(customer_id, AccountType.SAVINGS)
            interest = self.interest(amount)
            total = amount + interest

            with self.accounts.unit_of_work([current.id, savings.id]):
                self._recheck(customer_id, current)
                self._recheck(customer_id, savings)
                self.accounts.apply_delta(current.id, -amount)
                balance = self.accounts.apply_delta(savings.id, total)
                transaction = self.history.record_transaction(
                    customer_id, TransactionKind.TRANSFER_TO_SAVINGS, total
                )
                self.history.send_notification(
                    customer_id,
                    f"Transferred {amount.to_string()} to Savings Account with {_percent(self.interest_rate)} interest. "
                    f"Total credited: {total.to_string()}"
                )
        except BankXError as e:
            self._log_failure("transfer_to_savings", customer_id, e)
            raise

        log_action(
            self.logger, "info", "Transfer to savings processed",
            action="transfer_to_savings", resource=f"customer:{customer_id}",
            extra={"amount": amount.to_string(), "interest": interest.to_string(),
                   "savings_balance": balance.to_string()}
        )
        return LedgerReceipt(
            "transfer_to_savings", customer_id, amount, Money.zero(), interest, balance, [transaction]
        )

    def transfer_to_customer(self, sender_id: str, receiver_id: str, amount: AmountLike) -> LedgerReceipt:
        """
        Move money between two customers' Current accounts

        The sender pays amount + fee, the receiver gets amount. Both sides,
        both transactions and both notifications commit together.

        Raises:
            InvalidAmount, CustomerNotFound, AccountNotFound, InsufficientFunds
        """
        try:
            amount = self._validate_amount(amount)
            sender = self.directory.require_customer(sender_id)
            receiver = self.directory.require_customer(receiver_id)
            sender_account = self.directory.resolve_account(sender_id, AccountType.CURRENT)
            receiver_account = self.directory.resolve_account(receiver_id, AccountType.CURRENT)
            fee = self.fee(amount)

            with self.accounts.unit_of_work([sender_account.id, receiver_account.id]):
                self._recheck(sender_id, sender_account)
                self._recheck(receiver_id, receiver_account)
                # Debit first: a shortfall aborts before the receiver is touched
                sender_balance = self.accounts.apply_delta(sender_account.id, -(amount + fee))
                receiver_balance = self.accounts.apply_delta(receiver_account.id, amount)
                if sender_account.id == receiver_account.id:
                    sender_balance = receiver_balance

                sent = self.history.record_transaction(
                    sender_id, TransactionKind.TRANSFER_OUT, amount, fee,
                    label=f"Transfer to {receiver.name}"
                )
                received = self.history.record_transaction(
                    receiver_id, TransactionKind.TRANSFER_IN, amount,
                    label=f"Received from {sender.name}"
                )
                self.history.send_notification(
                    sender_id,
                    f"Transferred {amount.to_string()} to {receiver.name} with a fee of {fee.to_string()}"
                )
                self.history.send_notification(
                    receiver_id, f"Received {amount.to_string()} from {sender.name}"
                )
        except BankXError as e:
            self._log_failure("transfer_to_customer", sender_id, e)
            raise

        log_action(
            self.logger, "info", "Transfer between customers processed",
            action="transfer_to_customer", resource=f"customer:{sender_id}",
            extra={"receiver_id": receiver_id, "amount": amount.to_string(),
                   "fee": fee.to_string(), "sender_balance": sender_balance.to_string()}
        )
        return LedgerReceipt(
            "transfer_to_customer", sender_id, amount, fee, Money.zero(), sender_balance, [sent, received]
        )

    def apply_interest(self, customer_id: str) -> LedgerReceipt:
        """
        Credit 0.5% interest on the current Savings balance

        The balance is read under the account lock, so a concurrent transfer
        into Savings is either fully included or fully excluded.

        Raises:
            CustomerNotFound, AccountNotFound
        """
        try:
            savings = self.directory.resolve_account(customer_id, AccountType.SAVINGS)

            with self.accounts.unit_of_work([savings.id]):
                self._recheck(customer_id, savings)
                interest = self.interest(self.accounts.get_balance(savings.id))
                balance = self.accounts.apply_delta(savings.id, interest)
                transaction = self.history.record_transaction(
                    customer_id, TransactionKind.INTEREST_APPLIED, interest
                )
                self.history.send_notification(
                    customer_id, f"Interest of {interest.to_string()} credited to Savings Account"
                )
        except BankXError as e:
            self._log_failure("apply_interest", customer_id, e)
            raise

        log_action(
            self.logger, "info", "Interest applied",
            action="apply_interest", resource=f"customer:{customer_id}",
            extra={"interest": interest.to_string(), "savings_balance": balance.to_string()}
        )
        return LedgerReceipt(
            "apply_interest", customer_id, interest, Money.zero(), interest, balance, [transaction]
        )

    def get_balance(self, customer_id: str, account_type: AccountType) -> Money:
        """Committed balance of a customer's typed account"""
        account = self.directory.resolve_account(customer_id, account_type)
        return self.accounts.get_balance(account.id)

    def purge_customer(self, customer_id: str) -> None:
        """
        Administrative purge: remove the customer, both accounts and all of
        its transactions and notifications in one unit of work

        Raises:
            CustomerNotFound
        """
        self.directory.require_customer(customer_id)
        account_ids = [a.id for a in self.accounts.get_customer_accounts(customer_id)]

        with self.accounts.unit_of_work(account_ids):
            self.directory.require_customer(customer_id)
            removed = self.history.purge_customer(customer_id)
            removed["accounts"] = self.accounts.delete_customer_accounts(customer_id)
            self.directory.delete_customer(customer_id)
        self.accounts.discard_locks(account_ids)

        log_action(
            self.logger, "info", "Customer purged",
            action="purge_customer", resource=f"customer:{customer_id}",
            extra=removed
        )
