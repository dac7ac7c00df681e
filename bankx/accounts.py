"""
Account Store Module

Holds the Savings and Current account of every customer and is the only
place balances change. Each account has its own reentrant lock; multi-account
units of work take the locks in ascending account-id order with a bounded
wait, then run inside one storage transaction.
"""

from decimal import Decimal
from datetime import datetime, timezone
from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Optional
from enum import Enum
from contextlib import contextmanager
import threading
import uuid

from .money import Money
from .storage import StorageInterface, StorageRecord
from .errors import AccountLockTimeout, InsufficientFunds
from .logging_config import get_logger, log_action


class AccountType(Enum):
    """The two account types every customer owns"""
    SAVINGS = "savings"
    CURRENT = "current"


@dataclass(frozen=True)
class Account(StorageRecord):
    """
    Customer account with a non-negative balance
    """
    customer_id: str
    account_type: AccountType
    balance: Money

    def __post_init__(self):
        if self.balance.is_negative():
            raise ValueError(f"Account balance cannot be negative: {self.balance.to_string()}")


class AccountStore:
    """
    Balance storage with per-account mutual exclusion
    """

    def __init__(self, storage: StorageInterface, lock_timeout: float = 5.0):
        self.storage = storage
        self.lock_timeout = lock_timeout
        self.table_name = "accounts"
        self.logger = get_logger("bankx.accounts")
        self._locks: Dict[str, threading.RLock] = {}
        self._registry_lock = threading.Lock()

    # Locking

    def _lock_for(self, account_id: str) -> threading.RLock:
        with self._registry_lock:
            lock = self._locks.get(account_id)
            if lock is None:
                lock = threading.RLock()
                self._locks[account_id] = lock
            return lock

    def discard_locks(self, account_ids: Iterable[str]) -> None:
        """Drop the lock entries of accounts that no longer exist"""
        with self._registry_lock:
            for account_id in account_ids:
                self._locks.pop(account_id, None)

    @contextmanager
    def lock_accounts(self, account_ids: Iterable[str]):
        """
        Hold the locks of several accounts

        Locks are deduplicated and always taken in ascending id order so two
        operations over the same pair of accounts cannot deadlock. Each wait
        is bounded by ``lock_timeout``.

        Raises:
            AccountLockTimeout: If any lock cannot be acquired in time; locks
                already taken are released first
        """
        ordered = sorted(set(account_ids))
        held: List[threading.RLock] = []
        try:
            for account_id in ordered:
                lock = self._lock_for(account_id)
                if not lock.acquire(timeout=self.lock_timeout):
                    log_action(
                        self.logger, "error", "Account lock timeout",
                        action="lock_accounts", resource=f"account:{account_id}",
                        extra={"requested": ordered, "timeout": self.lock_timeout}
                    )
                    raise AccountLockTimeout(ordered, self.lock_timeout, blocked_on=account_id)
                held.append(lock)
            yield
        finally:
            for lock in reversed(held):
                lock.release()

    @contextmanager
    def unit_of_work(self, account_ids: Iterable[str]):
        """Ordered account locks plus one storage transaction"""
        with self.lock_accounts(account_ids):
            with self.storage.atomic():
                yield

    # Account lifecycle

    def create_account(
        self,
        customer_id: str,
        account_type: AccountType,
        opening_balance: Optional[Money] = None
    ) -> Account:
        """
        Create a new account

        Args:
            customer_id: ID of account owner
            account_type: SAVINGS or CURRENT
            opening_balance: Initial balance (zero if not provided)

        Returns:
            Created Account object
        """
        now = datetime.now(timezone.utc)
        account = Account(
            id=str(uuid.uuid4()),
            created_at=now,
            updated_at=now,
            customer_id=customer_id,
            account_type=account_type,
            balance=opening_balance or Money.zero()
        )
        self._save_account(account)
        return account

    def get_account(self, account_id: str) -> Optional[Account]:
        """Get account by ID"""
        account_dict = self.storage.load(self.table_name, account_id)
        if account_dict:
            return self._account_from_dict(account_dict)
        return None

    def find_account(self, customer_id: str, account_type: AccountType) -> Optional[Account]:
        """Get the account of the given type owned by a customer"""
        accounts = self.storage.find(self.table_name, {
            "customer_id": customer_id,
            "account_type": account_type.value
        })
        if accounts:
            return self._account_from_dict(accounts[0])
        return None

    def get_customer_accounts(self, customer_id: str) -> List[Account]:
        """Get all accounts for a customer"""
        accounts_data = self.storage.find(self.table_name, {"customer_id": customer_id})
        return [self._account_from_dict(data) for data in accounts_data]

    def delete_customer_accounts(self, customer_id: str) -> int:
        """Remove every account of a customer (administrative purge only)"""
        return self.storage.delete_where(self.table_name, {"customer_id": customer_id})

    # Balances

    def get_balance(self, account_id: str) -> Money:
        """
        Current committed balance of an account

        Raises:
            KeyError: If the account does not exist
        """
        account = self.get_account(account_id)
        if account is None:
            raise KeyError(f"Account {account_id} not found")
        return account.balance

    def apply_delta(self, account_id: str, delta: Money) -> Money:
        """
        Add ``delta`` to an account balance and commit it

        The read-check-write runs under the account lock, so it is safe to
        call on its own or inside ``unit_of_work``.

        Returns:
            The new balance

        Raises:
            InsufficientFunds: If the new balance would be negative; nothing
                is written
            KeyError: If the account does not exist
        """
        with self.lock_accounts([account_id]):
            account = self.get_account(account_id)
            if account is None:
                raise KeyError(f"Account {account_id} not found")

            new_balance = account.balance + delta
            if new_balance.is_negative():
                raise InsufficientFunds(
                    customer_id=account.customer_id,
                    account_type=account.account_type,
                    required=-delta,
                    available=account.balance
                )

            self._save_account(replace(account, balance=new_balance, updated_at=datetime.now(timezone.utc)))
            return new_balance

    def apply_deltas(self, deltas: Dict[str, Money]) -> Dict[str, Money]:
        """Apply several deltas as one unit: all commit or none do"""
        with self.unit_of_work(deltas.keys()):
            return {
                account_id: self.apply_delta(account_id, delta)
                for account_id, delta in deltas.items()
            }

    # Serialization

    def _save_account(self, account: Account) -> None:
        """Save account to storage"""
        self.storage.save(self.table_name, account.id, self._account_to_dict(account))

    def _account_to_dict(self, account: Account) -> Dict:
        """Convert Account to dictionary for storage"""
        result = account.to_dict()
        result['account_type'] = account.account_type.value
        result['balance'] = str(account.balance.amount)
        return result

    def _account_from_dict(self, data: Dict) -> Account:
        """Convert dictionary to Account"""
        return Account(
            id=data['id'],
            created_at=datetime.fromisoformat(data['created_at']),
            updated_at=datetime.fromisoformat(data['updated_at']),
            customer_id=data['customer_id'],
            account_type=AccountType(data['account_type']),
            balance=Money(Decimal(data['balance']))
        )
