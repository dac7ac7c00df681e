"""
Error Kinds Module

Typed failures raised by the ledger core. Business outcomes (insufficient
funds, unknown customer, bad amount) are never retried; only
AccountLockTimeout is a transient infrastructure fault.
"""

from enum import Enum
from typing import Any, Iterable, Optional


class ErrorKind(Enum):
    """Discriminator for every failure the ledger core can report"""
    CUSTOMER_NOT_FOUND = "customer_not_found"
    ACCOUNT_NOT_FOUND = "account_not_found"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    INVALID_AMOUNT = "invalid_amount"
    INVALID_CUSTOMER = "invalid_customer"
    ACCOUNT_LOCK_TIMEOUT = "account_lock_timeout"


class BankXError(Exception):
    """Base exception for all ledger core errors"""

    kind: ErrorKind

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class CustomerNotFound(BankXError):
    """Raised when a customer id is unknown"""

    kind = ErrorKind.CUSTOMER_NOT_FOUND

    def __init__(self, customer_id: str):
        self.customer_id = customer_id
        super().__init__(f"Customer {customer_id} not found")


class AccountNotFound(BankXError):
    """
    Raised when a customer is missing one of its typed accounts.
    Every customer owns a Savings and a Current account, so this signals
    a broken invariant rather than bad input.
    """

    kind = ErrorKind.ACCOUNT_NOT_FOUND

    def __init__(self, customer_id: str, account_type: Any):
        self.customer_id = customer_id
        self.account_type = account_type
        type_name = getattr(account_type, "name", str(account_type))
        super().__init__(f"{type_name} account not found for customer {customer_id}")


class InsufficientFunds(BankXError):
    """Raised when a debit would take a balance below zero"""

    kind = ErrorKind.INSUFFICIENT_FUNDS

    def __init__(self, customer_id: str, account_type: Any, required: Any, available: Any):
        self.customer_id = customer_id
        self.account_type = account_type
        self.required = required
        self.available = available
        type_name = getattr(account_type, "name", str(account_type))
        super().__init__(
            f"Insufficient balance in {type_name} account of customer {customer_id}: "
            f"required {_fmt(required)}, available {_fmt(available)}"
        )


class InvalidAmount(BankXError):
    """Raised for malformed, non-positive or sub-cent amounts"""

    kind = ErrorKind.INVALID_AMOUNT

    def __init__(self, value: Any, reason: str):
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid amount {value!r}: {reason}")


class InvalidCustomer(BankXError, ValueError):
    """Raised when onboarding data is invalid (e.g. blank name)"""

    kind = ErrorKind.INVALID_CUSTOMER

    def __init__(self, name: Any, reason: str = "name must be a non-empty string"):
        self.name = name
        super().__init__(f"Invalid customer {name!r}: {reason}")


class AccountLockTimeout(BankXError):
    """Raised when account locks cannot be acquired in time (transient)"""

    kind = ErrorKind.ACCOUNT_LOCK_TIMEOUT

    def __init__(self, account_ids: Iterable[str], timeout: float, blocked_on: Optional[str] = None):
        self.account_ids = list(account_ids)
        self.timeout = timeout
        self.blocked_on = blocked_on
        super().__init__(
            f"Timed out after {timeout}s waiting for account lock {blocked_on} "
            f"(requested: {', '.join(self.account_ids)})"
        )


def _fmt(value: Any) -> str:
    to_string = getattr(value, "to_string", None)
    return to_string() if callable(to_string) else str(value)
