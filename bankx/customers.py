"""
Customer Directory Module

Maps customer identity to its two accounts. Onboarding creates the customer,
a Savings account funded with the welcome bonus and an empty Current
account in a single storage transaction.
"""

from decimal import Decimal
from datetime import datetime, timezone
from dataclasses import dataclass
from typing import Dict, List, Optional
import uuid

from .money import Money
from .storage import StorageInterface, StorageRecord
from .accounts import Account, AccountStore, AccountType
from .errors import AccountNotFound, CustomerNotFound, InvalidCustomer
from .logging_config import get_logger, log_action


DEFAULT_ONBOARDING_BONUS = Decimal('500.00')


@dataclass(frozen=True)
class Customer(StorageRecord):
    """
    Customer profile; owns exactly one Savings and one Current account
    """
    name: str

    def __post_init__(self):
        if not isinstance(self.name, str) or not self.name.strip():
            raise InvalidCustomer(self.name)


class CustomerDirectory:
    """
    Manages customer onboarding and account resolution
    """

    def __init__(
        self,
        storage: StorageInterface,
        account_store: AccountStore,
        onboarding_bonus: Decimal = DEFAULT_ONBOARDING_BONUS
    ):
        self.storage = storage
        self.account_store = account_store
        self.onboarding_bonus = Money(onboarding_bonus)
        self.table_name = "customers"
        self.logger = get_logger("bankx.customers")

    def onboard(self, name: str) -> Customer:
        """
        Create a new customer with its Savings and Current accounts

        Args:
            name: Customer display name (non-empty)

        Returns:
            Created Customer object

        Raises:
            InvalidCustomer: If the name is blank
        """
        now = datetime.now(timezone.utc)
        customer = Customer(
            id=str(uuid.uuid4()),
            created_at=now,
            updated_at=now,
            name=name.strip() if isinstance(name, str) else name
        )

        with self.storage.atomic():
            self._save_customer(customer)
            savings = self.account_store.create_account(
                customer.id, AccountType.SAVINGS, self.onboarding_bonus
            )
            current = self.account_store.create_account(
                customer.id, AccountType.CURRENT, Money.zero()
            )

        log_action(
            self.logger, "info", f"New customer {customer.name} onboarded",
            action="onboard_customer", resource=f"customer:{customer.id}",
            extra={
                "customer_id": customer.id,
                "savings_account": savings.id,
                "current_account": current.id,
                "bonus": self.onboarding_bonus.to_string()
            }
        )

        return customer

    def get_customer(self, customer_id: str) -> Optional[Customer]:
        """Get customer by ID"""
        customer_dict = self.storage.load(self.table_name, customer_id)
        if customer_dict:
            return self._customer_from_dict(customer_dict)
        return None

    def require_customer(self, customer_id: str) -> Customer:
        """Get customer by ID or raise CustomerNotFound"""
        customer = self.get_customer(customer_id)
        if customer is None:
            raise CustomerNotFound(customer_id)
        return customer

    def list_customers(self) -> List[Customer]:
        """All customers in onboarding order"""
        return [self._customer_from_dict(data) for data in self.storage.load_all(self.table_name)]

    def resolve_account(self, customer_id: str, account_type: AccountType) -> Account:
        """
        Find the typed account of a customer

        Raises:
            CustomerNotFound: If the customer id is unknown
            AccountNotFound: If the customer lacks an account of that type
        """
        self.require_customer(customer_id)
        account = self.account_store.find_account(customer_id, account_type)
        if account is None:
            log_action(
                self.logger, "error", "Customer is missing a required account",
                action="resolve_account", resource=f"customer:{customer_id}",
                extra={"account_type": account_type.value}
            )
            raise AccountNotFound(customer_id, account_type)
        return account

    def delete_customer(self, customer_id: str) -> bool:
        """Remove the customer record (accounts and history are purged by the ledger)"""
        return self.storage.delete(self.table_name, customer_id)

    def _save_customer(self, customer: Customer) -> None:
        """Save customer to storage"""
        self.storage.save(self.table_name, customer.id, customer.to_dict())

    def _customer_from_dict(self, data: Dict) -> Customer:
        """Convert dictionary to Customer"""
        return Customer(
            id=data['id'],
            created_at=datetime.fromisoformat(data['created_at']),
            updated_at=datetime.fromisoformat(data['updated_at']),
            name=data['name']
        )
