"""
Test suite for customer directory module

Tests onboarding, lookup and account resolution.
"""

from decimal import Decimal
import pytest

from bankx.storage import InMemoryStorage
from bankx.money import Money
from bankx.accounts import AccountStore, AccountType
from bankx.customers import Customer, CustomerDirectory
from bankx.errors import AccountNotFound, CustomerNotFound, ErrorKind, InvalidCustomer


class TestCustomerDirectory:
    """Test customer onboarding and resolution"""

    def setup_method(self):
        """Setup test environment"""
        self.storage = InMemoryStorage()
        self.account_store = AccountStore(self.storage)
        self.directory = CustomerDirectory(self.storage, self.account_store)

    def test_onboard_creates_two_accounts(self):
        """Savings starts with the welcome bonus, Current starts empty"""
        customer = self.directory.onboard("Alice")

        assert customer.name == "Alice"
        savings = self.directory.resolve_account(customer.id, AccountType.SAVINGS)
        current = self.directory.resolve_account(customer.id, AccountType.CURRENT)
        assert savings.balance == Money('500.00')
        assert current.balance == Money('0.00')
        assert savings.customer_id == current.customer_id == customer.id

    def test_onboard_strips_name(self):
        customer = self.directory.onboard("  Bob  ")
        assert customer.name == "Bob"

    def test_customer_ids_unique(self):
        ids = {self.directory.onboard(f"Customer {i}").id for i in range(20)}
        assert len(ids) == 20

    @pytest.mark.parametrize("name", ["", "   ", "\t\n"])
    def test_blank_name_rejected(self, name):
        with pytest.raises(InvalidCustomer) as exc_info:
            self.directory.onboard(name)

        assert exc_info.value.kind == ErrorKind.INVALID_CUSTOMER
        assert self.storage.count("customers") == 0
        assert self.storage.count("accounts") == 0

    def test_invalid_customer_is_value_error(self):
        with pytest.raises(ValueError):
            self.directory.onboard("")

    def test_custom_onboarding_bonus(self):
        directory = CustomerDirectory(self.storage, self.account_store, onboarding_bonus=Decimal('25.50'))
        customer = directory.onboard("Carol")

        savings = directory.resolve_account(customer.id, AccountType.SAVINGS)
        assert savings.balance == Money('25.50')

    def test_get_customer(self):
        customer = self.directory.onboard("Dana")

        loaded = self.directory.get_customer(customer.id)
        assert isinstance(loaded, Customer)
        assert loaded.name == "Dana"
        assert loaded.created_at == customer.created_at
        assert self.directory.get_customer("unknown") is None

    def test_require_customer_unknown(self):
        with pytest.raises(CustomerNotFound) as exc_info:
            self.directory.require_customer("unknown")

        assert exc_info.value.customer_id == "unknown"
        assert "unknown" in exc_info.value.message

    def test_list_customers_in_onboarding_order(self):
        names = ["Eve", "Frank", "Grace"]
        for name in names:
            self.directory.onboard(name)

        assert [c.name for c in self.directory.list_customers()] == names

    def test_resolve_account_unknown_customer(self):
        with pytest.raises(CustomerNotFound):
            self.directory.resolve_account("unknown", AccountType.CURRENT)

    def test_resolve_account_missing_account(self):
        """A customer without its Current account is reported, not created"""
        customer = self.directory.onboard("Heidi")
        current = self.account_store.find_account(customer.id, AccountType.CURRENT)
        self.storage.delete("accounts", current.id)

        with pytest.raises(AccountNotFound) as exc_info:
            self.directory.resolve_account(customer.id, AccountType.CURRENT)

        assert exc_info.value.kind == ErrorKind.ACCOUNT_NOT_FOUND
        assert exc_info.value.account_type == AccountType.CURRENT
        assert self.account_store.find_account(customer.id, AccountType.CURRENT) is None

    def test_delete_customer(self):
        customer = self.directory.onboard("Ivan")

        assert self.directory.delete_customer(customer.id) is True
        assert self.directory.get_customer(customer.id) is None
        assert self.directory.delete_customer(customer.id) is False
