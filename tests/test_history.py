"""
Test suite for history recorder module
"""

from dataclasses import FrozenInstanceError
import pytest

from bankx.storage import InMemoryStorage
from bankx.money import Money
from bankx.history import HistoryRecorder, Notification, Transaction, TransactionKind


class TestHistoryRecorder:
    """Test appending and listing transactions and notifications"""

    def setup_method(self):
        """Setup test environment"""
        self.storage = InMemoryStorage()
        self.history = HistoryRecorder(self.storage)

    def test_record_transaction_defaults(self):
        transaction = self.history.record_transaction("c1", TransactionKind.PAYMENT, Money('100.00'), Money('0.05'))

        assert isinstance(transaction, Transaction)
        assert transaction.label == "Payment"
        assert transaction.amount == Money('100.00')
        assert transaction.fee == Money('0.05')
        assert transaction.timestamp == transaction.created_at

    def test_fee_defaults_to_zero(self):
        transaction = self.history.record_transaction("c1", TransactionKind.DEPOSIT, Money('10.00'))
        assert transaction.fee.is_zero()
        assert transaction.label == "Deposit"

    def test_fixed_labels(self):
        kinds = {
            TransactionKind.TRANSFER_TO_SAVINGS: "Transfer to Savings",
            TransactionKind.INTEREST_APPLIED: "Interest Applied",
        }
        for kind, label in kinds.items():
            assert self.history.record_transaction("c1", kind, Money('1.00')).label == label

    def test_custom_label(self):
        transaction = self.history.record_transaction(
            "c1", TransactionKind.TRANSFER_OUT, Money('5.00'), label="Transfer to Bob"
        )
        assert transaction.label == "Transfer to Bob"

    def test_list_transactions_round_trip(self):
        """Stored transactions come back with the same values, oldest first"""
        first = self.history.record_transaction("c1", TransactionKind.DEPOSIT, Money('10.00'))
        self.history.record_transaction("c2", TransactionKind.DEPOSIT, Money('99.00'))
        second = self.history.record_transaction("c1", TransactionKind.PAYMENT, Money('4.00'), Money('0.01'))

        listed = self.history.list_transactions("c1")
        assert [t.id for t in listed] == [first.id, second.id]
        assert listed[1].kind == TransactionKind.PAYMENT
        assert listed[1].amount == Money('4.00')
        assert listed[1].fee == Money('0.01')
        assert listed[1].created_at == second.created_at

    def test_empty_history(self):
        assert self.history.list_transactions("nobody") == []
        assert self.history.list_notifications("nobody") == []

    def test_notifications(self):
        first = self.history.send_notification("c1", "Hello")
        self.history.send_notification("c2", "Other")
        second = self.history.send_notification("c1", "Goodbye")

        listed = self.history.list_notifications("c1")
        assert all(isinstance(n, Notification) for n in listed)
        assert [n.id for n in listed] == [first.id, second.id]
        assert [n.message for n in listed] == ["Hello", "Goodbye"]

    def test_listing_is_idempotent(self):
        self.history.record_transaction("c1", TransactionKind.DEPOSIT, Money('1.00'))
        self.history.send_notification("c1", "Deposited")

        assert self.history.list_transactions("c1") == self.history.list_transactions("c1")
        assert self.history.list_notifications("c1") == self.history.list_notifications("c1")

    def test_purge_customer(self):
        self.history.record_transaction("c1", TransactionKind.DEPOSIT, Money('1.00'))
        self.history.record_transaction("c1", TransactionKind.DEPOSIT, Money('2.00'))
        self.history.send_notification("c1", "Deposited")
        self.history.record_transaction("c2", TransactionKind.DEPOSIT, Money('3.00'))

        assert self.history.purge_customer("c1") == {"transactions": 2, "notifications": 1}
        assert self.history.list_transactions("c1") == []
        assert len(self.history.list_transactions("c2")) == 1

    def test_records_are_frozen(self):
        """Written history cannot be altered through the returned objects"""
        transaction = self.history.record_transaction("c1", TransactionKind.PAYMENT, Money('9.00'))
        notification = self.history.send_notification("c1", "Paid")

        with pytest.raises(FrozenInstanceError):
            transaction.amount = Money('1.00')
        with pytest.raises(FrozenInstanceError):
            notification.message = "Changed"

        assert self.history.list_transactions("c1")[0].amount == Money('9.00')
