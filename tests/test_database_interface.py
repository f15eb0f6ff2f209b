"""Tests for Database interface returning domain models and its unit of work."""

import pytest
from datetime import date, datetime
from decimal import Decimal

from agencyledger.domain import entities
from agencyledger.domain.errors import NotFoundError


class TestDatabaseInterface:
    """Tests to verify Database interface returns domain models."""

    def test_get_account_returns_domain_model(self, temp_db):
        """Test that get_account returns a domain BankAccount entity."""
        account_id = temp_db.create_account(
            bank_name="BBVA",
            reference_name="Operativa",
            account_type=entities.AccountType.DEBIT,
            initial_balance=Decimal("10.00"),
        )

        account = temp_db.get_account(account_id)

        assert isinstance(account, entities.BankAccount)
        assert account.id == account_id
        assert account.current_balance == Decimal("10.00")
        assert isinstance(account.created_at, datetime)

    def test_get_missing_returns_none(self, temp_db):
        """Test that lookups of unknown rows return None."""
        assert temp_db.get_account(1) is None
        assert temp_db.get_transaction(1) is None
        assert temp_db.get_sale(1) is None
        assert temp_db.get_installment(1) is None
        assert temp_db.get_supplier(1) is None
        assert temp_db.get_supplier_payment(1) is None

    def test_mutating_missing_rows_raises(self, temp_db):
        """Test that writes against unknown rows raise NotFoundError."""
        with pytest.raises(NotFoundError):
            temp_db.adjust_account_balance(1, Decimal("1.00"))
        with pytest.raises(NotFoundError):
            temp_db.set_transaction_status(1, entities.RecordStatus.CANCELLED)
        with pytest.raises(NotFoundError):
            temp_db.update_sale_status(1, entities.SaleStatus.COMPLETED)

    def test_transaction_returns_domain_model(self, temp_db, sample_account):
        """Test that create_transaction stores an ACTIVE row."""
        txn_id = temp_db.create_transaction(
            account_id=sample_account.id,
            kind=entities.TransactionKind.EXPENSE,
            amount=Decimal("12.34"),
            description="Taxi",
            date=date(2026, 1, 15),
        )

        txn = temp_db.get_transaction(txn_id)

        assert isinstance(txn, entities.BankTransaction)
        assert txn.status == entities.RecordStatus.ACTIVE
        assert txn.amount == Decimal("12.34")
        assert txn.destination_account_id is None


class TestUnitOfWork:
    """Tests for Database.unit_of_work."""

    def test_commits_on_success(self, temp_db, sample_account):
        """Test that the block's writes are kept."""
        with temp_db.unit_of_work():
            temp_db.adjust_account_balance(sample_account.id, Decimal("5.00"))

        temp_db.disconnect()
        assert temp_db.get_account(sample_account.id).current_balance == Decimal("10005.00")

    def test_rolls_back_on_error(self, temp_db, sample_account):
        """Test that an exception discards every write of the block."""
        with pytest.raises(RuntimeError):
            with temp_db.unit_of_work():
                temp_db.adjust_account_balance(sample_account.id, Decimal("5.00"))
                temp_db.create_supplier(name="Half written")
                raise RuntimeError("boom")

        assert temp_db.get_account(sample_account.id).current_balance == Decimal("10000.00")
        assert temp_db.list_suppliers() == []

    def test_nested_block_joins_outer(self, temp_db, sample_account):
        """Test that a failing outer block also discards the inner block's writes."""
        with pytest.raises(RuntimeError):
            with temp_db.unit_of_work():
                with temp_db.unit_of_work():
                    temp_db.adjust_account_balance(sample_account.id, Decimal("7.00"))
                raise RuntimeError("outer fails after inner finished")

        assert temp_db.get_account(sample_account.id).current_balance == Decimal("10000.00")
