"""Tests for LedgerService."""

import pytest
from datetime import date
from decimal import Decimal

from agencyledger.domain.entities import RecordStatus, TransactionKind
from agencyledger.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
)


def _balance(account_service, account_id):
    return account_service.get_account(account_id).current_balance


def test_income_increases_balance(ledger_service, account_service, sample_account):
    """Test that income adds to the balance."""
    txn = ledger_service.apply_income(sample_account.id, Decimal("2500.00"), "Deposit")

    assert txn.kind == TransactionKind.INCOME
    assert txn.status == RecordStatus.ACTIVE
    assert txn.date == date.today()
    assert _balance(account_service, sample_account.id) == Decimal("12500.00")


def test_expense_decreases_balance(ledger_service, account_service, sample_account):
    """Test that expenses subtract, even below zero."""
    ledger_service.apply_expense(sample_account.id, Decimal("10500.00"), "Office rent")
    assert _balance(account_service, sample_account.id) == Decimal("-500.00")


@pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-5.00")])
def test_non_positive_amount_rejected(ledger_service, account_service, sample_account, amount):
    """Test that zero and negative amounts are rejected without side effects."""
    with pytest.raises(ValidationError):
        ledger_service.apply_income(sample_account.id, amount, "Nothing")
    assert _balance(account_service, sample_account.id) == Decimal("10000.00")
    assert ledger_service.list_transactions().total == 0


def test_missing_account(ledger_service):
    """Test income into an unknown account."""
    with pytest.raises(NotFoundError):
        ledger_service.apply_income(999, Decimal("1.00"), "Ghost")


def test_description_required(ledger_service, sample_account):
    """Test that a description is required."""
    with pytest.raises(ValidationError):
        ledger_service.apply_expense(sample_account.id, Decimal("1.00"), "  ")


def test_transfer_moves_both_legs(ledger_service, account_service, sample_account, second_account):
    """Test that a transfer is one record touching two balances."""
    txn = ledger_service.apply_transfer(
        sample_account.id, second_account.id, Decimal("3000.00"), "To savings"
    )

    assert txn.kind == TransactionKind.TRANSFER
    assert txn.destination_account_id == second_account.id
    assert _balance(account_service, sample_account.id) == Decimal("7000.00")
    assert _balance(account_service, second_account.id) == Decimal("3000.00")
    assert ledger_service.list_transactions().total == 1


def test_transfer_validation(ledger_service, sample_account):
    """Test that transfers need a distinct destination."""
    with pytest.raises(ValidationError):
        ledger_service.apply_transfer(sample_account.id, sample_account.id, Decimal("1.00"), "Self")
    with pytest.raises(ValidationError):
        ledger_service.apply_transfer(sample_account.id, None, Decimal("1.00"), "Nowhere")


def test_transfer_is_atomic(ledger_service, account_service, temp_db, sample_account, second_account, monkeypatch):
    """Test that a failure on the second leg rolls the first leg back."""
    original = temp_db.adjust_account_balance
    calls = []

    def failing_adjust(account_id, delta):
        calls.append(account_id)
        if len(calls) == 2:
            raise RuntimeError("disk full")
        return original(account_id, delta)

    monkeypatch.setattr(temp_db, "adjust_account_balance", failing_adjust)

    with pytest.raises(RuntimeError):
        ledger_service.apply_transfer(sample_account.id, second_account.id, Decimal("500.00"), "Half done")

    monkeypatch.undo()
    assert _balance(account_service, sample_account.id) == Decimal("10000.00")
    assert _balance(account_service, second_account.id) == Decimal("0.00")
    assert ledger_service.list_transactions().total == 0


def test_cancel_restores_balance(ledger_service, account_service, sample_account):
    """Test that cancelling applies the exact inverse."""
    txn = ledger_service.apply_expense(sample_account.id, Decimal("1234.56"), "Flights")
    cancelled = ledger_service.cancel(txn.id)

    assert cancelled.status == RecordStatus.CANCELLED
    assert cancelled.cancelled_at is not None
    assert _balance(account_service, sample_account.id) == Decimal("10000.00")


def test_cancel_transfer_restores_both(ledger_service, account_service, sample_account, second_account):
    """Test cancelling a transfer."""
    txn = ledger_service.apply_transfer(sample_account.id, second_account.id, Decimal("100.00"), "Move")
    ledger_service.cancel(txn.id)

    assert _balance(account_service, sample_account.id) == Decimal("10000.00")
    assert _balance(account_service, second_account.id) == Decimal("0.00")


def test_cancel_twice_rejected(ledger_service, account_service, sample_account):
    """Test that a second cancellation is a conflict and changes nothing."""
    txn = ledger_service.apply_income(sample_account.id, Decimal("50.00"), "Tip")
    ledger_service.cancel(txn.id)

    with pytest.raises(ConflictError):
        ledger_service.cancel(txn.id)
    assert _balance(account_service, sample_account.id) == Decimal("10000.00")


def test_cancel_missing(ledger_service):
    """Test cancelling an unknown transaction."""
    with pytest.raises(NotFoundError):
        ledger_service.cancel(42)


def test_balance_matches_ledger_after_mixed_operations(
    ledger_service, account_service, sample_account, second_account
):
    """Test that stored balances always equal initial + active movements."""
    ops = [
        ledger_service.apply_income(sample_account.id, Decimal("700.10"), "A"),
        ledger_service.apply_expense(sample_account.id, Decimal("200.05"), "B"),
        ledger_service.apply_transfer(sample_account.id, second_account.id, Decimal("1000.00"), "C"),
        ledger_service.apply_income(second_account.id, Decimal("99.99"), "D"),
        ledger_service.apply_transfer(second_account.id, sample_account.id, Decimal("0.01"), "E"),
    ]
    ledger_service.cancel(ops[1].id)
    ledger_service.cancel(ops[3].id)

    for account in (sample_account, second_account):
        check = ledger_service.verify_balance(account.id)
        assert check.is_consistent
    assert _balance(account_service, sample_account.id) == Decimal("9700.11")
    assert _balance(account_service, second_account.id) == Decimal("999.99")


def test_reconcile_repairs_drift(ledger_service, account_service, temp_db, sample_account):
    """Test that reconcile overwrites a drifted balance."""
    temp_db.set_account_balance(sample_account.id, Decimal("1.00"))

    check = ledger_service.reconcile_balance(sample_account.id)
    assert not check.is_consistent
    assert check.stored == Decimal("1.00")
    assert _balance(account_service, sample_account.id) == Decimal("10000.00")
    assert ledger_service.verify_balance(sample_account.id).is_consistent


def test_archived_account_rejects_new_movements(ledger_service, account_service, sample_account, second_account):
    """Test that archived accounts take no new transactions."""
    account_service.archive_account(second_account.id)
    with pytest.raises(ValidationError, match="archived"):
        ledger_service.apply_income(second_account.id, Decimal("1.00"), "Late")
    with pytest.raises(ValidationError, match="archived"):
        ledger_service.apply_transfer(sample_account.id, second_account.id, Decimal("1.00"), "Late")


def test_list_transactions_paginates_newest_first(ledger_service, sample_account):
    """Test pagination and ordering."""
    for day in range(1, 6):
        ledger_service.apply_income(
            sample_account.id, Decimal("10.00"), f"Deposit {day}", date=date(2026, 3, day)
        )

    first = ledger_service.list_transactions(page=1, limit=2)
    last = ledger_service.list_transactions(page=3, limit=2)

    assert first.total == 5
    assert first.total_pages == 3
    assert [t.description for t in first.items] == ["Deposit 5", "Deposit 4"]
    assert [t.description for t in last.items] == ["Deposit 1"]


def test_list_transactions_filters(ledger_service, sample_account, second_account):
    """Test account, kind, status, date and search filters."""
    ledger_service.apply_income(sample_account.id, Decimal("10.00"), "Hotel refund", reference="R-77", date=date(2026, 1, 10))
    expense = ledger_service.apply_expense(sample_account.id, Decimal("5.00"), "Taxi", date=date(2026, 2, 1))
    ledger_service.apply_transfer(sample_account.id, second_account.id, Decimal("1.00"), "Sweep", date=date(2026, 2, 2))
    ledger_service.cancel(expense.id)

    assert ledger_service.list_transactions(account_id=second_account.id).total == 1
    assert ledger_service.list_transactions(kind=TransactionKind.EXPENSE).total == 1
    assert ledger_service.list_transactions(status=RecordStatus.CANCELLED).items[0].id == expense.id
    assert ledger_service.list_transactions(start_date=date(2026, 2, 1)).total == 2
    assert ledger_service.list_transactions(end_date=date(2026, 1, 31)).total == 1
    assert ledger_service.list_transactions(search="r-77").items[0].description == "Hotel refund"
    assert ledger_service.list_transactions(search="hotel").total == 1


def test_list_transactions_rejects_bad_page(ledger_service):
    """Test that page and limit must be positive."""
    with pytest.raises(ValidationError):
        ledger_service.list_transactions(page=0)
    with pytest.raises(ValidationError):
        ledger_service.list_transactions(limit=0)
