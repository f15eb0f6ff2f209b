"""Tests for supplier debts and supplier payments."""

import pytest
from datetime import date, timedelta
from decimal import Decimal

from agencyledger.domain.entities import (
    PaymentType,
    RecordStatus,
    SaleItemInput,
    TrafficLight,
    TransactionKind,
)
from agencyledger.domain.errors import ConflictError, NotFoundError, ValidationError
from agencyledger.domain.supplier import traffic_light


TODAY = date(2026, 3, 10)


@pytest.fixture
def airline(supplier_service):
    """Create a second supplier."""
    return supplier_service.get_supplier(supplier_service.create_supplier(name="Aeromexico", service_type="airline"))


@pytest.fixture
def package_sale(sale_service, sample_supplier, airline):
    """Sale owing 8,000 to the hotel (two items) and 3,000 to the airline."""
    sale_id = sale_service.create_sale(
        client_name="Marta Ruiz",
        total_price=Decimal("15000.00"),
        payment_type=PaymentType.CASH,
        items=[
            SaleItemInput("Hotel room", Decimal("5000.00"), sample_supplier.id, date(2026, 3, 20)),
            SaleItemInput("Hotel tours", Decimal("3000.00"), sample_supplier.id, date(2026, 3, 12)),
            SaleItemInput("Flights", Decimal("3000.00"), airline.id, None),
            SaleItemInput("Insurance", Decimal("200.00")),
        ],
    )
    return sale_service.get_sale(sale_id)


class TestTrafficLight:
    """Tests for deadline classification."""

    def test_settled_wins_over_past_deadline(self):
        """Test that a paid-off debt is settled even when the deadline passed."""
        assert traffic_light(date(2026, 1, 1), Decimal("0.00"), TODAY) == TrafficLight.SETTLED

    def test_no_deadline_is_gray(self):
        """Test debts without a deadline."""
        assert traffic_light(None, Decimal("10.00"), TODAY) == TrafficLight.GRAY

    def test_past_deadline_is_red(self):
        """Test overdue debts."""
        assert traffic_light(TODAY - timedelta(days=1), Decimal("10.00"), TODAY) == TrafficLight.RED

    @pytest.mark.parametrize("days", [0, 1, 3])
    def test_close_deadline_is_yellow(self, days):
        """Test deadlines within the threshold, today included."""
        assert traffic_light(TODAY + timedelta(days=days), Decimal("10.00"), TODAY) == TrafficLight.YELLOW

    def test_far_deadline_is_green(self):
        """Test deadlines beyond the threshold."""
        assert traffic_light(TODAY + timedelta(days=4), Decimal("10.00"), TODAY) == TrafficLight.GREEN

    def test_threshold_is_configurable(self):
        """Test a wider warning window."""
        assert traffic_light(TODAY + timedelta(days=6), Decimal("1.00"), TODAY, threshold=7) == TrafficLight.YELLOW


def test_create_supplier_unique(supplier_service, sample_supplier):
    """Test that supplier names are unique."""
    with pytest.raises(ConflictError):
        supplier_service.create_supplier(name="Hotel Riu")
    with pytest.raises(ValidationError):
        supplier_service.create_supplier(name=" ")


def test_debts_grouped_per_supplier(supplier_service, package_sale, sample_supplier, airline):
    """Test per-supplier debts with the earliest item deadline."""
    statement = supplier_service.list_supplier_sales(sample_supplier.id, today=TODAY)

    assert len(statement.sales) == 1
    row = statement.sales[0]
    assert row.debt == Decimal("8000.00")
    assert row.remaining == Decimal("8000.00")
    assert row.deadline == date(2026, 3, 12)
    assert row.days_until_deadline == 2
    assert row.traffic_light == TrafficLight.YELLOW

    flights = supplier_service.list_supplier_sales(airline.id, today=TODAY).sales[0]
    assert flights.debt == Decimal("3000.00")
    assert flights.traffic_light == TrafficLight.GRAY


def test_sale_level_supplier_owes_net_cost(supplier_service, sale_service, sample_supplier):
    """Test sales without supplier items fall back to the sale-level supplier."""
    sale_id = sale_service.create_sale(
        client_name="Old Style",
        total_price=Decimal("4000.00"),
        payment_type=PaymentType.CASH,
        net_cost=Decimal("2500.00"),
        supplier_id=sample_supplier.id,
        supplier_deadline=date(2026, 3, 1),
    )

    debt = supplier_service.sale_debt(sale_id, sample_supplier.id, today=TODAY)
    assert debt.debt == Decimal("2500.00")
    assert debt.traffic_light == TrafficLight.RED


def test_overview_totals(supplier_service, package_sale):
    """Test global and per-supplier totals."""
    overview = supplier_service.list_supplier_debts(today=TODAY)

    assert [s.supplier.name for s in overview.suppliers] == ["Aeromexico", "Hotel Riu"]
    assert overview.totals.total_debt == Decimal("11000.00")
    assert overview.totals.total_remaining == Decimal("11000.00")
    assert all(s.sales_count == 1 for s in overview.suppliers)


def test_payment_reduces_remaining(
    supplier_service, account_service, package_sale, sample_supplier, sample_account
):
    """Test a supplier payment creates an expense and lowers the debt."""
    payment = supplier_service.register_payment(
        sample_supplier.id, package_sale.id, sample_account.id, Decimal("3000.00"), payment_date=TODAY
    )

    assert payment.status == RecordStatus.ACTIVE
    assert payment.bank_transaction_id is not None
    txn = account_service.ledger.get_transaction(payment.bank_transaction_id)
    assert txn.kind == TransactionKind.EXPENSE
    assert txn.sale_id == package_sale.id
    assert account_service.get_account(sample_account.id).current_balance == Decimal("7000.00")

    row = supplier_service.sale_debt(package_sale.id, sample_supplier.id, today=TODAY)
    assert row.paid == Decimal("3000.00")
    assert row.remaining == Decimal("5000.00")
    assert len(row.payments) == 1


def test_settled_debt_despite_past_deadline(supplier_service, package_sale, sample_supplier, sample_account):
    """Test that paying in full makes a debt settled even after its deadline."""
    supplier_service.register_payment(
        sample_supplier.id, package_sale.id, sample_account.id, Decimal("8000.00"), payment_date=TODAY
    )

    row = supplier_service.sale_debt(package_sale.id, sample_supplier.id, today=date(2026, 4, 30))
    assert row.remaining == Decimal("0.00")
    assert row.traffic_light == TrafficLight.SETTLED
    overview = supplier_service.list_supplier_debts(today=date(2026, 4, 30))
    hotel = [s for s in overview.suppliers if s.supplier.id == sample_supplier.id][0]
    assert hotel.overdue_count == 0


def test_payment_above_remaining_rejected(supplier_service, package_sale, airline, sample_account):
    """Test that paying more than is owed is a conflict."""
    with pytest.raises(ConflictError):
        supplier_service.register_payment(airline.id, package_sale.id, sample_account.id, Decimal("3000.01"))


def test_payment_locks_sale_before_reading_paid_amount(
    supplier_service, temp_db, package_sale, airline, sample_account, monkeypatch
):
    """Test that the sale row is locked before the existing payments are summed."""
    calls = []
    original_get_sale = temp_db.get_sale
    original_list_payments = temp_db.list_supplier_payments

    def recording_get_sale(sale_id, for_update=False):
        calls.append(("get_sale", for_update))
        return original_get_sale(sale_id, for_update=for_update)

    def recording_list_payments(*args, **kwargs):
        calls.append(("list_supplier_payments", None))
        return original_list_payments(*args, **kwargs)

    monkeypatch.setattr(temp_db, "get_sale", recording_get_sale)
    monkeypatch.setattr(temp_db, "list_supplier_payments", recording_list_payments)

    supplier_service.register_payment(airline.id, package_sale.id, sample_account.id, Decimal("1000.00"))

    assert calls.index(("get_sale", True)) < calls.index(("list_supplier_payments", None))


def test_second_payment_sees_first(supplier_service, package_sale, airline, sample_account, second_account):
    """Test that payments from different accounts share one remaining amount."""
    supplier_service.register_payment(airline.id, package_sale.id, sample_account.id, Decimal("2000.00"))

    with pytest.raises(ConflictError):
        supplier_service.register_payment(airline.id, package_sale.id, second_account.id, Decimal("1000.01"))
    assert supplier_service.sale_debt(package_sale.id, airline.id, today=TODAY).paid == Decimal("2000.00")


def test_payment_insufficient_funds(supplier_service, account_service, package_sale, sample_supplier, second_account):
    """Test that the account must hold the money."""
    with pytest.raises(ValidationError, match="Insufficient funds"):
        supplier_service.register_payment(sample_supplier.id, package_sale.id, second_account.id, Decimal("100.00"))
    assert supplier_service.list_payments() == []
    assert account_service.get_account(second_account.id).current_balance == Decimal("0.00")


def test_payment_requires_debt(supplier_service, sale_service, sample_supplier, sample_account):
    """Test paying a supplier for a sale that owes it nothing."""
    sale_id = sale_service.create_sale(
        client_name="No Supplier", total_price=Decimal("100.00"), payment_type=PaymentType.CASH
    )
    with pytest.raises(NotFoundError):
        supplier_service.register_payment(sample_supplier.id, sale_id, sample_account.id, Decimal("1.00"))


def test_cancel_payment_restores_balance_and_debt(
    supplier_service, account_service, package_sale, sample_supplier, sample_account
):
    """Test that cancelling returns the money and reopens the debt."""
    payment = supplier_service.register_payment(
        sample_supplier.id, package_sale.id, sample_account.id, Decimal("2000.00")
    )

    cancelled = supplier_service.cancel_payment(payment.id)

    assert cancelled.status == RecordStatus.CANCELLED
    assert account_service.get_account(sample_account.id).current_balance == Decimal("10000.00")
    txn = account_service.ledger.get_transaction(payment.bank_transaction_id)
    assert txn.status == RecordStatus.CANCELLED
    row = supplier_service.sale_debt(package_sale.id, sample_supplier.id, today=TODAY)
    assert row.remaining == Decimal("8000.00")

    with pytest.raises(ConflictError):
        supplier_service.cancel_payment(payment.id)


def test_plain_ledger_cancel_refuses_supplier_payment(
    supplier_service, ledger_service, package_sale, sample_supplier, sample_account
):
    """Test that supplier payments are cancelled through the supplier service."""
    payment = supplier_service.register_payment(
        sample_supplier.id, package_sale.id, sample_account.id, Decimal("10.00")
    )
    with pytest.raises(ConflictError, match="supplier payment"):
        ledger_service.cancel(payment.bank_transaction_id)


def test_warning_days_from_environment(temp_db, monkeypatch):
    """Test that the threshold defaults to AGENCYLEDGER_DEADLINE_WARNING_DAYS."""
    from agencyledger.domain.supplier import SupplierDebtService

    monkeypatch.setenv("AGENCYLEDGER_DEADLINE_WARNING_DAYS", "10")
    assert SupplierDebtService(temp_db).warning_days == 10
