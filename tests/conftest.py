"""Shared pytest fixtures for agencyledger tests."""

import tempfile
import os
from datetime import date
from decimal import Decimal
import pytest

from agencyledger.database.factories import create_sqlite_database
from agencyledger.domain.account import AccountService
from agencyledger.domain.entities import AccountType, PaymentFrequency, PaymentType
from agencyledger.domain.ledger import LedgerService
from agencyledger.domain.payments import PaymentAllocator
from agencyledger.domain.sale import SaleService
from agencyledger.domain.supplier import SupplierDebtService


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def account_service(temp_db):
    """Create an AccountService with a temporary database."""
    return AccountService(temp_db)


@pytest.fixture
def ledger_service(temp_db):
    """Create a LedgerService with a temporary database."""
    return LedgerService(temp_db)


@pytest.fixture
def sale_service(temp_db):
    """Create a SaleService with a temporary database."""
    return SaleService(temp_db)


@pytest.fixture
def payment_allocator(temp_db):
    """Create a PaymentAllocator with a temporary database."""
    return PaymentAllocator(temp_db)


@pytest.fixture
def supplier_service(temp_db):
    """Create a SupplierDebtService with a 3-day warning threshold."""
    return SupplierDebtService(temp_db, warning_days=3)


@pytest.fixture
def sample_account(account_service):
    """Create a sample account holding 10,000.00."""
    account_id = account_service.create_account(
        bank_name="BBVA",
        reference_name="Operativa",
        account_type=AccountType.DEBIT,
        initial_balance=Decimal("10000.00"),
    )
    return account_service.get_account(account_id)


@pytest.fixture
def second_account(account_service):
    """Create an empty second account."""
    account_id = account_service.create_account(
        bank_name="Banorte",
        reference_name="Ahorro",
        account_type=AccountType.SAVINGS,
    )
    return account_service.get_account(account_id)


@pytest.fixture
def sample_supplier(supplier_service):
    """Create a sample supplier."""
    supplier_id = supplier_service.create_supplier(
        name="Hotel Riu", phone="555-0100", service_type="hotel"
    )
    return supplier_service.get_supplier(supplier_id)


@pytest.fixture
def credit_sale(sale_service):
    """12,000 credit sale, 2,000 down, 5 quincenal installments from 2026-01-05."""
    sale_id = sale_service.create_sale(
        client_name="Ana Lopez",
        destination="Cancun",
        total_price=Decimal("12000.00"),
        payment_type=PaymentType.CREDIT,
        down_payment=Decimal("2000.00"),
        installment_count=5,
        frequency=PaymentFrequency.QUINCENAL,
        start_date=date(2026, 1, 5),
        sale_date=date(2026, 1, 5),
    )
    return sale_service.get_sale(sale_id)


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
