"""SQLAlchemy models for the agencyledger database."""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Date,
    Numeric,
    Boolean,
    Index,
    CheckConstraint,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()

MONEY = Numeric(12, 2, asdecimal=True)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class BankAccount(Base):
    """Bank account model."""

    __tablename__ = "bank_accounts"

    id = Column(Integer, primary_key=True)
    bank_name = Column(String, nullable=False)
    reference_name = Column(String, unique=True, nullable=False)
    account_type = Column(String, nullable=False, default="DEBIT")
    initial_balance = Column(MONEY, nullable=False, default=0)
    current_balance = Column(MONEY, nullable=False, default=0)
    is_archived = Column(Boolean, default=False, nullable=False)
    archived_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    # Relationships
    transactions = relationship(
        "BankTransaction",
        back_populates="account",
        foreign_keys="BankTransaction.account_id",
    )


class BankTransaction(Base):
    """Ledger movement model. Cancelled rows are kept for audit."""

    __tablename__ = "bank_transactions"

    id = Column(Integer, primary_key=True)
    account_id = Column(Integer, ForeignKey("bank_accounts.id"), nullable=False)
    kind = Column(String, nullable=False)
    amount = Column(MONEY, nullable=False)
    description = Column(String, nullable=False)
    reference = Column(String, nullable=True)
    date = Column(Date, nullable=False)
    status = Column(String, nullable=False, default="ACTIVE")
    destination_account_id = Column(Integer, ForeignKey("bank_accounts.id"), nullable=True)
    sale_id = Column(Integer, ForeignKey("sales.id"), nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    cancelled_at = Column(DateTime, nullable=True)

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_transaction_amount_positive"),
        Index("ix_transactions_account_date", "account_id", "date"),
        Index("ix_transactions_destination", "destination_account_id"),
    )

    # Relationships
    account = relationship("BankAccount", back_populates="transactions", foreign_keys=[account_id])
    destination_account = relationship("BankAccount", foreign_keys=[destination_account_id])
    allocations = relationship("InstallmentAllocation", back_populates="transaction")


class Supplier(Base):
    """Supplier model."""

    __tablename__ = "suppliers"

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)
    phone = Column(String, nullable=True)
    service_type = Column(String, nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)


class Sale(Base):
    """Sale model."""

    __tablename__ = "sales"

    id = Column(Integer, primary_key=True)
    client_name = Column(String, nullable=False)
    destination = Column(String, nullable=True)
    total_price = Column(MONEY, nullable=False)
    net_cost = Column(MONEY, nullable=False, default=0)
    payment_type = Column(String, nullable=False)
    down_payment = Column(MONEY, nullable=False, default=0)
    installment_count = Column(Integer, nullable=False, default=1)
    frequency = Column(String, nullable=False, default="QUINCENAL")
    sale_date = Column(Date, nullable=False)
    status = Column(String, nullable=False, default="ACTIVE")
    supplier_id = Column(Integer, ForeignKey("suppliers.id"), nullable=True)
    supplier_deadline = Column(Date, nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    # Relationships
    items = relationship(
        "SaleItem", back_populates="sale", cascade="all, delete-orphan", order_by="SaleItem.id"
    )
    installments = relationship(
        "Installment",
        back_populates="sale",
        cascade="all, delete-orphan",
        order_by="Installment.payment_number",
    )


class SaleItem(Base):
    """Service item of a sale (hotel night, flight, tour)."""

    __tablename__ = "sale_items"

    id = Column(Integer, primary_key=True)
    sale_id = Column(Integer, ForeignKey("sales.id"), nullable=False)
    description = Column(String, nullable=False)
    supplier_id = Column(Integer, ForeignKey("suppliers.id"), nullable=True)
    cost = Column(MONEY, nullable=False, default=0)
    supplier_deadline = Column(Date, nullable=True)

    # Relationships
    sale = relationship("Sale", back_populates="items")


class Installment(Base):
    """Installment of a credit sale's payment plan."""

    __tablename__ = "installments"

    id = Column(Integer, primary_key=True)
    sale_id = Column(Integer, ForeignKey("sales.id"), nullable=False)
    payment_number = Column(Integer, nullable=False)
    due_date = Column(Date, nullable=False)
    amount = Column(MONEY, nullable=False)
    paid_amount = Column(MONEY, nullable=False, default=0)
    status = Column(String, nullable=False, default="PENDING")
    paid_date = Column(Date, nullable=True)
    notes = Column(String, nullable=True)

    __table_args__ = (
        Index("uq_installment_sale_number", "sale_id", "payment_number", unique=True),
        CheckConstraint("paid_amount >= 0", name="ck_installment_paid_non_negative"),
    )

    # Relationships
    sale = relationship("Sale", back_populates="installments")
    allocations = relationship("InstallmentAllocation", back_populates="installment")


class InstallmentAllocation(Base):
    """Amount of one installment payment applied to one installment."""

    __tablename__ = "installment_allocations"

    id = Column(Integer, primary_key=True)
    transaction_id = Column(Integer, ForeignKey("bank_transactions.id"), nullable=False)
    installment_id = Column(Integer, ForeignKey("installments.id"), nullable=False)
    amount = Column(MONEY, nullable=False)
    previous_paid_date = Column(Date, nullable=True)

    # Relationships
    transaction = relationship("BankTransaction", back_populates="allocations")
    installment = relationship("Installment", back_populates="allocations")


class SupplierPayment(Base):
    """Payment made to a supplier for a sale."""

    __tablename__ = "supplier_payments"

    id = Column(Integer, primary_key=True)
    supplier_id = Column(Integer, ForeignKey("suppliers.id"), nullable=False)
    sale_id = Column(Integer, ForeignKey("sales.id"), nullable=False)
    bank_account_id = Column(Integer, ForeignKey("bank_accounts.id"), nullable=False)
    bank_transaction_id = Column(Integer, ForeignKey("bank_transactions.id"), nullable=True)
    amount = Column(MONEY, nullable=False)
    date = Column(Date, nullable=False)
    notes = Column(String, nullable=True)
    status = Column(String, nullable=False, default="ACTIVE")
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    __table_args__ = (Index("ix_supplier_payments_sale_supplier", "sale_id", "supplier_id"),)


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory, creating missing tables."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
