"""SQLAlchemy models for finstream database."""

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
    Enum,
    UniqueConstraint,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

from finstream.domain.entities import AccountType, AccountSubtype, InvoiceStatus

Base = declarative_base()


def _now() -> datetime:
    return datetime.now(UTC)


# Cents, exact
Money = Numeric(14, 2)


class Account(Base):
    """Chart of accounts model."""

    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)
    type = Column(Enum(AccountType, native_enum=False, length=16), nullable=False)
    subtype = Column(Enum(AccountSubtype, native_enum=False, length=32), nullable=False)
    number = Column(String, nullable=True)
    description = Column(String, nullable=True)
    balance = Column(Money, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    is_archived = Column(Boolean, default=False, nullable=False)
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=_now, nullable=False)
    updated_at = Column(DateTime, default=_now, onupdate=_now, nullable=False)

    # Relationships
    entries = relationship("JournalEntry", back_populates="account")
    bank_accounts = relationship("BankAccount", back_populates="account")

    __mapper_args__ = {"version_id_col": version}


class Transaction(Base):
    """Ledger transaction model."""

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True)
    date = Column(Date, nullable=False)
    description = Column(String, nullable=False)
    reference = Column(String, nullable=True)
    is_reconciled = Column(Boolean, default=False, nullable=False)
    # At most one reversal per transaction
    reversal_of_id = Column(Integer, ForeignKey("transactions.id"), nullable=True, unique=True)
    created_at = Column(DateTime, default=_now, nullable=False)
    updated_at = Column(DateTime, default=_now, onupdate=_now, nullable=False)

    # Relationships
    entries = relationship(
        "JournalEntry",
        back_populates="transaction",
        cascade="all, delete-orphan",
        order_by="JournalEntry.position",
    )
    attachments = relationship(
        "Attachment",
        back_populates="transaction",
        cascade="all, delete-orphan",
        order_by="Attachment.id",
    )

    # Deleted ids are never handed out again
    __table_args__ = {"sqlite_autoincrement": True}


class JournalEntry(Base):
    """Journal entry model. Positive amounts are debits."""

    __tablename__ = "journal_entries"

    id = Column(Integer, primary_key=True)
    transaction_id = Column(Integer, ForeignKey("transactions.id"), nullable=False, index=True)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    amount = Column(Money, nullable=False)
    memo = Column(String, nullable=True)

    # Relationships
    transaction = relationship("Transaction", back_populates="entries")
    account = relationship("Account", back_populates="entries")


class Attachment(Base):
    """File link attached to a transaction."""

    __tablename__ = "attachments"

    id = Column(Integer, primary_key=True)
    transaction_id = Column(Integer, ForeignKey("transactions.id"), nullable=False)
    file_name = Column(String, nullable=False)
    file_url = Column(String, nullable=False)
    file_type = Column(String, nullable=False)
    file_size = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=_now, nullable=False)

    transaction = relationship("Transaction", back_populates="attachments")


class Invoice(Base):
    """Invoice model."""

    __tablename__ = "invoices"

    id = Column(Integer, primary_key=True)
    invoice_number = Column(String, unique=True, nullable=False)
    customer_id = Column(String, nullable=False, index=True)
    date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=False)
    notes = Column(String, nullable=True)
    terms = Column(String, nullable=True)
    tax_rate = Column(Numeric(9, 6), default=0, nullable=False)
    subtotal = Column(Money, nullable=False)
    tax_amount = Column(Money, nullable=False)
    total = Column(Money, nullable=False)
    amount_paid = Column(Money, default=0, nullable=False)
    status = Column(Enum(InvoiceStatus, native_enum=False, length=16), nullable=False, index=True)
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=_now, nullable=False)
    updated_at = Column(DateTime, default=_now, onupdate=_now, nullable=False)

    # Relationships
    items = relationship(
        "InvoiceItem",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="InvoiceItem.position",
    )
    payments = relationship(
        "Payment",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="Payment.id",
    )

    __table_args__ = {"sqlite_autoincrement": True}
    __mapper_args__ = {"version_id_col": version}


class InvoiceItem(Base):
    """Invoice line item model."""

    __tablename__ = "invoice_items"

    id = Column(Integer, primary_key=True)
    invoice_id = Column(Integer, ForeignKey("invoices.id"), nullable=False)
    position = Column(Integer, nullable=False)
    description = Column(String, nullable=False)
    quantity = Column(Numeric(14, 4), nullable=False)
    price = Column(Numeric(14, 4), nullable=False)
    amount = Column(Money, nullable=False)
    taxable = Column(Boolean, default=True, nullable=False)

    invoice = relationship("Invoice", back_populates="items")


class Payment(Base):
    """Payment recorded against an invoice."""

    __tablename__ = "payments"

    id = Column(Integer, primary_key=True)
    invoice_id = Column(Integer, ForeignKey("invoices.id"), nullable=False)
    amount = Column(Money, nullable=False)
    date = Column(Date, nullable=False)
    method = Column(String, nullable=True)
    notes = Column(String, nullable=True)
    created_at = Column(DateTime, default=_now, nullable=False)

    invoice = relationship("Invoice", back_populates="payments")


class BankAccount(Base):
    """Bank account mirror model."""

    __tablename__ = "bank_accounts"

    id = Column(Integer, primary_key=True)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    institution_name = Column(String, nullable=False)
    account_name = Column(String, nullable=False)
    account_type = Column(String, nullable=False)
    account_number = Column(String, nullable=False)
    routing_number = Column(String, nullable=True)
    balance = Column(Money, default=0, nullable=False)
    last_updated = Column(DateTime, default=_now, nullable=False)

    # Relationships
    account = relationship("Account", back_populates="bank_accounts")
    transactions = relationship(
        "BankTransaction", back_populates="bank_account", cascade="all, delete-orphan"
    )


class BankTransaction(Base):
    """Bank feed transaction model."""

    __tablename__ = "bank_transactions"

    id = Column(Integer, primary_key=True)
    bank_account_id = Column(Integer, ForeignKey("bank_accounts.id"), nullable=False)
    provider_transaction_id = Column(String, nullable=False)
    date = Column(Date, nullable=False)
    description = Column(String, nullable=False)
    amount = Column(Money, nullable=False)
    category = Column(String, nullable=True)
    pending = Column(Boolean, default=False, nullable=False)
    transaction_id = Column(Integer, ForeignKey("transactions.id"), nullable=True, index=True)
    is_matched = Column(Boolean, default=False, nullable=False)
    version = Column(Integer, nullable=False)

    # Provider ids deduplicate repeated syncs per bank account
    __table_args__ = (
        UniqueConstraint("bank_account_id", "provider_transaction_id", name="uq_bank_account_provider_id"),
        {"sqlite_autoincrement": True},
    )

    # Relationships
    bank_account = relationship("BankAccount", back_populates="transactions")

    __mapper_args__ = {"version_id_col": version}


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    connect_args = {}
    if database_url.startswith("sqlite"):
        # One Database instance may be shared across threads behind its lock
        connect_args["check_same_thread"] = False
    engine = create_engine(database_url, echo=False, connect_args=connect_args)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
