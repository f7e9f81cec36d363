"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic so services never see ORM rows.
"""

from decimal import Decimal

from finstream.domain import entities as domain
from finstream.database.models import (
    Account as ORMAccount,
    Transaction as ORMTransaction,
    JournalEntry as ORMJournalEntry,
    Attachment as ORMAttachment,
    Invoice as ORMInvoice,
    InvoiceItem as ORMInvoiceItem,
    Payment as ORMPayment,
    BankAccount as ORMBankAccount,
    BankTransaction as ORMBankTransaction,
)


def _decimal(value) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def account_to_domain(orm_account: ORMAccount) -> domain.Account:
    """Convert SQLAlchemy Account model to domain Account entity."""
    return domain.Account(
        id=orm_account.id,
        name=orm_account.name,
        type=domain.AccountType(orm_account.type),
        subtype=domain.AccountSubtype(orm_account.subtype),
        balance=_decimal(orm_account.balance),
        is_active=bool(orm_account.is_active),
        is_archived=bool(orm_account.is_archived),
        created_at=orm_account.created_at,
        updated_at=orm_account.updated_at,
        number=orm_account.number,
        description=orm_account.description,
        version=orm_account.version or 1,
    )


def journal_entry_to_domain(orm_entry: ORMJournalEntry) -> domain.JournalEntry:
    """Convert SQLAlchemy JournalEntry model to domain JournalEntry entity."""
    return domain.JournalEntry(
        id=orm_entry.id,
        transaction_id=orm_entry.transaction_id,
        account_id=orm_entry.account_id,
        amount=_decimal(orm_entry.amount),
        memo=orm_entry.memo,
    )


def attachment_to_domain(orm_attachment: ORMAttachment) -> domain.Attachment:
    """Convert SQLAlchemy Attachment model to domain Attachment entity."""
    return domain.Attachment(
        id=orm_attachment.id,
        transaction_id=orm_attachment.transaction_id,
        file_name=orm_attachment.file_name,
        file_url=orm_attachment.file_url,
        file_type=orm_attachment.file_type,
        file_size=orm_attachment.file_size,
        created_at=orm_attachment.created_at,
    )


def transaction_to_domain(orm_transaction: ORMTransaction) -> domain.Transaction:
    """Convert SQLAlchemy Transaction model (with entries) to domain Transaction entity."""
    return domain.Transaction(
        id=orm_transaction.id,
        date=orm_transaction.date,
        description=orm_transaction.description,
        reference=orm_transaction.reference,
        entries=tuple(journal_entry_to_domain(e) for e in orm_transaction.entries),
        is_reconciled=bool(orm_transaction.is_reconciled),
        created_at=orm_transaction.created_at,
        updated_at=orm_transaction.updated_at,
        reversal_of_id=orm_transaction.reversal_of_id,
        attachments=tuple(attachment_to_domain(a) for a in orm_transaction.attachments),
    )


def invoice_item_to_domain(orm_item: ORMInvoiceItem) -> domain.InvoiceItem:
    """Convert SQLAlchemy InvoiceItem model to domain InvoiceItem entity."""
    return domain.InvoiceItem(
        id=orm_item.id,
        invoice_id=orm_item.invoice_id,
        description=orm_item.description,
        quantity=_decimal(orm_item.quantity),
        price=_decimal(orm_item.price),
        amount=_decimal(orm_item.amount),
        taxable=bool(orm_item.taxable),
    )


def invoice_to_domain(orm_invoice: ORMInvoice) -> domain.Invoice:
    """Convert SQLAlchemy Invoice model (with items) to domain Invoice entity."""
    return domain.Invoice(
        id=orm_invoice.id,
        invoice_number=orm_invoice.invoice_number,
        customer_id=orm_invoice.customer_id,
        date=orm_invoice.date,
        due_date=orm_invoice.due_date,
        items=tuple(invoice_item_to_domain(i) for i in orm_invoice.items),
        tax_rate=_decimal(orm_invoice.tax_rate),
        subtotal=_decimal(orm_invoice.subtotal),
        tax_amount=_decimal(orm_invoice.tax_amount),
        total=_decimal(orm_invoice.total),
        amount_paid=_decimal(orm_invoice.amount_paid),
        status=domain.InvoiceStatus(orm_invoice.status),
        created_at=orm_invoice.created_at,
        updated_at=orm_invoice.updated_at,
        notes=orm_invoice.notes,
        terms=orm_invoice.terms,
        version=orm_invoice.version or 1,
    )


def payment_to_domain(orm_payment: ORMPayment) -> domain.Payment:
    """Convert SQLAlchemy Payment model to domain Payment entity."""
    return domain.Payment(
        id=orm_payment.id,
        invoice_id=orm_payment.invoice_id,
        amount=_decimal(orm_payment.amount),
        date=orm_payment.date,
        created_at=orm_payment.created_at,
        method=orm_payment.method,
        notes=orm_payment.notes,
    )


def bank_account_to_domain(orm_bank_account: ORMBankAccount) -> domain.BankAccount:
    """Convert SQLAlchemy BankAccount model to domain BankAccount entity."""
    return domain.BankAccount(
        id=orm_bank_account.id,
        account_id=orm_bank_account.account_id,
        institution_name=orm_bank_account.institution_name,
        account_name=orm_bank_account.account_name,
        account_type=orm_bank_account.account_type,
        account_number=orm_bank_account.account_number,
        balance=_decimal(orm_bank_account.balance),
        last_updated=orm_bank_account.last_updated,
        routing_number=orm_bank_account.routing_number,
    )


def bank_transaction_to_domain(orm_bank_txn: ORMBankTransaction) -> domain.BankTransaction:
    """Convert SQLAlchemy BankTransaction model to domain BankTransaction entity."""
    return domain.BankTransaction(
        id=orm_bank_txn.id,
        bank_account_id=orm_bank_txn.bank_account_id,
        provider_transaction_id=orm_bank_txn.provider_transaction_id,
        date=orm_bank_txn.date,
        description=orm_bank_txn.description,
        amount=_decimal(orm_bank_txn.amount),
        pending=bool(orm_bank_txn.pending),
        is_matched=bool(orm_bank_txn.is_matched),
        category=orm_bank_txn.category,
        transaction_id=orm_bank_txn.transaction_id,
        version=orm_bank_txn.version or 1,
    )
