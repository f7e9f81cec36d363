"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """

    retryable = False


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class InvalidSubtypeError(ValidationError):
    """Account subtype does not belong to the account type."""


class TooFewEntriesError(ValidationError):
    """A transaction needs at least two journal entries."""


class UnknownAccountError(ValidationError):
    """A journal entry references an account that does not exist."""


class ArchivedAccountError(ValidationError):
    """A journal entry references an archived account."""


class InvariantViolation(DomainError):
    """Operation would break a ledger or invoice invariant."""


class UnbalancedEntriesError(InvariantViolation):
    """Journal entries do not sum to zero."""


class OverpaymentRejectedError(InvariantViolation):
    """Payment would push amount paid above the invoice total."""


class NonZeroBalanceError(InvariantViolation):
    """Account cannot be archived while it carries a balance."""


class InvalidTransitionError(DomainError):
    """Illegal invoice state-machine move."""


class ReconciliationError(DomainError):
    """Bank reconciliation conflict."""


class AlreadyMatchedError(ReconciliationError):
    """Bank transaction is already matched to another transaction."""


class UnknownTransactionError(ReconciliationError):
    """Ledger transaction referenced by a match does not exist."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class DuplicateError(DomainError):
    """Uniqueness violation, such as a taken account name."""


class DependencyError(DomainError):
    """Operation blocked due to dependent domain data."""


class ConflictError(DomainError):
    """Concurrent write contention. Re-read and retry."""

    retryable = True


def account_not_found(account_id: int) -> str:
    """Return message for missing account."""
    return f"Account {account_id} not found"


def transaction_not_found(transaction_id: int) -> str:
    """Return message for missing ledger transaction."""
    return f"Transaction {transaction_id} not found"


def invoice_not_found(invoice_id: int) -> str:
    """Return message for missing invoice."""
    return f"Invoice {invoice_id} not found"


def bank_account_not_found(bank_account_id: int) -> str:
    """Return message for missing bank account."""
    return f"Bank account {bank_account_id} not found"


def bank_transaction_not_found(bank_transaction_id: int) -> str:
    """Return message for missing bank transaction."""
    return f"Bank transaction {bank_transaction_id} not found"


def invalid_transition(invoice_id: int, status: str, action: str) -> str:
    """Return message for an illegal invoice status change."""
    return f"Cannot {action} invoice {invoice_id} in status {status}"


def transaction_delete_blocked(transaction_id: int, reasons: list[str]) -> str:
    """Return message when a transaction has dependent state."""
    return (
        f"Cannot delete transaction {transaction_id}: it is {' and '.join(reasons)}. "
        "Post a reversal instead."
    )
