"""Domain layer for finstream application."""

__all__ = [
    "AccountService",
    "LedgerService",
    "InvoiceService",
    "ReconciliationService",
]


# Services import the database layer, which imports entities from this package
def __getattr__(name):
    if name == "AccountService":
        from finstream.domain.account import AccountService
        return AccountService
    if name == "LedgerService":
        from finstream.domain.ledger import LedgerService
        return LedgerService
    if name == "InvoiceService":
        from finstream.domain.invoice import InvoiceService
        return InvoiceService
    if name == "ReconciliationService":
        from finstream.domain.reconciliation import ReconciliationService
        return ReconciliationService
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
