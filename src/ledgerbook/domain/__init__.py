"""Domain layer for ledgerbook application."""

__all__ = [
    "AccountService",
    "AttachmentService",
    "CategoryService",
    "CSVImportService",
    "LedgerService",
    "RecurrenceExpander",
    "ReportService",
    "TransactionService",
    "UserService",
]

_SERVICE_MODULES = {
    "AccountService": "ledgerbook.domain.account",
    "AttachmentService": "ledgerbook.domain.attachment",
    "CategoryService": "ledgerbook.domain.category",
    "CSVImportService": "ledgerbook.domain.csv_import",
    "LedgerService": "ledgerbook.domain.ledger",
    "RecurrenceExpander": "ledgerbook.domain.recurrence",
    "ReportService": "ledgerbook.domain.report",
    "TransactionService": "ledgerbook.domain.transaction",
    "UserService": "ledgerbook.domain.user",
}


# Services import lazily: utilities import domain.errors, and the services
# import the utilities
def __getattr__(name):
    if name in _SERVICE_MODULES:
        import importlib

        return getattr(importlib.import_module(_SERVICE_MODULES[name]), name)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
