"""Exception classes for the ledger package."""


class LedgerError(Exception):
    """Base exception for the ledger."""
    pass


class ValidationError(LedgerError):
    """Malformed transaction, budget or category input."""
    pass


class UnknownCategoryError(ValidationError):
    """A category name that is not in the reference table."""

    def __init__(self, name: str, kind: str):
        super().__init__(f"Unknown {kind} category: {name!r}")
        self.name = name
        self.kind = kind


class NotFoundError(LedgerError):
    """Update or delete of a record id that does not exist."""
    pass


class StorageError(LedgerError):
    """State could not be read from or written to storage."""
    pass
