"""
Exception hierarchy for the table store.
"""


class TableStoreError(ValueError):
    """Base class for all table store errors."""

    kind = "TableStoreError"


class TypeMismatchError(TableStoreError):
    """Raised when a cell type disagrees with its column type."""

    kind = "TypeMismatch"


class OutOfRangeError(TableStoreError):
    """Raised when a row number falls outside [1, row_count]."""

    kind = "OutOfRange"

    def __init__(self, row_number: int, row_count: int):
        self.row_number = row_number
        self.row_count = row_count
        super().__init__(
            f"Row {row_number} is out of range (table has {row_count} row(s))"
        )


class SchemaError(TableStoreError):
    """Raised when a table schema is invalid."""

    kind = "SchemaError"


class UnknownColumnError(TableStoreError):
    """Raised when a column reference does not resolve."""

    kind = "UnknownColumn"


class UnsupportedPredicateError(TableStoreError):
    """Raised when a predicate has no realization for the requested mode."""

    kind = "UnsupportedPredicate"


class StaleReferenceError(TableStoreError):
    """
    Raised when an index or result set is read after its store was mutated.

    Both hold non-owning references into the store, so any append, update
    or delete invalidates them.
    """

    kind = "StaleReference"


class MalformedInputError(TableStoreError):
    """Raised when a persisted table cannot be parsed or validated."""

    kind = "MalformedInput"


class StorageError(TableStoreError):
    """Raised when a table file cannot be read or written."""

    kind = "StorageError"
