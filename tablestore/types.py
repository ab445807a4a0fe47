"""
Core data types for the table store.
"""

from enum import Enum
from typing import Any, List, Sequence, Union
from dataclasses import dataclass

from .errors import SchemaError, TypeMismatchError


class DataType(Enum):
    """Supported column data types."""
    INT = "INT"
    TEXT = "TEXT"

    @classmethod
    def parse(cls, name: str) -> "DataType":
        """Parse a type name such as 'int', 'INTEGER', 'text' or 'string'."""
        normalized = name.strip().upper()
        if normalized in ("INT", "INTEGER"):
            return cls.INT
        if normalized in ("TEXT", "STRING", "STR"):
            return cls.TEXT
        raise SchemaError(f"Unknown data type '{name}'")


@dataclass(frozen=True)
class Column:
    """Represents a table column definition."""
    name: str
    dtype: DataType

    def validate_value(self, value: Any) -> bool:
        """Validate a raw value against the column's data type."""
        if self.dtype == DataType.INT:
            return isinstance(value, int) and not isinstance(value, bool)
        elif self.dtype == DataType.TEXT:
            return isinstance(value, str)
        return False


@dataclass(frozen=True)
class Cell:
    """
    A single typed value.

    The cell carries its own discriminant, so reading the wrong variant
    is an error rather than a silent misinterpretation.
    """
    dtype: DataType
    value: Union[int, str]

    def __post_init__(self):
        if self.dtype == DataType.INT:
            ok = isinstance(self.value, int) and not isinstance(self.value, bool)
        else:
            ok = isinstance(self.value, str)
        if not ok:
            raise TypeMismatchError(
                f"Value {self.value!r} is not a valid {self.dtype.value} cell"
            )

    @classmethod
    def integer(cls, value: int) -> "Cell":
        return cls(DataType.INT, value)

    @classmethod
    def text(cls, value: str) -> "Cell":
        return cls(DataType.TEXT, value)

    @classmethod
    def of(cls, value: Any) -> "Cell":
        """Wrap a raw Python value, inferring its type."""
        if isinstance(value, Cell):
            return value
        if isinstance(value, str):
            return cls.text(value)
        if isinstance(value, int) and not isinstance(value, bool):
            return cls.integer(value)
        raise TypeMismatchError(f"Unsupported value {value!r}")

    def as_int(self) -> int:
        if self.dtype != DataType.INT:
            raise TypeMismatchError(f"Cell holds {self.dtype.value}, not INT")
        return self.value

    def as_text(self) -> str:
        if self.dtype != DataType.TEXT:
            raise TypeMismatchError(f"Cell holds {self.dtype.value}, not TEXT")
        return self.value

    def __str__(self) -> str:
        return str(self.value)


class Row:
    """
    One stored record: a list of cells, one per column.

    Rows are owned by their store. Everything else refers to them through
    weak references.
    """

    __slots__ = ("cells", "__weakref__")

    def __init__(self, cells: Sequence[Cell]):
        self.cells: List[Cell] = list(cells)

    def __getitem__(self, column_index: int) -> Cell:
        return self.cells[column_index]

    def __len__(self) -> int:
        return len(self.cells)

    def values(self) -> List[Union[int, str]]:
        """Return the raw Python values of the row."""
        return [cell.value for cell in self.cells]

    def __repr__(self) -> str:
        return f"Row({self.values()!r})"


def check_cells(columns: Sequence[Column], cells: Sequence[Any]) -> List[Cell]:
    """
    Coerce raw values to cells and verify them against a schema.

    Raises:
        TypeMismatchError: If the count or any cell type disagrees.
    """
    if len(cells) != len(columns):
        raise TypeMismatchError(
            f"Expected {len(columns)} value(s), got {len(cells)}"
        )

    checked = []
    for i, (col, raw) in enumerate(zip(columns, cells)):
        value = raw.value if isinstance(raw, Cell) else raw
        if not col.validate_value(value):
            raise TypeMismatchError(
                f"Column {i + 1} ('{col.name}') type mismatch: expected {col.dtype.value}"
            )
        checked.append(raw if isinstance(raw, Cell) else Cell.of(value))
    return checked
