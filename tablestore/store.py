"""
Primary in-memory row store.
"""

import logging
from typing import Any, Dict, Iterator, List, Sequence, Tuple, Union

from .errors import OutOfRangeError, SchemaError, StaleReferenceError, TableStoreError, UnknownColumnError
from .types import Column, Row, check_cells

logger = logging.getLogger(__name__)


class Store:
    """
    Owns every row of one table, in insertion order.

    Row numbers are 1-based positions and are not stable: deleting row k
    shifts every later row down by one. Each successful mutation bumps
    ``version`` so that indexes and result sets built earlier can detect
    that they are stale.
    """

    def __init__(self, columns: Sequence[Column]):
        columns = list(columns)
        if not columns:
            raise SchemaError("A table needs at least one column")

        seen = set()
        for col in columns:
            if not col.name:
                raise SchemaError("Column names cannot be empty")
            if col.name in seen:
                raise SchemaError(f"Duplicate column name '{col.name}'")
            seen.add(col.name)

        self._columns: List[Column] = columns
        self._rows: List[Row] = []
        self._version = 0
        self._dropped = False

    @property
    def columns(self) -> List[Column]:
        return list(self._columns)

    @property
    def version(self) -> int:
        return self._version

    @property
    def dropped(self) -> bool:
        return self._dropped

    def __len__(self) -> int:
        return len(self._rows)

    def column_index(self, column: Union[str, int]) -> int:
        """Resolve a column name or position to its position."""
        if isinstance(column, int) and not isinstance(column, bool):
            if 0 <= column < len(self._columns):
                return column
            raise UnknownColumnError(f"Column index {column} is out of range")

        for i, col in enumerate(self._columns):
            if col.name == column:
                return i
        raise UnknownColumnError(f"Column '{column}' does not exist")

    def rows(self) -> Iterator[Tuple[int, Row]]:
        """Iterate over (row_number, row) pairs in insertion order."""
        self._check_alive()
        for i, row in enumerate(self._rows):
            yield i + 1, row

    def append(self, cells: Sequence[Any]) -> Row:
        """
        Append a row after the current tail.

        Args:
            cells: One Cell (or raw int/str value) per column

        Returns:
            The stored Row

        Raises:
            TypeMismatchError: If any cell disagrees with its column
        """
        self._check_alive()
        row = Row(check_cells(self._columns, cells))
        self._rows.append(row)
        self._bump()
        logger.debug("Appended row %d", len(self._rows))
        return row

    def fetch_at(self, row_number: int) -> Row:
        """Return the row at a 1-based position."""
        self._check_alive()
        return self._rows[self._position(row_number)]

    def delete_at(self, row_number: int) -> None:
        """Delete the row at a 1-based position. Later rows shift down by one."""
        self._check_alive()
        del self._rows[self._position(row_number)]
        self._bump()
        logger.debug("Deleted row %d, %d row(s) remain", row_number, len(self._rows))

    def update_at(self, row_number: int, cells: Sequence[Any]) -> Row:
        """Replace the cells of the row at a 1-based position in place."""
        self._check_alive()
        position = self._position(row_number)
        checked = check_cells(self._columns, cells)

        row = self._rows[position]
        row.cells = checked
        self._bump()
        logger.debug("Updated row %d", row_number)
        return row

    def delete_many(self, row_numbers: Sequence[int]) -> List[Dict[str, Any]]:
        """
        Delete several rows by number.

        Row numbers are processed in descending order so earlier deletes do
        not shift the positions of later ones. Each delete reports its own
        outcome; a failure does not stop the rest of the batch.
        """
        outcomes = []
        for row_number in sorted(set(row_numbers), reverse=True):
            try:
                self.delete_at(row_number)
                outcomes.append({'status': 'OK', 'row_number': row_number})
            except TableStoreError as e:
                outcomes.append({
                    'status': 'ERROR',
                    'row_number': row_number,
                    'error': e.kind,
                    'message': str(e)
                })
        return outcomes

    def drop(self) -> None:
        """Release every row. The store cannot be used afterwards."""
        self._rows.clear()
        self._dropped = True
        self._bump()

    def _position(self, row_number: int) -> int:
        if isinstance(row_number, bool) or not isinstance(row_number, int):
            raise OutOfRangeError(row_number, len(self._rows))
        if row_number < 1 or row_number > len(self._rows):
            raise OutOfRangeError(row_number, len(self._rows))
        return row_number - 1

    def _bump(self) -> None:
        self._version += 1

    def _check_alive(self) -> None:
        if self._dropped:
            raise StaleReferenceError("Table has been dropped")
