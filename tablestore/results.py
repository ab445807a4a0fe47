"""
Result sets returned by searches.
"""

import weakref
from typing import Iterator, List, Optional, Tuple

from .errors import StaleReferenceError
from .types import Row

INITIAL_CAPACITY = 16

# Row number used when the position of a row is unknown.
UNKNOWN_ROW = 0


class ResultSet:
    """
    Ordered (row, row_number) pairs produced by one search.

    Holds weak references only: the store keeps ownership of its rows.
    Storage is a slot array that starts at ``INITIAL_CAPACITY`` entries and
    doubles whenever it fills up. A result set is only valid until its
    store is next mutated; reading it after that raises
    ``StaleReferenceError``.
    """

    def __init__(self, store, capacity: int = INITIAL_CAPACITY):
        self._store = weakref.ref(store)
        self._version = store.version
        self._capacity = max(1, capacity)
        self._refs: List[Optional[weakref.ref]] = [None] * self._capacity
        self._row_numbers: List[int] = [UNKNOWN_ROW] * self._capacity
        self._count = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    def add(self, row: Row, row_number: int = UNKNOWN_ROW) -> None:
        """Append a row reference; row_number 0 means unknown."""
        if self._count >= self._capacity:
            self._grow()
        self._refs[self._count] = weakref.ref(row)
        self._row_numbers[self._count] = row_number
        self._count += 1

    def _grow(self) -> None:
        self._capacity *= 2
        extra = self._capacity - len(self._refs)
        self._refs.extend([None] * extra)
        self._row_numbers.extend([UNKNOWN_ROW] * extra)

    def is_stale(self) -> bool:
        store = self._store()
        return store is None or store.dropped or store.version != self._version

    def _check_fresh(self) -> None:
        if self.is_stale():
            raise StaleReferenceError(
                "Result set was built before the table was last modified"
            )

    def __len__(self) -> int:
        return self._count

    def __bool__(self) -> bool:
        return self._count > 0

    def __iter__(self) -> Iterator[Tuple[Row, int]]:
        self._check_fresh()
        for i in range(self._count):
            yield self._refs[i](), self._row_numbers[i]

    def __getitem__(self, i: int) -> Tuple[Row, int]:
        self._check_fresh()
        if i < 0:
            i += self._count
        if not 0 <= i < self._count:
            raise IndexError("result index out of range")
        return self._refs[i](), self._row_numbers[i]

    def rows(self) -> List[Row]:
        return [row for row, _ in self]

    def row_numbers(self) -> List[int]:
        self._check_fresh()
        return self._row_numbers[:self._count]

    @property
    def has_row_numbers(self) -> bool:
        """True when every entry carries its row number."""
        return all(n != UNKNOWN_ROW for n in self._row_numbers[:self._count])

    def __repr__(self) -> str:
        return f"ResultSet(count={self._count}, capacity={self._capacity})"
