"""
Search engine: every predicate has a linear-scan realization and, where the
tree can help, an index-assisted one.

Linear results carry the row number of every match. Indexed results carry
row number 0 (unknown) because the index only holds row references, so they
are for display only; anything that feeds a delete or update must use the
linear realization.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union

from .errors import TypeMismatchError, UnsupportedPredicateError
from .index import AVLIndex
from .results import INITIAL_CAPACITY, ResultSet
from .timer import Timer
from .types import DataType

logger = logging.getLogger(__name__)


class Predicate(Enum):
    """Supported search predicates."""
    EQUAL = "EQUAL"
    RANGE_GE = "RANGE_GE"
    RANGE_LE = "RANGE_LE"
    MAX = "MAX"
    MIN = "MIN"
    TOP_N = "TOP_N"
    BOTTOM_N = "BOTTOM_N"
    CONTAINS = "CONTAINS"
    TEXT_EQUAL = "TEXT_EQUAL"

    @property
    def column_type(self) -> DataType:
        if self in (Predicate.CONTAINS, Predicate.TEXT_EQUAL):
            return DataType.TEXT
        return DataType.INT

    @property
    def needs_value(self) -> bool:
        return self not in (Predicate.MAX, Predicate.MIN)

    @property
    def has_index_realization(self) -> bool:
        return self != Predicate.CONTAINS


@dataclass
class Comparison:
    """Outcome of running one search both ways, with timings in microseconds."""
    predicate: Predicate
    column_index: int
    linear: ResultSet
    indexed: Optional[ResultSet]
    linear_us: float
    build_us: float = 0.0
    search_us: float = 0.0

    @property
    def indexed_total_us(self) -> float:
        return self.build_us + self.search_us


class SearchEngine:
    """Runs searches against one store."""

    def __init__(self, store, result_capacity: int = INITIAL_CAPACITY):
        self.store = store
        self.result_capacity = result_capacity

    def _new_result(self) -> ResultSet:
        return ResultSet(self.store, self.result_capacity)

    def _resolve(self, predicate: Predicate, column: Union[str, int], value: Any) -> int:
        """Resolve the column and check it and the value against the predicate."""
        column_index = self.store.column_index(column)
        col = self.store.columns[column_index]

        if col.dtype != predicate.column_type:
            raise TypeMismatchError(
                f"{predicate.value} is not applicable to {col.dtype.value} column '{col.name}'"
            )

        if predicate.needs_value:
            if predicate in (Predicate.TOP_N, Predicate.BOTTOM_N):
                expected = DataType.INT
            else:
                expected = predicate.column_type
            ok = (isinstance(value, str) if expected == DataType.TEXT
                  else isinstance(value, int) and not isinstance(value, bool))
            if not ok:
                raise TypeMismatchError(
                    f"{predicate.value} on '{col.name}' needs a {expected.value} value, got {value!r}"
                )
        return column_index

    # ========== LINEAR ==========

    def linear(self, predicate: Predicate, column: Union[str, int], value: Any = None) -> ResultSet:
        """Run a predicate as a single pass over the store."""
        column_index = self._resolve(predicate, column, value)

        if predicate == Predicate.MAX:
            return self._linear_extreme(column_index, largest=True)
        elif predicate == Predicate.MIN:
            return self._linear_extreme(column_index, largest=False)
        elif predicate == Predicate.TOP_N:
            return self._linear_sorted(column_index, value, descending=True)
        elif predicate == Predicate.BOTTOM_N:
            return self._linear_sorted(column_index, value, descending=False)

        if predicate in (Predicate.EQUAL, Predicate.TEXT_EQUAL):
            def match(v):
                return v == value
        elif predicate == Predicate.RANGE_GE:
            def match(v):
                return v >= value
        elif predicate == Predicate.RANGE_LE:
            def match(v):
                return v <= value
        elif predicate == Predicate.CONTAINS:
            def match(v):
                return value in v
        else:
            raise UnsupportedPredicateError(f"Unsupported predicate: {predicate}")

        result = self._new_result()
        for row_number, row in self.store.rows():
            if match(row[column_index].value):
                result.add(row, row_number)
        return result

    def _linear_extreme(self, column_index: int, largest: bool) -> ResultSet:
        """First row holding the largest (or smallest) value."""
        result = self._new_result()
        best = None
        best_number = 0
        for row_number, row in self.store.rows():
            v = row[column_index].value
            if best is None:
                best, best_number = row, row_number
                continue
            current = best[column_index].value
            if (largest and v > current) or (not largest and v < current):
                best, best_number = row, row_number

        if best is not None:
            result.add(best, best_number)
        return result

    def _linear_sorted(self, column_index: int, n: int, descending: bool) -> ResultSet:
        """Collect every row, sort by value and keep the first n."""
        result = self._new_result()
        if n <= 0:
            return result

        items = [(row[column_index].value, row_number, row)
                 for row_number, row in self.store.rows()]
        # sorted() is stable with reverse=True too, so ties keep row order
        items = sorted(items, key=lambda item: item[0], reverse=descending)
        for _, row_number, row in items[:n]:
            result.add(row, row_number)
        return result

    # ========== INDEXED ==========

    def build_index(self, column: Union[str, int]) -> AVLIndex:
        return AVLIndex.build(self.store, column, self.result_capacity)

    def indexed(self, predicate: Predicate, column: Union[str, int], value: Any = None,
                index: Optional[AVLIndex] = None) -> ResultSet:
        """
        Run a predicate against an AVL index over the column.

        Args:
            predicate: Predicate to evaluate
            column: Column name or position
            value: Comparison value, or N for TOP_N/BOTTOM_N
            index: A fresh index over the same column; built when omitted

        Returns:
            Result set with unknown (0) row numbers

        Raises:
            UnsupportedPredicateError: For CONTAINS
            TypeMismatchError: If the predicate does not fit the column
        """
        if not predicate.has_index_realization:
            raise UnsupportedPredicateError(
                f"{predicate.value} has no index realization; use a linear search"
            )
        column_index = self._resolve(predicate, column, value)
        if index is None:
            index = self.build_index(column_index)
        elif index.column_index != column_index:
            raise UnsupportedPredicateError(
                f"Index covers column {index.column_index}, not {column_index}"
            )
        return self._query_index(index, predicate, value)

    def _query_index(self, index: AVLIndex, predicate: Predicate, value: Any) -> ResultSet:
        if predicate == Predicate.RANGE_GE:
            return index.range_ge(value)
        elif predicate == Predicate.RANGE_LE:
            return index.range_le(value)
        elif predicate == Predicate.TOP_N:
            return index.top_n(value)
        elif predicate == Predicate.BOTTOM_N:
            return index.bottom_n(value)

        if predicate in (Predicate.EQUAL, Predicate.TEXT_EQUAL):
            row = index.find_exact(value)
        elif predicate == Predicate.MAX:
            row = index.find_max()
        elif predicate == Predicate.MIN:
            row = index.find_min()
        else:
            raise UnsupportedPredicateError(f"Unsupported predicate: {predicate}")

        result = self._new_result()
        if row is not None:
            result.add(row)
        return result

    # ========== COMPARISON ==========

    def compare(self, predicate: Predicate, column: Union[str, int], value: Any = None) -> Comparison:
        """Run the linear realization and, where one exists, the indexed one, timing both."""
        column_index = self._resolve(predicate, column, value)
        timer = Timer()

        timer.start()
        linear = self.linear(predicate, column_index, value)
        linear_us = timer.elapsed_micros()

        if not predicate.has_index_realization:
            return Comparison(predicate, column_index, linear, None, linear_us)

        timer.start()
        index = self.build_index(column_index)
        build_us = timer.elapsed_micros()

        timer.start()
        indexed = self._query_index(index, predicate, value)
        search_us = timer.elapsed_micros()

        logger.debug(
            "%s on column %d: linear %.2fus (%d), index build %.2fus + search %.2fus (%d)",
            predicate.value, column_index, linear_us, len(linear), build_us, search_us, len(indexed)
        )
        return Comparison(predicate, column_index, linear, indexed, linear_us, build_us, search_us)
