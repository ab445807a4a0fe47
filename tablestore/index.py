"""
AVL tree index over a single column.

The index is built from scratch for each query and discarded afterwards; it
is never patched when the store changes. Nodes point at rows through weak
references, so the index never keeps a row alive.

Height convention: an empty subtree has height 0, a leaf has height 1.
Balance factor: height(left) - height(right), kept within {-1, 0, 1}.
"""

import logging
import weakref
from typing import Iterator, List, Optional, Union

from .errors import StaleReferenceError
from .results import INITIAL_CAPACITY, ResultSet
from .types import Row

logger = logging.getLogger(__name__)

Key = Union[int, str]


class AVLNode:
    """A node in the AVL index."""

    __slots__ = ("key", "_row", "left", "right", "height")

    def __init__(self, key: Key, row: Row):
        self.key = key
        self._row = weakref.ref(row)
        self.left: Optional[AVLNode] = None
        self.right: Optional[AVLNode] = None
        self.height = 1

    @property
    def row(self) -> Optional[Row]:
        return self._row()

    def __repr__(self) -> str:
        return f"AVLNode({self.key!r}, height={self.height})"


def height(node: Optional[AVLNode]) -> int:
    return node.height if node else 0


def update_height(node: AVLNode) -> None:
    node.height = 1 + max(height(node.left), height(node.right))


def balance_factor(node: Optional[AVLNode]) -> int:
    if node is None:
        return 0
    return height(node.left) - height(node.right)


def rotate_right(y: AVLNode) -> AVLNode:
    """
    Right rotation around y; its left child x becomes the local root.

            y              x
           / \\            / \\
          x   C   -->    A   y
         / \\                / \\
        A   B              B   C
    """
    x = y.left
    b = x.right

    x.right = y
    y.left = b

    # y is now below x, so it goes first
    update_height(y)
    update_height(x)
    return x


def rotate_left(x: AVLNode) -> AVLNode:
    """
    Left rotation around x; its right child y becomes the local root.

          x                  y
         / \\                / \\
        A   y     -->      x   C
           / \\            / \\
          B   C          A   B
    """
    y = x.right
    b = y.left

    y.left = x
    x.right = b

    update_height(x)
    update_height(y)
    return y


class AVLIndex:
    """Self-balancing binary search tree mapping column values to rows."""

    def __init__(self, store=None, column_index: int = 0, result_capacity: int = INITIAL_CAPACITY):
        self._root: Optional[AVLNode] = None
        self._size = 0
        self.column_index = column_index
        self._store = weakref.ref(store) if store is not None else None
        self._version = store.version if store is not None else 0
        self._result_capacity = result_capacity

    @classmethod
    def build(cls, store, column: Union[str, int],
              result_capacity: int = INITIAL_CAPACITY) -> "AVLIndex":
        """
        Build an index over one column with a single pass over the store.

        Rows are inserted in row order, so when several rows share a value
        only the first of them is represented.
        """
        column_index = store.column_index(column)
        index = cls(store, column_index, result_capacity)
        for _, row in store.rows():
            index.insert(row[column_index].value, row)
        logger.debug(
            "Built index on column %d: %d key(s) from %d row(s), height %d",
            column_index, index._size, len(store), index.height
        )
        return index

    @property
    def root(self) -> Optional[AVLNode]:
        return self._root

    @property
    def height(self) -> int:
        return height(self._root)

    def __len__(self) -> int:
        return self._size

    # -------------------------------
    # Insert
    # -------------------------------
    def insert(self, key: Key, row: Row) -> bool:
        """Insert a key. Returns False (and changes nothing) for a duplicate."""
        size_before = self._size
        self._root = self._insert(self._root, key, row)
        return self._size > size_before

    def _insert(self, node: Optional[AVLNode], key: Key, row: Row) -> AVLNode:
        if node is None:
            self._size += 1
            return AVLNode(key, row)

        if key < node.key:
            node.left = self._insert(node.left, key, row)
        elif key > node.key:
            node.right = self._insert(node.right, key, row)
        else:
            return node

        update_height(node)
        balance = balance_factor(node)

        # Left-left
        if balance > 1 and key < node.left.key:
            return rotate_right(node)

        # Right-right
        if balance < -1 and key > node.right.key:
            return rotate_left(node)

        # Left-right
        if balance > 1 and key > node.left.key:
            node.left = rotate_left(node.left)
            return rotate_right(node)

        # Right-left
        if balance < -1 and key < node.right.key:
            node.right = rotate_right(node.right)
            return rotate_left(node)

        return node

    # -------------------------------
    # Point lookups
    # -------------------------------
    def find_exact(self, key: Key) -> Optional[Row]:
        self._check_fresh()
        node = self._root
        while node:
            if key < node.key:
                node = node.left
            elif key > node.key:
                node = node.right
            else:
                return node.row
        return None

    def find_min(self) -> Optional[Row]:
        self._check_fresh()
        node = self._root
        if node is None:
            return None
        while node.left:
            node = node.left
        return node.row

    def find_max(self) -> Optional[Row]:
        self._check_fresh()
        node = self._root
        if node is None:
            return None
        while node.right:
            node = node.right
        return node.row

    # -------------------------------
    # Range queries
    # -------------------------------
    def range_ge(self, value: Key) -> ResultSet:
        """Rows whose key is >= value, in ascending key order."""
        self._check_fresh()
        result = self._new_result()

        def _walk(node: Optional[AVLNode]):
            if node is None:
                return
            if node.key >= value:
                _walk(node.left)
                result.add(node.row)
                _walk(node.right)
            else:
                # everything on the left is smaller still
                _walk(node.right)

        _walk(self._root)
        return result

    def range_le(self, value: Key) -> ResultSet:
        """Rows whose key is <= value, in ascending key order."""
        self._check_fresh()
        result = self._new_result()

        def _walk(node: Optional[AVLNode]):
            if node is None:
                return
            if node.key <= value:
                _walk(node.left)
                result.add(node.row)
                _walk(node.right)
            else:
                _walk(node.left)

        _walk(self._root)
        return result

    # -------------------------------
    # Bounded traversals
    # -------------------------------
    def top_n(self, n: int) -> ResultSet:
        """The n rows with the largest keys, largest first."""
        self._check_fresh()
        result = self._new_result()

        def _walk(node: Optional[AVLNode]):
            if node is None or len(result) >= n:
                return
            _walk(node.right)
            if len(result) < n:
                result.add(node.row)
            _walk(node.left)

        if n > 0:
            _walk(self._root)
        return result

    def bottom_n(self, n: int) -> ResultSet:
        """The n rows with the smallest keys, smallest first."""
        self._check_fresh()
        result = self._new_result()

        def _walk(node: Optional[AVLNode]):
            if node is None or len(result) >= n:
                return
            _walk(node.left)
            if len(result) < n:
                result.add(node.row)
            _walk(node.right)

        if n > 0:
            _walk(self._root)
        return result

    # -------------------------------
    # Introspection
    # -------------------------------
    def nodes(self) -> Iterator[AVLNode]:
        """In-order iteration over the nodes."""
        stack: List[AVLNode] = []
        node = self._root
        while stack or node:
            while node:
                stack.append(node)
                node = node.left
            node = stack.pop()
            yield node
            node = node.right

    def keys(self) -> List[Key]:
        return [node.key for node in self.nodes()]

    def is_ordered(self) -> bool:
        """True if an in-order walk yields strictly increasing keys."""
        keys = self.keys()
        return all(a < b for a, b in zip(keys, keys[1:]))

    def is_balanced(self) -> bool:
        """True if every node has a valid height and balance factor."""

        def _check(node: Optional[AVLNode]) -> int:
            # returns the true height, or -1 on violation
            if node is None:
                return 0
            hl = _check(node.left)
            hr = _check(node.right)
            if hl < 0 or hr < 0 or abs(hl - hr) > 1:
                return -1
            h = 1 + max(hl, hr)
            if node.height != h:
                return -1
            return h

        return _check(self._root) >= 0

    def _new_result(self) -> ResultSet:
        store = self._store() if self._store is not None else None
        if store is None:
            return ResultSet(_DETACHED, self._result_capacity)
        return ResultSet(store, self._result_capacity)

    def _check_fresh(self) -> None:
        if self._store is None:
            return
        store = self._store()
        if store is None or store.dropped or store.version != self._version:
            raise StaleReferenceError(
                "Index was built before the table was last modified"
            )


class _Detached:
    """Stand-in store for an index built by hand, outside any table."""

    version = 0
    dropped = False


_DETACHED = _Detached()
