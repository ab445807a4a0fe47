"""
In-memory table store with an on-demand AVL index
"""

from .engine import TableEngine
from .index import AVLIndex
from .repl import TableREPL
from .results import ResultSet
from .search import Predicate, SearchEngine
from .store import Store
from .types import Cell, Column, DataType, Row

__all__ = [
    'AVLIndex', 'Cell', 'Column', 'DataType', 'Predicate', 'ResultSet',
    'Row', 'SearchEngine', 'Store', 'TableEngine', 'TableREPL'
]
