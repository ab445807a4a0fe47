"""
Session object tying together the store, search engine, storage and parser.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Union

from .config import StoreConfig
from .errors import TableStoreError, UnsupportedPredicateError
from .parser import CommandParser, CommandType, SearchMode
from .results import ResultSet
from .search import Predicate, SearchEngine
from .storage import Storage
from .store import Store
from .types import Column, DataType, Row

logger = logging.getLogger(__name__)

OPERATOR_PREDICATES = {
    '>=': Predicate.RANGE_GE,
    '<=': Predicate.RANGE_LE,
    'MAX': Predicate.MAX,
    'MIN': Predicate.MIN,
    'TOP': Predicate.TOP_N,
    'BOTTOM': Predicate.BOTTOM_N,
    'CONTAINS': Predicate.CONTAINS,
}


def error_outcome(kind: str, message: str) -> Dict[str, Any]:
    return {'status': 'ERROR', 'error': kind, 'message': message}


class TableEngine:
    """
    One interactive session over a single current table.

    Every public command returns an outcome dictionary with ``status`` set
    to ``'OK'`` or ``'ERROR'`` instead of raising, so one failed command
    never aborts the commands around it.
    """

    def __init__(self, config: Optional[StoreConfig] = None):
        self.config = config or StoreConfig()
        self.storage = Storage(self.config.data_dir)
        self.parser = CommandParser()
        self.auto_display = self.config.auto_display
        self.table_name: Optional[str] = None
        self._store: Optional[Store] = None

    @property
    def store(self) -> Optional[Store]:
        return self._store

    def execute(self, command: str) -> Dict[str, Any]:
        """
        Parse and execute one command.

        Args:
            command: Command string, e.g. "SEARCH id >= 3 USING INDEX"

        Returns:
            Outcome dictionary
        """
        try:
            parsed = self.parser.parse(command)
        except SyntaxError as e:
            logger.warning("Rejected command %r: %s", command, e)
            return error_outcome('SyntaxError', str(e))

        command_type = parsed['type']

        if command_type.name == 'CREATE_TABLE':
            return self.create_table(
                [(col['name'], col['type']) for col in parsed['columns']],
                parsed['table_name']
            )
        elif command_type.name == 'INSERT':
            return self.insert(parsed['values'])
        elif command_type.name == 'SHOW':
            return self.show()
        elif command_type.name == 'GET_ROW':
            return self.get_row(parsed['row_number'])
        elif command_type.name == 'SEARCH':
            cond = parsed['condition']
            return self.search(cond['column'], cond['operator'], cond['value'], parsed['mode'])
        elif command_type.name == 'DELETE_ROW':
            return self.delete_row(parsed['row_number'])
        elif command_type.name == 'DELETE_WHERE':
            cond = parsed['condition']
            return self.delete_where(cond['column'], cond['operator'], cond['value'])
        elif command_type.name == 'UPDATE_ROW':
            return self.update_row(parsed['row_number'], parsed['values'])
        elif command_type.name == 'UPDATE_WHERE':
            cond = parsed['condition']
            return self.update_where(cond['column'], cond['operator'], cond['value'], parsed['values'])
        elif command_type.name == 'SAVE':
            return self.save(parsed['table_name'])
        elif command_type.name == 'LOAD':
            return self.load(parsed['table_name'])
        elif command_type.name == 'TABLES':
            return self.list_tables()
        elif command_type.name == 'SET':
            return self.set_option(parsed['setting'], parsed['value'])
        else:
            return error_outcome('SyntaxError', f"Unsupported command type: {command_type}")

    def _run(self, operation, *args) -> Dict[str, Any]:
        """Run an operation, turning table store errors into outcomes."""
        try:
            return operation(*args)
        except TableStoreError as e:
            logger.warning("%s failed: %s", operation.__name__.lstrip('_'), e)
            return error_outcome(e.kind, str(e))
        except ValueError as e:
            logger.warning("%s failed: %s", operation.__name__.lstrip('_'), e)
            return error_outcome('InvalidArgument', str(e))

    def _require_table(self) -> Optional[Dict[str, Any]]:
        if self._store is None:
            return error_outcome('NoTable', "Create or load a table first")
        return None

    # ========== TABLE LIFECYCLE ==========

    def create_table(self, columns: Sequence[Any], table_name: Optional[str] = None) -> Dict[str, Any]:
        """Create a new table, replacing the current one."""
        return self._run(self._create_table, columns, table_name)

    def _create_table(self, columns, table_name):
        schema = []
        for col in columns:
            if isinstance(col, Column):
                schema.append(col)
            else:
                name, dtype = col
                if not isinstance(dtype, DataType):
                    dtype = DataType.parse(dtype)
                schema.append(Column(name, dtype))

        store = Store(schema)
        self._replace_store(store, table_name)
        logger.info("Created table %s with %d column(s)", table_name or "(unnamed)", len(schema))
        return {
            'status': 'OK',
            'message': "Table created",
            'columns': self._schema()
        }

    def _replace_store(self, store: Store, table_name: Optional[str]) -> None:
        if self._store is not None:
            self._store.drop()
        self._store = store
        self.table_name = table_name

    def _schema(self) -> List[Dict[str, str]]:
        return [{'name': col.name, 'type': col.dtype.value} for col in self._store.columns]

    # ========== ROWS ==========

    def _coerce(self, values: Sequence[Any]) -> List[Any]:
        """Accept integer literals for TEXT columns by turning them into text."""
        coerced = list(values)
        for i, col in enumerate(self._store.columns[:len(coerced)]):
            value = coerced[i]
            if col.dtype == DataType.TEXT and isinstance(value, int) and not isinstance(value, bool):
                coerced[i] = str(value)
        return coerced

    def insert(self, values: Sequence[Any]) -> Dict[str, Any]:
        """Append one row."""
        return self._require_table() or self._run(self._insert, values)

    def _insert(self, values):
        self._store.append(self._coerce(values))
        return {'status': 'OK', 'row_number': len(self._store), 'row_count': len(self._store)}

    def show(self) -> Dict[str, Any]:
        """Return the whole table."""
        error = self._require_table()
        if error:
            return error
        return {
            'status': 'OK',
            'columns': self._schema(),
            'rows': [self._row_to_dict(row, n) for n, row in self._store.rows()],
            'row_count': len(self._store)
        }

    def get_row(self, row_number: int) -> Dict[str, Any]:
        return self._require_table() or self._run(self._get_row, row_number)

    def _get_row(self, row_number):
        row = self._store.fetch_at(row_number)
        return {'status': 'OK', 'columns': self._schema(), 'row': self._row_to_dict(row, row_number)}

    def delete_row(self, row_number: int) -> Dict[str, Any]:
        return self._require_table() or self._run(self._delete_row, row_number)

    def _delete_row(self, row_number):
        self._store.delete_at(row_number)
        return {'status': 'OK', 'deleted_count': 1, 'row_count': len(self._store)}

    def update_row(self, row_number: int, values: Sequence[Any]) -> Dict[str, Any]:
        return self._require_table() or self._run(self._update_row, row_number, values)

    def _update_row(self, row_number, values):
        row = self._store.update_at(row_number, self._coerce(values))
        return {'status': 'OK', 'updated_count': 1, 'row': self._row_to_dict(row, row_number)}

    # ========== SEARCH ==========

    def resolve_predicate(self, column: Union[str, int], operator: Union[str, Predicate]) -> Predicate:
        """
        Map an operator such as '>=' or 'TOP' (or a predicate name) to a
        predicate. '=' means EQUAL on INT columns and TEXT_EQUAL on TEXT ones.
        """
        if isinstance(operator, Predicate):
            return operator

        op = operator.strip().upper()
        if op in Predicate.__members__:
            return Predicate[op]
        if op in ('=', '=='):
            col = self._store.columns[self._store.column_index(column)]
            return Predicate.TEXT_EQUAL if col.dtype == DataType.TEXT else Predicate.EQUAL
        if op in OPERATOR_PREDICATES:
            return OPERATOR_PREDICATES[op]
        raise UnsupportedPredicateError(f"Unknown operator '{operator}'")

    def _search_value(self, predicate: Predicate, value: Any) -> Any:
        if predicate.column_type == DataType.TEXT and isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    def find(self, column: Union[str, int], operator: Union[str, Predicate], value: Any = None,
             indexed: bool = False) -> ResultSet:
        """
        Run one realization and return the raw result set.

        Raises:
            TableStoreError: On any invalid search
        """
        if self._store is None:
            raise TableStoreError("Create or load a table first")
        predicate = self.resolve_predicate(column, operator)
        value = self._search_value(predicate, value)
        engine = SearchEngine(self._store, self.config.initial_result_capacity)
        if indexed:
            return engine.indexed(predicate, column, value)
        return engine.linear(predicate, column, value)

    def search(self, column: Union[str, int], operator: Union[str, Predicate], value: Any = None,
               mode: SearchMode = SearchMode.BOTH) -> Dict[str, Any]:
        """Search the current table with the linear scan, the index, or both."""
        return self._require_table() or self._run(self._search, column, operator, value, mode)

    def _search(self, column, operator, value, mode):
        predicate = self.resolve_predicate(column, operator)
        value = self._search_value(predicate, value)
        engine = SearchEngine(self._store, self.config.initial_result_capacity)
        column_name = self._store.columns[self._store.column_index(column)].name

        outcome = {
            'status': 'OK',
            'predicate': predicate.value,
            'column': column_name,
            'value': value,
            'columns': self._schema(),
            'linear': None,
            'indexed': None
        }

        if mode == SearchMode.LINEAR:
            outcome['linear'] = self._results_to_dict(engine.linear(predicate, column, value))
        elif mode == SearchMode.INDEX:
            outcome['indexed'] = self._results_to_dict(engine.indexed(predicate, column, value))
        else:
            comparison = engine.compare(predicate, column, value)
            outcome['linear'] = self._results_to_dict(comparison.linear)
            outcome['linear']['elapsed_us'] = comparison.linear_us
            if comparison.indexed is not None:
                outcome['indexed'] = self._results_to_dict(comparison.indexed)
                outcome['indexed'].update({
                    'build_us': comparison.build_us,
                    'search_us': comparison.search_us,
                    'total_us': comparison.indexed_total_us
                })
            else:
                outcome['message'] = "Index not applicable for substring search"
        return outcome

    def delete_where(self, column: Union[str, int], operator: Union[str, Predicate],
                     value: Any = None) -> Dict[str, Any]:
        """Delete every row matched by a linear search."""
        return self._require_table() or self._run(self._delete_where, column, operator, value)

    def _delete_where(self, column, operator, value):
        # Linear results carry row numbers; indexed ones never drive a mutation
        matches = self.find(column, operator, value)
        outcomes = self._store.delete_many(matches.row_numbers())
        deleted = sum(1 for o in outcomes if o['status'] == 'OK')
        return {
            'status': 'OK',
            'deleted_count': deleted,
            'row_count': len(self._store),
            'outcomes': outcomes
        }

    def update_where(self, column: Union[str, int], operator: Union[str, Predicate], value: Any,
                     values: Sequence[Any]) -> Dict[str, Any]:
        """Update the single row matched by a linear search."""
        return self._require_table() or self._run(self._update_where, column, operator, value, values)

    def _update_where(self, column, operator, value, values):
        matches = self.find(column, operator, value)
        if len(matches) == 0:
            return error_outcome('NotFound', "No row matches the condition")
        if len(matches) > 1:
            return error_outcome(
                'AmbiguousMatch',
                f"{len(matches)} rows match; update one of rows {matches.row_numbers()} by number"
            )
        return self._update_row(matches.row_numbers()[0], values)

    # ========== PERSISTENCE ==========

    def save(self, table_name: Optional[str] = None) -> Dict[str, Any]:
        return self._require_table() or self._run(self._save, table_name)

    def _save(self, table_name):
        table_name = table_name or self.table_name
        if not table_name:
            return error_outcome('InvalidArgument', "A table name is required to save")
        path = self.storage.save_table(table_name, self._store)
        self.table_name = table_name
        return {'status': 'OK', 'message': f"Saved to {path}", 'row_count': len(self._store)}

    def load(self, table_name: str) -> Dict[str, Any]:
        """Load a saved table. On failure the current table is left untouched."""
        return self._run(self._load, table_name)

    def _load(self, table_name):
        store = self.storage.load_table(table_name)
        if store is None:
            return error_outcome('NotFound', f"Table '{table_name}' has not been saved")
        self._replace_store(store, table_name)
        return {
            'status': 'OK',
            'message': f"Loaded '{table_name}'",
            'columns': self._schema(),
            'row_count': len(store)
        }

    def list_tables(self) -> Dict[str, Any]:
        return {'status': 'OK', 'tables': self.storage.list_tables()}

    def set_option(self, setting: str, value: bool) -> Dict[str, Any]:
        if setting.upper() != 'AUTODISPLAY':
            return error_outcome('InvalidArgument', f"Unknown setting '{setting}'")
        self.auto_display = value
        return {'status': 'OK', 'message': f"Auto display: {'ON' if value else 'OFF'}"}

    # ========== HELPERS ==========

    def _row_to_dict(self, row: Row, row_number: int) -> Dict[str, Any]:
        return {
            'row_number': row_number or None,
            'record': {col.name: cell.value for col, cell in zip(self._store.columns, row.cells)}
        }

    def _results_to_dict(self, results: ResultSet) -> Dict[str, Any]:
        return {
            'count': len(results),
            'rows': [self._row_to_dict(row, n) for row, n in results]
        }

    def get_table_info(self) -> Dict[str, Any]:
        """Get information about the current table."""
        error = self._require_table()
        if error:
            return error
        return {
            'status': 'OK',
            'table_name': self.table_name,
            'schema': self._schema(),
            'row_count': len(self._store)
        }
