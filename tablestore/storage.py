"""
JSON persistence for tables.
"""

import logging
import re
from pathlib import Path
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, ValidationError, field_validator, model_validator

from .errors import MalformedInputError, StorageError, TableStoreError
from .store import Store
from .types import Column, DataType

logger = logging.getLogger(__name__)

TABLE_NAME_PATTERN = re.compile(r'[\w\-]+')

# Older files store column types as 1 (int) and 2 (string).
LEGACY_TYPE_CODES = {1: "INT", 2: "TEXT"}


class ColumnDocument(BaseModel):
    """Persisted column definition."""
    model_config = ConfigDict(extra="forbid")

    name: StrictStr
    type: DataType

    @field_validator("type", mode="before")
    @classmethod
    def _legacy_type_code(cls, value):
        if isinstance(value, int) and not isinstance(value, bool):
            return LEGACY_TYPE_CODES.get(value, value)
        return value


class TableDocument(BaseModel):
    """Persisted table: schema followed by records keyed by column name."""
    model_config = ConfigDict(populate_by_name=True)

    num_columns: StrictInt = Field(alias="numColumns")
    columns: List[ColumnDocument]
    records: List[Dict[str, Union[StrictInt, StrictStr]]]

    @model_validator(mode="after")
    def _check_shape(self):
        if self.num_columns != len(self.columns):
            raise ValueError(
                f"numColumns is {self.num_columns} but {len(self.columns)} column(s) are defined"
            )
        names = [col.name for col in self.columns]
        expected = set(names)
        for i, record in enumerate(self.records):
            if set(record) != expected:
                raise ValueError(f"Record {i + 1} does not match the column names {names}")
        return self


def serialize(store: Store) -> str:
    """Serialize a store to a JSON text blob."""
    columns = store.columns
    document = TableDocument(
        num_columns=len(columns),
        columns=[ColumnDocument(name=col.name, type=col.dtype) for col in columns],
        records=[
            {col.name: cell.value for col, cell in zip(columns, row.cells)}
            for _, row in store.rows()
        ]
    )
    return document.model_dump_json(by_alias=True, indent=2)


def deserialize(blob: Union[str, bytes]) -> Store:
    """
    Rebuild a store from a JSON text blob.

    The schema is reconstructed first, then every record is appended in its
    original order, so row numbers come out the same as when saved.

    Raises:
        MalformedInputError: If the blob cannot be parsed or validated.
            No partially built store is returned.
    """
    if isinstance(blob, bytes):
        try:
            blob = blob.decode('utf-8')
        except UnicodeDecodeError as e:
            raise MalformedInputError(f"Table document is not valid UTF-8: {e}") from e

    try:
        document = TableDocument.model_validate_json(blob)
    except ValidationError as e:
        raise MalformedInputError(f"Invalid table document: {e.error_count()} error(s): {e}") from e

    try:
        store = Store([Column(col.name, col.type) for col in document.columns])
        for record in document.records:
            store.append([record[col.name] for col in document.columns])
    except TableStoreError as e:
        raise MalformedInputError(f"Invalid table document: {e}") from e
    return store


class Storage:
    """Handles disk persistence of tables under a data directory."""

    def __init__(self, data_dir: str = "data"):
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def _table_file(self, table_name: str) -> Path:
        if table_name.endswith(".json"):
            table_name = table_name[:-len(".json")]
        if not TABLE_NAME_PATTERN.fullmatch(table_name):
            raise ValueError(f"Invalid table name '{table_name}'")
        return self.data_dir / f"{table_name}.json"

    def save_table(self, table_name: str, store: Store) -> Path:
        """Save a table as JSON."""
        table_file = self._table_file(table_name)
        blob = serialize(store)
        try:
            table_file.write_text(blob, encoding='utf-8')
        except OSError as e:
            raise StorageError(f"Cannot write {table_file}: {e.strerror or e}") from e
        logger.info("Saved %d row(s) to %s", len(store), table_file)
        return table_file

    def load_table(self, table_name: str) -> Optional[Store]:
        """Load a table from JSON, or None if it was never saved."""
        table_file = self._table_file(table_name)
        if not table_file.exists():
            return None
        try:
            blob = table_file.read_bytes()
        except OSError as e:
            raise StorageError(f"Cannot read {table_file}: {e.strerror or e}") from e
        store = deserialize(blob)
        logger.info("Loaded %d row(s) from %s", len(store), table_file)
        return store

    def table_exists(self, table_name: str) -> bool:
        """Check if a table exists on disk."""
        return self._table_file(table_name).exists()

    def list_tables(self) -> List[str]:
        """List all saved tables."""
        return sorted(file.stem for file in self.data_dir.glob("*.json"))
