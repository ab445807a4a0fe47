"""
Parser for the table store command language.
"""

import re
from typing import Dict, List, Any, Optional
from enum import Enum


class CommandType(Enum):
    """Types of commands we support."""
    CREATE_TABLE = "CREATE_TABLE"
    INSERT = "INSERT"
    SHOW = "SHOW"
    GET_ROW = "GET_ROW"
    SEARCH = "SEARCH"
    DELETE_ROW = "DELETE_ROW"
    DELETE_WHERE = "DELETE_WHERE"
    UPDATE_ROW = "UPDATE_ROW"
    UPDATE_WHERE = "UPDATE_WHERE"
    SAVE = "SAVE"
    LOAD = "LOAD"
    TABLES = "TABLES"
    SET = "SET"


class SearchMode(Enum):
    """Which realization a SEARCH command runs."""
    LINEAR = "LINEAR"
    INDEX = "INDEX"
    BOTH = "BOTH"


class CommandParser:
    """Parses commands into structured dictionaries."""

    CREATE_TABLE_PATTERN = re.compile(
        r'CREATE TABLE\s*(\w+)?\s*\((.*)\)$',
        re.IGNORECASE | re.DOTALL
    )

    INSERT_PATTERN = re.compile(
        r'INSERT\s+(?:INTO\s+\w+\s+)?VALUES\s*\((.*)\)$',
        re.IGNORECASE | re.DOTALL
    )

    GET_ROW_PATTERN = re.compile(r'GET ROW\s+(-?\d+)$', re.IGNORECASE)

    SEARCH_PATTERN = re.compile(
        r'SEARCH\s+(.*?)(?:\s+USING\s+(LINEAR|INDEX|BOTH))?$',
        re.IGNORECASE | re.DOTALL
    )

    DELETE_ROW_PATTERN = re.compile(r'DELETE ROW\s+(-?\d+)$', re.IGNORECASE)

    DELETE_WHERE_PATTERN = re.compile(r'DELETE WHERE\s+(.*)$', re.IGNORECASE | re.DOTALL)

    UPDATE_ROW_PATTERN = re.compile(
        r'UPDATE ROW\s+(-?\d+)\s+VALUES\s*\((.*)\)$',
        re.IGNORECASE | re.DOTALL
    )

    UPDATE_WHERE_PATTERN = re.compile(
        r'UPDATE WHERE\s+(.*?)\s+VALUES\s*\((.*)\)$',
        re.IGNORECASE | re.DOTALL
    )

    SAVE_LOAD_PATTERN = re.compile(r'(SAVE|LOAD)\s+(.+)$', re.IGNORECASE)

    SET_PATTERN = re.compile(r'SET\s+(\w+)\s+(\w+)$', re.IGNORECASE)

    # Conditions: "col >= 3", "col MAX", "col TOP 5", "col CONTAINS 'x'"
    COMPARE_PATTERN = re.compile(r'(\w+)\s*(>=|<=|=)\s*(.+)$', re.DOTALL)
    EXTREME_PATTERN = re.compile(r'(\w+)\s+(MAX|MIN)$', re.IGNORECASE)
    BOUNDED_PATTERN = re.compile(r'(\w+)\s+(TOP|BOTTOM)\s+(-?\d+)$', re.IGNORECASE)
    CONTAINS_PATTERN = re.compile(r'(\w+)\s+CONTAINS\s+(.+)$', re.IGNORECASE | re.DOTALL)

    def parse(self, command: str) -> Dict[str, Any]:
        """Parse a command into a structured dictionary."""
        command = command.strip().rstrip(';').strip()
        upper = command.upper()

        if upper.startswith("CREATE TABLE"):
            return self._parse_create_table(command)
        elif upper.startswith("INSERT"):
            return self._parse_insert(command)
        elif upper == "SHOW":
            return {'type': CommandType.SHOW}
        elif upper in ("TABLES", ".TABLES"):
            return {'type': CommandType.TABLES}
        elif upper.startswith("GET ROW"):
            return self._parse_get_row(command)
        elif upper.startswith("SEARCH"):
            return self._parse_search(command)
        elif upper.startswith("DELETE"):
            return self._parse_delete(command)
        elif upper.startswith("UPDATE"):
            return self._parse_update(command)
        elif upper.startswith("SAVE") or upper.startswith("LOAD"):
            return self._parse_save_load(command)
        elif upper.startswith("SET"):
            return self._parse_set(command)
        else:
            raise SyntaxError(f"Unsupported command: {command}")

    def _parse_create_table(self, command: str) -> Dict[str, Any]:
        """Parse CREATE TABLE command."""
        match = self.CREATE_TABLE_PATTERN.match(command)
        if not match:
            raise SyntaxError("Invalid CREATE TABLE syntax")

        table_name = match.group(1)
        columns = []
        for col_def in self._split_by_commas(match.group(2)):
            parts = col_def.split()
            if len(parts) != 2:
                raise SyntaxError(f"Invalid column definition: '{col_def}'")
            columns.append({'name': parts[0], 'type': parts[1].upper()})

        if not columns:
            raise SyntaxError("CREATE TABLE needs at least one column")

        return {
            'type': CommandType.CREATE_TABLE,
            'table_name': table_name,
            'columns': columns
        }

    def _parse_insert(self, command: str) -> Dict[str, Any]:
        """Parse INSERT command."""
        match = self.INSERT_PATTERN.match(command)
        if not match:
            raise SyntaxError("Invalid INSERT syntax")

        return {
            'type': CommandType.INSERT,
            'values': self._parse_values(match.group(1))
        }

    def _parse_get_row(self, command: str) -> Dict[str, Any]:
        match = self.GET_ROW_PATTERN.match(command)
        if not match:
            raise SyntaxError("Invalid GET ROW syntax")
        return {'type': CommandType.GET_ROW, 'row_number': int(match.group(1))}

    def _parse_search(self, command: str) -> Dict[str, Any]:
        """Parse SEARCH command."""
        match = self.SEARCH_PATTERN.match(command)
        if not match:
            raise SyntaxError("Invalid SEARCH syntax")

        mode = SearchMode((match.group(2) or "BOTH").upper())
        return {
            'type': CommandType.SEARCH,
            'condition': self._parse_condition(match.group(1)),
            'mode': mode
        }

    def _parse_delete(self, command: str) -> Dict[str, Any]:
        """Parse DELETE command."""
        match = self.DELETE_ROW_PATTERN.match(command)
        if match:
            return {'type': CommandType.DELETE_ROW, 'row_number': int(match.group(1))}

        match = self.DELETE_WHERE_PATTERN.match(command)
        if match:
            return {
                'type': CommandType.DELETE_WHERE,
                'condition': self._parse_condition(match.group(1))
            }
        raise SyntaxError("Invalid DELETE syntax")

    def _parse_update(self, command: str) -> Dict[str, Any]:
        """Parse UPDATE command."""
        match = self.UPDATE_ROW_PATTERN.match(command)
        if match:
            return {
                'type': CommandType.UPDATE_ROW,
                'row_number': int(match.group(1)),
                'values': self._parse_values(match.group(2))
            }

        match = self.UPDATE_WHERE_PATTERN.match(command)
        if match:
            return {
                'type': CommandType.UPDATE_WHERE,
                'condition': self._parse_condition(match.group(1)),
                'values': self._parse_values(match.group(2))
            }
        raise SyntaxError("Invalid UPDATE syntax")

    def _parse_save_load(self, command: str) -> Dict[str, Any]:
        match = self.SAVE_LOAD_PATTERN.match(command)
        if not match:
            raise SyntaxError("Invalid SAVE/LOAD syntax")

        name = self._parse_value(match.group(2))
        if not isinstance(name, str) or not name:
            raise SyntaxError("SAVE/LOAD needs a table name")

        command_type = CommandType.SAVE if match.group(1).upper() == "SAVE" else CommandType.LOAD
        return {'type': command_type, 'table_name': name}

    def _parse_set(self, command: str) -> Dict[str, Any]:
        match = self.SET_PATTERN.match(command)
        if not match:
            raise SyntaxError("Invalid SET syntax")

        setting = match.group(1).upper()
        flag = match.group(2).upper()
        if flag not in ("ON", "OFF"):
            raise SyntaxError(f"SET {setting} expects ON or OFF")
        return {'type': CommandType.SET, 'setting': setting, 'value': flag == "ON"}

    def _parse_condition(self, condition: str) -> Dict[str, Any]:
        """Parse a search condition into column, operator and value."""
        condition = condition.strip()

        match = self.EXTREME_PATTERN.match(condition)
        if match:
            return {'column': match.group(1), 'operator': match.group(2).upper(), 'value': None}

        match = self.BOUNDED_PATTERN.match(condition)
        if match:
            return {
                'column': match.group(1),
                'operator': match.group(2).upper(),
                'value': int(match.group(3))
            }

        match = self.CONTAINS_PATTERN.match(condition)
        if match:
            return {
                'column': match.group(1),
                'operator': 'CONTAINS',
                'value': self._parse_value(match.group(2), as_text=True)
            }

        match = self.COMPARE_PATTERN.match(condition)
        if match:
            return {
                'column': match.group(1),
                'operator': match.group(2),
                'value': self._parse_value(match.group(3))
            }

        raise SyntaxError(f"Invalid search condition: '{condition}'")

    def _parse_value(self, value_str: str, as_text: bool = False) -> Any:
        """Parse a literal into an int or a str."""
        value_str = value_str.strip()

        if len(value_str) >= 2 and value_str[0] == value_str[-1] and value_str[0] in ("'", '"'):
            quote = value_str[0]
            return value_str[1:-1].replace(quote * 2, quote)
        elif not as_text and re.fullmatch(r'-?\d+', value_str):
            return int(value_str)
        else:
            return value_str

    def _parse_values(self, values_str: str) -> List[Any]:
        """Parse a list of values."""
        if not values_str.strip():
            return []
        return [self._parse_value(val) for val in self._split_by_commas(values_str)]

    def _split_by_commas(self, s: str) -> List[str]:
        """Split string by commas, ignoring commas inside quotes or parentheses."""
        result = []
        current = ""
        paren_depth = 0
        quote: Optional[str] = None

        for char in s:
            if quote:
                if char == quote:
                    quote = None
            elif char in ("'", '"'):
                quote = char
            elif char == '(':
                paren_depth += 1
            elif char == ')':
                paren_depth -= 1
            elif char == ',' and paren_depth == 0:
                result.append(current.strip())
                current = ""
                continue
            current += char

        if quote:
            raise SyntaxError("Unterminated string literal")
        if current.strip():
            result.append(current.strip())

        return result
