"""
Interactive REPL for the table store.
"""

import logging
from typing import Any, Dict, List, Optional

from .config import StoreConfig
from .engine import TableEngine


class TableREPL:
    """Command-line REPL for interacting with one table."""

    def __init__(self, config: Optional[StoreConfig] = None, output=print):
        self.engine = TableEngine(config)
        self.max_display_rows = self.engine.config.max_display_rows
        self.output = output
        self.running = False

    def run(self):
        """Run the REPL."""
        self.running = True
        self.output("Table Store REPL")
        self.output("Type 'exit' or 'quit' to exit")
        self.output("Type 'help' for help\n")

        while self.running:
            try:
                line = input("table> ").strip()

                if line.lower() in ('exit', 'quit'):
                    break
                elif line.lower() == 'help':
                    self._print_help()
                    continue
                elif not line:
                    continue

                self.handle(line)

            except KeyboardInterrupt:
                self.output("\nInterrupted")
                break
            except EOFError:
                self.output("")
                break

        self.output("Goodbye!")

    def handle(self, line: str) -> Dict[str, Any]:
        """Execute one command line and display its outcome."""
        result = self.engine.execute(line)
        self._display_result(result)

        mutating = line.strip().upper().split(' ', 1)[0] in (
            'CREATE', 'INSERT', 'DELETE', 'UPDATE', 'LOAD'
        )
        if mutating and result['status'] == 'OK' and self.engine.auto_display:
            self._display_table(self.engine.show())
        return result

    def _print_help(self):
        """Print help information."""
        help_text = """
Available commands:
  exit, quit           - Exit the REPL
  help                 - Show this help
  tables               - List saved tables

Table commands:
  CREATE TABLE (id INT, name TEXT)
  INSERT VALUES (1, 'Alice')
  SHOW
  GET ROW 2
  SEARCH id >= 3 [USING LINEAR|INDEX|BOTH]
  SEARCH id = 3 | SEARCH id <= 3 | SEARCH id MAX | SEARCH id MIN
  SEARCH id TOP 5 | SEARCH id BOTTOM 5
  SEARCH name = 'Alice' | SEARCH name CONTAINS 'li'
  DELETE ROW 2 | DELETE WHERE id >= 10
  UPDATE ROW 2 VALUES (2, 'Bob') | UPDATE WHERE name = 'Bob' VALUES (2, 'Rob')
  SAVE people | LOAD people
  SET AUTODISPLAY ON|OFF
        """
        self.output(help_text)

    def _display_result(self, result: Dict[str, Any]):
        """Display a command outcome in a readable format."""
        if result['status'] != 'OK':
            self.output(f"Error ({result['error']}): {result['message']}")
            return

        if 'tables' in result:
            if result['tables']:
                self.output("Tables:")
                for table in result['tables']:
                    self.output(f"  {table}")
            else:
                self.output("No saved tables.")
            return

        if 'message' in result and 'predicate' not in result:
            self.output(result['message'])

        if 'columns' in result and 'rows' not in result and 'predicate' not in result and 'row' not in result:
            self._display_schema(result['columns'])

        if 'row_number' in result and 'row_count' in result:
            self.output(f"Record added. Total rows: {result['row_count']}")

        if 'updated_count' in result:
            self.output(f"Updated {result['updated_count']} row(s)")

        if 'deleted_count' in result:
            self.output(f"Deleted {result['deleted_count']} row(s). Remaining rows: {result['row_count']}")

        if 'row' in result:
            self.output(f"(Row {result['row']['row_number']}) {self._format_record(result['row']['record'])}")

        if 'rows' in result:
            self._display_table(result)

        if 'predicate' in result:
            self._display_search(result)

    def _display_schema(self, columns: List[Dict[str, str]]):
        for i, col in enumerate(columns):
            self.output(f"  [{i}] {col['name']} ({col['type']})")

    def _display_table(self, result: Dict[str, Any]):
        """Print the whole table with row numbers."""
        columns = [col['name'] for col in result['columns']]
        rows = result['rows']

        col_widths = {col: len(col) for col in columns}
        for row in rows:
            for col in columns:
                col_widths[col] = max(col_widths[col], len(str(row['record'][col])))
        number_width = max(len("No."), len(str(len(rows))))

        self.output(f"\n=== Table (Rows: {len(rows)}, Columns: {len(columns)}) ===")
        header = f"{'No.':<{number_width}} | " + " | ".join(f"{col:<{col_widths[col]}}" for col in columns)
        self.output(header)
        self.output("-" * len(header))

        for row in rows:
            row_str = f"{row['row_number']:<{number_width}} | " + " | ".join(
                f"{str(row['record'][col]):<{col_widths[col]}}" for col in columns
            )
            self.output(row_str)

        if not rows:
            self.output("Table is empty.")

    def _display_search(self, result: Dict[str, Any]):
        """Print linear and indexed results side by side with their timings."""
        self.output("\n--- Results ---")

        linear = result['linear']
        if linear is not None:
            timing = ""
            if 'elapsed_us' in linear:
                timing = f" {self._format_us(linear['elapsed_us'])},"
            self.output(f"Linear search:{timing} found {linear['count']}")
            self._display_matches(linear)

        indexed = result['indexed']
        if indexed is not None:
            if 'build_us' in indexed:
                self.output(f"AVL build:  {self._format_us(indexed['build_us'])}")
                self.output(f"AVL search: {self._format_us(indexed['search_us'])}, found {indexed['count']}")
                self.output(f"AVL total:  {self._format_us(indexed['total_us'])}")
            else:
                self.output(f"AVL search: found {indexed['count']}")
            self._display_matches(indexed)
        elif 'message' in result:
            self.output(f"({result['message']})")

    def _display_matches(self, matches: Dict[str, Any]):
        rows = matches['rows']
        if not rows:
            self.output("  No results found.")
            return
        for i, row in enumerate(rows[:self.max_display_rows]):
            number = row['row_number'] if row['row_number'] is not None else '?'
            self.output(f"  [{i + 1}] (Row {number}) {self._format_record(row['record'])}")
        if len(rows) > self.max_display_rows:
            self.output(f"  ... and {len(rows) - self.max_display_rows} more.")

    @staticmethod
    def _format_record(record: Dict[str, Any]) -> str:
        return "Record: " + ", ".join(f"{name}={value}" for name, value in record.items())

    @staticmethod
    def _format_us(micros: float) -> str:
        return f"{micros:.2f} us ({micros / 1000.0:.4f} ms)"


def main():
    """Main entry point for the REPL."""
    import argparse

    config = StoreConfig.from_env()

    parser = argparse.ArgumentParser(description="In-memory table store with AVL index REPL")
    parser.add_argument("--data-dir", default=config.data_dir, help="Directory for saved tables")
    parser.add_argument("--log-level", default=config.log_level, help="Logging level")
    parser.add_argument("--no-auto-display", action="store_true", help="Do not print the table after changes")

    args = parser.parse_args()
    config.data_dir = args.data_dir
    config.log_level = args.log_level.upper()
    if args.no_auto_display:
        config.auto_display = False

    logging.basicConfig(level=config.log_level, format="%(levelname)s %(name)s: %(message)s")

    repl = TableREPL(config)
    repl.run()


if __name__ == "__main__":
    main()
