"""DuckDB table storage with an emulated heap-page layout."""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import duckdb

from hwaware.database.base import (
    PAGE_SIZE,
    QueryResult,
    StorageError,
    TableNotFoundError,
    TableStorage,
)
from hwaware.utils.validation import (
    ValidationError,
    quote_sql_identifier,
    split_qualified_name,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HeapLayout:
    """Row-store layout of a table as the host engine would page it."""

    rows: int
    rows_per_page: int

    @property
    def pages(self) -> int:
        return -(-self.rows // self.rows_per_page)

    def rows_on_page(self, page_index: int) -> int:
        if page_index < self.pages - 1:
            return self.rows_per_page
        return self.rows - self.rows_per_page * (self.pages - 1)


class DuckDBStorage(TableStorage):
    """Sizes DuckDB tables as if they were stored in 8 KB heap pages.

    DuckDB is a column store, so the page layout is derived from the row
    count and a per-row width estimated from the column types.
    """

    PAGE_HEADER_BYTES = 24
    TUPLE_HEADER_BYTES = 24
    LINE_POINTER_BYTES = 4
    ALIGNMENT = 8
    VARIABLE_WIDTH_BYTES = 32

    TYPE_WIDTHS = {
        "BOOLEAN": 1,
        "TINYINT": 1,
        "UTINYINT": 1,
        "SMALLINT": 2,
        "USMALLINT": 2,
        "INTEGER": 4,
        "UINTEGER": 4,
        "BIGINT": 8,
        "UBIGINT": 8,
        "HUGEINT": 16,
        "UHUGEINT": 16,
        "FLOAT": 4,
        "DOUBLE": 8,
        "DECIMAL": 8,
        "DATE": 4,
        "TIME": 8,
        "TIMESTAMP": 8,
        "TIMESTAMP WITH TIME ZONE": 8,
        "INTERVAL": 16,
        "UUID": 16,
    }

    def __init__(self, db_path: str | Path = ":memory:", page_size: int = PAGE_SIZE):
        """Initialize DuckDB storage.

        Args:
            db_path: Path to the DuckDB database file.
                Use ":memory:" for in-memory database.
            page_size: Heap page size used for the emulated layout
        """
        self.db_path = str(db_path)
        self.page_size = page_size
        self._connection: duckdb.DuckDBPyConnection | None = None
        self._connect()

    def _connect(self) -> None:
        """Establish connection to the database."""
        try:
            self._connection = duckdb.connect(self.db_path)
        except duckdb.Error as e:
            raise StorageError(
                f"Failed to connect to DuckDB at {self.db_path}: {e}"
            ) from e

    def _ensure_connected(self) -> duckdb.DuckDBPyConnection:
        """Ensure we have a valid database connection."""
        if self._connection is None:
            self._connect()

        if self._connection is None:
            raise StorageError("Database connection is not available")

        return self._connection

    @property
    def connection(self) -> duckdb.DuckDBPyConnection:
        return self._ensure_connected()

    def query(self, sql: str, params: list | None = None) -> QueryResult:
        """Execute a query and return rows as dictionaries.

        Raises:
            StorageError: If query execution fails
        """
        try:
            conn = self._ensure_connected()
            cursor = conn.execute(sql, params) if params else conn.execute(sql)
            rows = cursor.fetchall()
            columns = [desc[0] for desc in cursor.description or []]
            return QueryResult(rows=[dict(zip(columns, row)) for row in rows])
        except duckdb.Error as e:
            raise StorageError(f"Query execution failed: {e}") from e

    def execute(self, sql: str, params: list | None = None) -> None:
        """Execute a DDL or DML statement.

        Raises:
            StorageError: If statement execution fails
        """
        try:
            conn = self._ensure_connected()
            if params:
                conn.execute(sql, params)
            else:
                conn.execute(sql)
        except duckdb.Error as e:
            raise StorageError(f"Statement execution failed: {e}") from e

    def _resolve(self, table: str) -> tuple[str, str]:
        """Resolve a possibly schema-qualified name to (schema, table)."""
        try:
            schema, name = split_qualified_name(table)
        except ValidationError as e:
            raise TableNotFoundError(str(e), original_error=e) from e

        sql = "SELECT schema_name FROM duckdb_tables() WHERE table_name = ?"
        params: list[Any] = [name]
        if schema is not None:
            sql += " AND schema_name = ?"
            params.append(schema)

        result = self.query(sql, params)
        row = result.first()
        if row is None:
            raise TableNotFoundError(f"Table '{table}' does not exist")
        return row["schema_name"], name

    def row_width(self, table: str) -> int:
        """Estimate the data width of one row in bytes."""
        schema, name = self._resolve(table)
        result = self.query(
            "SELECT data_type FROM duckdb_columns() "
            "WHERE schema_name = ? AND table_name = ?",
            [schema, name],
        )
        return sum(self._type_width(row["data_type"]) for row in result)

    def _type_width(self, data_type: str) -> int:
        base = re.sub(r"\(.*\)", "", data_type).strip().upper()
        return self.TYPE_WIDTHS.get(base, self.VARIABLE_WIDTH_BYTES)

    def layout(self, table: str) -> HeapLayout:
        """Compute the emulated heap layout of a table."""
        schema, name = self._resolve(table)
        qualified = f"{quote_sql_identifier(schema)}.{quote_sql_identifier(name)}"
        count_row = self.query(f"SELECT COUNT(*) AS n FROM {qualified}").first()
        rows = int(count_row["n"]) if count_row else 0

        tuple_bytes = self.TUPLE_HEADER_BYTES + self.row_width(table)
        tuple_bytes = -(-tuple_bytes // self.ALIGNMENT) * self.ALIGNMENT
        usable = self.page_size - self.PAGE_HEADER_BYTES
        rows_per_page = max(1, usable // (tuple_bytes + self.LINE_POINTER_BYTES))

        layout = HeapLayout(rows=rows, rows_per_page=rows_per_page)
        logger.debug(
            f"Table {table}: {rows} rows, {rows_per_page} rows/page, "
            f"{layout.pages} pages"
        )
        return layout

    def table_size_bytes(self, table: str) -> int:
        return self.layout(table).pages * self.page_size

    def page_row_count(self, table: str, page_index: int) -> int:
        layout = self.layout(table)
        if not 0 <= page_index < layout.pages:
            raise StorageError(
                f"Page {page_index} out of range for table '{table}' "
                f"({layout.pages} pages)"
            )
        return layout.rows_on_page(page_index)

    def close(self) -> None:
        """Close the database connection."""
        if self._connection is not None:
            try:
                self._connection.close()
            except duckdb.Error as e:
                logger.debug(f"Error closing DuckDB connection: {e}")
            finally:
                self._connection = None

    def __enter__(self) -> "DuckDBStorage":
        return self

    def __del__(self) -> None:
        self.close()
