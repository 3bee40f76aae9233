"""In-memory table storage for simulations and tests."""

from __future__ import annotations

from collections.abc import Sequence

from hwaware.database.base import (
    PAGE_SIZE,
    StorageError,
    TableNotFoundError,
    TableStorage,
)


class InMemoryStorage(TableStorage):
    """Storage collaborator backed by explicit per-page row counts."""

    def __init__(self, page_size: int = PAGE_SIZE):
        self.page_size = page_size
        self._pages: dict[str, list[int]] = {}

    def add_table(self, name: str, page_rows: Sequence[int]) -> None:
        """Register a table from the row count of each of its pages."""
        if any(rows < 0 for rows in page_rows):
            raise StorageError(f"Negative row count for table '{name}'")
        self._pages[name] = list(page_rows)

    def add_uniform_table(
        self, name: str, rows: int, rows_per_page: int
    ) -> None:
        """Register a table with ``rows`` tuples packed ``rows_per_page`` to a page."""
        if rows_per_page <= 0:
            raise StorageError("rows_per_page must be positive")
        full, remainder = divmod(rows, rows_per_page)
        pages = [rows_per_page] * full
        if remainder:
            pages.append(remainder)
        self.add_table(name, pages)

    def drop_table(self, name: str) -> None:
        self._pages.pop(name, None)

    def _table(self, name: str) -> list[int]:
        if name not in self._pages:
            raise TableNotFoundError(f"Table '{name}' does not exist")
        return self._pages[name]

    def table_size_bytes(self, table: str) -> int:
        return len(self._table(table)) * self.page_size

    def page_row_count(self, table: str, page_index: int) -> int:
        pages = self._table(table)
        if not 0 <= page_index < len(pages):
            raise StorageError(
                f"Page {page_index} out of range for table '{table}' "
                f"({len(pages)} pages)"
            )
        return pages[page_index]
