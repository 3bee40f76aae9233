"""Base classes for table storage collaborators."""

from abc import ABC, abstractmethod
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

from hwaware.error_handling import StorageError, TableNotFoundError

# Heap page size used by the host engine.
PAGE_SIZE = 8192


@dataclass
class QueryResult:
    """Result of a catalog query against the backing database."""

    rows: list[dict[str, Any]]

    def empty(self) -> bool:
        """Check if the result set is empty."""
        return len(self.rows) == 0

    def first(self) -> dict[str, Any] | None:
        """Get the first row, or None if empty."""
        return self.rows[0] if self.rows else None

    def __iter__(self) -> Iterator[dict[str, Any]]:
        return iter(self.rows)

    def __len__(self) -> int:
        return len(self.rows)


class TableStorage(ABC):
    """Abstract storage collaborator that answers sizing questions for a table.

    Implementations raise TableNotFoundError for unknown tables and
    StorageError for any other failure.
    """

    @abstractmethod
    def table_size_bytes(self, table: str) -> int:
        """Return the on-disk size of the table's main heap in bytes."""
        pass

    @abstractmethod
    def page_row_count(self, table: str, page_index: int) -> int:
        """Return the number of live tuples stored on one heap page.

        Raises:
            StorageError: If page_index is outside the table
        """
        pass

    def page_count(self, table: str, page_size: int = PAGE_SIZE) -> int:
        """Return the number of heap pages of the table."""
        return self.table_size_bytes(table) // page_size

    def close(self) -> None:
        """Release any resources held by the collaborator."""
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()


__all__ = [
    "PAGE_SIZE",
    "QueryResult",
    "StorageError",
    "TableNotFoundError",
    "TableStorage",
]
