"""Workload sizing from heap page statistics."""

import logging
from dataclasses import dataclass

from hwaware.database.base import PAGE_SIZE, TableStorage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WorkloadSize:
    """Estimated input cardinality of a scoring query."""

    rows: float
    pages: float

    @property
    def rows_thousands(self) -> float:
        """Size in the unit used by the CPU cost model."""
        return self.rows / 1000


class WorkloadSizer:
    """Estimates a table's row count from its first and last heap pages.

    Every page but the last is assumed to hold as many rows as the first
    one. This is an approximation and can be arbitrarily wrong for tables
    whose row density varies across pages.
    """

    def __init__(self, storage: TableStorage, page_size: int = PAGE_SIZE):
        self.storage = storage
        self.page_size = page_size

    def size(self, table: str) -> WorkloadSize:
        """Estimate (rows, pages) for a table.

        Raises:
            TableNotFoundError: If the storage collaborator does not know the table
            StorageError: If page statistics cannot be read
        """
        pages = self.storage.table_size_bytes(table) // self.page_size
        if pages == 0:
            return WorkloadSize(rows=0.0, pages=0.0)

        first_rows = self.storage.page_row_count(table, 0)
        if pages == 1:
            rows = first_rows
        else:
            last_rows = self.storage.page_row_count(table, pages - 1)
            rows = first_rows * (pages - 1) + last_rows

        logger.debug(f"Sized table {table}: {rows} rows over {pages} pages")
        return WorkloadSize(rows=float(rows), pages=float(pages))
