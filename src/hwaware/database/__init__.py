"""Storage collaborators and workload sizing for hwaware."""

from hwaware.database.base import (
    PAGE_SIZE,
    QueryResult,
    StorageError,
    TableNotFoundError,
    TableStorage,
)
from hwaware.database.duckdb import DuckDBStorage, HeapLayout
from hwaware.database.memory import InMemoryStorage
from hwaware.database.sizer import WorkloadSize, WorkloadSizer

__all__ = [
    "PAGE_SIZE",
    "DuckDBStorage",
    "HeapLayout",
    "InMemoryStorage",
    "QueryResult",
    "StorageError",
    "TableNotFoundError",
    "TableStorage",
    "WorkloadSize",
    "WorkloadSizer",
]
