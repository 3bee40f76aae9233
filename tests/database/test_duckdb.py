"""Tests for DuckDB-backed table sizing."""

import pytest

from hwaware.database import (
    DuckDBStorage,
    HeapLayout,
    StorageError,
    TableNotFoundError,
    WorkloadSizer,
)


@pytest.fixture
def storage():
    with DuckDBStorage(":memory:") as db:
        db.execute("CREATE TABLE data_tbl (id INTEGER, x DOUBLE, y DOUBLE)")
        db.execute("INSERT INTO data_tbl SELECT i, i * 0.5, i * 2.0 FROM range(1000) r(i)")
        yield db


def test_query_and_execute(storage):
    result = storage.query("SELECT COUNT(*) AS n FROM data_tbl")

    assert not result.empty()
    assert result.first()["n"] == 1000
    assert len(result) == 1


def test_invalid_sql_raises_storage_error(storage):
    with pytest.raises(StorageError):
        storage.query("INVALID SQL")
    with pytest.raises(StorageError):
        storage.execute("INVALID SQL")


def test_row_width_from_column_types(storage):
    assert storage.row_width("data_tbl") == 4 + 8 + 8


def test_variable_width_columns_use_default(storage):
    storage.execute("CREATE TABLE names (name VARCHAR, code DECIMAL(10, 2))")
    assert storage.row_width("names") == DuckDBStorage.VARIABLE_WIDTH_BYTES + 8


def test_heap_layout(storage):
    layout = storage.layout("data_tbl")

    # (24 + 20) aligned to 48, plus a 4 byte line pointer, in 8168 usable bytes
    assert layout == HeapLayout(rows=1000, rows_per_page=157)
    assert layout.pages == 7
    assert layout.rows_on_page(0) == 157
    assert layout.rows_on_page(6) == 1000 - 157 * 6


def test_sizer_over_duckdb(storage):
    size = WorkloadSizer(storage).size("data_tbl")

    assert size.pages == 7
    assert size.rows == 1000
    assert storage.table_size_bytes("data_tbl") == 7 * 8192


def test_schema_qualified_name(storage):
    assert storage.page_count("main.data_tbl") == 7


def test_empty_table(storage):
    storage.execute("CREATE TABLE empty_tbl (id INTEGER)")

    assert storage.table_size_bytes("empty_tbl") == 0
    assert WorkloadSizer(storage).size("empty_tbl").rows == 0


def test_missing_and_invalid_tables(storage):
    with pytest.raises(TableNotFoundError):
        storage.layout("missing")
    with pytest.raises(TableNotFoundError):
        storage.layout("data_tbl; DROP TABLE data_tbl")
    assert storage.query("SELECT COUNT(*) AS n FROM data_tbl").first()["n"] == 1000


def test_page_out_of_range(storage):
    with pytest.raises(StorageError):
        storage.page_row_count("data_tbl", 7)


def test_close_is_idempotent():
    db = DuckDBStorage()
    db.close()
    db.close()
