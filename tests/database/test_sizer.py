"""Tests for first/last page workload sizing."""

import pytest

from hwaware.database import (
    InMemoryStorage,
    StorageError,
    TableNotFoundError,
    WorkloadSize,
    WorkloadSizer,
)


@pytest.fixture
def storage():
    return InMemoryStorage()


def test_extrapolates_from_first_and_last_page(storage):
    storage.add_table("data_tbl", [100, 100, 100, 37])

    size = WorkloadSizer(storage).size("data_tbl")

    assert size == WorkloadSize(rows=337.0, pages=4.0)
    assert size.rows_thousands == pytest.approx(0.337)


def test_middle_pages_are_assumed_full(storage):
    """Only the first and last pages are read; density in between is ignored."""
    storage.add_table("skewed", [50, 1, 1, 1, 20])

    size = WorkloadSizer(storage).size("skewed")

    assert size.rows == 50 * 4 + 20


def test_single_page_table(storage):
    storage.add_table("tiny", [42])
    assert WorkloadSizer(storage).size("tiny") == WorkloadSize(rows=42.0, pages=1.0)


def test_empty_table_sizes_to_zero(storage):
    storage.add_table("empty", [])
    assert WorkloadSizer(storage).size("empty") == WorkloadSize(rows=0.0, pages=0.0)


def test_uniform_table(storage):
    storage.add_uniform_table("uniform", rows=1000, rows_per_page=157)

    size = WorkloadSizer(storage).size("uniform")

    assert size.pages == 7
    assert size.rows == 1000


def test_missing_table_propagates(storage):
    with pytest.raises(TableNotFoundError):
        WorkloadSizer(storage).size("missing")


def test_page_size_must_match_storage(storage):
    """A larger sizing page halves the page count of the same heap."""
    storage.add_table("data_tbl", [10] * 8)

    size = WorkloadSizer(storage, page_size=2 * storage.page_size).size("data_tbl")

    assert size.pages == 4
    assert size.rows == 10 * 3 + 10


def test_in_memory_storage_rejects_bad_pages(storage):
    storage.add_table("data_tbl", [10, 10])

    with pytest.raises(StorageError):
        storage.page_row_count("data_tbl", 2)
    with pytest.raises(StorageError):
        storage.add_table("bad", [10, -1])
    with pytest.raises(StorageError):
        storage.add_uniform_table("bad", rows=10, rows_per_page=0)


def test_drop_table(storage):
    storage.add_table("data_tbl", [1])
    storage.drop_table("data_tbl")

    with pytest.raises(TableNotFoundError):
        storage.table_size_bytes("data_tbl")
