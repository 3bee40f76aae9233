"""Tests for identifier and setting validation helpers."""

import pytest

from hwaware.utils.validation import (
    ValidationError,
    quote_sql_identifier,
    split_qualified_name,
    validate_observation,
    validate_percentage,
    validate_positive_int,
    validate_sql_identifier,
)


@pytest.mark.parametrize("name", ["data_tbl", "_hidden", "T1"])
def test_valid_identifiers(name):
    validate_sql_identifier(name)


@pytest.mark.parametrize("name", ["", "1table", "drop table", "a;b", "x" * 129])
def test_invalid_identifiers(name):
    with pytest.raises(ValidationError):
        validate_sql_identifier(name)


def test_split_qualified_name():
    assert split_qualified_name("data_tbl") == (None, "data_tbl")
    assert split_qualified_name("main.data_tbl") == ("main", "data_tbl")
    with pytest.raises(ValidationError):
        split_qualified_name("a.b.c")


def test_quote_sql_identifier():
    assert quote_sql_identifier('we"ird') == '"we""ird"'


def test_validate_positive_int():
    assert validate_positive_int(4, "n", minimum=4) == 4
    with pytest.raises(ValidationError):
        validate_positive_int(True, "n")
    with pytest.raises(ValidationError):
        validate_positive_int(3, "n", minimum=4)


def test_validate_percentage():
    assert validate_percentage(5, "pct") == 5.0
    with pytest.raises(ValidationError):
        validate_percentage(float("nan"), "pct")
    with pytest.raises(ValidationError):
        validate_percentage(-1, "pct")


def test_validate_observation_converts_numbers():
    assert validate_observation("1000", 2) == (1000.0, 2.0)
    assert validate_observation(0, 0.5) == (0.0, 0.5)


@pytest.mark.parametrize(
    "size, time_ms",
    [
        ("lots", 1.0),
        (None, 1.0),
        (-1, 1.0),
        (float("nan"), 1.0),
        (10, 0),
        (10, -2.5),
        (10, float("inf")),
    ],
)
def test_validate_observation_rejects(size, time_ms):
    with pytest.raises(ValidationError):
        validate_observation(size, time_ms)
