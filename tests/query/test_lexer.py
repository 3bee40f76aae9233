"""Tests for the SQL tokenizer."""

from hwaware.query.lexer import Clause, TokenKind, tokenize


def texts(sql: str) -> list[str]:
    return [t.text for t in tokenize(sql)]


def test_punctuation_and_quotes_only_separate():
    """Parentheses, commas, brackets and quotes never become tokens."""
    assert texts("SELECT madlib.svm_predict('m', \"d\", id, [out])") == [
        "SELECT",
        "madlib.svm_predict",
        "m",
        "d",
        "id",
        "out",
    ]


def test_keywords_are_case_insensitive():
    tokens = tokenize("select x from t where t.c > 1")
    clauses = [t.clause for t in tokens if t.kind is TokenKind.KEYWORD]
    assert clauses == [Clause.SELECT, Clause.FROM, Clause.WHERE]
    assert tokens[0].text == "SELECT"


def test_group_by_and_order_by_merge_into_one_token():
    tokens = tokenize("SELECT a FROM t GROUP BY a ORDER  by a")
    keywords = [t.text for t in tokens if t.kind is TokenKind.KEYWORD]
    assert keywords == ["SELECT", "FROM", "GROUP_BY", "ORDER_BY"]


def test_scanning_stops_at_semicolon():
    assert texts("SELECT a FROM t; DROP TABLE t") == ["SELECT", "a", "FROM", "t"]


def test_operators_and_numbers():
    tokens = tokenize("WHERE t.c >= -3.5e2")
    assert [(t.kind, t.text) for t in tokens] == [
        (TokenKind.KEYWORD, "WHERE"),
        (TokenKind.WORD, "t.c"),
        (TokenKind.OPERATOR, ">="),
        (TokenKind.NUMBER, "-3.5e2"),
    ]


def test_token_positions_point_into_source():
    sql = "SELECT  foo"
    tokens = tokenize(sql)
    assert tokens[1].position == sql.index("foo")


def test_empty_text_has_no_tokens():
    assert tokenize("") == []
    assert tokenize("   ;") == []
