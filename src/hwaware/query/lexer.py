"""Tokenizer for single SQL statements."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum


class TokenKind(Enum):
    """Lexical token categories."""

    KEYWORD = "keyword"
    WORD = "word"
    NUMBER = "number"
    OPERATOR = "operator"


class Clause(Enum):
    """Clause keywords that move the classifier's cursor."""

    SELECT = "SELECT"
    FROM = "FROM"
    WHERE = "WHERE"
    GROUP_BY = "GROUP_BY"
    ORDER_BY = "ORDER_BY"
    AS = "AS"


@dataclass(frozen=True)
class Token:
    """A lexical token with its offset in the source text."""

    kind: TokenKind
    text: str
    position: int

    @property
    def clause(self) -> Clause | None:
        if self.kind is TokenKind.KEYWORD:
            return Clause(self.text)
        return None


_TOKEN_RE = re.compile(
    r"""
    (?P<operator>>=|<=|==|!=|<>|=|<|>)
    |(?P<number>[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)
    |(?P<word>[A-Za-z_][A-Za-z0-9_.$]*|\*)
    |(?P<end>;)
    |(?P<separator>[\s,()\[\]'"]+)
    |(?P<other>.)
    """,
    re.VERBOSE,
)

_SINGLE_KEYWORDS = {"SELECT", "FROM", "WHERE", "AS", "GROUP_BY", "ORDER_BY"}
_PAIRED_KEYWORDS = {("GROUP", "BY"): "GROUP_BY", ("ORDER", "BY"): "ORDER_BY"}


def tokenize(text: str) -> list[Token]:
    """Split one SQL statement into tokens.

    Scanning stops at the first ``;``. Punctuation and quotes only separate
    tokens. ``GROUP BY`` and ``ORDER BY`` become single keyword tokens.
    Unknown characters are kept as one-character words so that the
    classifier can reject them.
    """
    raw: list[Token] = []
    for match in _TOKEN_RE.finditer(text):
        group = match.lastgroup
        value = match.group()
        if group == "end":
            break
        if group == "separator":
            continue
        if group == "operator":
            raw.append(Token(TokenKind.OPERATOR, value, match.start()))
        elif group == "number":
            raw.append(Token(TokenKind.NUMBER, value, match.start()))
        else:
            raw.append(Token(TokenKind.WORD, value, match.start()))

    return _merge_keywords(raw)


def _merge_keywords(tokens: list[Token]) -> list[Token]:
    merged: list[Token] = []
    i = 0
    while i < len(tokens):
        token = tokens[i]
        upper = token.text.upper()
        if token.kind is TokenKind.WORD and i + 1 < len(tokens):
            pair = (upper, tokens[i + 1].text.upper())
            if pair in _PAIRED_KEYWORDS:
                merged.append(
                    Token(TokenKind.KEYWORD, _PAIRED_KEYWORDS[pair], token.position)
                )
                i += 2
                continue
        if token.kind is TokenKind.WORD and upper in _SINGLE_KEYWORDS:
            merged.append(Token(TokenKind.KEYWORD, upper, token.position))
        else:
            merged.append(token)
        i += 1
    return merged
