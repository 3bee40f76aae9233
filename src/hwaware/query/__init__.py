"""Query shape classification for hwaware."""

from hwaware.query.classifier import QueryShapeClassifier
from hwaware.query.descriptor import (
    Aggregate,
    AggregateOp,
    Filter,
    FilterOp,
    OperationDescriptor,
    OperationKind,
    QueryKind,
)
from hwaware.query.lexer import Clause, Token, TokenKind, tokenize

__all__ = [
    "Aggregate",
    "AggregateOp",
    "Clause",
    "Filter",
    "FilterOp",
    "OperationDescriptor",
    "OperationKind",
    "QueryKind",
    "QueryShapeClassifier",
    "Token",
    "TokenKind",
    "tokenize",
]
