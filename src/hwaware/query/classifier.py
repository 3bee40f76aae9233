"""Structural classifier for ML scoring queries."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from hwaware.query.descriptor import (
    Aggregate,
    AggregateOp,
    Filter,
    FilterOp,
    OperationDescriptor,
    OperationKind,
)
from hwaware.query.lexer import Clause, Token, TokenKind, tokenize

logger = logging.getLogger(__name__)


class MalformedQueryError(Exception):
    """Raised internally when a recognised shape is missing expected tokens."""


@dataclass
class _ScanState:
    kind: OperationKind | None = None
    data_table: str | None = None
    model_table: str | None = None
    model_columns: tuple[str, ...] = ()
    data_columns: tuple[str, ...] = ()
    id_column: str | None = None
    output_table: str | None = None
    filter: Filter | None = None
    aggregate: Aggregate | None = None

    def build(self) -> OperationDescriptor:
        if self.kind is None:
            return OperationDescriptor.unsupported()
        if self.kind.is_regression and self.data_table is None:
            raise MalformedQueryError("regression query has no FROM model, data pair")
        return OperationDescriptor(
            kind=self.kind,
            data_table=self.data_table,
            model_table=self.model_table,
            model_columns=self.model_columns,
            data_columns=self.data_columns,
            id_column=self.id_column,
            output_table=self.output_table,
            filter=self.filter,
            aggregate=self.aggregate,
        )


class QueryShapeClassifier:
    """Turns raw query text into an OperationDescriptor.

    The scan keeps a clause cursor: the most recent clause keyword seen.
    Tokens that are not clause keywords keep the previous cursor, so a
    nested ``SELECT`` inside ``FROM (...)`` is inspected like the outer one.
    Anything that does not match the narrow family of scoring shapes
    classifies as UNSUPPORTED; classification never raises.
    """

    ML_FUNCTIONS: dict[str, OperationKind] = {
        "madlib.linregr_predict": OperationKind.LINEAR_REGRESSION,
        "madlib.logregr_predict_prob": OperationKind.LOGISTIC_REGRESSION,
        "madlib.svm_predict": OperationKind.SVM,
        "madlib.mlp_predict": OperationKind.MLP,
        "madlib.tree_predict": OperationKind.DECISION_TREE,
        "madlib.forest_predict": OperationKind.FOREST,
    }

    AGGREGATES: dict[str, AggregateOp] = {op.value: op for op in AggregateOp}

    # Placeholder accepted in place of an explicit column array.
    COEF_PLACEHOLDER = "coef"

    def __init__(self, max_iterations: int = 20):
        self.max_iterations = max_iterations

    def classify(self, text: str) -> OperationDescriptor:
        """Classify a single SQL statement."""
        tokens = tokenize(text)
        if not tokens:
            return OperationDescriptor.unsupported()

        if any(t.clause in (Clause.GROUP_BY, Clause.ORDER_BY) for t in tokens):
            logger.debug("GROUP BY / ORDER BY queries are never offloaded")
            return OperationDescriptor.unsupported()

        try:
            descriptor = self._scan(tokens)
        except MalformedQueryError as e:
            logger.debug(f"Malformed scoring query: {e}")
            return OperationDescriptor.unsupported()

        logger.debug(f"Classified query as {descriptor.kind.value}")
        return descriptor

    def _scan(self, tokens: list[Token]) -> OperationDescriptor:
        state = _ScanState()
        cursor: Clause | None = None
        i = 0
        steps = 0

        while i < len(tokens):
            clause = tokens[i].clause
            if clause is not None:
                cursor = clause

            if cursor is None:
                # The statement does not start with a clause keyword
                return OperationDescriptor.unsupported()

            if cursor is Clause.SELECT:
                next_i = self._scan_select(tokens, i, state)
                if next_i is None:
                    return OperationDescriptor.unsupported()
                i = next_i
            elif cursor is Clause.FROM:
                i = self._scan_from(tokens, i, state)
            elif cursor is Clause.WHERE:
                i = self._scan_where(tokens, i, state)
            else:
                i += 1

            steps += 1
            if steps > self.max_iterations:
                break

        return state.build()

    def _scan_select(self, tokens: list[Token], i: int, state: _ScanState) -> int | None:
        name = _token(tokens, i + 1).text

        kind = self.ML_FUNCTIONS.get(name.lower())
        if kind is not None:
            state.kind = kind
            if kind.is_regression:
                j, model_columns = self._read_columns(tokens, i + 2)
                if model_columns is not None:
                    state.model_columns = model_columns
                j, data_columns = self._read_columns(tokens, j)
                if data_columns is not None:
                    state.data_columns = data_columns
                return j
            if kind in (OperationKind.SVM, OperationKind.MLP):
                state.model_table = _token(tokens, i + 2).text
                state.data_table = _token(tokens, i + 3).text
                state.id_column = _token(tokens, i + 4).text
                state.output_table = _token(tokens, i + 5).text
                # mlp_predict takes one extra argument
                return i + 7 if kind is OperationKind.MLP else i + 6
            if kind is OperationKind.DECISION_TREE:
                state.model_table = _token(tokens, i + 2).text
                state.data_table = _token(tokens, i + 3).text
                state.output_table = _token(tokens, i + 4).text
                return i + 6
            return i + 1

        aggregate_op = self.AGGREGATES.get(name.upper())
        if aggregate_op is not None:
            table, column = _split_operand(_token(tokens, i + 2).text)
            state.aggregate = Aggregate(op=aggregate_op, table=table, column=column)
            return i + 3

        return None

    def _read_columns(
        self, tokens: list[Token], j: int
    ) -> tuple[int, tuple[str, ...] | None]:
        """Read an ``ARRAY[...]`` column list or the ``coef`` placeholder."""
        if j >= len(tokens):
            return j, None

        head = tokens[j]
        if head.kind is TokenKind.WORD and head.text.upper() == "ARRAY":
            k = j + 1
            while k < len(tokens) and not _ends_array(tokens[k]):
                k += 1
            return k, tuple(t.text for t in tokens[j + 1 : k])

        if head.text == self.COEF_PLACEHOLDER:
            return j + 1, (head.text,)

        return j, None

    def _scan_from(self, tokens: list[Token], i: int, state: _ScanState) -> int:
        if state.kind is not None and state.kind.is_regression:
            state.model_table = _token(tokens, i + 1).text
            state.data_table = _token(tokens, i + 2).text
            return i + 3
        return i + 1

    def _scan_where(self, tokens: list[Token], i: int, state: _ScanState) -> int:
        table, column = _split_operand(_token(tokens, i + 1).text)

        symbol = _token(tokens, i + 2).text
        op = FilterOp.from_symbol(symbol)
        if op is None:
            raise MalformedQueryError(f"unknown comparator '{symbol}'")

        literal = _token(tokens, i + 3).text
        try:
            value = float(literal)
        except ValueError as e:
            raise MalformedQueryError(f"filter literal '{literal}' is not numeric") from e

        state.filter = Filter(table=table, column=column, op=op, value=value)
        return i + 4


def _token(tokens: list[Token], index: int) -> Token:
    if index >= len(tokens):
        raise MalformedQueryError("query ended early")
    return tokens[index]


def _ends_array(token: Token) -> bool:
    return token.clause is Clause.FROM or (
        token.kind is TokenKind.WORD and token.text.upper() == "ARRAY"
    )


def _split_operand(operand: str) -> tuple[str, str]:
    table, _, column = operand.partition(".")
    if not table or not column:
        raise MalformedQueryError(f"expected table.column, got '{operand}'")
    return table, column
