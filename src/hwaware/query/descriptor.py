"""Operation descriptor types produced by the query shape classifier."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from hwaware.error_handling import ClassificationMismatchError


class OperationKind(Enum):
    """ML scoring operations recognised in a SELECT list."""

    LINEAR_REGRESSION = "linear_regression"
    LOGISTIC_REGRESSION = "logistic_regression"
    SVM = "svm"
    MLP = "mlp"
    DECISION_TREE = "decision_tree"
    FOREST = "forest"
    UNSUPPORTED = "unsupported"

    @property
    def is_regression(self) -> bool:
        return self in (
            OperationKind.LINEAR_REGRESSION,
            OperationKind.LOGISTIC_REGRESSION,
        )


class FilterOp(Enum):
    """Comparison used by a WHERE filter."""

    LARGER = ">"
    LARGER_SAME = ">="
    SAME = "="
    SMALLER = "<"
    SMALLER_SAME = "<="

    @classmethod
    def from_symbol(cls, symbol: str) -> FilterOp | None:
        if symbol == "==":
            return cls.SAME
        try:
            return cls(symbol)
        except ValueError:
            return None


class AggregateOp(Enum):
    """Aggregate applied over the scored rows."""

    COUNT = "COUNT"
    MAX = "MAX"
    MIN = "MIN"
    AVG = "AVG"
    SUM = "SUM"


@dataclass(frozen=True)
class Filter:
    table: str
    column: str
    op: FilterOp
    value: float


@dataclass(frozen=True)
class Aggregate:
    op: AggregateOp
    table: str
    column: str


@dataclass(frozen=True)
class OperationDescriptor:
    """Structural shape of one scoring query.

    Column tuples are only populated for regression kinds and may contain
    the bias marker ``"1"``.
    """

    kind: OperationKind
    data_table: str | None = None
    model_table: str | None = None
    model_columns: tuple[str, ...] = ()
    data_columns: tuple[str, ...] = ()
    id_column: str | None = None
    output_table: str | None = None
    filter: Filter | None = None
    aggregate: Aggregate | None = None

    @property
    def supported(self) -> bool:
        return self.kind is not OperationKind.UNSUPPORTED

    @classmethod
    def unsupported(cls) -> OperationDescriptor:
        return cls(kind=OperationKind.UNSUPPORTED)


class QueryKind(Enum):
    """The eleven query shapes that each own a cost model."""

    LINREGR = "linregr"
    LINREGR_FILTER = "linregr_filter"
    LINREGR_AGGREGATE = "linregr_aggregate"
    LINREGR_FILTER_AGGREGATE = "linregr_filter_aggregate"
    LOGREGR = "logregr"
    LOGREGR_FILTER = "logregr_filter"
    LOGREGR_AGGREGATE = "logregr_aggregate"
    LOGREGR_FILTER_AGGREGATE = "logregr_filter_aggregate"
    SVM = "svm"
    MLP = "mlp"
    TREE = "tree"

    @property
    def number(self) -> int:
        """One-based position, Q1 through Q11."""
        return list(QueryKind).index(self) + 1

    @property
    def aggregates_output(self) -> bool:
        """Whether the accelerator returns one fixed-size aggregate buffer."""
        return self in _AGGREGATE_KINDS

    @classmethod
    def from_descriptor(cls, descriptor: OperationDescriptor) -> QueryKind:
        """Map a descriptor onto its query kind.

        Raises:
            ClassificationMismatchError: If no cost model exists for the shape
        """
        has_filter = descriptor.filter is not None
        has_aggregate = descriptor.aggregate is not None

        if descriptor.kind.is_regression:
            family = (
                _LINREGR_KINDS
                if descriptor.kind is OperationKind.LINEAR_REGRESSION
                else _LOGREGR_KINDS
            )
            return family[(has_filter, has_aggregate)]

        simple = {
            OperationKind.SVM: cls.SVM,
            OperationKind.MLP: cls.MLP,
            OperationKind.DECISION_TREE: cls.TREE,
        }
        if descriptor.kind in simple:
            return simple[descriptor.kind]

        raise ClassificationMismatchError(
            f"No cost model for operation '{descriptor.kind.value}'"
        )


_LINREGR_KINDS = {
    (False, False): QueryKind.LINREGR,
    (True, False): QueryKind.LINREGR_FILTER,
    (False, True): QueryKind.LINREGR_AGGREGATE,
    (True, True): QueryKind.LINREGR_FILTER_AGGREGATE,
}

_LOGREGR_KINDS = {
    (False, False): QueryKind.LOGREGR,
    (True, False): QueryKind.LOGREGR_FILTER,
    (False, True): QueryKind.LOGREGR_AGGREGATE,
    (True, True): QueryKind.LOGREGR_FILTER_AGGREGATE,
}

_AGGREGATE_KINDS = frozenset(
    {
        QueryKind.LINREGR_AGGREGATE,
        QueryKind.LINREGR_FILTER_AGGREGATE,
        QueryKind.LOGREGR_AGGREGATE,
        QueryKind.LOGREGR_FILTER_AGGREGATE,
    }
)
