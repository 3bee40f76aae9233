"""Tests for the query shape classifier."""

import pytest

from hwaware.error_handling import ClassificationMismatchError
from hwaware.query import (
    AggregateOp,
    Filter,
    FilterOp,
    OperationDescriptor,
    OperationKind,
    QueryKind,
    QueryShapeClassifier,
)


@pytest.fixture
def classifier():
    return QueryShapeClassifier()


def test_svm_with_filter(classifier):
    descriptor = classifier.classify(
        "SELECT madlib.svm_predict(model_tbl, data_tbl, id_col, out_tbl) "
        "FROM x WHERE t.c > 3.5"
    )

    assert descriptor.kind is OperationKind.SVM
    assert descriptor.model_table == "model_tbl"
    assert descriptor.data_table == "data_tbl"
    assert descriptor.id_column == "id_col"
    assert descriptor.output_table == "out_tbl"
    assert descriptor.filter == Filter(table="t", column="c", op=FilterOp.LARGER, value=3.5)
    assert descriptor.aggregate is None


def test_classification_is_deterministic(classifier):
    sql = "SELECT madlib.svm_predict(m, d, id, o) FROM d WHERE d.x <= 2"
    assert classifier.classify(sql) == classifier.classify(sql)


def test_mlp_skips_extra_argument(classifier):
    descriptor = classifier.classify(
        "SELECT madlib.mlp_predict('mlp_model', 'data_tbl', 'id', 'out_tbl', 'response') "
        "FROM data_tbl WHERE data_tbl.age >= 30"
    )

    assert descriptor.kind is OperationKind.MLP
    assert descriptor.data_table == "data_tbl"
    assert descriptor.output_table == "out_tbl"
    assert descriptor.filter.op is FilterOp.LARGER_SAME
    assert QueryKind.from_descriptor(descriptor) is QueryKind.MLP


def test_decision_tree(classifier):
    descriptor = classifier.classify(
        "SELECT madlib.tree_predict(tree_model, data_tbl, out_tbl, 'response') FROM data_tbl"
    )

    assert descriptor.kind is OperationKind.DECISION_TREE
    assert descriptor.model_table == "tree_model"
    assert descriptor.data_table == "data_tbl"
    assert descriptor.output_table == "out_tbl"
    assert descriptor.id_column is None
    assert QueryKind.from_descriptor(descriptor) is QueryKind.TREE


def test_linear_regression_reads_column_arrays(classifier):
    descriptor = classifier.classify(
        "SELECT madlib.linregr_predict(ARRAY[coef], ARRAY[1, x1, x2]) "
        "FROM model_tbl, data_tbl WHERE data_tbl.x1 > 0.5;"
    )

    assert descriptor.kind is OperationKind.LINEAR_REGRESSION
    assert descriptor.model_columns == ("coef",)
    assert descriptor.data_columns == ("1", "x1", "x2")
    assert descriptor.model_table == "model_tbl"
    assert descriptor.data_table == "data_tbl"
    assert QueryKind.from_descriptor(descriptor) is QueryKind.LINREGR_FILTER


def test_aggregate_over_nested_regression(classifier):
    """A nested SELECT inside FROM is inspected like the outer one."""
    descriptor = classifier.classify(
        "SELECT AVG(t.prob) FROM (SELECT madlib.logregr_predict_prob(coef, "
        "ARRAY[1, a, b]) FROM model_tbl, data_tbl) t"
    )

    assert descriptor.kind is OperationKind.LOGISTIC_REGRESSION
    assert descriptor.aggregate.op is AggregateOp.AVG
    assert descriptor.aggregate.table == "t"
    assert descriptor.aggregate.column == "prob"
    assert descriptor.model_columns == ("coef",)
    assert descriptor.data_columns == ("1", "a", "b")
    assert descriptor.data_table == "data_tbl"
    assert QueryKind.from_descriptor(descriptor) is QueryKind.LOGREGR_AGGREGATE


def test_names_are_case_insensitive(classifier):
    descriptor = classifier.classify("select MADLIB.SVM_PREDICT(m, d, id, o) from d")
    assert descriptor.kind is OperationKind.SVM
    assert descriptor.data_table == "d"


def test_equality_comparators(classifier):
    for symbol in ("=", "=="):
        descriptor = classifier.classify(
            f"SELECT madlib.svm_predict(m, d, id, o) FROM d WHERE d.flag {symbol} 1"
        )
        assert descriptor.filter.op is FilterOp.SAME


@pytest.mark.parametrize(
    "sql",
    [
        "SELECT madlib.svm_predict(m, d, id, o) FROM d GROUP BY d.id",
        "SELECT madlib.svm_predict(m, d, id, o) FROM d order by d.id",
        "SELECT * FROM data_tbl",
        "EXPLAIN SELECT madlib.svm_predict(m, d, id, o) FROM d",
        "INSERT INTO t VALUES (1)",
        "",
    ],
)
def test_unsupported_shapes(classifier, sql):
    assert classifier.classify(sql) == OperationDescriptor.unsupported()


@pytest.mark.parametrize(
    "sql",
    [
        # Missing arguments
        "SELECT madlib.svm_predict(m, d)",
        # Unknown comparator
        "SELECT madlib.svm_predict(m, d, id, o) FROM d WHERE d.x != 3",
        # Non-numeric literal
        "SELECT madlib.svm_predict(m, d, id, o) FROM d WHERE d.x > abc",
        # Operand without a table qualifier
        "SELECT madlib.svm_predict(m, d, id, o) FROM d WHERE x > 3",
        # Truncated filter
        "SELECT madlib.svm_predict(m, d, id, o) FROM d WHERE d.x >",
        # Regression that never reaches its FROM model, data pair
        "SELECT madlib.linregr_predict(ARRAY[coef], ARRAY[1, x])",
    ],
)
def test_malformed_queries_never_raise(classifier, sql):
    assert not classifier.classify(sql).supported


def test_forest_is_recognised_without_cost_model(classifier):
    assert classifier.classify(
        "SELECT madlib.forest_predict(forest_model, data_tbl, out_tbl) FROM data_tbl"
    ) == OperationDescriptor.unsupported()

    with pytest.raises(ClassificationMismatchError):
        QueryKind.from_descriptor(OperationDescriptor(kind=OperationKind.FOREST))


def test_iteration_cap_stops_the_scan():
    sql = "SELECT madlib.svm_predict(m, d, id, o) FROM x WHERE t.c > 3.5"

    capped = QueryShapeClassifier(max_iterations=2).classify(sql)
    assert capped.kind is OperationKind.SVM
    assert capped.filter is None

    assert QueryShapeClassifier(max_iterations=4).classify(sql).filter is not None


def test_subclass_can_extend_function_table():
    class CustomClassifier(QueryShapeClassifier):
        ML_FUNCTIONS = {
            **QueryShapeClassifier.ML_FUNCTIONS,
            "public.svm_score": OperationKind.SVM,
        }

    descriptor = CustomClassifier().classify("SELECT public.svm_score(m, d, id, o) FROM d")
    assert descriptor.kind is OperationKind.SVM
