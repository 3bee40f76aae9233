"""Decision engine: CPU versus accelerator admission for scoring queries."""

from __future__ import annotations

import logging
import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum

from hwaware.core.config import PredictorConfig
from hwaware.database.base import TableStorage
from hwaware.database.sizer import WorkloadSizer
from hwaware.error_handling import (
    ClassificationMismatchError,
    ErrorHandler,
    HwAwareError,
    InsufficientHistoryError,
    StorageError,
    TableNotFoundError,
)
from hwaware.hardware.cost_model import AcceleratorCostModel
from hwaware.hardware.profiles import DatasetProfile, load_device_profile
from hwaware.ml.model_state import ModelState
from hwaware.query.classifier import QueryShapeClassifier
from hwaware.query.descriptor import OperationDescriptor, QueryKind
from hwaware.utils.validation import ValidationError, validate_observation

logger = logging.getLogger(__name__)


class Choice(Enum):
    CPU = "cpu"
    ACCELERATOR = "accelerator"


class UnsupportedReason(Enum):
    """Why a query got no CPU/accelerator comparison."""

    UNRECOGNIZED_QUERY = "unrecognized_query"
    NO_COST_PROFILE = "no_cost_profile"
    TABLE_NOT_FOUND = "table_not_found"
    STORAGE_ERROR = "storage_error"
    INSUFFICIENT_HISTORY = "insufficient_history"


@dataclass(frozen=True)
class Decision:
    """Both predictions for one query and the faster backend."""

    query_kind: QueryKind
    descriptor: OperationDescriptor
    rows: float
    pages: float
    dataset_profile: DatasetProfile
    predicted_cpu_ms: float
    predicted_hw_ms: float
    choice: Choice


@dataclass(frozen=True)
class Unsupported:
    """A query the engine cannot price; it always runs on the CPU."""

    reason: UnsupportedReason
    descriptor: OperationDescriptor | None = None
    detail: str = ""

    @property
    def choice(self) -> Choice:
        return Choice.CPU


class DecisionEngine:
    """Classifies a query, sizes its input and compares both cost models.

    The decision is advisory. Recoverable failures are logged through the
    ErrorHandler and reported as Unsupported, so ``decide`` never raises for
    bad queries, missing tables or thin history.
    """

    def __init__(
        self,
        storage: TableStorage,
        model_state: ModelState | None = None,
        cost_model: AcceleratorCostModel | None = None,
        config: PredictorConfig | None = None,
        classifier: QueryShapeClassifier | None = None,
    ):
        if config is None:
            config = model_state.config if model_state else PredictorConfig()
        self.config = config
        self.storage = storage
        self.classifier = classifier or QueryShapeClassifier(
            max_iterations=config.max_classifier_iterations
        )
        self.sizer = WorkloadSizer(storage, page_size=config.page_size)
        self.model_state = model_state or ModelState.from_config(config)
        self.cost_model = cost_model or AcceleratorCostModel(
            load_device_profile(config.device)
        )
        self.error_handler = ErrorHandler()

    @property
    def error_history(self) -> list[HwAwareError]:
        return self.error_handler.error_history

    def decide(self, query_text: str) -> Decision | Unsupported:
        """Choose the faster backend for a query. Ties favour the CPU."""
        descriptor = self.classifier.classify(query_text)
        if not descriptor.supported:
            return Unsupported(
                UnsupportedReason.UNRECOGNIZED_QUERY,
                descriptor,
                "not an offloadable ML scoring query",
            )

        try:
            kind = QueryKind.from_descriptor(descriptor)
        except ClassificationMismatchError as e:
            self.error_handler.handle_error(e)
            return Unsupported(UnsupportedReason.NO_COST_PROFILE, descriptor, e.message)

        try:
            size = self.sizer.size(descriptor.data_table)
        except TableNotFoundError as e:
            self.error_handler.handle_error(e)
            return Unsupported(UnsupportedReason.TABLE_NOT_FOUND, descriptor, e.message)
        except StorageError as e:
            self.error_handler.handle_error(e)
            return Unsupported(UnsupportedReason.STORAGE_ERROR, descriptor, e.message)

        try:
            cpu_ms = self.model_state.estimate(kind, size.rows_thousands)
        except InsufficientHistoryError as e:
            self.error_handler.handle_error(e)
            return Unsupported(
                UnsupportedReason.INSUFFICIENT_HISTORY, descriptor, e.message
            )

        profile = DatasetProfile.from_feature_count(len(descriptor.data_columns))
        hw_ms = self.cost_model.hw_time(kind, profile, size.pages)
        choice = Choice.CPU if cpu_ms <= hw_ms else Choice.ACCELERATOR

        logger.info(
            f"Q{kind.number} ({kind.value}) on {descriptor.data_table}: "
            f"cpu={cpu_ms:.3f} ms, accelerator={hw_ms:.3f} ms -> {choice.value}"
        )
        return Decision(
            query_kind=kind,
            descriptor=descriptor,
            rows=size.rows,
            pages=size.pages,
            dataset_profile=profile,
            predicted_cpu_ms=cpu_ms,
            predicted_hw_ms=hw_ms,
            choice=choice,
        )

    def classify_and_decide(self, query_text: str) -> Decision | Unsupported:
        return self.decide(query_text)

    def record_outcome(self, kind: QueryKind, rows: float, elapsed_ms: float) -> bool:
        """Feed an observed CPU execution back into the kind's cost model.

        Args:
            kind: Query kind the execution belongs to
            rows: Input rows the query actually processed
            elapsed_ms: Observed wall-clock time in ms

        Returns:
            True if the observation was recorded
        """
        try:
            rows, elapsed_ms = validate_observation(rows, elapsed_ms)
        except ValidationError as e:
            self.error_handler.handle_error(e)
            return False

        self.model_state.record(kind, rows / 1000, elapsed_ms)
        logger.debug(f"Recorded {kind.value}: {rows:.0f} rows in {elapsed_ms:.3f} ms")
        return True

    @contextmanager
    def observe(self, query_text: str) -> Iterator[Decision | Unsupported]:
        """Decide, time the wrapped execution and record it on success.

        Example:
            with engine.observe(sql) as decision:
                run(sql)
        """
        decision = self.decide(query_text)
        start = time.perf_counter()
        yield decision
        elapsed_ms = (time.perf_counter() - start) * 1000
        if isinstance(decision, Decision):
            self.record_outcome(decision.query_kind, decision.rows, elapsed_ms)
