"""Per-kind CPU cost models owned by the decision engine."""

from __future__ import annotations

import logging
import threading

import pandas as pd

from hwaware.core.config import PredictorConfig
from hwaware.ml.adaptive_range import AdaptiveRangeMaintainer
from hwaware.ml.seed import SeedDataset, load_seed_dataset
from hwaware.query.descriptor import QueryKind

logger = logging.getLogger(__name__)


class ModelState:
    """One AdaptiveRangeMaintainer per query kind, guarded by a lock."""

    def __init__(self, config: PredictorConfig | None = None):
        self.config = config or PredictorConfig()
        self._lock = threading.Lock()
        self._maintainers = {
            kind: AdaptiveRangeMaintainer(label=kind.value, config=self.config)
            for kind in QueryKind
        }

    @classmethod
    def from_config(cls, config: PredictorConfig | None = None) -> ModelState:
        """Seeded state for the configured seed version, or empty if none."""
        config = config or PredictorConfig()
        state = cls(config)
        if config.seed_version:
            state.seed(load_seed_dataset(config.seed_version))
        else:
            logger.info("Starting with empty cost models")
        return state

    def seed(self, dataset: SeedDataset) -> None:
        with self._lock:
            for kind, maintainer in self._maintainers.items():
                maintainer.seed(*dataset.samples(kind))
        logger.info(f"Loaded seed dataset {dataset.version}")

    def maintainer(self, kind: QueryKind) -> AdaptiveRangeMaintainer:
        return self._maintainers[kind]

    def ready(self, kind: QueryKind) -> bool:
        with self._lock:
            return self._maintainers[kind].ready

    def estimate(self, kind: QueryKind, size: float) -> float:
        """Predicted CPU time in ms for ``size`` thousand rows.

        Raises:
            InsufficientHistoryError: If the kind cannot predict yet
        """
        with self._lock:
            return self._maintainers[kind].estimate(size)

    def record(self, kind: QueryKind, size: float, time_ms: float) -> None:
        """Add one observation for ``kind``.

        Raises:
            ValidationError: If the size is negative or the time is not positive
        """
        with self._lock:
            self._maintainers[kind].add_observation(size, time_ms)

    def summary(self) -> pd.DataFrame:
        """One row per (kind, bucket) describing samples and fit quality."""
        records = []
        with self._lock:
            for kind, maintainer in self._maintainers.items():
                for bucket in maintainer.buckets:
                    fit = maintainer.fits.get(bucket.name)
                    records.append(
                        {
                            "kind": kind.value,
                            "query": f"Q{kind.number}",
                            "state": maintainer.state.value,
                            "bucket": bucket.name.value,
                            "samples": len(bucket),
                            "min_size": bucket.first.size if len(bucket) else None,
                            "max_size": bucket.last.size if len(bucket) else None,
                            "mean_rel_error": fit.mean_rel_error if fit else None,
                            "mean_abs_error": fit.mean_abs_error if fit else None,
                        }
                    )
        return pd.DataFrame.from_records(records)
