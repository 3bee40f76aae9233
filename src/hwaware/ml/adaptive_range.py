"""Adaptive three-bucket range maintenance for the CPU cost model.

Each query kind keeps its observed (size, time) samples in three buckets,
Small, Medium and Large, with one cubic fit per bucket. Adjacent buckets
share exactly one boundary sample. After every observation the boundaries
are moved by a local search that trades samples between neighbours while
the combined relative fit error keeps improving.
"""

from __future__ import annotations

import bisect
import logging
from collections.abc import Callable, Iterable, Iterator, Sequence
from dataclasses import dataclass
from enum import Enum

from hwaware.core.config import PredictorConfig
from hwaware.error_handling import (
    ConfigurationError,
    FitError,
    InsufficientHistoryError,
)
from hwaware.ml.regression import Fit, RegressionFitter, Sample
from hwaware.utils.validation import validate_observation

logger = logging.getLogger(__name__)


class BucketName(Enum):
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"


class MaintainerState(Enum):
    """Lifecycle of a per-kind cost model."""

    EMPTY = "empty"
    SEEDED = "seeded"
    STABLE = "stable"


class ShiftDirection(Enum):
    SHIFT_LEFT = "shift_left"
    SHIFT_RIGHT = "shift_right"


class Bucket:
    """Samples of one size regime, kept sorted by size."""

    def __init__(self, name: BucketName, samples: Iterable[Sample] = ()):
        self.name = name
        self.samples: list[Sample] = list(samples)

    def __len__(self) -> int:
        return len(self.samples)

    def __iter__(self) -> Iterator[Sample]:
        return iter(self.samples)

    def __getitem__(self, index: int) -> Sample:
        return self.samples[index]

    @property
    def first(self) -> Sample:
        return self.samples[0]

    @property
    def last(self) -> Sample:
        return self.samples[-1]

    @property
    def sizes(self) -> list[float]:
        return [s.size for s in self.samples]

    def copy(self) -> Bucket:
        return Bucket(self.name, self.samples)

    def insert(self, sample: Sample) -> tuple[int, bool]:
        """Insert in size order, averaging the time on an exact size match.

        Returns:
            (index, merged) where merged is True if an existing sample was
            averaged instead of the bucket growing
        """
        sizes = self.sizes
        index = bisect.bisect_left(sizes, sample.size)
        if index < len(sizes) and sizes[index] == sample.size:
            existing = self.samples[index]
            self.samples[index] = Sample(
                existing.size, (existing.time_ms + sample.time_ms) / 2
            )
            return index, True
        self.samples.insert(index, sample)
        return index, False

    def __repr__(self) -> str:
        return f"Bucket({self.name.value}, n={len(self)})"


def _shift_left(left: Bucket, right: Bucket) -> bool:
    """Move the shared boundary one sample to the right."""
    if len(right) < 2:
        return False
    left.samples.append(right.samples[1])
    right.samples.pop(0)
    return True


def _shift_right(left: Bucket, right: Bucket) -> bool:
    """Move the shared boundary one sample to the left."""
    if len(left) < 2:
        return False
    right.samples.insert(0, left.samples[-2])
    left.samples.pop()
    return True


@dataclass(frozen=True)
class PairFit:
    left: Fit
    right: Fit

    @property
    def total_error(self) -> float:
        return self.left.mean_rel_error + self.right.mean_rel_error


@dataclass(frozen=True)
class AdjustmentResult:
    """Outcome of one boundary adjustment between adjacent buckets."""

    left: Bucket
    right: Bucket
    fits: PairFit
    direction: ShiftDirection
    moves: int


class BoundaryAdjuster:
    """Local search over the boundary between two adjacent buckets."""

    def __init__(
        self,
        fitter: RegressionFitter,
        good_enough_error_pct: float = 5.0,
        min_bucket_samples: int = 4,
    ):
        self.fitter = fitter
        self.good_enough_error_pct = good_enough_error_pct
        self.min_bucket_samples = min_bucket_samples

    def fit_pair(self, left: Bucket, right: Bucket, include_left_first: bool) -> PairFit:
        # The right bucket's first sample belongs to the left fit's range.
        return PairFit(
            left=self.fitter.fit(left.samples, include_first=include_left_first),
            right=self.fitter.fit(right.samples, include_first=False),
        )

    def adjust(
        self, left: Bucket, right: Bucket, include_left_first: bool
    ) -> AdjustmentResult:
        """Search both directions and keep the one with lower combined error.

        The input buckets are not modified.

        Raises:
            FitError: If the current buckets cannot be fitted
        """
        baseline = self.fit_pair(left, right, include_left_first)

        shifted_left = self._search(
            left, right, baseline, include_left_first, ShiftDirection.SHIFT_LEFT
        )
        shifted_right = self._search(
            left, right, baseline, include_left_first, ShiftDirection.SHIFT_RIGHT
        )

        if shifted_left.fits.total_error < shifted_right.fits.total_error:
            return shifted_left
        return shifted_right

    def _search(
        self,
        left: Bucket,
        right: Bucket,
        baseline: PairFit,
        include_left_first: bool,
        direction: ShiftDirection,
    ) -> AdjustmentResult:
        left = left.copy()
        right = right.copy()

        move: Callable[[Bucket, Bucket], bool]
        undo: Callable[[Bucket, Bucket], bool]
        if direction is ShiftDirection.SHIFT_LEFT:
            move, undo, max_steps = _shift_left, _shift_right, len(right)
        else:
            move, undo, max_steps = _shift_right, _shift_left, len(left)

        best = baseline
        moves = 0
        for _ in range(max_steps):
            if not move(left, right):
                break

            try:
                candidate = self.fit_pair(left, right, include_left_first)
            except FitError as e:
                logger.debug(f"{direction.value}: candidate not fittable ({e})")
                undo(left, right)
                break

            if not self._improves(best, candidate):
                undo(left, right)
                break

            previous, best = best, candidate
            moves += 1

            if self._should_stop(best, left, right):
                undo(left, right)
                best = previous
                moves -= 1
                break

        logger.debug(
            f"{direction.value}: {moves} moves, errors "
            f"{best.left.mean_rel_error:.3f}% / {best.right.mean_rel_error:.3f}%"
        )
        return AdjustmentResult(
            left=left, right=right, fits=best, direction=direction, moves=moves
        )

    @staticmethod
    def _improves(best: PairFit, candidate: PairFit) -> bool:
        """Accept when both sides improve, or one improves more than the other worsens."""
        left_new = candidate.left.mean_rel_error
        right_new = candidate.right.mean_rel_error
        left_best = best.left.mean_rel_error
        right_best = best.right.mean_rel_error

        if left_new < left_best and right_new < right_best:
            return True
        if left_new > left_best and right_new > right_best:
            return False
        if left_new < left_best and right_new > right_best:
            return (left_best - left_new) > (right_new - right_best)
        return (right_best - right_new) > (left_new - left_best)

    def _should_stop(self, best: PairFit, left: Bucket, right: Bucket) -> bool:
        return (
            best.left.mean_rel_error < self.good_enough_error_pct
            or best.right.mean_rel_error < self.good_enough_error_pct
            or len(left) < self.min_bucket_samples
            or len(right) < self.min_bucket_samples
        )


class AdaptiveRangeMaintainer:
    """Owns the buckets and fits of one query kind."""

    def __init__(
        self,
        label: str = "model",
        config: PredictorConfig | None = None,
        fitter: RegressionFitter | None = None,
    ):
        self.label = label
        self.config = config or PredictorConfig()
        self.fitter = fitter or RegressionFitter()
        self.adjuster = BoundaryAdjuster(
            self.fitter,
            good_enough_error_pct=self.config.good_enough_error_pct,
            min_bucket_samples=self.config.min_bucket_samples,
        )
        self.state = MaintainerState.EMPTY
        self.small = Bucket(BucketName.SMALL)
        self.medium = Bucket(BucketName.MEDIUM)
        self.large = Bucket(BucketName.LARGE)
        self.fits: dict[BucketName, Fit] = {}
        self._pool = Bucket(BucketName.SMALL)

    @property
    def buckets(self) -> tuple[Bucket, Bucket, Bucket]:
        return self.small, self.medium, self.large

    @property
    def pending_samples(self) -> int:
        """Observations waiting for the first bucket split."""
        return len(self._pool)

    @property
    def ready(self) -> bool:
        """Whether every bucket holds enough samples to predict."""
        return (
            self.state is not MaintainerState.EMPTY
            and all(len(b) >= self.config.min_samples_to_predict for b in self.buckets)
            and all(b.name in self.fits for b in self.buckets)
        )

    def seed(
        self,
        small: Sequence[Sample],
        medium: Sequence[Sample],
        large: Sequence[Sample],
    ) -> None:
        """Install initial buckets and balance their boundaries once.

        Raises:
            ConfigurationError: If the buckets are unsorted or do not share
                their boundary samples
        """
        _check_buckets(small, medium, large)
        self.small = Bucket(BucketName.SMALL, small)
        self.medium = Bucket(BucketName.MEDIUM, medium)
        self.large = Bucket(BucketName.LARGE, large)
        self.fits = {}
        self._pool = Bucket(BucketName.SMALL)
        self._rebalance()
        self.state = MaintainerState.SEEDED
        logger.info(
            f"Seeded {self.label}: "
            + ", ".join(f"{b.name.value}={len(b)}" for b in self.buckets)
        )

    def bucket_for(self, size: float) -> Bucket:
        """Return the bucket whose range owns ``size``."""
        if size <= self.medium.first.size:
            return self.small
        if size <= self.large.first.size:
            return self.medium
        return self.large

    def add_observation(self, size: float, time_ms: float) -> None:
        """Record one observed execution and rebalance the boundaries.

        Raises:
            ValidationError: If the size is negative or the time is not positive
        """
        sample = Sample(*validate_observation(size, time_ms))
        size = sample.size

        if self.state is MaintainerState.EMPTY:
            self._pool.insert(sample)
            if len(self._pool) >= self.config.bootstrap_samples:
                self._bootstrap()
            return

        bucket = self.bucket_for(size)
        index, merged = bucket.insert(sample)
        if merged:
            self._mirror_boundary(bucket, index)

        self.state = MaintainerState.STABLE
        self._rebalance()

    def estimate(self, size: float) -> float:
        """Predict CPU time in ms for a size in thousands of rows.

        Raises:
            InsufficientHistoryError: If the model cannot predict yet
        """
        if not self.ready:
            raise InsufficientHistoryError(
                f"{self.label} needs {self.config.min_samples_to_predict} samples "
                "in every bucket before it can predict"
            )
        bucket = self.bucket_for(size)
        return self.fits[bucket.name].predict(size)

    def _mirror_boundary(self, bucket: Bucket, index: int) -> None:
        """Copy an averaged boundary sample onto its twin in the neighbour bucket."""
        sample = bucket[index]
        order = self.buckets
        position = order.index(bucket)
        if index == len(bucket) - 1 and position < 2:
            neighbour = order[position + 1]
            if neighbour.first.size == sample.size:
                neighbour.samples[0] = sample
        if index == 0 and position > 0:
            neighbour = order[position - 1]
            if neighbour.last.size == sample.size:
                neighbour.samples[-1] = sample

    def _bootstrap(self) -> None:
        samples = self._pool.samples
        n = len(samples)
        a, b = n // 3, 2 * n // 3
        logger.info(f"Bootstrapping {self.label} from {n} observations")
        self.seed(samples[: a + 1], samples[a : b + 1], samples[b:])
        self.state = MaintainerState.STABLE

    def _rebalance(self) -> None:
        self._adjust_pair(self.small, self.medium, include_left_first=True)
        self._adjust_pair(self.medium, self.large, include_left_first=False)

    def _adjust_pair(self, left: Bucket, right: Bucket, include_left_first: bool) -> None:
        try:
            result = self.adjuster.adjust(left, right, include_left_first)
        except FitError as e:
            logger.warning(
                f"Skipping {left.name.value}/{right.name.value} adjustment "
                f"for {self.label}: {e}"
            )
            self._fill_missing_fit(left, include_left_first)
            self._fill_missing_fit(right, include_first=False)
            return

        left.samples[:] = result.left.samples
        right.samples[:] = result.right.samples
        self.fits[left.name] = result.fits.left
        self.fits[right.name] = result.fits.right
        if result.moves:
            logger.debug(
                f"{self.label}: moved {left.name.value}/{right.name.value} boundary "
                f"{result.moves} step(s) by {result.direction.value}"
            )

    def _fill_missing_fit(self, bucket: Bucket, include_first: bool) -> None:
        # Previous fits are kept; only a bucket that never had one is refitted.
        if bucket.name in self.fits:
            return
        try:
            self.fits[bucket.name] = self.fitter.fit(bucket.samples, include_first)
        except FitError as e:
            logger.debug(f"No fit yet for {self.label} {bucket.name.value}: {e}")


def _check_buckets(*buckets: Sequence[Sample]) -> None:
    for bucket in buckets:
        if not bucket:
            raise ConfigurationError("Seed buckets must not be empty")
        sizes = [s.size for s in bucket]
        if sizes != sorted(sizes):
            raise ConfigurationError("Seed bucket sizes must be ascending")
    for left, right in zip(buckets, buckets[1:]):
        if left[-1].size != right[0].size:
            raise ConfigurationError(
                f"Adjacent seed buckets must share a boundary sample "
                f"({left[-1].size} != {right[0].size})"
            )
