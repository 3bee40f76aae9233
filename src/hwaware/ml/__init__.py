"""Regression cost models for hwaware."""

from hwaware.ml.adaptive_range import (
    AdaptiveRangeMaintainer,
    AdjustmentResult,
    BoundaryAdjuster,
    Bucket,
    BucketName,
    MaintainerState,
    ShiftDirection,
)
from hwaware.ml.linalg import Matrix, polyval, solve_polynomial_fit
from hwaware.ml.model_state import ModelState
from hwaware.ml.regression import Fit, RegressionFitter, Sample
from hwaware.ml.seed import SeedDataset, load_seed_dataset

__all__ = [
    "AdaptiveRangeMaintainer",
    "AdjustmentResult",
    "BoundaryAdjuster",
    "Bucket",
    "BucketName",
    "Fit",
    "MaintainerState",
    "Matrix",
    "ModelState",
    "RegressionFitter",
    "Sample",
    "SeedDataset",
    "ShiftDirection",
    "load_seed_dataset",
    "polyval",
    "solve_polynomial_fit",
]
