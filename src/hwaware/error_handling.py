"""Error taxonomy and handling for hwaware."""

import logging
from collections import Counter
from enum import Enum
from typing import Any


class ErrorSeverity(Enum):
    """Error severity levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCategory(Enum):
    """Error categories for better handling."""

    CLASSIFICATION = "classification"
    FITTING = "fitting"
    STORAGE = "storage"
    CONFIGURATION = "configuration"
    VALIDATION = "validation"
    UNKNOWN = "unknown"


class HwAwareError(Exception):
    """Base exception class for hwaware with category and severity."""

    category = ErrorCategory.UNKNOWN
    severity = ErrorSeverity.MEDIUM

    def __init__(
        self,
        message: str,
        category: ErrorCategory | None = None,
        severity: ErrorSeverity | None = None,
        original_error: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        if category is not None:
            self.category = category
        if severity is not None:
            self.severity = severity
        self.original_error = original_error

        if self.category == ErrorCategory.UNKNOWN and original_error:
            self.category = self._classify_error(original_error)

    def _classify_error(self, error: Exception) -> ErrorCategory:
        """Classify a foreign exception by type."""
        if isinstance(error, HwAwareError):
            return error.category
        if isinstance(error, OSError):
            return ErrorCategory.STORAGE
        if isinstance(error, (ValueError, TypeError)):
            return ErrorCategory.VALIDATION
        return ErrorCategory.UNKNOWN

    def get_user_message(self) -> str:
        """Get user-friendly error message."""
        base_message = self.message

        if self.category == ErrorCategory.CLASSIFICATION:
            return (
                f"Unsupported query: {base_message}\n"
                "💡 Only single ML scoring statements can be offloaded."
            )
        elif self.category == ErrorCategory.FITTING:
            return (
                f"Cost model error: {base_message}\n"
                "💡 Record more observations for this query kind."
            )
        elif self.category == ErrorCategory.STORAGE:
            return (
                f"Storage error: {base_message}\n"
                "💡 Check that the table exists in the selected database."
            )
        elif self.category == ErrorCategory.CONFIGURATION:
            return (
                f"Configuration error: {base_message}\n"
                "💡 Check ~/.hwaware/user-settings.json and HWAWARE_* variables."
            )
        elif self.category == ErrorCategory.VALIDATION:
            return (
                f"Validation error: {base_message}\n"
                "💡 Please check your input parameters."
            )
        else:
            return f"Error: {base_message}"


class ClassificationMismatchError(HwAwareError):
    """Raised when a query does not map onto a modelled query kind."""

    category = ErrorCategory.CLASSIFICATION
    severity = ErrorSeverity.LOW


class FitError(HwAwareError):
    """Base class for regression fitting failures."""

    category = ErrorCategory.FITTING
    severity = ErrorSeverity.MEDIUM


class InsufficientPointsError(FitError):
    """Raised when a bucket has fewer samples than polynomial coefficients."""


class SingularMatrixError(FitError):
    """Raised when Gauss-Jordan elimination meets a zero pivot."""


class InsufficientHistoryError(FitError):
    """Raised when a model has too few samples to make a prediction."""

    severity = ErrorSeverity.LOW


class StorageError(HwAwareError):
    """Raised when the storage collaborator cannot answer a sizing request."""

    category = ErrorCategory.STORAGE


class TableNotFoundError(StorageError):
    """Raised when a table cannot be resolved by the storage collaborator."""


class InvalidResourceProfileError(HwAwareError):
    """Raised when the accelerator calibration does not cover a request."""

    category = ErrorCategory.CONFIGURATION
    severity = ErrorSeverity.CRITICAL


class ConfigurationError(HwAwareError):
    """Raised on invalid settings or resource files."""

    category = ErrorCategory.CONFIGURATION
    severity = ErrorSeverity.HIGH


class ErrorHandler:
    """Logs recoverable errors and keeps their history."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self.error_history: list[HwAwareError] = []

    def handle_error(self, error: Exception) -> HwAwareError:
        """Record an error and return it as an HwAwareError."""
        if isinstance(error, HwAwareError):
            hw_error = error
        else:
            hw_error = HwAwareError(message=str(error), original_error=error)

        self._log_error(hw_error)
        self.error_history.append(hw_error)
        return hw_error

    def _log_error(self, error: HwAwareError):
        """Log error with appropriate level."""
        log_message = f"[{error.category.value}] {error.message}"

        if error.severity == ErrorSeverity.CRITICAL:
            self.logger.critical(log_message, exc_info=error.original_error)
        elif error.severity == ErrorSeverity.HIGH:
            self.logger.error(log_message, exc_info=error.original_error)
        elif error.severity == ErrorSeverity.MEDIUM:
            self.logger.warning(log_message)
        else:
            self.logger.info(log_message)

    def get_error_stats(self) -> dict[str, Any]:
        """Count recorded errors by category and severity."""
        if not self.error_history:
            return {"total_errors": 0}

        categories = Counter(e.category.value for e in self.error_history)
        severities = Counter(e.severity.value for e in self.error_history)
        return {
            "total_errors": len(self.error_history),
            "by_category": dict(categories),
            "by_severity": dict(severities),
        }
