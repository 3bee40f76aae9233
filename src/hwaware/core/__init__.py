"""Core components for hwaware."""

from hwaware.core.config import PredictorConfig, SettingsManager

__all__ = [
    "PredictorConfig",
    "SettingsManager",
]
