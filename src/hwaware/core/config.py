"""Configuration management for hwaware."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any

from hwaware.utils.validation import (
    ValidationError,
    validate_percentage,
    validate_positive_int,
)

logger = logging.getLogger(__name__)

# Seed version value that starts every query kind with an empty model.
NO_SEED = "none"


@dataclass(frozen=True)
class PredictorConfig:
    """Tunable thresholds for the classifier and the adaptive cost model."""

    good_enough_error_pct: float = 5.0
    min_bucket_samples: int = 4
    min_samples_to_predict: int = 4
    max_classifier_iterations: int = 20
    page_size: int = 8192
    seed_version: str | None = "v1"
    bootstrap_samples: int = 10
    device: str = "smartssd"

    def __post_init__(self):
        validate_percentage(self.good_enough_error_pct, "good_enough_error_pct")
        # A cubic fit needs four points.
        validate_positive_int(self.min_bucket_samples, "min_bucket_samples", 4)
        validate_positive_int(self.min_samples_to_predict, "min_samples_to_predict", 4)
        validate_positive_int(self.max_classifier_iterations, "max_classifier_iterations")
        validate_positive_int(self.page_size, "page_size")
        # Three buckets sharing two boundary samples, each at least four long.
        validate_positive_int(self.bootstrap_samples, "bootstrap_samples", 10)
        if not self.device or not isinstance(self.device, str):
            raise ValidationError("device must be a non-empty string")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PredictorConfig:
        """Build a config from a dict, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known}
        if isinstance(values.get("seed_version"), str) and (
            values["seed_version"].lower() == NO_SEED
        ):
            values["seed_version"] = None
        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def with_overrides(self, **overrides: Any) -> PredictorConfig:
        return replace(self, **overrides)


# Maps settings-file keys onto PredictorConfig fields.
_PREDICTOR_SETTING_KEYS = {
    "goodEnoughErrorPct": "good_enough_error_pct",
    "minBucketSamples": "min_bucket_samples",
    "minSamplesToPredict": "min_samples_to_predict",
    "maxClassifierIterations": "max_classifier_iterations",
    "pageSize": "page_size",
    "seedVersion": "seed_version",
    "bootstrapSamples": "bootstrap_samples",
    "device": "device",
}


class SettingsManager:
    """Manages user settings and configuration."""

    def __init__(self, settings_dir: str | None = None):
        self.settings_dir = Path(settings_dir or Path.home() / ".hwaware")
        self.settings_file = self.settings_dir / "user-settings.json"
        self.settings_dir.mkdir(parents=True, exist_ok=True)

    def load_user_settings(self) -> dict[str, Any]:
        """Load user settings from file."""
        if not self.settings_file.exists():
            return {}

        try:
            with open(self.settings_file, encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable settings file {self.settings_file}: {e}")
            return {}

    def save_user_settings(self, settings: dict[str, Any]) -> None:
        """Save user settings to file."""
        try:
            with open(self.settings_file, "w", encoding="utf-8") as f:
                json.dump(settings, f, indent=2)
        except OSError as e:
            logger.warning(f"Could not save settings: {e}")

    def update_user_setting(self, key: str, value: Any) -> None:
        """Update a single user setting with validation.

        Args:
            key: Setting key to update
            value: Setting value

        Raises:
            ValidationError: If the value is invalid for the given key
        """
        if key in _PREDICTOR_SETTING_KEYS:
            # Validate by building a config with the new value applied
            field_name = _PREDICTOR_SETTING_KEYS[key]
            PredictorConfig.from_dict({field_name: value})
        elif key == "databasePath":
            if not value or not isinstance(value, str):
                raise ValidationError(f"{key} must be a non-empty string")
            value = value.strip()
            if not value:
                raise ValidationError(f"{key} cannot be only whitespace")
        elif key == "verbose":
            if not isinstance(value, bool):
                raise ValidationError(f"{key} must be true or false")
        else:
            raise ValidationError(f"Unknown setting: {key}")

        settings = self.load_user_settings()
        settings[key] = value
        self.save_user_settings(settings)

    def get_predictor_config(self) -> PredictorConfig:
        """Build the predictor config from defaults, settings file and environment.

        Environment variables take precedence over the settings file.
        """
        settings = self.load_user_settings()
        values = {
            field_name: settings[key]
            for key, field_name in _PREDICTOR_SETTING_KEYS.items()
            if key in settings
        }

        seed_version = self.get_seed_version_override()
        if seed_version is not None:
            values["seed_version"] = seed_version

        device = os.getenv("HWAWARE_DEVICE")
        if device and device.strip():
            values["device"] = device.strip()

        return PredictorConfig.from_dict(values)

    def get_seed_version_override(self) -> str | None:
        """Get seed version from the HWAWARE_SEED_VERSION environment variable."""
        seed_version = os.getenv("HWAWARE_SEED_VERSION")
        if seed_version and seed_version.strip():
            return seed_version.strip()
        return None

    def get_database_path(self) -> str:
        """Get the DuckDB database path from environment or settings."""
        db_path = os.getenv("HWAWARE_DATABASE_PATH")
        if db_path:
            return db_path

        settings = self.load_user_settings()
        db_path = settings.get("databasePath")
        if db_path:
            return db_path

        # Default to project-local .hwaware directory
        return str(Path(".hwaware") / "tables.duckdb")

    def get_verbose_mode(self) -> bool:
        """Get verbose/debug mode setting.

        Note:
            Checks HWAWARE_VERBOSE environment variable first, then settings file.
            Accepts: "1", "true", "yes" (case-insensitive)
        """
        verbose_env = os.getenv("HWAWARE_VERBOSE", "").lower()
        if verbose_env in ("1", "true", "yes"):
            return True

        settings = self.load_user_settings()
        return bool(settings.get("verbose", False))
