"""Bundled seed measurements for the CPU cost model."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from hwaware.error_handling import ConfigurationError
from hwaware.ml.adaptive_range import BucketName
from hwaware.ml.regression import Sample
from hwaware.query.descriptor import QueryKind

SEED_DIR = Path(__file__).parent.parent / "resources" / "seed"


@dataclass(frozen=True)
class SeedDataset:
    """Shared bucket sizes plus measured CPU times for every query kind."""

    version: str
    sizes: dict[BucketName, tuple[float, ...]]
    times: dict[QueryKind, dict[BucketName, tuple[float, ...]]]

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SeedDataset:
        """Build a dataset from parsed YAML.

        Raises:
            ConfigurationError: If a bucket or kind is missing or lengths differ
        """
        try:
            version = str(data["version"])
            sizes = {
                name: tuple(float(v) for v in data["sizes"][name.value])
                for name in BucketName
            }
            times = {
                kind: {
                    name: tuple(float(v) for v in data["times"][kind.value][name.value])
                    for name in BucketName
                }
                for kind in QueryKind
            }
        except (KeyError, TypeError, ValueError) as e:
            raise ConfigurationError(
                f"Invalid seed dataset: {e}", original_error=e
            ) from e

        for kind, buckets in times.items():
            for name, values in buckets.items():
                if len(values) != len(sizes[name]):
                    raise ConfigurationError(
                        f"Seed {kind.value}/{name.value} has {len(values)} times "
                        f"for {len(sizes[name])} sizes"
                    )
        return cls(version=version, sizes=sizes, times=times)

    @classmethod
    def from_yaml(cls, path: str | Path) -> SeedDataset:
        with open(path, encoding="utf-8") as f:
            return cls.from_dict(yaml.safe_load(f))

    def samples(self, kind: QueryKind) -> tuple[list[Sample], list[Sample], list[Sample]]:
        """Return (small, medium, large) samples for one query kind."""
        small, medium, large = (
            [
                Sample(size, time_ms)
                for size, time_ms in zip(self.sizes[name], self.times[kind][name])
            ]
            for name in BucketName
        )
        return small, medium, large


def available_seed_versions() -> list[str]:
    return sorted(p.stem for p in SEED_DIR.glob("*.yaml"))


def load_seed_dataset(version: str = "v1") -> SeedDataset:
    """Load a bundled seed dataset by version.

    Raises:
        ConfigurationError: If the version is not bundled
    """
    path = SEED_DIR / f"{version}.yaml"
    if not path.exists():
        raise ConfigurationError(
            f"Unknown seed version '{version}'. "
            f"Available: {', '.join(available_seed_versions())}"
        )
    return SeedDataset.from_yaml(path)
