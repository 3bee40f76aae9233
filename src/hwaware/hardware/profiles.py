"""Device calibration profiles for the accelerator cost model."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml

from hwaware.error_handling import ConfigurationError, InvalidResourceProfileError
from hwaware.query.descriptor import QueryKind

DEVICE_DIR = Path(__file__).parent.parent / "resources" / "devices"

RESOURCE_NAMES = ("lut", "ff", "uram", "bram", "dsp")


class DatasetProfile(Enum):
    """Resource-profile class of a dataset, by number of feature columns."""

    HIGGS = "higgs"
    FOREST_COVER = "forest_cover"
    WILT = "wilt"
    HABERMAN = "haberman"

    @classmethod
    def from_feature_count(cls, columns: int) -> DatasetProfile:
        if columns > 17:
            return cls.HIGGS
        if columns > 8:
            return cls.FOREST_COVER
        if columns > 4:
            return cls.WILT
        return cls.HABERMAN


@dataclass(frozen=True)
class ResourceBudget:
    """FPGA resources: logic cells, flip-flops, ultra-RAM, block-RAM, DSP slices."""

    lut: int
    ff: int
    uram: int
    bram: int
    dsp: int

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ResourceBudget:
        return cls(**{name: int(data[name]) for name in RESOURCE_NAMES})

    def core_count(self, overhead: ResourceBudget, per_core: ResourceBudget) -> int:
        """How many kernel cores fit in this budget.

        Resources a core does not use place no limit on the count.
        """
        counts = [
            (getattr(self, name) - getattr(overhead, name)) // getattr(per_core, name)
            for name in RESOURCE_NAMES
            if getattr(per_core, name) > 0
        ]
        if not counts:
            raise InvalidResourceProfileError("Per-core resource cost is all zero")
        return min(counts)


@dataclass(frozen=True)
class Breakpoints:
    """Calibration points keyed by transfer size in ascending order."""

    sizes: tuple[float, ...]
    values: tuple[float, ...]

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Breakpoints:
        sizes = tuple(float(v) for v in data["sizes"])
        values = tuple(float(v) for v in data["values"])
        if len(sizes) != len(values) or not sizes:
            raise ConfigurationError("Breakpoint sizes and values must pair up")
        if list(sizes) != sorted(sizes):
            raise ConfigurationError("Breakpoint sizes must be ascending")
        return cls(sizes=sizes, values=values)


@dataclass(frozen=True)
class KernelCycles:
    """Per-page compute and DMA cycle counts of one kernel."""

    compute: int
    dma: int


@dataclass(frozen=True)
class DeviceProfile:
    """Everything the accelerator cost model needs to know about a device."""

    name: str
    clock_mhz: float
    page_size: int
    chunk_bytes: int
    output_bytes_per_page: int
    aggregate_output_bytes: int
    kernel_overhead_ratio: float
    budget: ResourceBudget
    core_overhead: ResourceBudget
    core_cost: ResourceBudget
    addressmap_ms: float
    setkernel_ms: float
    buffer_chunk_penalty_ms: float
    buffer_latency: Breakpoints
    storage_bandwidth: Breakpoints
    host_bandwidth: Breakpoints
    cycles: dict[tuple[DatasetProfile, QueryKind], KernelCycles]

    @property
    def chunk_pages(self) -> int:
        return self.chunk_bytes // self.page_size

    @property
    def cores(self) -> int:
        return self.budget.core_count(self.core_overhead, self.core_cost)

    def kernel_cycles(self, kind: QueryKind, profile: DatasetProfile) -> KernelCycles:
        """Look up the cycle table.

        Raises:
            InvalidResourceProfileError: If the device has no calibration entry
        """
        try:
            return self.cycles[(profile, kind)]
        except KeyError as e:
            raise InvalidResourceProfileError(
                f"Device '{self.name}' has no cycle calibration for "
                f"{kind.value} on {profile.value}"
            ) from e

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DeviceProfile:
        """Build a profile from parsed YAML.

        Raises:
            ConfigurationError: If a field is missing or malformed
        """
        try:
            resources = data["resources"]
            host = data["host"]
            if "device_total" in resources and "shell" in resources:
                _check_budget_fits(
                    ResourceBudget.from_dict(resources["budget"]),
                    ResourceBudget.from_dict(resources["device_total"]),
                    ResourceBudget.from_dict(resources["shell"]),
                )
            cycles = {
                (DatasetProfile(profile), QueryKind(kind)): KernelCycles(
                    compute=int(pair[0]), dma=int(pair[1])
                )
                for profile, kinds in data["cycles"].items()
                for kind, pair in kinds.items()
            }
            return cls(
                name=str(data["name"]),
                clock_mhz=float(data["clock_mhz"]),
                page_size=int(data["page_size"]),
                chunk_bytes=int(data["chunk_bytes"]),
                output_bytes_per_page=int(data["output_bytes_per_page"]),
                aggregate_output_bytes=int(data["aggregate_output_bytes"]),
                kernel_overhead_ratio=float(data["kernel_overhead_ratio"]),
                budget=ResourceBudget.from_dict(resources["budget"]),
                core_overhead=ResourceBudget.from_dict(resources["core_overhead"]),
                core_cost=ResourceBudget.from_dict(resources["core_cost"]),
                addressmap_ms=float(host["addressmap_ms"]),
                setkernel_ms=float(host["setkernel_ms"]),
                buffer_chunk_penalty_ms=float(host["buffer_chunk_penalty_ms"]),
                buffer_latency=Breakpoints.from_dict(data["buffer_latency"]),
                storage_bandwidth=Breakpoints.from_dict(data["storage_bandwidth"]),
                host_bandwidth=Breakpoints.from_dict(data["host_bandwidth"]),
                cycles=cycles,
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ConfigurationError(
                f"Invalid device profile: {e}", original_error=e
            ) from e

    @classmethod
    def from_yaml(cls, path: str | Path) -> DeviceProfile:
        with open(path, encoding="utf-8") as f:
            return cls.from_dict(yaml.safe_load(f))


def _check_budget_fits(
    budget: ResourceBudget, device_total: ResourceBudget, shell: ResourceBudget
) -> None:
    for name in RESOURCE_NAMES:
        available = getattr(device_total, name) - getattr(shell, name)
        if getattr(budget, name) > available:
            raise ConfigurationError(
                f"User {name} budget {getattr(budget, name)} exceeds the "
                f"{available} left by the shell"
            )


@lru_cache(maxsize=8)
def load_device_profile(name: str = "smartssd") -> DeviceProfile:
    """Load a bundled device profile by name.

    Raises:
        ConfigurationError: If no profile with that name is bundled
    """
    path = DEVICE_DIR / f"{name}.yaml"
    if not path.exists():
        available = ", ".join(sorted(p.stem for p in DEVICE_DIR.glob("*.yaml")))
        raise ConfigurationError(
            f"Unknown device profile '{name}'. Available: {available}"
        )
    return DeviceProfile.from_yaml(path)
