"""Accelerator cost model for hwaware."""

from hwaware.hardware.cost_model import (
    AcceleratorCostModel,
    CostBreakdown,
    hw_time,
    interpolated_latency,
    scaled_bandwidth,
)
from hwaware.hardware.profiles import (
    Breakpoints,
    DatasetProfile,
    DeviceProfile,
    KernelCycles,
    ResourceBudget,
    load_device_profile,
)

__all__ = [
    "AcceleratorCostModel",
    "Breakpoints",
    "CostBreakdown",
    "DatasetProfile",
    "DeviceProfile",
    "KernelCycles",
    "ResourceBudget",
    "hw_time",
    "interpolated_latency",
    "load_device_profile",
    "scaled_bandwidth",
]
