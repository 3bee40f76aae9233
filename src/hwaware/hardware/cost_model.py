"""Analytical execution-time model for the near-storage accelerator."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from hwaware.error_handling import InvalidResourceProfileError
from hwaware.hardware.profiles import (
    Breakpoints,
    DatasetProfile,
    DeviceProfile,
    load_device_profile,
)
from hwaware.query.descriptor import QueryKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CostBreakdown:
    """Latency terms of one accelerator execution, all in ms."""

    host_static_ms: float
    buffer_ms: float
    storage_transfer_ms: float
    kernel_ms: float
    kernel_overhead_ms: float
    host_transfer_ms: float
    cores: int
    iterations: int

    @property
    def total(self) -> float:
        return (
            self.buffer_ms
            + self.host_static_ms
            + self.storage_transfer_ms
            + self.kernel_ms
            + self.kernel_overhead_ms
            + self.host_transfer_ms
        )


def scaled_bandwidth(size: float, table: Breakpoints) -> float:
    """Effective bandwidth for a transfer of ``size`` bytes.

    Below the smallest breakpoint the bandwidth is that breakpoint's value.
    Between breakpoints it grows in proportion to the size from the lower
    breakpoint, and above the largest it saturates at the largest value.
    """
    sizes, values = table.sizes, table.values
    if size <= sizes[0]:
        return values[0]
    for k in range(1, len(sizes)):
        if size <= sizes[k]:
            return values[k - 1] * size / sizes[k - 1]
    return values[-1]


def interpolated_latency(size: float, table: Breakpoints) -> float:
    """Buffer allocation latency for ``size`` bytes.

    Constant below the smallest breakpoint, linear between breakpoints and
    proportional to size above the largest one.
    """
    sizes, values = table.sizes, table.values
    if size <= sizes[0]:
        return values[0]
    for k in range(1, len(sizes)):
        if size <= sizes[k]:
            fraction = (size - sizes[k - 1]) / (sizes[k] - sizes[k - 1])
            return values[k - 1] + (values[k] - values[k - 1]) * fraction
    return values[-1] * size / sizes[-1]


class AcceleratorCostModel:
    """Predicts accelerator execution time from page count alone.

    The data is streamed in fixed-size chunks. Every full chunk pays the
    same buffer, transfer and kernel costs; the tail chunk is priced from
    its actual size.
    """

    def __init__(self, device: DeviceProfile | None = None):
        self.device = device or load_device_profile()
        self.cores = self.device.cores
        if self.cores < 1:
            raise InvalidResourceProfileError(
                f"Device '{self.device.name}' budget fits no kernel cores"
            )

    def hw_time(
        self, kind: QueryKind, profile: DatasetProfile, page_count: float
    ) -> float:
        """Predicted accelerator time in ms."""
        return self.breakdown(kind, profile, page_count).total

    def breakdown(
        self, kind: QueryKind, profile: DatasetProfile, page_count: float
    ) -> CostBreakdown:
        """Price each latency term separately.

        Raises:
            InvalidResourceProfileError: If the device lacks a calibration entry
        """
        device = self.device
        cycles = device.kernel_cycles(kind, profile)

        db_bytes = (int(page_count) + 1) * device.page_size
        iterations = db_bytes // device.chunk_bytes
        tail_bytes = db_bytes - iterations * device.chunk_bytes
        tail_pages = tail_bytes // device.page_size

        host_static = (device.addressmap_ms + device.setkernel_ms) * (iterations + 1)
        buffer = self._buffer_ms(iterations, tail_bytes)
        storage_transfer = self._storage_transfer_ms(iterations, tail_bytes)
        host_transfer = self._host_transfer_ms(kind, iterations, page_count)

        pages_per_chunk = device.chunk_pages
        compute_cycles = iterations * cycles.compute * pages_per_chunk
        compute_cycles += cycles.compute * tail_pages
        if kind.aggregates_output:
            dma_cycles = (iterations + 1) * cycles.dma
        else:
            dma_cycles = iterations * cycles.dma * pages_per_chunk
            dma_cycles += cycles.dma * tail_pages

        clock_hz = device.clock_mhz * 1_000_000
        compute_ms = (compute_cycles // self.cores) / clock_hz * 1000
        dma_ms = (dma_cycles // self.cores) / clock_hz * 1000
        kernel = compute_ms + dma_ms

        result = CostBreakdown(
            host_static_ms=host_static,
            buffer_ms=buffer,
            storage_transfer_ms=storage_transfer,
            kernel_ms=kernel,
            kernel_overhead_ms=kernel * device.kernel_overhead_ratio,
            host_transfer_ms=host_transfer,
            cores=self.cores,
            iterations=iterations,
        )
        logger.debug(
            f"Accelerator estimate for {kind.value}/{profile.value} at "
            f"{page_count:.0f} pages: {result.total:.3f} ms"
        )
        return result

    def _buffer_ms(self, iterations: int, tail_bytes: int) -> float:
        device = self.device
        table = device.buffer_latency
        full_chunk = table.values[-1] * device.chunk_bytes / table.sizes[-1]
        total = iterations * (full_chunk + device.buffer_chunk_penalty_ms)
        total += interpolated_latency(tail_bytes, table)
        if iterations:
            total += device.buffer_chunk_penalty_ms
        return total

    def _storage_transfer_ms(self, iterations: int, tail_bytes: int) -> float:
        device = self.device
        table = device.storage_bandwidth
        total = iterations * (device.chunk_bytes / table.values[-1]) * 1000
        total += tail_bytes / scaled_bandwidth(tail_bytes, table) * 1000
        return total

    def _host_transfer_ms(
        self, kind: QueryKind, iterations: int, page_count: float
    ) -> float:
        device = self.device
        table = device.host_bandwidth

        if kind.aggregates_output:
            out_bytes = device.aggregate_output_bytes
            return (iterations + 1) * out_bytes / scaled_bandwidth(out_bytes, table) * 1000

        tail_pages = max(0.0, page_count - iterations * device.chunk_pages)
        out_bytes = int(tail_pages * device.output_bytes_per_page)
        full_chunk = device.chunk_pages * device.output_bytes_per_page
        total = iterations * full_chunk / table.values[-1] * 1000
        total += out_bytes / scaled_bandwidth(out_bytes, table) * 1000
        return total


def hw_time(
    kind: QueryKind,
    profile: DatasetProfile,
    page_count: float,
    device: DeviceProfile | None = None,
) -> float:
    """Predicted accelerator time in ms for ``page_count`` heap pages.

    Uses the bundled smartssd profile unless ``device`` is given.
    """
    return AcceleratorCostModel(device).hw_time(kind, profile, page_count)
