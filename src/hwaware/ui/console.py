"""Rich rendering of decisions, cost breakdowns and model summaries."""

from __future__ import annotations

import math

import pandas as pd
from rich import box
from rich.console import Console
from rich.table import Table

from hwaware.core.config import PredictorConfig
from hwaware.core.engine import Choice, Decision, Unsupported
from hwaware.hardware.cost_model import CostBreakdown
from hwaware.query.descriptor import OperationDescriptor


class ReportConsole:
    """Thin wrapper around a rich Console for the hwaware commands."""

    def __init__(self, console: Console | None = None):
        self.console = console or Console()

    def show_table(self, title: str, columns: list[str], rows: list[list[str]]) -> None:
        table = Table(title=title, box=box.SIMPLE_HEAVY)
        for col in columns:
            table.add_column(col)

        if not rows:
            table.add_row(*(["-"] * len(columns)))
        else:
            for row in rows:
                table.add_row(*row)

        self.console.print(table)

    def show_key_values(self, title: str, pairs: list[list[str]]) -> None:
        table = Table(title=title, box=box.SIMPLE)
        table.add_column("Field", style="bold")
        table.add_column("Value")

        for pair in pairs:
            if len(pair) >= 2:
                table.add_row(pair[0], pair[1])

        self.console.print(table)

    def show_descriptor(self, descriptor: OperationDescriptor) -> None:
        pairs = [["Operation", descriptor.kind.value]]
        if not descriptor.supported:
            self.show_key_values("Query shape", pairs)
            return

        pairs.append(["Data table", descriptor.data_table or "-"])
        if descriptor.model_table:
            pairs.append(["Model table", descriptor.model_table])
        if descriptor.data_columns:
            pairs.append(["Data columns", ", ".join(descriptor.data_columns)])
        if descriptor.model_columns:
            pairs.append(["Model columns", ", ".join(descriptor.model_columns)])
        if descriptor.id_column:
            pairs.append(["Id column", descriptor.id_column])
        if descriptor.output_table:
            pairs.append(["Output table", descriptor.output_table])
        if descriptor.filter:
            f = descriptor.filter
            pairs.append(["Filter", f"{f.table}.{f.column} {f.op.value} {f.value:g}"])
        if descriptor.aggregate:
            a = descriptor.aggregate
            pairs.append(["Aggregate", f"{a.op.value}({a.table}.{a.column})"])
        self.show_key_values("Query shape", pairs)

    def show_decision(self, result: Decision | Unsupported) -> None:
        if isinstance(result, Unsupported):
            pairs = [
                ["Choice", _format_choice(result.choice)],
                ["Reason", result.reason.value],
            ]
            if result.detail:
                pairs.append(["Detail", result.detail])
            self.show_key_values("Decision", pairs)
            return

        kind = result.query_kind
        self.show_key_values(
            "Decision",
            [
                ["Query kind", f"Q{kind.number} ({kind.value})"],
                ["Data table", result.descriptor.data_table or "-"],
                ["Rows", f"{result.rows:,.0f}"],
                ["Pages", f"{result.pages:,.0f}"],
                ["Dataset profile", result.dataset_profile.value],
                ["CPU estimate", f"{result.predicted_cpu_ms:.3f} ms"],
                ["Accelerator estimate", f"{result.predicted_hw_ms:.3f} ms"],
                ["Choice", _format_choice(result.choice)],
            ],
        )

    def show_breakdown(self, breakdown: CostBreakdown) -> None:
        self.show_key_values(
            "Accelerator cost",
            [
                ["Cores", str(breakdown.cores)],
                ["Full chunks", str(breakdown.iterations)],
                ["Host setup", f"{breakdown.host_static_ms:.3f} ms"],
                ["Buffer allocation", f"{breakdown.buffer_ms:.3f} ms"],
                ["Storage transfer", f"{breakdown.storage_transfer_ms:.3f} ms"],
                ["Kernel", f"{breakdown.kernel_ms:.3f} ms"],
                ["Kernel overhead", f"{breakdown.kernel_overhead_ms:.3f} ms"],
                ["Host transfer", f"{breakdown.host_transfer_ms:.3f} ms"],
                ["Total", f"[bold]{breakdown.total:.3f} ms[/bold]"],
            ],
        )

    def show_model_summary(self, summary: pd.DataFrame) -> None:
        columns = [
            "Query",
            "Kind",
            "State",
            "Bucket",
            "Samples",
            "Sizes (k rows)",
            "Rel. error %",
        ]
        rows = []
        for record in summary.to_dict("records"):
            rows.append(
                [
                    record["query"],
                    record["kind"],
                    record["state"],
                    record["bucket"],
                    str(record["samples"]),
                    _format_range(record["min_size"], record["max_size"]),
                    _format_number(record["mean_rel_error"], "{:.2f}"),
                ]
            )
        self.show_table("CPU cost models", columns, rows)

    def show_config(self, config: PredictorConfig, database_path: str) -> None:
        pairs = [[key, str(value)] for key, value in config.to_dict().items()]
        pairs.append(["database_path", database_path])
        self.show_key_values("Configuration", pairs)

    def show_error(self, message: str) -> None:
        self.console.print(f"[red]❌ {message}[/red]")

    def show_warning(self, message: str) -> None:
        self.console.print(f"[yellow]⚠️ {message}[/yellow]")

    def show_success(self, message: str) -> None:
        self.console.print(f"✓ {message}")


def _format_choice(choice: Choice) -> str:
    if choice is Choice.ACCELERATOR:
        return "[green]accelerator[/green]"
    return "[cyan]cpu[/cyan]"


def _is_missing(value) -> bool:
    return value is None or (isinstance(value, float) and math.isnan(value))


def _format_number(value, fmt: str) -> str:
    return "-" if _is_missing(value) else fmt.format(value)


def _format_range(low, high) -> str:
    if _is_missing(low) or _is_missing(high):
        return "-"
    return f"{low:g} - {high:g}"
