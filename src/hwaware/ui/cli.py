"""Command-line interface for hwaware."""

import logging
import sys

import click
import pandas as pd
import yaml
from dotenv import load_dotenv

from hwaware.core import SettingsManager
from hwaware.core.engine import DecisionEngine
from hwaware.database.duckdb import DuckDBStorage
from hwaware.database.memory import InMemoryStorage
from hwaware.error_handling import HwAwareError
from hwaware.hardware.cost_model import AcceleratorCostModel
from hwaware.hardware.profiles import DatasetProfile, load_device_profile
from hwaware.ml.model_state import ModelState
from hwaware.query.classifier import QueryShapeClassifier
from hwaware.query.descriptor import QueryKind
from hwaware.ui.console import ReportConsole
from hwaware.utils.validation import ValidationError

# Load environment variables
load_dotenv()

REPLAY_COLUMNS = ("kind", "rows", "elapsed_ms")


@click.group()
@click.version_option(version="0.1.0")
@click.option("-v", "--verbose", is_flag=True, help="Log decisions and refits")
@click.pass_context
def cli(ctx: click.Context, verbose: bool):
    """hwaware - route ML scoring queries to the CPU or a near-storage accelerator."""
    settings = SettingsManager()
    verbose = verbose or settings.get_verbose_mode()
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = settings


@cli.command()
@click.argument("query")
def classify(query: str):
    """Show the structural shape of a scoring query."""
    ui = ReportConsole()
    descriptor = QueryShapeClassifier().classify(query)
    ui.show_descriptor(descriptor)
    if descriptor.supported:
        try:
            kind = QueryKind.from_descriptor(descriptor)
            ui.show_success(f"Query kind Q{kind.number} ({kind.value})")
        except HwAwareError as e:
            ui.show_warning(e.get_user_message())


@cli.command()
@click.argument("query")
@click.option("-d", "--database", default=None, help="DuckDB file holding the tables")
@click.option("--empty", is_flag=True, help="Start without the seed dataset")
@click.pass_obj
def decide(settings: SettingsManager, query: str, database: str | None, empty: bool):
    """Predict CPU and accelerator time for a query and pick the faster one."""
    ui = ReportConsole()
    config = settings.get_predictor_config()
    if empty:
        config = config.with_overrides(seed_version=None)

    try:
        with DuckDBStorage(database or settings.get_database_path()) as storage:
            engine = DecisionEngine(storage, config=config)
            result = engine.decide(query)
    except HwAwareError as e:
        ui.show_error(e.get_user_message())
        sys.exit(1)

    ui.show_decision(result)


@cli.command("hw-time")
@click.option(
    "-k",
    "--kind",
    required=True,
    type=click.Choice([k.value for k in QueryKind]),
    help="Query kind to price",
)
@click.option(
    "-p",
    "--profile",
    default=DatasetProfile.HABERMAN.value,
    type=click.Choice([p.value for p in DatasetProfile]),
    help="Dataset resource profile",
)
@click.option("-n", "--pages", required=True, type=float, help="Heap page count")
@click.pass_obj
def hw_time(settings: SettingsManager, kind: str, profile: str, pages: float):
    """Break down the predicted accelerator time."""
    ui = ReportConsole()
    if pages < 0:
        ui.show_error("Page count must be non-negative")
        sys.exit(1)

    config = settings.get_predictor_config()
    try:
        model = AcceleratorCostModel(load_device_profile(config.device))
        breakdown = model.breakdown(QueryKind(kind), DatasetProfile(profile), pages)
    except HwAwareError as e:
        ui.show_error(e.get_user_message())
        sys.exit(1)

    ui.show_breakdown(breakdown)


@cli.command()
@click.option(
    "-k",
    "--kind",
    default=None,
    type=click.Choice([k.value for k in QueryKind]),
    help="Only show one query kind",
)
@click.pass_obj
def model(settings: SettingsManager, kind: str | None):
    """Show the seeded CPU cost models."""
    ui = ReportConsole()
    try:
        state = ModelState.from_config(settings.get_predictor_config())
    except HwAwareError as e:
        ui.show_error(e.get_user_message())
        sys.exit(1)

    summary = state.summary()
    if kind:
        summary = summary[summary["kind"] == kind]
    ui.show_model_summary(summary)


@cli.command()
@click.argument("csv_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--empty", is_flag=True, help="Start without the seed dataset")
@click.option(
    "-k",
    "--kind",
    default=None,
    type=click.Choice([k.value for k in QueryKind]),
    help="Only show one query kind afterwards",
)
@click.pass_obj
def replay(settings: SettingsManager, csv_path: str, empty: bool, kind: str | None):
    """Feed observed CPU executions from a CSV into the cost models.

    The CSV needs the columns kind, rows and elapsed_ms.
    """
    ui = ReportConsole()
    frame = pd.read_csv(csv_path)
    missing = [c for c in REPLAY_COLUMNS if c not in frame.columns]
    if missing:
        ui.show_error(f"Missing columns: {', '.join(missing)}")
        sys.exit(1)

    config = settings.get_predictor_config()
    if empty:
        config = config.with_overrides(seed_version=None)

    try:
        engine = DecisionEngine(InMemoryStorage(), config=config)
    except HwAwareError as e:
        ui.show_error(e.get_user_message())
        sys.exit(1)

    known = {k.value: k for k in QueryKind}
    recorded = skipped = 0
    for line, record in enumerate(frame.to_dict("records"), start=2):
        query_kind = known.get(str(record["kind"]).strip().lower())
        if query_kind is None:
            engine.error_handler.handle_error(
                ValidationError(f"Line {line}: unknown query kind {record['kind']!r}")
            )
            skipped += 1
        elif engine.record_outcome(query_kind, record["rows"], record["elapsed_ms"]):
            recorded += 1
        else:
            skipped += 1

    ui.show_success(f"Recorded {recorded} observations")
    if skipped:
        ui.show_warning(f"Skipped {skipped} invalid rows")

    summary = engine.model_state.summary()
    if kind:
        summary = summary[summary["kind"] == kind]
    ui.show_model_summary(summary)


def _parse_setting(key: str, value: str):
    """Turn a command-line value into the type the setting expects."""
    if key in ("databasePath", "device"):
        return value
    try:
        return yaml.safe_load(value)
    except yaml.YAMLError:
        return value


@cli.group()
def config():
    """Inspect and change user settings."""
    pass


@config.command("show")
@click.pass_obj
def config_show(settings: SettingsManager):
    """Show the effective predictor configuration."""
    ui = ReportConsole()
    ui.show_config(settings.get_predictor_config(), settings.get_database_path())


@config.command("set")
@click.argument("key")
@click.argument("value")
@click.pass_obj
def config_set(settings: SettingsManager, key: str, value: str):
    """Persist a user setting, e.g. ``goodEnoughErrorPct 3``."""
    ui = ReportConsole()
    try:
        settings.update_user_setting(key, _parse_setting(key, value))
    except HwAwareError as e:
        ui.show_error(e.get_user_message())
        sys.exit(1)
    ui.show_success(f"Set {key} = {value}")


if __name__ == "__main__":
    cli()
