"""Tests for the main module and CLI functionality.

These tests run the click commands through CliRunner with the settings
directory redirected to a temporary home, so no user files are touched.
"""

from unittest.mock import patch

import pytest
from click.testing import CliRunner

from hwaware import main
from hwaware.database import DuckDBStorage
from hwaware.ui.cli import cli

SVM_QUERY = "SELECT madlib.svm_predict(svm_model, data_tbl, id, out_tbl) FROM data_tbl"


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    monkeypatch.setenv("HOME", str(tmp_path))
    for name in (
        "HWAWARE_SEED_VERSION",
        "HWAWARE_DEVICE",
        "HWAWARE_DATABASE_PATH",
        "HWAWARE_VERBOSE",
    ):
        monkeypatch.delenv(name, raising=False)
    return tmp_path


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def database(tmp_path):
    path = tmp_path / "tables.duckdb"
    with DuckDBStorage(path) as db:
        db.execute("CREATE TABLE data_tbl (id INTEGER, x DOUBLE, y DOUBLE)")
        db.execute("INSERT INTO data_tbl SELECT i, i * 0.5, i * 2.0 FROM range(1000) r(i)")
    return str(path)


def test_main_calls_cli() -> None:
    """Test that main calls the CLI function."""
    with patch("hwaware.ui.cli.cli") as mock_cli:
        main()
        mock_cli.assert_called_once()


def test_cli_version(runner):
    """Test that the CLI version option works correctly."""
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "version 0.1.0" in result.output


def test_classify_svm(runner):
    result = runner.invoke(cli, ["classify", SVM_QUERY])

    assert result.exit_code == 0
    assert "svm_model" in result.output
    assert "Q9 (svm)" in result.output


def test_classify_unsupported(runner):
    result = runner.invoke(cli, ["classify", "SELECT * FROM data_tbl GROUP BY id"])

    assert result.exit_code == 0
    assert "unsupported" in result.output
    assert "Query kind" not in result.output


def test_decide_against_duckdb(runner, database):
    result = runner.invoke(cli, ["decide", SVM_QUERY, "--database", database])

    assert result.exit_code == 0, result.output
    assert "Q9 (svm)" in result.output
    assert "1,000" in result.output
    assert "haberman" in result.output


def test_decide_missing_table(runner, database):
    query = "SELECT madlib.svm_predict(m, missing_tbl, id, o) FROM missing_tbl"

    result = runner.invoke(cli, ["decide", query, "-d", database])

    assert result.exit_code == 0
    assert "table_not_found" in result.output


def test_decide_without_history(runner, database):
    result = runner.invoke(cli, ["decide", SVM_QUERY, "-d", database, "--empty"])

    assert result.exit_code == 0
    assert "insufficient_history" in result.output


def test_hw_time(runner):
    result = runner.invoke(
        cli, ["hw-time", "--kind", "mlp", "--profile", "higgs", "--pages", "300000"]
    )

    assert result.exit_code == 0
    assert "Total" in result.output
    assert "Full chunks" in result.output


def test_hw_time_rejects_negative_pages(runner):
    result = runner.invoke(cli, ["hw-time", "--kind", "svm", "--pages", "-1"])
    assert result.exit_code == 1


def test_hw_time_unknown_device(runner, monkeypatch):
    monkeypatch.setenv("HWAWARE_DEVICE", "no_such_device")

    result = runner.invoke(cli, ["hw-time", "--kind", "svm", "--pages", "10"])

    assert result.exit_code == 1
    assert "Configuration error" in result.output


def test_model_summary(runner):
    result = runner.invoke(cli, ["model", "--kind", "tree"])

    assert result.exit_code == 0
    assert "Q11" in result.output
    assert "Q9" not in result.output


def test_replay(runner, tmp_path):
    lines = ["kind,rows,elapsed_ms"]
    lines += [f"mlp,{size * 1000},{3.0 * size + 1}" for size in range(1, 11)]
    lines.append("forest,1000,5.0")
    lines.append("mlp,1000,-1")
    lines.append("mlp,lots,5.0")
    csv_path = tmp_path / "observations.csv"
    csv_path.write_text("\n".join(lines) + "\n", encoding="utf-8")

    result = runner.invoke(cli, ["replay", str(csv_path), "--empty", "--kind", "mlp"])

    assert result.exit_code == 0, result.output
    assert "Recorded 10 observations" in result.output
    assert "Skipped 3 invalid rows" in result.output
    assert "Q10" in result.output


def test_replay_requires_columns(runner, tmp_path):
    csv_path = tmp_path / "bad.csv"
    csv_path.write_text("kind,rows\nmlp,1000\n", encoding="utf-8")

    result = runner.invoke(cli, ["replay", str(csv_path)])

    assert result.exit_code == 1
    assert "elapsed_ms" in result.output


def test_config_show(runner):
    result = runner.invoke(cli, ["config", "show"])

    assert result.exit_code == 0
    assert "good_enough_error_pct" in result.output
    assert "tables.duckdb" in result.output


def test_config_set(runner, isolated_home):
    result = runner.invoke(cli, ["config", "set", "goodEnoughErrorPct", "3"])
    assert result.exit_code == 0

    settings_file = isolated_home / ".hwaware" / "user-settings.json"
    assert '"goodEnoughErrorPct": 3' in settings_file.read_text(encoding="utf-8")

    result = runner.invoke(cli, ["config", "set", "minBucketSamples", "2"])
    assert result.exit_code == 1
    assert "Validation error" in result.output
